"""Calendar and export response schemas."""
from datetime import date
from pydantic import BaseModel


class CalendarCellResponse(BaseModel):
    day: date
    kind: str
    colors: list[str]
    outside_month: bool
    occupants: list[int] = []
    arrivals: list[int] = []
    departures: list[int] = []


class MonthPaintResponse(BaseModel):
    year: int
    month: int
    grid_start: date
    grid_end: date
    colors: dict[int, str]
    cells: list[CalendarCellResponse]


class SaveOutcomeResponse(BaseModel):
    method: str  # saved | download
    filename: str
    message: str
    location: str | None = None
