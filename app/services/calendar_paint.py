"""
Calendar paint engine.

For a target month, lays out a fixed 6x7 grid (Monday first) and classifies
every day as occupied / turnover / departure / none from the stays'
derived intervals. Pure: recomputed on every call, nothing cached.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable

from app.services.dates import derive_interval, parse_flexible_date
from app.services.grouping import export_order

GRID_WEEKS = 6
GRID_DAYS = GRID_WEEKS * 7

# Cycles when a month has more stays than colours
PALETTE = ("#2563EB", "#F59E0B", "#10B981", "#EF4444", "#8B5CF6")


class CellKind(str, enum.Enum):
    occupied = "occupied"
    turnover = "turnover"
    departure = "departure"
    none = "none"


@dataclass(frozen=True)
class CalendarCell:
    day: date
    kind: CellKind
    colors: tuple[str, ...]
    outside_month: bool
    occupants: tuple[int, ...] = ()
    arrivals: tuple[int, ...] = ()
    departures: tuple[int, ...] = ()


@dataclass
class MonthPaint:
    year: int
    month: int
    grid_start: date
    cells: list[CalendarCell] = field(default_factory=list)
    colors: dict[int, str] = field(default_factory=dict)

    @property
    def grid_end(self) -> date:
        """Exclusive."""
        return self.grid_start + timedelta(days=GRID_DAYS)

    def weeks(self) -> list[list[CalendarCell]]:
        return [self.cells[i:i + 7] for i in range(0, len(self.cells), 7)]

    def cell(self, day: date) -> CalendarCell | None:
        offset = (day - self.grid_start).days
        if 0 <= offset < len(self.cells):
            return self.cells[offset]
        return None


def grid_start_for(year: int, month: int) -> date:
    first = date(year, month, 1)
    return first - timedelta(days=first.weekday())


def color_for_position(position: int) -> str:
    return PALETTE[position % len(PALETTE)]


def assign_colors(stays: Iterable) -> dict[int, str]:
    """Stay id -> colour by chronological position. Same input order gives the same colours."""
    return {int(stay.id): color_for_position(i) for i, stay in enumerate(export_order(stays))}


def _classify(
    occupants: list[int],
    arrivals: list[int],
    departures: list[int],
    colors: dict[int, str],
) -> tuple[CellKind, tuple[str, ...]]:
    for leaving in departures:
        arriving = next((a for a in arrivals if a != leaving), None)
        if arriving is not None:
            return CellKind.turnover, (colors[leaving], colors[arriving])
    if not occupants and departures:
        return CellKind.departure, (colors[departures[0]],)
    if occupants:
        return CellKind.occupied, tuple(colors[i] for i in sorted(occupants))
    return CellKind.none, ()


def paint_month(stays: Iterable, year: int, month: int, colors: dict[int, str] | None = None) -> MonthPaint:
    """Paint map for `month`. Pass `colors` to reuse an assignment made for the same export."""
    ordered = export_order(stays)
    if colors is None:
        colors = assign_colors(ordered)
    start = grid_start_for(year, month)
    end = start + timedelta(days=GRID_DAYS)

    occupancy: dict[date, list[int]] = {}
    arrivals: dict[date, list[int]] = {}
    departures: dict[date, list[int]] = {}
    for stay in ordered:
        interval = derive_interval(stay)
        stay_id = int(stay.id)
        if interval is None or stay_id not in colors:
            continue
        day = max(interval.start, start)
        last = min(interval.end, end)
        while day < last:
            occupancy.setdefault(day, []).append(stay_id)
            day += timedelta(days=1)
        check_in = parse_flexible_date(getattr(stay, "check_in", None))
        # Arrivals come from the recorded check-in only
        if check_in and start <= check_in < end:
            arrivals.setdefault(check_in, []).append(stay_id)
        if start <= interval.end < end:
            departures.setdefault(interval.end, []).append(stay_id)

    paint = MonthPaint(year=year, month=month, grid_start=start, colors=dict(colors))
    for offset in range(GRID_DAYS):
        day = start + timedelta(days=offset)
        occ = occupancy.get(day, [])
        arr = arrivals.get(day, [])
        dep = departures.get(day, [])
        kind, fill = _classify(occ, arr, dep, colors)
        paint.cells.append(CalendarCell(
            day=day,
            kind=kind,
            colors=fill,
            outside_month=day.month != month,
            occupants=tuple(sorted(occ)),
            arrivals=tuple(arr),
            departures=tuple(dep),
        ))
    return paint
