"""Validated stay filter."""
from pydantic import BaseModel, ConfigDict


class StayFilter(BaseModel):
    """Absent field = no constraint on that axis."""
    model_config = ConfigDict(frozen=True)

    apartment_id: int | None = None
    year: int | None = None
    month: int | None = None

    @property
    def is_pinned(self) -> bool:
        return self.year is not None or self.month is not None
