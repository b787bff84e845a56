"""Stay schemas."""
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, field_validator
from app.schemas.apartment import ApartmentResponse


class StayCreate(BaseModel):
    """Raw entry-form payload; rules are enforced by services.stay_form."""
    apartment_id: int
    guest_name: str = ""
    guest_phone: str = ""
    guest_email: str = ""
    guest_address: str = ""
    people_count: int = 1
    nights_count: int | None = None
    linen: str | None = None
    rating: float | None = None
    notes: str | None = None
    check_in: date | None = None
    check_out: date | None = None
    year: int | None = None


class StayUpdate(BaseModel):
    """All optional; only provided fields are updated."""
    apartment_id: int | None = None
    guest_name: str | None = None
    guest_phone: str | None = None
    guest_email: str | None = None
    guest_address: str | None = None
    people_count: int | None = None
    nights_count: int | None = None
    linen: str | None = None
    rating: float | None = None
    notes: str | None = None
    check_in: date | None = None
    check_out: date | None = None
    year: int | None = None


class StayResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    apartment_id: int
    guest_name: str
    guest_phone: str
    guest_email: str
    guest_address: str
    people_count: int
    nights_count: int
    linen: str | None = None
    rating: float | None = None
    notes: str | None = None
    check_in: date | None = None
    check_out: date | None = None
    year: int
    created_at: datetime | None = None
    apartment: ApartmentResponse | None = None

    @field_validator("rating", mode="before")
    @classmethod
    def coerce_rating(cls, v):
        # Numeric columns come back as Decimal
        return float(v) if v is not None else None


class MonthGroupResponse(BaseModel):
    month: int
    stays: list[StayResponse]


class YearGroupResponse(BaseModel):
    year: int
    months: list[MonthGroupResponse]
