"""Filter engine: validate raw filter input and apply it to a stay collection."""
from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Mapping

from app.config import get_settings
from app.errors import ValidationError
from app.schemas.filters import StayFilter
from app.services.dates import (
    derive_interval,
    interval_covers_month,
    month_range,
    overlaps,
    parse_flexible_date,
    year_range,
)


def _parse_int(value: Any, field: str, label: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(field, f"{label} inválido.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.isascii() and s.isdigit():
            return int(s)
    raise ValidationError(field, f"{label} inválido.")


def validate_filter(raw: Mapping[str, Any] | None, *, today: date | None = None) -> StayFilter:
    """Turn raw query input into a StayFilter. Raises ValidationError naming the first bad field."""
    raw = raw or {}
    today = today or date.today()
    min_year = get_settings().min_year
    max_year = today.year

    apartment_id = _parse_int(raw.get("apartment_id"), "apartment_id", "Apartamento")
    if apartment_id is not None and apartment_id <= 0:
        raise ValidationError("apartment_id", "Apartamento inválido no filtro.")

    year = _parse_int(raw.get("year"), "year", "Ano")
    if year is not None and not (min_year <= year <= max_year):
        raise ValidationError("year", f"Ano inválido. Usa um valor entre {min_year} e {max_year}.")

    month = _parse_int(raw.get("month"), "month", "Mês")
    if month is not None and not (1 <= month <= 12):
        raise ValidationError("month", "Mês inválido. Usa um valor entre 1 e 12.")

    return StayFilter(apartment_id=apartment_id, year=year, month=month)


def _stored_year(stay) -> int | None:
    try:
        return int(getattr(stay, "year", None))
    except (TypeError, ValueError):
        return None


def anchor_time(stay) -> date:
    """Check-in, else check-out, else Dec-31 of the stored year."""
    check_in = parse_flexible_date(getattr(stay, "check_in", None))
    if check_in:
        return check_in
    check_out = parse_flexible_date(getattr(stay, "check_out", None))
    if check_out:
        return check_out
    year = _stored_year(stay)
    if year and 1 <= year <= 9999:
        return date(year, 12, 31)
    return date.min


def recency_key(stay) -> tuple[date, int]:
    """Sort key for listing stays; use with reverse=True. (anchor, id) is unique per stay."""
    return anchor_time(stay), int(getattr(stay, "id", 0) or 0)


def sort_by_recency(stays: Iterable) -> list:
    return sorted(stays, key=recency_key, reverse=True)


def _matches(stay, flt: StayFilter) -> bool:
    if flt.apartment_id is not None and getattr(stay, "apartment_id", None) != flt.apartment_id:
        return False
    if not flt.is_pinned:
        return True

    interval = derive_interval(stay)
    if flt.year is not None and flt.month is not None:
        if interval is None:
            return False
        start, end = month_range(flt.year, flt.month)
        return overlaps(interval.start, interval.end, start, end)
    if flt.year is not None:
        if interval is None:
            return _stored_year(stay) == flt.year
        start, end = year_range(flt.year)
        return overlaps(interval.start, interval.end, start, end)
    if interval is None:
        return False
    return interval_covers_month(interval, flt.month)


def apply_filter(stays: Iterable, flt: StayFilter) -> list:
    """Stays matching the filter, most recent first."""
    return sort_by_recency(s for s in stays if _matches(s, flt))


_SEARCH_FIELDS = ("guest_name", "guest_phone", "guest_email", "guest_address", "notes")


def search_stays(stays: Iterable, text: str) -> list:
    """Case-insensitive substring search over guest fields, year, ISO dates and apartment name."""
    needle = (text or "").strip().casefold()
    if not needle:
        return []
    found = []
    for stay in stays:
        values = [getattr(stay, f, None) for f in _SEARCH_FIELDS]
        values.append(getattr(stay, "year", None))
        for field in ("check_in", "check_out"):
            d = parse_flexible_date(getattr(stay, field, None))
            if d:
                values.append(d.isoformat())
        apartment = getattr(stay, "apartment", None)
        if apartment is not None:
            values.append(getattr(apartment, "name", None))
        if any(needle in str(v).casefold() for v in values if v):
            found.append(stay)
    return sort_by_recency(found)
