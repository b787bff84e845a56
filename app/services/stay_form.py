"""Entry-form rules for creating and editing stays."""
from __future__ import annotations

import re
from datetime import date
from typing import Any, Mapping

from app.config import get_settings
from app.errors import ValidationError
from app.models.stay import LINEN_OPTIONS
from app.services.dates import nights_between, parse_flexible_date

PHONE_PATTERN = re.compile(r"^[0-9+()\-\s]{6,20}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_FIELDS = (
    "apartment_id", "guest_name", "guest_phone", "guest_email", "guest_address",
    "people_count", "nights_count", "linen", "rating", "notes", "check_in", "check_out", "year",
)


def _positive(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, int) and value > 0:
        return value
    return None


def stay_to_form(stay) -> dict[str, Any]:
    """Current values of a stored stay, for merging a partial update."""
    return {f: getattr(stay, f, None) for f in _FIELDS}


def validate_stay_payload(raw: Mapping[str, Any], *, today: date | None = None) -> dict[str, Any]:
    """Normalised column values; raises ValidationError on the first rule broken.

    When both dates are given, nights and year are derived from them.
    """
    today = today or date.today()
    min_year = get_settings().min_year
    max_year = today.year + 1  # forward bookings

    guest_name = (raw.get("guest_name") or "").strip()
    guest_phone = (raw.get("guest_phone") or "").strip()
    guest_email = (raw.get("guest_email") or "").strip().lower()
    guest_address = (raw.get("guest_address") or "").strip()

    if len(guest_name) < 2:
        raise ValidationError("guest_name", "O nome do hóspede é obrigatório.")
    if not PHONE_PATTERN.match(guest_phone):
        raise ValidationError("guest_phone", "Telefone inválido.")
    if not EMAIL_PATTERN.match(guest_email):
        raise ValidationError("guest_email", "Email inválido.")
    if len(guest_address) < 5:
        raise ValidationError("guest_address", "A morada é obrigatória.")

    apartment_id = _positive(raw.get("apartment_id"))
    if not apartment_id:
        raise ValidationError("apartment_id", "Seleciona um apartamento válido.")
    people_count = _positive(raw.get("people_count"))
    if not people_count:
        raise ValidationError("people_count", "Número de pessoas inválido.")

    check_in = parse_flexible_date(raw.get("check_in"))
    check_out = parse_flexible_date(raw.get("check_out"))
    if bool(check_in) != bool(check_out):
        raise ValidationError("check_out" if check_in else "check_in", "Preenche check-in e check-out.")

    if check_in and check_out:
        nights_count = nights_between(check_in, check_out)
        if not nights_count:
            raise ValidationError("check_out", "Check-out deve ser posterior ao check-in.")
        year = check_in.year
        year_field = "check_in"
    else:
        nights_count = _positive(raw.get("nights_count"))
        if not nights_count:
            raise ValidationError("nights_count", "Número de noites inválido.")
        year = _positive(raw.get("year"))
        year_field = "year"
    if not year or not (min_year <= year <= max_year):
        raise ValidationError(year_field, f"O ano deve estar entre {min_year} e {max_year}.")

    linen = (raw.get("linen") or "").strip() or None
    if linen is not None and linen not in LINEN_OPTIONS:
        raise ValidationError("linen", "Seleciona uma opção válida de roupa.")

    rating = raw.get("rating")
    if rating is not None and rating != "":
        try:
            rating = float(rating)
        except (TypeError, ValueError):
            raise ValidationError("rating", "A avaliação deve estar entre 0 e 10.")
        if not (0 <= rating <= 10):
            raise ValidationError("rating", "A avaliação deve estar entre 0 e 10.")
    else:
        rating = None

    return {
        "apartment_id": apartment_id,
        "guest_name": guest_name,
        "guest_phone": guest_phone,
        "guest_email": guest_email,
        "guest_address": guest_address,
        "people_count": people_count,
        "nights_count": nights_count,
        "linen": linen,
        "rating": rating,
        "notes": (raw.get("notes") or "").strip() or None,
        "check_in": check_in,
        "check_out": check_out,
        "year": year,
    }
