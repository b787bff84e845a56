from datetime import date

import pytest

from app.errors import ValidationError
from app.services.stay_form import validate_stay_payload

TODAY = date(2025, 3, 1)


def _payload(**overrides):
    raw = {
        "apartment_id": 1,
        "guest_name": " Ana Silva ",
        "guest_phone": "912 345 678",
        "guest_email": "Ana@Example.com",
        "guest_address": "Rua das Flores 1, Porto",
        "people_count": 2,
        "linen": "Sem Roupa",
        "check_in": "2025-01-10",
        "check_out": "2025-01-13",
    }
    raw.update(overrides)
    return raw


def test_dates_derive_nights_and_year():
    values = validate_stay_payload(_payload(nights_count=9, year=2019), today=TODAY)
    assert values["nights_count"] == 3
    assert values["year"] == 2025
    assert values["guest_name"] == "Ana Silva"
    assert values["guest_email"] == "ana@example.com"
    assert values["notes"] is None


def test_undated_stay_needs_nights_and_year():
    values = validate_stay_payload(
        _payload(check_in=None, check_out=None, nights_count="4", year="2026"), today=TODAY
    )
    assert (values["nights_count"], values["year"]) == (4, 2026)
    with pytest.raises(ValidationError) as exc:
        validate_stay_payload(_payload(check_in=None, check_out=None, year=2024), today=TODAY)
    assert exc.value.field == "nights_count"


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"guest_name": "A"}, "guest_name"),
        ({"guest_phone": "abc"}, "guest_phone"),
        ({"guest_email": "ana@"}, "guest_email"),
        ({"apartment_id": "²"}, "apartment_id"),
        ({"people_count": "³"}, "people_count"),
        ({"people_count": True}, "people_count"),
        ({"check_out": None}, "check_out"),
        ({"check_out": "2025-01-10"}, "check_out"),
        ({"check_in": "1999-01-10", "check_out": "1999-01-12"}, "check_in"),
        ({"linen": "Talvez"}, "linen"),
        ({"rating": "11"}, "rating"),
    ],
)
def test_rejects_with_field_name(overrides, field):
    with pytest.raises(ValidationError) as exc:
        validate_stay_payload(_payload(**overrides), today=TODAY)
    assert exc.value.field == field
