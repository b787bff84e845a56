"""
In-process API tests via TestClient against a throwaway SQLite database.
Environment is set before any app module reads settings.
"""
import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

_tmpdir = tempfile.mkdtemp(prefix="registo-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'test.db')}"
os.environ["AUTH_JWT_SECRET"] = "test-secret"
os.environ["AUTH_JWT_AUDIENCE"] = "authenticated"
os.environ["EXPORT_DIR"] = ""

import jwt
import pytest
from fastapi.testclient import TestClient

from app.config import get_settings
from app.database import Base, engine
from app.models import Apartment, Stay  # noqa: F401
from app.main import app

OWNER = "11111111-1111-1111-1111-111111111111"
OTHER_OWNER = "22222222-2222-2222-2222-222222222222"


def make_token(sub: str = OWNER, secret: str = "test-secret", minutes: int = 30) -> str:
    payload = {
        "sub": sub,
        "aud": "authenticated",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture(autouse=True)
def fresh_db():
    get_settings.cache_clear()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth():
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def other_auth():
    return {"Authorization": f"Bearer {make_token(OTHER_OWNER)}"}


@pytest.fixture
def make_stay():
    """Plain attribute objects standing in for stored stays in core tests."""
    from types import SimpleNamespace

    def _make(id, check_in=None, check_out=None, nights_count=1, year=2024, apartment_id=1, **extra):
        fields = dict(
            id=id,
            check_in=check_in,
            check_out=check_out,
            nights_count=nights_count,
            year=year,
            apartment_id=apartment_id,
            guest_name=f"Hóspede {id}",
            guest_phone="912345678",
            guest_email=f"guest{id}@example.com",
            guest_address="Rua das Flores 1, Porto",
            people_count=2,
            linen="Com Roupa",
            notes=None,
            apartment=None,
        )
        fields.update(extra)
        return SimpleNamespace(**fields)

    return _make
