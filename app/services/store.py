"""Stay/apartment store. Every query is scoped to the authenticated owner."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.errors import (
    FetchError,
    FETCH_CONFLICT,
    FETCH_NETWORK,
    FETCH_NOT_FOUND,
    FETCH_PERMISSION_DENIED,
    FETCH_UNKNOWN,
)
from app.models.apartment import Apartment
from app.models.stay import Stay

log = logging.getLogger("uvicorn.error")


def sync_derived_fields(values: dict[str, Any]) -> dict[str, Any]:
    """With both dates set, nights and year follow them (as the hosted trigger does)."""
    check_in, check_out = values.get("check_in"), values.get("check_out")
    if check_in is not None and check_out is not None:
        if check_out <= check_in:
            raise FetchError("check_out must be after check_in", FETCH_CONFLICT)
        values["nights_count"] = (check_out - check_in).days
        values["year"] = check_in.year
    return values


class StayStore:
    def __init__(self, db: Session, owner_id: str):
        self.db = db
        self.owner_id = owner_id

    def _fail(self, context: str, error: SQLAlchemyError) -> FetchError:
        self.db.rollback()
        log.exception("%s failed", context)
        if isinstance(error, IntegrityError):
            return FetchError(str(error.orig) if error.orig else str(error), FETCH_CONFLICT)
        if isinstance(error, OperationalError):
            return FetchError(f"network error: {error.orig or error}", FETCH_NETWORK)
        return FetchError(str(error), FETCH_UNKNOWN)

    def _stays(self):
        return (
            self.db.query(Stay)
            .options(joinedload(Stay.apartment))
            .filter(Stay.owner_id == self.owner_id)
        )

    def _own_apartment(self, apartment_id: int) -> Apartment:
        apartment = self.db.query(Apartment).filter(Apartment.id == apartment_id).first()
        if apartment is None:
            raise FetchError("Apartment not found", FETCH_NOT_FOUND)
        if apartment.owner_id != self.owner_id:
            raise FetchError("new row violates row-level security policy for table \"stays\"", FETCH_PERMISSION_DENIED)
        return apartment

    # Stays

    def list_stays(self, apartment_id: int | None = None) -> list[Stay]:
        try:
            q = self._stays()
            if apartment_id:
                q = q.filter(Stay.apartment_id == apartment_id)
            return q.order_by(Stay.created_at.desc(), Stay.id.desc()).all()
        except SQLAlchemyError as e:
            raise self._fail("list_stays", e)

    def get_stay(self, stay_id: int) -> Stay:
        try:
            stay = self._stays().filter(Stay.id == stay_id).first()
        except SQLAlchemyError as e:
            raise self._fail("get_stay", e)
        if stay is None:
            raise FetchError("Stay not found", FETCH_NOT_FOUND)
        return stay

    def create_stay(self, payload: dict[str, Any]) -> Stay:
        values = sync_derived_fields(dict(payload))
        self._own_apartment(values["apartment_id"])
        stay = Stay(owner_id=self.owner_id, **values)
        try:
            self.db.add(stay)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("create_stay", e)
        return self.get_stay(stay.id)

    def update_stay(self, stay_id: int, payload: dict[str, Any]) -> Stay:
        stay = self.get_stay(stay_id)
        values = sync_derived_fields(dict(payload))
        if "apartment_id" in values and values["apartment_id"] != stay.apartment_id:
            self._own_apartment(values["apartment_id"])
        for key, value in values.items():
            setattr(stay, key, value)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("update_stay", e)
        self.db.refresh(stay)
        return stay

    def delete_stay(self, stay_id: int) -> None:
        stay = self.get_stay(stay_id)
        try:
            self.db.delete(stay)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete_stay", e)

    # Apartments

    def list_apartments(self) -> list[Apartment]:
        try:
            return (
                self.db.query(Apartment)
                .filter(Apartment.owner_id == self.owner_id)
                .order_by(Apartment.name)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("list_apartments", e)

    def get_apartment(self, apartment_id: int) -> Apartment:
        apartment = (
            self.db.query(Apartment)
            .filter(Apartment.id == apartment_id, Apartment.owner_id == self.owner_id)
            .first()
        )
        if apartment is None:
            raise FetchError("Apartment not found", FETCH_NOT_FOUND)
        return apartment

    def create_apartment(self, name: str) -> Apartment:
        apartment = Apartment(name=name, owner_id=self.owner_id)
        try:
            self.db.add(apartment)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("create_apartment", e)
        self.db.refresh(apartment)
        return apartment

    def delete_apartment(self, apartment_id: int) -> None:
        apartment = self.get_apartment(apartment_id)
        in_use = self.db.query(Stay.id).filter(Stay.apartment_id == apartment.id).first()
        if in_use:
            raise FetchError("Apartment still has stays", FETCH_CONFLICT)
        try:
            self.db.delete(apartment)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete_apartment", e)
