"""Stays: consult, search, group and edit."""
from fastapi import APIRouter, Depends, Query
from app.dependencies import get_store, http_error
from app.errors import BookingError
from app.schemas.stay import StayCreate, StayUpdate, StayResponse, YearGroupResponse, MonthGroupResponse
from app.services.grouping import group_for_export
from app.services.stay_filter import apply_filter, search_stays, validate_filter
from app.services.stay_form import stay_to_form, validate_stay_payload
from app.services.store import StayStore

router = APIRouter(prefix="/stays", tags=["stays"])


def _filtered(store: StayStore, apartment_id: str | None, year: str | None, month: str | None):
    flt = validate_filter({"apartment_id": apartment_id, "year": year, "month": month})
    stays = store.list_stays(apartment_id=flt.apartment_id)
    return flt, apply_filter(stays, flt)


@router.get("/", response_model=list[StayResponse])
def list_stays(
    apartment_id: str | None = Query(None),
    year: str | None = Query(None),
    month: str | None = Query(None),
    store: StayStore = Depends(get_store),
):
    """Stays matching the filter, most recent first."""
    try:
        _, stays = _filtered(store, apartment_id, year, month)
    except BookingError as e:
        raise http_error(e, "Erro ao carregar registos.")
    return [StayResponse.model_validate(s) for s in stays]


@router.get("/search", response_model=list[StayResponse])
def search(
    q: str = Query(""),
    store: StayStore = Depends(get_store),
):
    try:
        stays = store.list_stays()
    except BookingError as e:
        raise http_error(e, "Erro ao pesquisar registos.")
    return [StayResponse.model_validate(s) for s in search_stays(stays, q)]


@router.get("/grouped", response_model=list[YearGroupResponse])
def grouped_stays(
    apartment_id: str | None = Query(None),
    year: str | None = Query(None),
    month: str | None = Query(None),
    store: StayStore = Depends(get_store),
):
    """Year -> month buckets for the review screen."""
    try:
        flt, stays = _filtered(store, apartment_id, year, month)
    except BookingError as e:
        raise http_error(e, "Erro ao carregar registos.")
    return [
        YearGroupResponse(
            year=g.year,
            months=[
                MonthGroupResponse(month=m.month, stays=[StayResponse.model_validate(s) for s in m.stays])
                for m in g.months
            ],
        )
        for g in group_for_export(stays, flt)
    ]


@router.post("/", response_model=StayResponse)
def create_stay(
    data: StayCreate,
    store: StayStore = Depends(get_store),
):
    try:
        payload = validate_stay_payload(data.model_dump())
        stay = store.create_stay(payload)
    except BookingError as e:
        raise http_error(e, "Erro ao guardar registo.")
    return StayResponse.model_validate(stay)


@router.get("/{stay_id}", response_model=StayResponse)
def get_stay(
    stay_id: int,
    store: StayStore = Depends(get_store),
):
    try:
        stay = store.get_stay(stay_id)
    except BookingError as e:
        raise http_error(e, "Erro ao carregar registo.")
    return StayResponse.model_validate(stay)


@router.put("/{stay_id}", response_model=StayResponse)
def update_stay(
    stay_id: int,
    data: StayUpdate,
    store: StayStore = Depends(get_store),
):
    try:
        current = store.get_stay(stay_id)
        merged = {**stay_to_form(current), **data.model_dump(exclude_unset=True)}
        payload = validate_stay_payload(merged)
        stay = store.update_stay(stay_id, payload)
    except BookingError as e:
        raise http_error(e, "Erro ao guardar registo.")
    return StayResponse.model_validate(stay)


@router.delete("/{stay_id}", status_code=204)
def delete_stay(
    stay_id: int,
    store: StayStore = Depends(get_store),
):
    try:
        store.delete_stay(stay_id)
    except BookingError as e:
        raise http_error(e, "Erro ao eliminar registo.")
