"""Apartments (small reference list)."""
from fastapi import APIRouter, Depends
from app.dependencies import get_store, http_error
from app.errors import BookingError, ValidationError
from app.schemas.apartment import ApartmentCreate, ApartmentResponse
from app.services.store import StayStore

router = APIRouter(prefix="/apartments", tags=["apartments"])


@router.get("/", response_model=list[ApartmentResponse])
def list_apartments(store: StayStore = Depends(get_store)):
    try:
        apartments = store.list_apartments()
    except BookingError as e:
        raise http_error(e, "Erro ao carregar apartamentos.")
    return [ApartmentResponse.model_validate(a) for a in apartments]


@router.post("/", response_model=ApartmentResponse)
def create_apartment(data: ApartmentCreate, store: StayStore = Depends(get_store)):
    name = (data.name or "").strip()
    try:
        if len(name) < 2:
            raise ValidationError("name", "O nome do apartamento deve ter pelo menos 2 caracteres.")
        apartment = store.create_apartment(name)
    except BookingError as e:
        raise http_error(e, "Erro ao criar apartamento.")
    return ApartmentResponse.model_validate(apartment)


@router.delete("/{apartment_id}", status_code=204)
def delete_apartment(apartment_id: int, store: StayStore = Depends(get_store)):
    try:
        store.delete_apartment(apartment_id)
    except BookingError as e:
        raise http_error(e, "Erro ao eliminar apartamento.")
