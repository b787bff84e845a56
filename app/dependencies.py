"""Shared dependencies: DB session, authenticated owner, store, error translation."""
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.database import get_db
from app.errors import (
    BookingError,
    FetchError,
    RenderPipelineError,
    SaveError,
    ValidationError,
    FETCH_CONFLICT,
    FETCH_NOT_FOUND,
    FETCH_PERMISSION_DENIED,
    to_public_error_message,
)
from app.services.auth import decode_token_with_error, owner_id_from_payload
from app.services.store import StayStore

security = HTTPBearer(auto_error=False)


def get_current_owner(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    token_str = (credentials.credentials or "").strip()
    payload, _ = decode_token_with_error(token_str)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    owner_id = owner_id_from_payload(payload)
    if not owner_id:
        raise HTTPException(status_code=401, detail="Invalid token")
    return owner_id


def get_store(
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
) -> StayStore:
    return StayStore(db, owner_id)


_FETCH_STATUS = {
    FETCH_NOT_FOUND: 404,
    FETCH_PERMISSION_DENIED: 403,
    FETCH_CONFLICT: 409,
}


def http_error(error: BookingError, fallback: str) -> HTTPException:
    """Map a core/store failure to the HTTP error the UI shows."""
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail={"field": error.field, "message": error.message})
    if isinstance(error, FetchError):
        status = _FETCH_STATUS.get(error.kind, 502)
        return HTTPException(status_code=status, detail=to_public_error_message(error, fallback))
    if isinstance(error, RenderPipelineError):
        return HTTPException(status_code=500, detail={"message": "Falha na exportação.", "stage": error.stage, "detail": error.message})
    if isinstance(error, SaveError):
        return HTTPException(status_code=409, detail={"message": error.message, "cancelled": error.cancelled})
    return HTTPException(status_code=500, detail=fallback)
