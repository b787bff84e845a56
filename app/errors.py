"""Error taxonomy shared by the filter, store and export layers."""
from __future__ import annotations


class BookingError(Exception):
    """Base class; every failure is scoped to one filter/export/save action."""


class ValidationError(BookingError):
    """Bad filter or form input. Never reaches the network."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


FETCH_NETWORK = "network"
FETCH_NOT_FOUND = "not_found"
FETCH_PERMISSION_DENIED = "permission_denied"
FETCH_CONFLICT = "conflict"
FETCH_UNKNOWN = "unknown"


class FetchError(BookingError):
    """The store collaborator failed."""

    def __init__(self, message: str, kind: str = FETCH_UNKNOWN):
        super().__init__(message)
        self.message = message
        self.kind = kind


STAGE_SURFACE = "surface"
STAGE_ROOT = "root"
STAGE_RASTERIZE = "rasterize"


class RenderPipelineError(BookingError):
    """PDF capture failed. `stage` tells a layout bug apart from an environment problem."""

    def __init__(self, stage: str, message: str):
        super().__init__(f"[{stage}] {message}")
        self.stage = stage
        self.message = message


class SaveError(BookingError):
    """The PDF was produced but could not be stored (cancelled or denied)."""

    def __init__(self, message: str, cancelled: bool = False):
        super().__init__(message)
        self.message = message
        self.cancelled = cancelled


def _raw_message(error: object) -> str:
    if isinstance(error, BookingError):
        return getattr(error, "message", "") or str(error)
    if isinstance(error, Exception):
        return str(error)
    message = getattr(error, "message", None)
    return message if isinstance(message, str) else ""


def to_public_error_message(error: object, fallback: str) -> str:
    """User-facing text for a collaborator failure; falls back when the cause is not recognised."""
    if isinstance(error, ValidationError):
        return error.message
    kind = getattr(error, "kind", None)
    message = _raw_message(error).lower()

    if kind == FETCH_NETWORK or "fetch failed" in message or "network" in message:
        return "Sem ligação ao servidor. Tenta novamente."
    if "duplicate key value" in message:
        return "Já existe um registo com esse valor."
    if kind == FETCH_CONFLICT:
        return "O registo está em uso ou em conflito com outro."
    if kind == FETCH_PERMISSION_DENIED or "violates row-level security policy" in message:
        return "Sem permissões para esta operação."
    if kind == FETCH_NOT_FOUND:
        return "Registo não encontrado."
    return fallback
