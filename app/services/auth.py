"""Verification of access tokens issued by the hosted auth provider."""
import jwt
from app.config import get_settings


def decode_token_with_error(token: str) -> tuple[dict | None, str | None]:
    """Decode JWT; returns (payload, error_message)."""
    if not token or not isinstance(token, str):
        return None, "empty token"
    settings = get_settings()
    token = token.strip()
    options = {} if settings.auth_jwt_audience else {"verify_aud": False}
    try:
        payload = jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience or None,
            options=options,
        )
        return payload, None
    except jwt.ExpiredSignatureError as e:
        return None, str(e)
    except jwt.PyJWTError as e:
        return None, str(e)


def owner_id_from_payload(payload: dict) -> str | None:
    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub.strip():
        return None
    return sub.strip()
