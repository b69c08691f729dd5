"""Security helpers for session tokens and subject identifiers."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from portfolio_api.config.settings import SecurityConfig

_SESSION_ID_BYTES = 16


class AuthenticationError(Exception):
    """Raised when a session token cannot be decoded or is otherwise invalid."""


class SessionTokenPayload(BaseModel):
    """Payload embedded in session cookies. Carries no personal data."""

    sid: str
    exp: datetime
    iat: datetime | None = None


def generate_session_id() -> str:
    """Return a fresh 128-bit random session id, hex encoded."""

    return secrets.token_hex(_SESSION_ID_BYTES)


def derive_subject_id(secret: str, session_id: str) -> str:
    """Return the keyed, one-way subject identifier for a session id."""

    return hmac.new(
        secret.encode("utf-8"),
        session_id.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def create_session_token(
    session_id: str,
    config: SecurityConfig,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Generate a signed session token for the provided session id."""

    now = datetime.now(timezone.utc)
    expires_delta = expires_delta or timedelta(days=config.session_max_age_days)
    to_encode: dict[str, Any] = {
        "sid": session_id,
        "exp": now + expires_delta,
        "iat": now,
    }
    return jwt.encode(
        to_encode,
        config.secret_key.get_secret_value(),
        algorithm=config.jwt_algorithm,
    )


def decode_session_token(token: str, config: SecurityConfig) -> SessionTokenPayload:
    """Verify signature and expiry of a session token, returning its payload."""

    try:
        payload = jwt.decode(
            token,
            config.secret_key.get_secret_value(),
            algorithms=[config.jwt_algorithm],
        )
        decoded = SessionTokenPayload.model_validate(payload)
    except (JWTError, ValidationError) as exc:
        raise AuthenticationError("Invalid session token") from exc

    if not decoded.sid:
        raise AuthenticationError("Session token carries no session id")
    return decoded


__all__ = [
    "AuthenticationError",
    "SessionTokenPayload",
    "generate_session_id",
    "derive_subject_id",
    "create_session_token",
    "decode_session_token",
]
