"""Utility helpers for the portfolio backend."""

from .security import (
    AuthenticationError,
    SessionTokenPayload,
    create_session_token,
    decode_session_token,
    derive_subject_id,
    generate_session_id,
)

__all__ = [
    "AuthenticationError",
    "SessionTokenPayload",
    "generate_session_id",
    "derive_subject_id",
    "create_session_token",
    "decode_session_token",
]
