"""Cookie-backed visitor identity resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request, Response

from portfolio_api.config.settings import SecurityConfig
from portfolio_api.utils.security import (
    AuthenticationError,
    create_session_token,
    decode_session_token,
    derive_subject_id,
    generate_session_id,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionResolution:
    """Outcome of resolving a visitor's session cookie."""

    subject_id: str
    session_id: str
    issued_token: Optional[str] = None

    @property
    def is_new(self) -> bool:
        return self.issued_token is not None


class IdentityResolver:
    """Derive stable anonymized subject ids from signed session cookies."""

    def __init__(self, config: SecurityConfig) -> None:
        self._config = config
        self._secret = config.secret_key.get_secret_value()

    @property
    def cookie_name(self) -> str:
        return self._config.session_cookie_name

    def subject_for(self, session_id: str) -> str:
        return derive_subject_id(self._secret, session_id)

    def resolve_token(self, token: Optional[str]) -> SessionResolution:
        """Return the subject for ``token``, minting a new session when invalid."""

        if token:
            try:
                payload = decode_session_token(token, self._config)
            except AuthenticationError:
                logger.debug("Discarding invalid session cookie", exc_info=True)
            else:
                return SessionResolution(
                    subject_id=self.subject_for(payload.sid),
                    session_id=payload.sid,
                )

        session_id = generate_session_id()
        return SessionResolution(
            subject_id=self.subject_for(session_id),
            session_id=session_id,
            issued_token=create_session_token(session_id, self._config),
        )

    def resolve(self, request: Request, response: Response) -> SessionResolution:
        """Resolve the request cookie and set a fresh one on ``response`` if needed."""

        resolution = self.resolve_token(request.cookies.get(self.cookie_name))
        if resolution.issued_token is not None:
            self.set_cookie(response, resolution.issued_token)
        return resolution

    def set_cookie(self, response: Response, token: str) -> None:
        response.set_cookie(
            key=self.cookie_name,
            value=token,
            max_age=self._config.session_max_age_seconds,
            path="/",
            httponly=True,
            secure=self._config.session_cookie_secure,
            samesite="none",
        )


__all__ = ["IdentityResolver", "SessionResolution"]
