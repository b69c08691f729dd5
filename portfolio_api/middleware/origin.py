"""Cross-origin allow-list enforcement."""

from __future__ import annotations

import logging
from typing import Iterable, Optional
from urllib.parse import urlsplit

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from portfolio_api.views.common import ErrorResponse

logger = logging.getLogger(__name__)


class OriginPolicy:
    """Decide whether a browser ``Origin`` may call the API."""

    def __init__(self, allowed_origins: Iterable[str], preview_suffix: str | None) -> None:
        self._allowed = {origin.rstrip("/").lower() for origin in allowed_origins}
        self._preview_suffix = (preview_suffix or "").lower() or None

    def is_allowed(self, origin: Optional[str]) -> bool:
        if not origin:
            return True

        normalised = origin.rstrip("/").lower()
        if normalised in self._allowed:
            return True

        if self._preview_suffix is None:
            return False

        try:
            parts = urlsplit(normalised)
        except ValueError:
            return False
        hostname = parts.hostname or ""
        return parts.scheme == "https" and hostname.endswith(self._preview_suffix)

    def origin_regex(self) -> Optional[str]:
        """Regex for Starlette's CORS middleware matching preview deployments."""

        if self._preview_suffix is None:
            return None
        escaped = self._preview_suffix.replace(".", r"\.")
        return rf"https://[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)*{escaped}(:[0-9]+)?"


class OriginGuardMiddleware(BaseHTTPMiddleware):
    """Reject requests whose Origin header is not allowed."""

    def __init__(self, app: ASGIApp, *, policy: OriginPolicy) -> None:
        super().__init__(app)
        self._policy = policy

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        origin = request.headers.get("origin")
        if not self._policy.is_allowed(origin):
            logger.warning("CORS blocked: %s", origin)
            return JSONResponse(
                status_code=403,
                content=ErrorResponse(detail="Origin not allowed").model_dump(exclude_none=True),
            )
        return await call_next(request)


__all__ = ["OriginGuardMiddleware", "OriginPolicy"]
