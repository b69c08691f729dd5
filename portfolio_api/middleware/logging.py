"""Structured logging middleware for FastAPI requests."""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Optional

from cryptography.fernet import Fernet
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger("portfolio_api.middleware.structured")

COLOR_RESET = "\u001b[0m"
COLOR_GREEN = "\u001b[32m"
COLOR_CYAN = "\u001b[36m"
COLOR_YELLOW = "\u001b[33m"
COLOR_RED = "\u001b[31m"


def build_cipher(secret: str) -> Fernet:
    """Return a Fernet cipher keyed from the signing secret."""

    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Emit one log line per HTTP request.

    Client IP and user agent are never written in clear text; they are folded
    into an encrypted ``client_ref`` that operators can decrypt with the
    signing secret when diagnosing abuse.
    """

    def __init__(self, app: ASGIApp, *, secret_key: str) -> None:
        super().__init__(app)
        self._cipher = build_cipher(secret_key)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start_time = time.perf_counter()
        log_payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "method": request.method,
            "path": request.url.path,
            "client_ref": self._build_client_reference(request),
        }

        try:
            response = await call_next(request)
        except Exception as exc:  # pragma: no cover
            log_payload["status_code"] = 500
            log_payload["duration_ms"] = self._elapsed_ms(start_time)
            log_payload["error"] = repr(exc)
            logger.exception(self._format_console_message(log_payload))
            raise

        log_payload["status_code"] = response.status_code
        log_payload["duration_ms"] = self._elapsed_ms(start_time)
        log_payload["subject_id"] = getattr(request.state, "subject_id", None)
        logger.info(self._format_console_message(log_payload))
        return response

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        """Return elapsed milliseconds rounded to two decimals."""

        return round((time.perf_counter() - start_time) * 1000, 2)

    def _build_client_reference(self, request: Request) -> Optional[str]:
        client_ip = request.client.host if request.client else None
        user_agent_raw = request.headers.get("user-agent")
        user_agent = user_agent_raw[:256] if isinstance(user_agent_raw, str) else None
        if not client_ip and not user_agent:
            return None

        metadata = {"client_ip": client_ip, "user_agent": user_agent}
        try:
            return self.encrypt_metadata(metadata)
        except Exception:  # pragma: no cover
            logger.debug("Failed to encrypt client metadata for logging", exc_info=True)
            return None

    def encrypt_metadata(self, metadata: dict[str, Any]) -> str:
        """Encrypt request metadata into an opaque token."""

        return self._cipher.encrypt(self._to_json(metadata).encode("utf-8")).decode("utf-8")

    def decrypt_metadata(self, token: str) -> dict[str, Any]:
        return json.loads(self._cipher.decrypt(token.encode("utf-8")))

    @staticmethod
    def _format_console_message(payload: dict[str, Any]) -> str:
        """Return request metadata wrapped with ANSI color codes."""

        status = payload.get("status_code") or 0
        if 200 <= status < 300:
            color = COLOR_GREEN
        elif 400 <= status < 500:
            color = COLOR_YELLOW
        elif status >= 500:
            color = COLOR_RED
        else:
            color = COLOR_CYAN

        fields = [
            ("timestamp", payload.get("timestamp")),
            ("method", payload.get("method")),
            ("path", payload.get("path")),
            ("status", payload.get("status_code")),
            ("duration_ms", payload.get("duration_ms")),
            ("subject_id", payload.get("subject_id")),
            ("client_ref", payload.get("client_ref")),
        ]
        message = ", ".join(
            f"{name}={value if value is not None else '-'}" for name, value in fields
        )

        return f"{color}{message}{COLOR_RESET}"

    @staticmethod
    def _to_json(payload: dict[str, Any]) -> str:
        """Serialize payload as compact JSON."""

        return json.dumps(payload, default=str, separators=(',', ':'))
