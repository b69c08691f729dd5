"""Route class that answers request validation errors in the route's own shape."""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.routing import APIRoute

logger = logging.getLogger(__name__)

ValidationFallback = Callable[[RequestValidationError], Response]


def validation_fallback_route(fallback: ValidationFallback) -> type[APIRoute]:
    """Build an ``APIRoute`` subclass that replaces FastAPI's 422 with ``fallback``."""

    class ValidationFallbackRoute(APIRoute):
        def get_route_handler(self) -> Callable:
            original_route_handler = super().get_route_handler()

            async def route_handler(request: Request) -> Response:
                try:
                    return await original_route_handler(request)
                except RequestValidationError as exc:
                    logger.info(
                        "Rejected malformed body on %s %s: %s",
                        request.method,
                        request.url.path,
                        [error.get("type") for error in exc.errors()],
                    )
                    return fallback(exc)

            return route_handler

    return ValidationFallbackRoute


__all__ = ["validation_fallback_route"]
