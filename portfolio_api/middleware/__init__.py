"""Application middleware package."""

from .logging import StructuredLoggingMiddleware
from .origin import OriginGuardMiddleware, OriginPolicy
from .telemetry import TelemetryMiddleware

__all__ = [
    "OriginGuardMiddleware",
    "OriginPolicy",
    "StructuredLoggingMiddleware",
    "TelemetryMiddleware",
]
