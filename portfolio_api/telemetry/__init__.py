"""Telemetry helpers and metrics."""

from .metrics import (
    CONTACT_EMAILS,
    ERROR_COUNTER,
    GEO_LOOKUPS,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    VIEWS_RECORDED,
    increment_contact_email,
    increment_geo_lookup,
    increment_view_recorded,
    observe_request,
)

__all__ = [
    "ERROR_COUNTER",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "VIEWS_RECORDED",
    "GEO_LOOKUPS",
    "CONTACT_EMAILS",
    "increment_contact_email",
    "increment_geo_lookup",
    "increment_view_recorded",
    "observe_request",
]
