"""Pydantic schemas used as views in the MVC architecture."""

from .analytics import ViewCountResponse, ViewTrackRequest, ViewTrackResponse
from .common import ErrorResponse, HealthResponse
from .contact import ContactRequest, ContactResponse

__all__ = [
    "ViewTrackRequest",
    "ViewTrackResponse",
    "ViewCountResponse",
    "ContactRequest",
    "ContactResponse",
    "ErrorResponse",
    "HealthResponse",
]
