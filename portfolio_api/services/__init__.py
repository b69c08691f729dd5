"""Service layer for identity, enrichment, persistence and email."""

from .client_metadata import (
    ClientAgent,
    ClientIpResolver,
    is_internal_address,
    parse_user_agent,
)
from .contact import ContactRelay, ContactSubmission
from .email import EmailServiceError, SmtpMailer
from .geo import GeoClassification, GeoIpClient, NetworkType, classify_network
from .identity import IdentityResolver, SessionResolution
from .views import RecordedView, ViewRecorder, ViewStoreError

__all__ = [
    "ClientAgent",
    "ClientIpResolver",
    "is_internal_address",
    "parse_user_agent",
    "ContactRelay",
    "ContactSubmission",
    "EmailServiceError",
    "SmtpMailer",
    "GeoClassification",
    "GeoIpClient",
    "NetworkType",
    "classify_network",
    "IdentityResolver",
    "SessionResolution",
    "RecordedView",
    "ViewRecorder",
    "ViewStoreError",
]
