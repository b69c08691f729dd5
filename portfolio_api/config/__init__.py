"""Configuration objects for the portfolio backend."""

from .settings import (
    ClientIpConfig,
    DatabaseConfig,
    GeoIpConfig,
    MailConfig,
    SecurityConfig,
    Settings,
    get_settings,
)

__all__ = [
    "Settings",
    "DatabaseConfig",
    "SecurityConfig",
    "MailConfig",
    "GeoIpConfig",
    "ClientIpConfig",
    "get_settings",
]
