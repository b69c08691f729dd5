"""Configuration loading and fail-fast validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from portfolio_api.config.settings import (
    ClientIpConfig,
    DatabaseConfig,
    GeoIpConfig,
    SecurityConfig,
)


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    # Keep a developer's .env out of the picture.
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("SECRET_KEY", raising=False)
    return monkeypatch


def test_missing_secret_key_fails(clean_env) -> None:
    with pytest.raises(ValidationError):
        SecurityConfig()


def test_blank_secret_key_fails(clean_env) -> None:
    clean_env.setenv("SECRET_KEY", "   ")

    with pytest.raises(ValidationError):
        SecurityConfig()


def test_missing_database_url_fails(clean_env) -> None:
    with pytest.raises(ValidationError):
        DatabaseConfig()


def test_values_are_read_from_environment(clean_env) -> None:
    clean_env.setenv("SECRET_KEY", "from-env")
    clean_env.setenv("SESSION_COOKIE_SECURE", "false")
    clean_env.setenv("DATABASE_URL", "postgres://user:pw@db.internal:5432/portfolio")
    clean_env.setenv("DB_SERVERLESS", "true")

    security = SecurityConfig()
    database = DatabaseConfig()

    assert security.secret_key.get_secret_value() == "from-env"
    assert security.session_cookie_secure is False
    assert security.session_max_age_seconds == 365 * 24 * 60 * 60
    assert database.serverless is True


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        (
            "postgres://user:pw@db.internal/portfolio",
            "postgresql+asyncpg://user:pw@db.internal/portfolio",
        ),
        (
            "postgresql://user:pw@db.internal/portfolio",
            "postgresql+asyncpg://user:pw@db.internal/portfolio",
        ),
        (
            "postgresql+asyncpg://user:pw@db.internal/portfolio",
            "postgresql+asyncpg://user:pw@db.internal/portfolio",
        ),
        ("sqlite+aiosqlite:///./views.db", "sqlite+aiosqlite:///./views.db"),
    ],
)
def test_async_url_selects_async_driver(url: str, expected: str) -> None:
    assert DatabaseConfig(DATABASE_URL=url).async_url == expected


def test_geo_and_client_ip_defaults(clean_env) -> None:
    geo = GeoIpConfig()
    client_ip = ClientIpConfig()

    assert geo.base_url == "http://ip-api.com/json"
    assert geo.timeout_seconds == 5.0
    assert client_ip.trusted_header == "x-edge-client-ip"
    assert "173.245.48.0/20" in client_ip.cdn_ranges


def test_health_endpoint(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_metrics_endpoint_exposes_view_counter(client) -> None:
    client.post("/api/views")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "portfolio_views_recorded_total" in response.text
