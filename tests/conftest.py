"""Shared fixtures: isolated settings, fake collaborators and a test client."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pytest

# Required configuration must exist before portfolio_api.main is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test-bootstrap.db")
os.environ.setdefault("SECRET_KEY", "test-bootstrap-secret")
os.environ.setdefault("LOG_FILE", "")

from fastapi.testclient import TestClient  # noqa: E402

from portfolio_api.config.settings import (  # noqa: E402
    DatabaseConfig,
    MailConfig,
    SecurityConfig,
    Settings,
)
from portfolio_api.main import create_app  # noqa: E402
from portfolio_api.services.email import EmailServiceError  # noqa: E402
from portfolio_api.services.geo import UNKNOWN_GEO, GeoClassification  # noqa: E402

TEST_SECRET = "unit-test-secret"
OWNER_ADDRESS = "owner@portfolio-owner.org"


class FakeGeoClient:
    """Records looked-up IPs and returns a canned classification."""

    def __init__(self, result: GeoClassification = UNKNOWN_GEO) -> None:
        self.result = result
        self.calls: list[Optional[str]] = []

    async def lookup(self, ip: Optional[str]) -> GeoClassification:
        self.calls.append(ip)
        return self.result


@dataclass
class FakeMailer:
    """Collects outgoing emails; can be told to fail per recipient."""

    owner_address: Optional[str] = OWNER_ADDRESS
    fail_recipients: set[str] = field(default_factory=set)
    sent: list[dict] = field(default_factory=list)
    attempted: list[str] = field(default_factory=list)

    async def send_email(
        self,
        *,
        recipient: str,
        subject: str,
        body: str,
        reply_to: Optional[str] = None,
    ) -> None:
        self.attempted.append(recipient)
        if recipient in self.fail_recipients:
            raise EmailServiceError("Failed to send email.")
        self.sent.append(
            {
                "recipient": recipient,
                "subject": subject,
                "body": body,
                "reply_to": reply_to,
            }
        )


def build_settings(database_path: Path, **overrides) -> Settings:
    return Settings(
        log_file=None,
        database=DatabaseConfig(DATABASE_URL=f"sqlite+aiosqlite:///{database_path}"),
        security=SecurityConfig(SECRET_KEY=TEST_SECRET),
        mail=MailConfig(CONTACT_RECIPIENT=OWNER_ADDRESS),
        **overrides,
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return build_settings(tmp_path / "views.db")


@pytest.fixture
def geo_client() -> FakeGeoClient:
    return FakeGeoClient(
        GeoClassification(
            country="Germany",
            region="Berlin",
            city="Berlin",
            isp="Deutsche Telekom AG",
            network="Broadband",
        )
    )


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def app(settings: Settings, geo_client: FakeGeoClient, mailer: FakeMailer):
    return create_app(settings, geo_client=geo_client, mailer=mailer)


@pytest.fixture
def client(app):
    # https so that Secure session cookies round-trip through the cookie jar.
    with TestClient(app, base_url="https://testserver") as test_client:
        yield test_client
