"""Session cookie resolution and subject identifier derivation."""

from __future__ import annotations

import hashlib
import hmac
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt
from starlette.requests import Request
from starlette.responses import Response

from portfolio_api.config.settings import SecurityConfig
from portfolio_api.services.identity import IdentityResolver
from portfolio_api.utils.security import create_session_token

from .conftest import TEST_SECRET


@pytest.fixture
def security() -> SecurityConfig:
    return SecurityConfig(SECRET_KEY=TEST_SECRET)


@pytest.fixture
def resolver(security: SecurityConfig) -> IdentityResolver:
    return IdentityResolver(security)


def _request_with_cookie(token: str | None) -> Request:
    headers = []
    if token is not None:
        headers.append((b"cookie", f"sid={token}".encode("latin-1")))
    return Request(
        {
            "type": "http",
            "method": "POST",
            "path": "/api/views",
            "query_string": b"",
            "headers": headers,
        }
    )


def test_valid_token_resolves_to_same_subject(resolver: IdentityResolver) -> None:
    """Resolving one token repeatedly is deterministic and keyed by the secret."""

    cold = resolver.resolve_token(None)
    assert cold.issued_token is not None

    first = resolver.resolve_token(cold.issued_token)
    second = resolver.resolve_token(cold.issued_token)

    expected = hmac.new(
        TEST_SECRET.encode("utf-8"),
        cold.session_id.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    assert first.subject_id == second.subject_id == cold.subject_id == expected
    assert first.session_id == cold.session_id
    assert first.issued_token is None
    assert second.issued_token is None


def test_cold_requests_receive_distinct_sessions(resolver: IdentityResolver) -> None:
    one = resolver.resolve_token(None)
    two = resolver.resolve_token(None)

    assert one.session_id != two.session_id
    assert one.subject_id != two.subject_id
    assert len(one.session_id) == 32
    int(one.session_id, 16)


@pytest.mark.parametrize(
    "token",
    [
        "not-a-jwt",
        "",
        create_session_token(
            "a" * 32,
            SecurityConfig(SECRET_KEY="some-other-secret"),
        ),
    ],
)
def test_invalid_tokens_are_treated_as_missing(
    resolver: IdentityResolver,
    token: str,
) -> None:
    resolution = resolver.resolve_token(token)

    assert resolution.is_new
    assert resolution.session_id != "a" * 32


def test_expired_token_mints_new_session(
    resolver: IdentityResolver,
    security: SecurityConfig,
) -> None:
    expired = create_session_token(
        "b" * 32,
        security,
        expires_delta=timedelta(seconds=-30),
    )

    resolution = resolver.resolve_token(expired)

    assert resolution.is_new
    assert resolution.session_id != "b" * 32


def test_token_without_session_id_is_rejected(resolver: IdentityResolver) -> None:
    token = jwt.encode(
        {"exp": datetime.now(timezone.utc) + timedelta(days=1)},
        TEST_SECRET,
        algorithm="HS256",
    )

    assert resolver.resolve_token(token).is_new


def test_rotating_secret_changes_subject(security: SecurityConfig) -> None:
    original = IdentityResolver(security)
    rotated = IdentityResolver(SecurityConfig(SECRET_KEY="rotated-secret"))

    assert original.subject_for("c" * 32) != rotated.subject_for("c" * 32)


def test_resolve_sets_cookie_for_new_visitor(resolver: IdentityResolver) -> None:
    response = Response()

    resolution = resolver.resolve(_request_with_cookie(None), response)

    cookie_header = response.headers["set-cookie"].lower()
    assert cookie_header.startswith(f"sid={resolution.issued_token}".lower())
    assert "httponly" in cookie_header
    assert "secure" in cookie_header
    assert "samesite=none" in cookie_header
    assert "max-age=31536000" in cookie_header


def test_resolve_leaves_valid_cookie_untouched(resolver: IdentityResolver) -> None:
    token = resolver.resolve_token(None).issued_token
    response = Response()

    resolution = resolver.resolve(_request_with_cookie(token), response)

    assert "set-cookie" not in response.headers
    assert not resolution.is_new


def test_resolve_replaces_tampered_cookie(resolver: IdentityResolver) -> None:
    token = resolver.resolve_token(None).issued_token
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])
    response = Response()

    resolution = resolver.resolve(_request_with_cookie(tampered), response)

    assert resolution.is_new
    assert "set-cookie" in response.headers
