"""Cross-origin allow-list behaviour."""

from __future__ import annotations

import pytest

from portfolio_api.middleware.origin import OriginPolicy

PRODUCTION = "https://rahulsingh.ai"
PREVIEW = "https://portfolio-git-main-rahul.vercel.app"


@pytest.fixture
def policy() -> OriginPolicy:
    return OriginPolicy(
        ["https://rahulsingh.ai", "https://www.rahulsingh.ai"],
        ".vercel.app",
    )


@pytest.mark.parametrize(
    "origin",
    [
        None,
        "",
        "https://rahulsingh.ai",
        "https://www.rahulsingh.ai",
        "https://rahulsingh.ai/",
        PREVIEW,
    ],
)
def test_allowed_origins(policy: OriginPolicy, origin) -> None:
    assert policy.is_allowed(origin)


@pytest.mark.parametrize(
    "origin",
    [
        "https://evil.example.org",
        "http://rahulsingh.ai.attacker.net",
        "http://preview.vercel.app",
        "https://vercel.app.evil.org",
        "https://vercel.app",
        "null",
    ],
)
def test_rejected_origins(policy: OriginPolicy, origin) -> None:
    assert not policy.is_allowed(origin)


def test_no_preview_suffix_disables_wildcard() -> None:
    policy = OriginPolicy(["https://rahulsingh.ai"], None)

    assert policy.origin_regex() is None
    assert not policy.is_allowed(PREVIEW)


def test_disallowed_origin_is_refused(client) -> None:
    response = client.post(
        "/api/views",
        headers={"origin": "https://evil.example.org"},
    )

    assert response.status_code == 403
    assert response.json() == {"detail": "Origin not allowed"}
    assert "access-control-allow-origin" not in response.headers


def test_disallowed_origin_does_not_record_a_view(client, geo_client) -> None:
    client.post("/api/views", headers={"origin": "https://evil.example.org"})

    assert geo_client.calls == []


@pytest.mark.parametrize("origin", [PRODUCTION, PREVIEW])
def test_allowed_origin_gets_credentialed_cors_headers(client, origin) -> None:
    response = client.get("/api/views", headers={"origin": origin})

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == origin
    assert response.headers["access-control-allow-credentials"] == "true"


def test_preflight_for_allowed_origin(client) -> None:
    response = client.options(
        "/api/contact",
        headers={
            "origin": PRODUCTION,
            "access-control-request-method": "POST",
            "access-control-request-headers": "content-type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == PRODUCTION
    assert "POST" in response.headers["access-control-allow-methods"]


def test_requests_without_origin_are_served(client) -> None:
    assert client.get("/api/views").status_code == 200


def test_preview_origin_with_port_is_consistent(client, policy: OriginPolicy) -> None:
    origin = "https://portfolio-git-main-rahul.vercel.app:8443"

    response = client.get("/api/views", headers={"origin": origin})

    assert policy.is_allowed(origin)
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == origin
