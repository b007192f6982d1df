from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from auth_service.api import routes
from auth_service.domain.errors import FailureKind
from auth_service.security.tokens import decode_access_token

from conftest import FIXED_NOW, SIGNING_KEY


@pytest.fixture
def api_client(service, store):
    """Provide a FastAPI test client with isolated state."""
    app = FastAPI()
    app.include_router(routes.router)
    routes.install_exception_handlers(app)
    app.state.auth_service = service

    original_limiter = routes.rate_limiter
    routes.rate_limiter = routes.SlidingWindowRateLimiter(max_requests=3, window_seconds=60)

    with TestClient(app) as client:
        yield client, store

    routes.rate_limiter = original_limiter


def _body(email: str = "user@example.com", password: str = "s3cret!") -> dict[str, str]:
    return {"email": email, "password": password}


def test_register_and_login_return_tokens_for_same_account(api_client):
    client, store = api_client

    registered = client.post("/v1/register", json=_body())
    logged_in = client.post("/v1/login", json=_body())

    assert registered.status_code == 200
    assert logged_in.status_code == 200
    assert set(registered.json()) == {"token"}
    (account,) = store.rows_for("user@example.com")
    for response in (registered, logged_in):
        claims = decode_access_token(response.json()["token"], now=FIXED_NOW, signing_key=SIGNING_KEY)
        assert claims.subject == account.account_id


def test_duplicate_registration_looks_like_validation_failure(api_client):
    client, _ = api_client
    client.post("/v1/register", json=_body())

    duplicate = client.post("/v1/register", json=_body(password="anything"))
    too_short = client.post("/v1/register", json=_body(email="new@example.com", password="123"))

    assert duplicate.status_code == too_short.status_code == 400
    assert duplicate.json() == too_short.json() == {"detail": "invalid request"}


def test_login_failures_share_status_and_body(api_client):
    client, _ = api_client
    client.post("/v1/register", json=_body())

    unknown = client.post("/v1/login", json=_body(email="nobody@example.com"))
    mismatch = client.post("/v1/login", json=_body(password="wrong"))

    assert unknown.status_code == mismatch.status_code == 401
    assert unknown.json() == mismatch.json() == {"detail": "invalid credentials"}


@pytest.mark.parametrize(
    "payload",
    [
        {"email": "not-an-email", "password": "s3cret!"},
        {"email": "user@example.com"},
        {"email": "user@example.com", "password": ""},
        {"password": "s3cret!"},
    ],
)
def test_malformed_body_is_rejected_without_echo(api_client, payload):
    client, _ = api_client

    response = client.post("/v1/register", json=payload)

    assert response.status_code == 400
    assert response.json() == {"detail": "invalid request"}
    assert "s3cret!" not in response.text


def test_store_outage_returns_generic_500(api_client):
    client, store = api_client
    store.available = False

    response = client.post("/v1/login", json=_body())

    assert response.status_code == 500
    assert response.json() == {"detail": "internal error"}


def test_login_attempts_are_rate_limited_per_email(api_client):
    client, _ = api_client

    statuses = [client.post("/v1/login", json=_body(password="wrong")).status_code for _ in range(4)]
    other = client.post("/v1/login", json=_body(email="other@example.com"))

    assert statuses == [401, 401, 401, 429]
    assert other.status_code == 401


def test_rate_limit_key_ignores_email_case(api_client):
    client, _ = api_client

    for email in ("a@example.com", "A@example.com", "a@EXAMPLE.com"):
        client.post("/v1/login", json=_body(email=email))
    throttled = client.post("/v1/login", json=_body(email="A@Example.com"))

    assert throttled.status_code == 429
    assert throttled.json()["detail"] == "rate limited"


def test_every_failure_kind_has_a_response():
    assert set(routes.FAILURE_RESPONSES) == set(FailureKind)


def test_metrics_endpoint_exposes_auth_counter(api_client):
    from auth_service import main

    client, _ = api_client
    client.post("/v1/login", json=_body())

    response = main.metrics()

    assert response.media_type.startswith("text/plain")
    assert b"auth_requests_total" in response.body
