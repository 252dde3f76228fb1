"""
Name: RFC7807 Error Mapping Tests

Responsibilities:
  - Map each taxonomy error to its HTTP status and code
  - Ensure unhandled exceptions become INTERNAL_ERROR problems
  - Ensure X-Request-Id is echoed and carried into problem bodies
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from rentalhub.api.exception_handlers import register_exception_handlers, resolve_status
from rentalhub.crosscutting.exceptions import (
    AccountInactive,
    AuthenticationError,
    AuthorizationError,
    CredentialMismatch,
    DatabaseError,
    InvalidCredentials,
    InvalidOrExpiredCodeError,
    InvalidTransitionError,
    NotFoundError,
    StaleStateError,
    TransportError,
    ValidationError,
)
from rentalhub.crosscutting.middleware import RequestContextMiddleware

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "exc, status, code",
    [
        (InvalidCredentials("x"), 401, "INVALID_CREDENTIALS"),
        (AccountInactive("x"), 403, "ACCOUNT_INACTIVE"),
        (AuthenticationError("x"), 401, "UNAUTHORIZED"),
        (AuthorizationError("x"), 403, "FORBIDDEN"),
        (CredentialMismatch("x"), 422, "CREDENTIAL_MISMATCH"),
        (InvalidOrExpiredCodeError("x"), 422, "INVALID_OR_EXPIRED_CODE"),
        (ValidationError("x"), 422, "VALIDATION_ERROR"),
        (NotFoundError("x"), 404, "NOT_FOUND"),
        (StaleStateError("x"), 409, "STALE_STATE"),
        (InvalidTransitionError("x"), 409, "INVALID_TRANSITION"),
        (DatabaseError("x"), 503, "DATABASE_ERROR"),
        (TransportError("x"), 503, "SERVICE_UNAVAILABLE"),
    ],
)
def test_resolve_status(exc, status, code):
    resolved_status, resolved_code = resolve_status(exc)
    assert resolved_status == status
    assert resolved_code.value == code


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)

    @app.get("/stale")
    def stale():
        raise StaleStateError("changed")

    @app.get("/invalid")
    def invalid():
        raise ValidationError("bad", errors=[{"field": "title", "msg": "empty"}])

    @app.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    return app


def test_taxonomy_error_becomes_problem_json():
    client = TestClient(_app())
    response = client.get("/stale", headers={"X-Request-Id": "req-123"})

    assert response.status_code == 409
    assert response.headers["X-Request-Id"] == "req-123"
    body = response.json()
    assert body["code"] == "STALE_STATE"
    assert body["status"] == 409
    assert body["detail"] == "changed"
    assert body["instance"].endswith("/stale")
    assert {"request_id": "req-123"} in body["errors"]
    assert any("error_id" in e for e in body["errors"])


def test_validation_error_keeps_field_errors():
    body = TestClient(_app()).get("/invalid").json()
    assert {"field": "title", "msg": "empty"} in body["errors"]


def test_unhandled_exception_is_internal_error():
    client = TestClient(_app(), raise_server_exceptions=False)
    response = client.get("/boom")
    assert response.status_code == 500
    assert response.json()["code"] == "INTERNAL_ERROR"


def test_healthz_reports_in_memory(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json()["db"] == "in_memory"
    assert response.headers["X-Request-Id"]


def test_metrics_endpoint_exposes_prometheus_text(client, accounts):
    client.post("/auth/login", json={"email": "renter@example.com", "password": "x"})
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "rentalhub_" in response.text
