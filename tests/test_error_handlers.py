"""Unit tests for domicile.infra.fastapi.error_handlers."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any
from unittest.mock import MagicMock
from uuid import UUID

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from domicile.foundation.domain.exceptions import (
    AlreadyRestoredError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    RateLimitedError,
    TokenExpiredOrUsedError,
    ValidationError,
)
from domicile.infra.fastapi.error_handlers import (
    PROBLEM_MEDIA_TYPE,
    _is_sensitive_key,
    _sanitize_context,
    _sanitize_value,
    register_exception_handlers,
    unhandled_exception_handler,
)


class RestorePayload(BaseModel):
    confirm: bool


def _client_raising(exc: Exception) -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/test")
    def endpoint() -> None:
        raise exc

    return TestClient(app, raise_server_exceptions=False)


# ---------------------------------------------------------------------------
# Sanitization
# ---------------------------------------------------------------------------


class TestSanitization:
    @pytest.mark.unit
    def test_empty_context_is_omitted(self) -> None:
        assert _sanitize_context(None) is None
        assert _sanitize_context({}) is None

    @pytest.mark.unit
    def test_token_like_keys_are_dropped(self) -> None:
        ctx: dict[str, Any] = {
            "record_id": "r-1",
            "restoration_token": "tok-0001",
            "password": "hunter2",
        }
        assert _sanitize_context(ctx) == {"record_id": "r-1"}

    @pytest.mark.unit
    def test_values_become_json_safe(self) -> None:
        uid = UUID("12345678-1234-5678-1234-567812345678")
        when = datetime(2026, 3, 14, 12, tzinfo=UTC)
        assert _sanitize_value(uid) == str(uid)
        assert _sanitize_value(when) == when.isoformat()
        assert _sanitize_value([uid, 3]) == [str(uid), 3]
        assert _sanitize_value({1, 2}) in ("{1, 2}", "{2, 1}")

    @pytest.mark.unit
    def test_connection_strings_are_redacted(self) -> None:
        result = _sanitize_value("failed on postgresql://app:pw@db:5432/domicile")
        assert "app:pw" not in result
        assert "REDACTED" in result

    @pytest.mark.unit
    def test_is_sensitive_key(self) -> None:
        assert _is_sensitive_key("restoration_token") is True
        assert _is_sensitive_key("API_KEY") is True
        assert _is_sensitive_key("listing_id") is False


# ---------------------------------------------------------------------------
# Status mapping
# ---------------------------------------------------------------------------


class TestStatusMapping:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("exc", "status", "problem_type", "error_code"),
        [
            (NotFoundError("Listing", "l-1"), 404, "/errors/not-found", "RESOURCE_NOT_FOUND"),
            (
                ValidationError("reason", "is required"),
                422,
                "/errors/validation-error",
                "VALIDATION_ERROR",
            ),
            (ConflictError("listing exists"), 409, "/errors/conflict", "CONFLICT"),
            (
                AlreadyRestoredError(record_id="r-1"),
                409,
                "/errors/already-restored",
                "ALREADY_RESTORED",
            ),
            (
                TokenExpiredOrUsedError(record_id="r-1"),
                410,
                "/errors/token-expired-or-used",
                "TOKEN_EXPIRED_OR_USED",
            ),
            (AuthorizationError("Admins only"), 403, "/errors/forbidden", "AUTHORIZATION_ERROR"),
            (DomainError("something went wrong"), 400, "/errors/domain-error", "DOMAIN_ERROR"),
        ],
    )
    def test_domain_errors(
        self, exc: DomainError, status: int, problem_type: str, error_code: str
    ) -> None:
        resp = _client_raising(exc).get("/test")

        assert resp.status_code == status
        assert PROBLEM_MEDIA_TYPE in resp.headers["content-type"]
        body = resp.json()
        assert body["type"] == problem_type
        assert body["error_code"] == error_code
        assert body["instance"] == "/test"
        assert body["detail"] == exc.message

    @pytest.mark.unit
    def test_already_restored_keeps_record_id(self) -> None:
        body = _client_raising(AlreadyRestoredError(record_id="r-1")).get("/test").json()
        assert body["context"] == {"record_id": "r-1"}

    @pytest.mark.unit
    def test_rate_limited_sets_headers(self) -> None:
        exc = RateLimitedError(cap=5, window="hour", retry_after_seconds=1200)

        resp = _client_raising(exc).get("/test")

        assert resp.status_code == 429
        assert resp.json()["detail"] == "Report limit reached: at most 5 reports per hour"
        assert resp.headers["Retry-After"] == "1200"
        assert resp.headers["X-RateLimit-Limit"] == "5"
        assert resp.headers["X-RateLimit-Remaining"] == "0"

    @pytest.mark.unit
    def test_authentication_sets_www_authenticate(self) -> None:
        exc = AuthenticationError(
            "Missing X-User-ID header", auth_error="invalid_request", error_code="MISSING_IDENTITY"
        )

        resp = _client_raising(exc).get("/test")

        assert resp.status_code == 401
        assert resp.json()["error_code"] == "MISSING_IDENTITY"
        assert 'error="invalid_request"' in resp.headers["WWW-Authenticate"]


class TestRequestValidationHandler:
    @pytest.mark.unit
    def test_returns_422_for_invalid_body(self) -> None:
        app = FastAPI()
        register_exception_handlers(app)

        @app.post("/test")
        def endpoint(body: RestorePayload) -> dict[str, bool]:
            return {"confirm": body.confirm}

        resp = TestClient(app, raise_server_exceptions=False).post("/test", json={})

        assert resp.status_code == 422
        body = resp.json()
        assert body["error_code"] == "REQUEST_VALIDATION_ERROR"
        assert body["context"]["errors"][0]["loc"] == ["body", "confirm"]


class TestUnhandledExceptionHandler:
    @pytest.mark.unit
    def test_production_mode_hides_details(self) -> None:
        resp = _client_raising(RuntimeError("kaboom")).get("/test")

        assert resp.status_code == 500
        body = resp.json()
        assert body["error_code"] == "INTERNAL_ERROR"
        assert "kaboom" not in body["detail"]
        assert "correlation_id" in body

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_debug_mode_shows_exception(self) -> None:
        request = MagicMock()
        request.app.debug = True
        request.url.path = "/test"
        request.method = "GET"

        resp = await unhandled_exception_handler(request, RuntimeError("kaboom"))

        body = json.loads(resp.body)
        assert body["detail"] == "RuntimeError: kaboom"
        assert body["context"] == {"exception_type": "RuntimeError"}
