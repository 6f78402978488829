"""
Unit tests for error rendering.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from charity_hub.errors import ConflictError, NotFoundError, setup_exception_handlers


@pytest.fixture
def error_client() -> TestClient:
    """App with one route per error path."""
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/http-500")
    def http_500() -> None:
        raise HTTPException(status_code=500, detail="Internal server error")

    @app.get("/conflict")
    def conflict() -> None:
        raise ConflictError("flexible shift capacity reached", code="CAPACITY_FULL")

    @app.get("/missing")
    def missing() -> None:
        raise NotFoundError("shift not found")

    @app.get("/crash")
    def crash() -> None:
        raise RuntimeError("database went away")

    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.unit
def test_http_exception_uses_error_key(error_client: TestClient) -> None:
    """Test that HTTPException raised by a handler renders as {"error": ...}."""
    response = error_client.get("/http-500")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


@pytest.mark.unit
def test_unknown_route_uses_error_key(error_client: TestClient) -> None:
    """Test that routing 404s share the same body shape."""
    response = error_client.get("/nowhere")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


@pytest.mark.unit
def test_app_errors_carry_code(error_client: TestClient) -> None:
    """Test that AppError subclasses render their status, message and code."""
    conflict = error_client.get("/conflict")
    missing = error_client.get("/missing")

    assert conflict.status_code == 409
    assert conflict.json() == {"error": "flexible shift capacity reached", "code": "CAPACITY_FULL"}
    assert missing.status_code == 404
    assert missing.json() == {"error": "shift not found"}


@pytest.mark.unit
def test_unhandled_exception_returns_error_id(error_client: TestClient) -> None:
    """Test that an unexpected exception becomes a generic 500 with an error id."""
    response = error_client.get("/crash")

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Internal server error"
    assert len(body["error_id"]) == 12
