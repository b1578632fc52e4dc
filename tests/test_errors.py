"""Tests for the centralized error translation."""
from __future__ import annotations

import json

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from app import config
from app.exceptions import Forbidden, UpstreamError, app_error_handler, database_error_handler


def _body(response) -> dict:
    return json.loads(response.body)


async def test_app_error_maps_status_and_message():
    response = await app_error_handler(None, Forbidden())

    assert response.status_code == 403
    assert _body(response) == {"error": "Access forbidden"}


async def test_server_errors_carry_stack_outside_production(monkeypatch):
    monkeypatch.setattr(config, "ENVIRONMENT", "development")

    response = await app_error_handler(None, UpstreamError())

    assert response.status_code == 500
    assert "stack" in _body(response)


async def test_server_errors_hide_stack_in_production(monkeypatch):
    monkeypatch.setattr(config, "ENVIRONMENT", "production")

    response = await app_error_handler(None, UpstreamError())

    assert _body(response) == {"error": "Failed to reach the book catalog"}


async def test_database_errors():
    integrity = await database_error_handler(None, IntegrityError("INSERT", {}, Exception("UNIQUE")))
    down = await database_error_handler(None, OperationalError("SELECT", {}, Exception("unable to open")))
    other = await database_error_handler(None, SQLAlchemyError("boom"))

    assert integrity.status_code == 400
    assert _body(integrity)["error"] == "Duplicate entry"
    assert down.status_code == 503
    assert _body(down)["error"] == "Database connection failed"
    assert other.status_code == 500
    assert _body(other)["error"] == "Database error occurred"


async def test_foreign_key_violation_is_not_a_duplicate():
    response = await database_error_handler(
        None, IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))
    )

    assert response.status_code == 400
    assert _body(response) == {"error": "Invalid reference to related resource"}


async def test_unexpected_error_becomes_500(client, catalog):
    catalog.error = RuntimeError("boom")

    response = await client.get("/")

    assert response.status_code == 500
    assert response.json()["error"] == "Internal Server Error"


async def test_unauthenticated_sets_bearer_challenge(client):
    response = await client.post("/logout")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
