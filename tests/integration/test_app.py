"""
API tests for the application shell.

Tests cover:
- Operational endpoints (welcome, health, readiness, metrics)
- Error envelopes for unmatched routes, wrong methods, store errors and
  unexpected exceptions
- Stack traces outside production only
- Correlation id propagation
"""

import asyncpg
import pytest
from fastapi.testclient import TestClient

from todo_api.src.config import clear_settings_cache


class TestOperationalEndpoints:

    def test_welcome_text(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.text == "Welcome to The TODO API!"

    def test_health(self, client):
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["environment"] == "production"

    def test_ready_without_database(self, client):
        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["database"] == "unhealthy"

    def test_metrics_exposition(self, client):
        client.get("/health")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text

    def test_correlation_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_correlation_id_is_generated(self, client):
        assert client.get("/health").headers["X-Correlation-ID"]


class TestErrorEnvelopes:

    def test_unknown_route(self, client):
        response = client.get("/api/unknown")

        assert response.status_code == 404
        assert response.json() == {
            "error": True,
            "code": "NOT_FOUND",
            "message": "Not Found - /api/unknown",
        }

    def test_wrong_method(self, client):
        response = client.patch("/api/todos")

        assert response.status_code == 405
        assert response.json()["code"] == "METHOD_NOT_ALLOWED"

    def test_malformed_json_is_bad_request(self, client, user_one):
        _, headers = user_one

        response = client.post(
            "/api/todos",
            content=b"{not json",
            headers={**headers, "Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"] is True

    def test_unique_violation_becomes_conflict(self, client, repos, user_one, monkeypatch):
        _, headers = user_one

        async def failing_create(values, conn=None):
            raise asyncpg.UniqueViolationError("duplicate key value violates unique constraint")

        monkeypatch.setattr(repos.categories, "create", failing_create)

        response = client.post("/api/categories", json={"name": "Pizzas"}, headers=headers)

        assert response.status_code == 409
        assert response.json()["message"] == "Unique constraint failed on the request fields"

    def test_foreign_key_violation_becomes_bad_request(self, client, repos, user_one, monkeypatch):
        _, headers = user_one

        async def failing_create(values, conn=None):
            raise asyncpg.ForeignKeyViolationError("insert or update violates foreign key constraint")

        monkeypatch.setattr(repos.menus, "create", failing_create)

        response = client.post(
            "/api/menus",
            json={"name": "x", "price": 1, "description": "y", "category_id": "c"},
            headers=headers
        )

        assert response.status_code == 400
        assert "Foreign key" in response.json()["message"]

    def test_unexpected_exception(self, app, repos, monkeypatch):
        async def broken(query):
            raise RuntimeError("boom")

        monkeypatch.setattr(repos.categories, "list", broken)
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post("/api/categories/get")

        assert response.status_code == 500
        body = response.json()
        assert body["message"] == "An unexpected error occurred."
        assert "stack" not in body
        assert "boom" not in response.text


class TestStackTraces:

    @pytest.fixture
    def dev_client(self, app, monkeypatch):
        monkeypatch.setenv("TODO_API_ENVIRONMENT", "development")
        clear_settings_cache()
        return TestClient(app)

    def test_stack_included_outside_production(self, dev_client):
        response = dev_client.post("/api/todos", json={"name": "x", "description": "y"})

        assert response.status_code == 401
        assert "Traceback" in response.json()["stack"]

    def test_stack_omitted_in_production(self, client):
        response = client.post("/api/todos", json={"name": "x", "description": "y"})
        assert "stack" not in response.json()
