"""
Shared pytest fixtures.

The application is built with its repository dependencies overridden by
in-memory doubles, so HTTP tests run without PostgreSQL. The TestClient is
used without its context manager, which keeps the database lifespan from
running.
"""

import os

os.environ.setdefault("TODO_API_PASSWORD_BCRYPT_ROUNDS", "4")
os.environ.setdefault("TODO_API_ENVIRONMENT", "production")
os.environ.setdefault("TODO_API_LOG_LEVEL", "WARNING")

from types import SimpleNamespace  # noqa: E402
from typing import Dict, Tuple  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from tests.fakes import (  # noqa: E402
    InMemoryAddressRepository,
    InMemoryCategoryRepository,
    InMemoryMenuOptionRepository,
    InMemoryMenuRepository,
    InMemoryTodoRepository,
    InMemoryUserRepository,
)
from todo_api.src import dependencies  # noqa: E402
from todo_api.src.config import clear_settings_cache  # noqa: E402


@pytest.fixture
def repos():
    """Fresh in-memory repositories for one test."""
    return SimpleNamespace(
        users=InMemoryUserRepository(),
        todos=InMemoryTodoRepository(),
        addresses=InMemoryAddressRepository(),
        categories=InMemoryCategoryRepository(),
        menus=InMemoryMenuRepository(),
        menu_options=InMemoryMenuOptionRepository(),
    )


@pytest.fixture
def app(repos):
    """Application wired to the in-memory repositories."""
    clear_settings_cache()

    from todo_api.src.main import create_app

    application = create_app()
    application.dependency_overrides[dependencies.get_user_repository] = lambda: repos.users
    application.dependency_overrides[dependencies.get_todo_repository] = lambda: repos.todos
    application.dependency_overrides[dependencies.get_address_repository] = lambda: repos.addresses
    application.dependency_overrides[dependencies.get_category_repository] = lambda: repos.categories
    application.dependency_overrides[dependencies.get_menu_repository] = lambda: repos.menus
    application.dependency_overrides[dependencies.get_menu_option_repository] = lambda: repos.menu_options

    yield application

    application.dependency_overrides.clear()
    clear_settings_cache()


@pytest.fixture
def client(app):
    return TestClient(app)


def _register(client: TestClient, username: str) -> Tuple[str, Dict[str, str]]:
    response = client.post(
        "/api/users",
        json={
            "username": username,
            "email": f"{username}@example.com",
            "first_name": username.capitalize(),
            "last_name": "Tester",
            "password": "s3cret-password",
        },
    )
    assert response.status_code == 201, response.text
    body = response.json()
    return body["data"]["id"], {"Authorization": f"Bearer {body['accessToken']}"}


@pytest.fixture
def user_one(client):
    """(user id, auth headers) of a registered user."""
    return _register(client, "alice")


@pytest.fixture
def user_two(client):
    """(user id, auth headers) of a second registered user."""
    return _register(client, "bob")
