"""
API tests for todos.

Tests cover:
- Creation with owner assignment
- Listing scoped to the caller, with filters, sorting and pagination
- Ownership enforcement on update and delete
- Rejection of empty or non-updatable update bodies
"""

from uuid import uuid4

import pytest


def create_todo(client, headers, **overrides):
    payload = {"name": "Buy milk", "description": "2%"}
    payload.update(overrides)
    response = client.post("/api/todos", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestCreateTodo:

    def test_create_assigns_owner(self, client, user_one):
        user_id, headers = user_one

        response = client.post(
            "/api/todos",
            json={"name": "Buy milk", "description": "2%"},
            headers=headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Todo created successfully"
        assert body["data"]["user_id"] == user_id
        assert body["data"]["completed"] is False

    def test_client_supplied_owner_is_ignored(self, client, user_one):
        user_id, headers = user_one

        todo = create_todo(client, headers, user_id=str(uuid4()))

        assert todo["user_id"] == user_id

    def test_create_with_completed_flag(self, client, user_one):
        _, headers = user_one
        assert create_todo(client, headers, completed="true")["completed"] is True

    def test_create_invalid_payload(self, client, repos, user_one):
        _, headers = user_one

        response = client.post("/api/todos", json={"name": 5}, headers=headers)

        assert response.status_code == 400
        assert set(response.json()["details"]) == {"name", "description"}
        assert repos.todos.mutations == []

    def test_create_requires_auth(self, client):
        response = client.post("/api/todos", json={"name": "Buy milk", "description": "2%"})

        assert response.status_code == 401
        assert response.json()["error"] is True


class TestListTodos:

    def test_list_is_scoped_to_caller(self, client, user_one, user_two):
        _, alice = user_one
        _, bob = user_two
        create_todo(client, alice, name="alice todo")
        create_todo(client, bob, name="bob todo")

        response = client.post("/api/todos/get", headers=alice)

        assert response.status_code == 200
        assert [todo["name"] for todo in response.json()["data"]] == ["alice todo"]

    def test_owner_filter_from_body_cannot_widen_scope(self, client, user_one, user_two):
        _, alice = user_one
        bob_id, bob = user_two
        create_todo(client, bob)

        response = client.post("/api/todos/get", json={"user_id": bob_id}, headers=alice)

        assert response.json()["data"] == []

    def test_filter_sort_and_paginate(self, client, user_one):
        _, headers = user_one
        for name in ("b", "a", "c"):
            create_todo(client, headers, name=name)
        create_todo(client, headers, name="done", completed=True)

        response = client.post(
            "/api/todos/get",
            params={"page": "2", "limit": "2", "sort": ["name:desc", "bogus:asc"]},
            json={"completed": False},
            headers=headers
        )

        body = response.json()
        assert [todo["name"] for todo in body["data"]] == ["a"]
        assert body["pagination"] == {"totalItems": 3, "totalPages": 2, "currentPage": 2}

    def test_garbage_page_falls_back_to_first_page(self, client, user_one):
        _, headers = user_one
        create_todo(client, headers)

        response = client.post("/api/todos/get", params={"page": "abc"}, headers=headers)

        assert response.json()["pagination"]["currentPage"] == 1
        assert len(response.json()["data"]) == 1


class TestGetTodo:

    def test_get_todo(self, client, user_one):
        _, headers = user_one
        todo = create_todo(client, headers)

        response = client.get(f"/api/todos/{todo['id']}", headers=headers)

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Buy milk"

    def test_get_missing_todo(self, client, user_one):
        _, headers = user_one

        response = client.get(f"/api/todos/{uuid4()}", headers=headers)

        assert response.status_code == 404
        assert response.json()["message"] == "Todo not found"


class TestUpdateTodo:

    def test_owner_can_update(self, client, user_one):
        _, headers = user_one
        todo = create_todo(client, headers)

        response = client.put(
            f"/api/todos/{todo['id']}",
            json={"completed": True, "user_id": str(uuid4())},
            headers=headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["completed"] is True
        assert data["name"] == "Buy milk"
        assert data["user_id"] == todo["user_id"]

    @pytest.mark.parametrize("body", [{}, {"user_id": "x", "id": "y"}, {"name": None}])
    def test_update_without_updatable_fields(self, client, repos, user_one, body):
        _, headers = user_one
        todo = create_todo(client, headers)

        response = client.put(f"/api/todos/{todo['id']}", json=body, headers=headers)

        assert response.status_code == 400
        assert "update" not in repos.todos.calls

    def test_update_with_wrong_type(self, client, user_one):
        _, headers = user_one
        todo = create_todo(client, headers)

        response = client.put(f"/api/todos/{todo['id']}", json={"completed": "perhaps"}, headers=headers)

        assert response.status_code == 400
        assert "completed" in response.json()["details"]

    def test_non_owner_cannot_update(self, client, repos, user_one, user_two):
        _, alice = user_one
        _, bob = user_two
        todo = create_todo(client, alice)

        response = client.put(f"/api/todos/{todo['id']}", json={"name": "hijacked"}, headers=bob)

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"
        assert "update" not in repos.todos.calls

    def test_update_missing_todo(self, client, user_one):
        _, headers = user_one

        response = client.put(f"/api/todos/{uuid4()}", json={"name": "x"}, headers=headers)

        assert response.status_code == 404


class TestDeleteTodo:

    def test_owner_can_delete(self, client, repos, user_one):
        _, headers = user_one
        todo = create_todo(client, headers)

        response = client.delete(f"/api/todos/{todo['id']}", headers=headers)

        assert response.status_code == 200
        assert response.json()["data"]["id"] == todo["id"]
        assert repos.todos.rows == {}

    def test_non_owner_delete_is_forbidden_and_row_remains(self, client, repos, user_one, user_two):
        _, alice = user_one
        _, bob = user_two
        todo = create_todo(client, alice, name="Buy milk", description="2%")

        response = client.delete(f"/api/todos/{todo['id']}", headers=bob)

        assert response.status_code == 403
        assert len(repos.todos.rows) == 1
        assert "delete" not in repos.todos.calls

    def test_delete_missing_todo(self, client, user_one):
        _, headers = user_one
        assert client.delete(f"/api/todos/{uuid4()}", headers=headers).status_code == 404
