"""
API tests for the menu catalogue: categories, menus and menu options.

Tests cover:
- Public reads and authenticated writes
- Numeric and boolean payload coercion
- Menu option creation against a missing menu
- Ownership enforcement on every mutation
"""

from uuid import uuid4

import pytest


def create_category(client, headers, name="Pizzas"):
    response = client.post("/api/categories", json={"name": name}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def create_menu(client, headers, category_id, **overrides):
    payload = {"name": "Margherita", "price": "9.50", "description": "Tomato and basil", "category_id": category_id}
    payload.update(overrides)
    response = client.post("/api/menus", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def create_option(client, headers, menu_id, **overrides):
    payload = {"name": "Extra cheese", "max_selection": "2", "menu_id": menu_id, "multiple_selection": 1}
    payload.update(overrides)
    return client.post("/api/menu-options", json=payload, headers=headers)


@pytest.fixture
def menu(client, user_one):
    _, headers = user_one
    category = create_category(client, headers)
    return create_menu(client, headers, category["id"])


# ============================================================================
# CATEGORIES
# ============================================================================


class TestCategories:

    def test_create_and_read_publicly(self, client, user_one):
        user_id, headers = user_one
        category = create_category(client, headers)

        response = client.get(f"/api/categories/{category['id']}")

        assert response.status_code == 200
        assert response.json()["data"]["user_id"] == user_id

    def test_create_requires_auth(self, client):
        assert client.post("/api/categories", json={"name": "Pizzas"}).status_code == 401

    def test_list_sorted_by_name(self, client, user_one):
        _, headers = user_one
        for name in ("Salads", "Drinks", "Pizzas"):
            create_category(client, headers, name=name)

        response = client.post("/api/categories/get", params={"sort": "name:asc"})

        assert [category["name"] for category in response.json()["data"]] == ["Drinks", "Pizzas", "Salads"]
        assert response.json()["pagination"]["totalItems"] == 3

    def test_oversized_page_number(self, client, user_one):
        _, headers = user_one
        create_category(client, headers)

        response = client.post("/api/categories/get?page=" + "1" * 5000)

        assert response.status_code == 200
        assert response.json()["pagination"]["currentPage"] == 1
        assert len(response.json()["data"]) == 1

    def test_filter_is_case_sensitive(self, client, user_one):
        _, headers = user_one
        create_category(client, headers, name="Pizzas")

        response = client.post("/api/categories/get", json={"name": "pizzas"})

        assert response.json()["data"] == []

    def test_update_and_delete_by_owner(self, client, repos, user_one):
        _, headers = user_one
        category = create_category(client, headers)

        updated = client.put(f"/api/categories/{category['id']}", json={"name": "Pies"}, headers=headers)
        deleted = client.delete(f"/api/categories/{category['id']}", headers=headers)

        assert updated.json()["data"]["name"] == "Pies"
        assert deleted.status_code == 200
        assert repos.categories.rows == {}

    def test_non_owner_update_is_forbidden(self, client, repos, user_one, user_two):
        _, alice = user_one
        _, bob = user_two
        category = create_category(client, alice)

        response = client.put(f"/api/categories/{category['id']}", json={"name": "Mine"}, headers=bob)

        assert response.status_code == 403
        assert "update" not in repos.categories.calls

    def test_update_with_unknown_fields_only(self, client, user_one):
        _, headers = user_one
        category = create_category(client, headers)

        response = client.put(f"/api/categories/{category['id']}", json={"colour": "red"}, headers=headers)

        assert response.status_code == 400
        assert response.json()["message"] == "No valid fields to update"


# ============================================================================
# MENUS
# ============================================================================


class TestMenus:

    def test_price_is_coerced_to_number(self, menu):
        assert menu["price"] == 9.5

    def test_invalid_price(self, client, user_one):
        _, headers = user_one
        category = create_category(client, headers)

        response = client.post(
            "/api/menus",
            json={"name": "Margherita", "price": "cheap", "description": "x", "category_id": category["id"]},
            headers=headers
        )

        assert response.status_code == 400
        assert response.json()["details"]["price"]["rule"] == "numeric"

    def test_get_menu(self, client, menu):
        response = client.get(f"/api/menus/{menu['id']}")

        assert response.status_code == 200
        assert response.json()["message"] == f"Menu with {menu['id']} retrieved successfully"

    def test_list_filter_by_category(self, client, user_one, menu):
        _, headers = user_one
        other_category = create_category(client, headers, name="Drinks")
        create_menu(client, headers, other_category["id"], name="Cola", price=2)

        response = client.post("/api/menus/get", json={"category_id": other_category["id"]})

        assert [item["name"] for item in response.json()["data"]] == ["Cola"]

    def test_list_filter_with_malformed_reference(self, client, menu):
        response = client.post("/api/menus/get", json={"category_id": "not-a-uuid"})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid value for field 'category_id'"

    def test_list_sorted_by_price_descending(self, client, user_one, menu):
        _, headers = user_one
        create_menu(client, headers, menu["category_id"], name="Quattro", price=12)

        response = client.post("/api/menus/get", params={"sort": ["price:desc", "name:bogus"]})

        assert [item["name"] for item in response.json()["data"]] == ["Quattro", "Margherita"]

    def test_owner_can_update_price(self, client, user_one, menu):
        _, headers = user_one

        response = client.put(f"/api/menus/{menu['id']}", json={"price": 11.25}, headers=headers)

        assert response.status_code == 200
        assert response.json()["data"]["price"] == 11.25

    def test_non_owner_cannot_delete(self, client, repos, user_two, menu):
        _, bob = user_two

        response = client.delete(f"/api/menus/{menu['id']}", headers=bob)

        assert response.status_code == 403
        assert len(repos.menus.rows) == 1


# ============================================================================
# MENU OPTIONS
# ============================================================================


class TestMenuOptions:

    def test_create_option(self, client, user_one, menu):
        user_id, headers = user_one

        response = create_option(client, headers, menu["id"])

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["max_selection"] == 2
        assert data["multiple_selection"] is True
        assert data["required"] is None
        assert data["menu_id"] == menu["id"]
        assert data["user_id"] == user_id

    @pytest.mark.parametrize("menu_id", [lambda: str(uuid4()), lambda: "not-a-uuid"])
    def test_create_option_for_missing_menu(self, client, repos, user_one, menu_id):
        _, headers = user_one

        response = create_option(client, headers, menu_id())

        assert response.status_code == 404
        assert response.json()["message"] == "No menu found"
        assert repos.menu_options.rows == {}

    def test_create_option_validation(self, client, user_one, menu):
        _, headers = user_one

        response = create_option(client, headers, menu["id"], max_selection="many", multiple_selection=None)

        assert response.status_code == 400
        assert set(response.json()["details"]) == {"max_selection", "multiple_selection"}

    def test_list_get_update_delete(self, client, repos, user_one, menu):
        _, headers = user_one
        option = create_option(client, headers, menu["id"]).json()["data"]

        listed = client.post("/api/menu-options/get", json={"menu_id": menu["id"]})
        fetched = client.get(f"/api/menu-options/{option['id']}")
        updated = client.put(f"/api/menu-options/{option['id']}", json={"required": True}, headers=headers)
        deleted = client.delete(f"/api/menu-options/{option['id']}", headers=headers)

        assert [item["id"] for item in listed.json()["data"]] == [option["id"]]
        assert fetched.json()["data"]["name"] == "Extra cheese"
        assert updated.json()["data"]["required"] is True
        assert deleted.status_code == 200
        assert repos.menu_options.rows == {}

    def test_non_owner_cannot_update(self, client, user_one, user_two, menu):
        _, alice = user_one
        _, bob = user_two
        option = create_option(client, alice, menu["id"]).json()["data"]

        response = client.put(f"/api/menu-options/{option['id']}", json={"name": "Mine"}, headers=bob)

        assert response.status_code == 403
        assert response.json()["message"] == "You are not permitted to modify this menu option"
