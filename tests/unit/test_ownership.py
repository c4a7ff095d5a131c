"""Unit tests for ownership checks."""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from todo_api.src.errors import Forbidden, NotFound
from todo_api.src.services.ownership import Authorization, authorize, ensure_owner


class TestAuthorize:

    def test_missing_resource_is_not_found(self):
        assert authorize(None, uuid4()) is Authorization.NOT_FOUND

    def test_owner_is_allowed(self):
        user_id = uuid4()
        assert authorize(SimpleNamespace(owner_id=user_id), user_id) is Authorization.ALLOWED

    def test_owner_matches_across_str_and_uuid(self):
        user_id = uuid4()
        assert authorize(SimpleNamespace(owner_id=str(user_id)), user_id) is Authorization.ALLOWED

    def test_other_user_is_forbidden(self):
        assert authorize(SimpleNamespace(owner_id=uuid4()), uuid4()) is Authorization.FORBIDDEN


class TestEnsureOwner:

    def test_returns_resource_when_allowed(self):
        user_id = uuid4()
        resource = SimpleNamespace(id=uuid4(), owner_id=user_id)

        assert ensure_owner(resource, user_id, "todo") is resource

    def test_raises_not_found(self):
        with pytest.raises(NotFound, match="Todo not found"):
            ensure_owner(None, uuid4(), "todo")

    def test_raises_forbidden(self):
        resource = SimpleNamespace(id=uuid4(), owner_id=uuid4())

        with pytest.raises(Forbidden) as exc_info:
            ensure_owner(resource, uuid4(), "address")

        assert exc_info.value.status_code == 403
        assert "address" in exc_info.value.message
