"""Todo repository."""

from todo_api.src.models.todo import TodoDB
from todo_api.src.repositories.base import ResourceRepository


class TodoRepository(ResourceRepository[TodoDB]):
    """Repository for the ``todos`` table."""

    table = "todos"
    columns = (
        "id", "name", "description", "completed", "user_id",
        "created_at", "updated_at",
    )
    model = TodoDB
