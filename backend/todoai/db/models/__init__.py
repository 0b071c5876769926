"""ORM models exposed for metadata discovery."""
from todoai.db.models.task import Task
from todoai.db.models.user import User

__all__ = [
    "Task",
    "User",
]
