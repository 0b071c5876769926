"""Owner-scoped access to profiles and tasks.

Every read and write of user data goes through an ``OwnerScope``. Queries it
builds are already filtered to the owner, records it hands out are checked
with ``owns``, and a ``before_flush`` hook refuses to persist anything owned by
someone else while the scope is bound to the session.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable
from uuid import UUID

from sqlalchemy import event
from sqlalchemy.orm import Query, Session

from todoai.core.errors import NotFound, OwnershipViolation
from todoai.db.models.task import Task
from todoai.db.models.user import User

logger = logging.getLogger(__name__)

OWNER_KEY = "todoai.owner_id"

# Fields a client may never write on a task.
PROTECTED_TASK_FIELDS = frozenset({"id", "user_id", "created_date", "created_at", "updated_at"})


def owns(owner_id: UUID, record: Any) -> bool:
    """The single authorization predicate: a record is visible/mutable only to its owner."""
    return getattr(record, "owner_id", None) == owner_id


class OwnerScope:
    """Capability object for one authenticated owner on one session."""

    def __init__(self, db: Session, owner_id: UUID) -> None:
        self.db = db
        self.owner_id = owner_id
        db.info[OWNER_KEY] = owner_id

    # Profiles

    def profile(self) -> User:
        user = self.db.get(User, self.owner_id)
        if not user or not owns(self.owner_id, user):
            raise NotFound("Profile not found")
        return user

    def update_profile(self, *, name: str | None = None) -> User:
        user = self.profile()
        if name is not None:
            user.name = name
        self.db.add(user)
        return user

    def delete_profile(self) -> None:
        user = self.profile()
        self.db.delete(user)

    # Tasks

    def tasks(self) -> Query:
        return self.db.query(Task).filter(Task.user_id == self.owner_id)

    def get_task(self, task_id: UUID) -> Task:
        task = self.tasks().filter(Task.id == task_id).one_or_none()
        # Foreign rows look exactly like missing ones.
        if task is None or not owns(self.owner_id, task):
            raise NotFound("Task not found")
        return task

    def add_task(self, **fields: Any) -> Task:
        values = {key: value for key, value in fields.items() if key not in PROTECTED_TASK_FIELDS}
        task = Task(user_id=self.owner_id, **values)
        self.db.add(task)
        return task

    def update_task(self, task_id: UUID, **fields: Any) -> Task:
        task = self.get_task(task_id)
        for key, value in fields.items():
            if key in PROTECTED_TASK_FIELDS:
                continue
            setattr(task, key, value)
        self.db.add(task)
        return task

    def delete_task(self, task_id: UUID) -> None:
        task = self.get_task(task_id)
        self.db.delete(task)


def _owned_records(session: Session) -> Iterable[Any]:
    for collection in (session.new, session.dirty, session.deleted):
        for record in collection:
            if isinstance(record, (Task, User)):
                yield record


@event.listens_for(Session, "before_flush")
def _enforce_ownership(session: Session, flush_context, instances) -> None:
    owner_id = session.info.get(OWNER_KEY)
    if owner_id is None:
        return
    for record in _owned_records(session):
        if not owns(owner_id, record):
            logger.warning("Blocked write to %s owned by %s", type(record).__name__, record.owner_id)
            raise OwnershipViolation()
