"""Task CRUD routes, scoped to the authenticated owner."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from todoai.api.deps import get_owner_scope
from todoai.api.schemas.task import (
    PriorityFilter,
    SortOption,
    StatusFilter,
    TaskCompletionRequest,
    TaskCreateRequest,
    TaskResponse,
    TaskUpdateRequest,
)
from todoai.core.clock import ensure_aware, from_client, utcnow
from todoai.db.access import OwnerScope
from todoai.db.models.task import Task
from todoai.observability.metrics import log_metric, timed
from todoai.observability.tracing import trace

router = APIRouter(prefix="/tasks", tags=["tasks"])

PRIORITY_RANK = {"high": 3, "medium": 2, "low": 1}
# Columns that cannot be set to null.
REQUIRED_FIELDS = {"title", "priority", "category", "completed"}


@router.get("", response_model=List[TaskResponse])
def list_tasks(
    q: Optional[str] = Query(default=None, description="Case-insensitive title search"),
    status_filter: StatusFilter = Query("all", alias="status"),
    priority: PriorityFilter = Query("all"),
    sort: SortOption = Query("created_date"),
    scope: OwnerScope = Depends(get_owner_scope),
) -> List[TaskResponse]:
    """List the owner's tasks with search, status/priority filters and sorting."""
    now = utcnow()
    metadata: Dict[str, Any] = {"route": "/tasks", "status": status_filter, "priority": priority, "sort": sort}

    with trace("task.list", metadata=metadata), timed("task.list"):
        query = scope.tasks()
        if q:
            query = query.filter(Task.title.ilike(f"%{q.strip()}%"))
        if priority != "all":
            query = query.filter(Task.priority == priority)
        if status_filter == "active":
            query = query.filter(Task.completed.is_(False))
        elif status_filter == "completed":
            query = query.filter(Task.completed.is_(True))

        tasks = query.all()
        if status_filter == "overdue":
            tasks = [task for task in tasks if _is_overdue(task, now)]
        tasks = _sort_tasks(tasks, sort)

    log_metric("task.list.count", len(tasks), metadata={"status": status_filter})
    return [_serialize_task(task) for task in tasks]


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(payload: TaskCreateRequest, scope: OwnerScope = Depends(get_owner_scope)) -> TaskResponse:
    with trace("task.create", metadata={"route": "/tasks", "priority": payload.priority}), timed("task.create"):
        task = scope.add_task(
            title=payload.title,
            description=_clean_description(payload.description),
            due_date=from_client(payload.due_date),
            priority=payload.priority,
            category=list(payload.category),
        )
        _commit(scope)
        scope.db.refresh(task)
    return _serialize_task(task)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(task_id: UUID, scope: OwnerScope = Depends(get_owner_scope)) -> TaskResponse:
    return _serialize_task(scope.get_task(task_id))


@router.patch("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: UUID,
    payload: TaskUpdateRequest,
    scope: OwnerScope = Depends(get_owner_scope),
) -> TaskResponse:
    """Apply a partial update; fields left out of the body are untouched."""
    changes = payload.model_dump(exclude_unset=True)
    changes = {key: value for key, value in changes.items() if value is not None or key not in REQUIRED_FIELDS}
    if "due_date" in changes:
        changes["due_date"] = from_client(changes["due_date"])
    if "description" in changes:
        changes["description"] = _clean_description(changes["description"])

    with trace("task.update", metadata={"task_id": str(task_id), "fields": sorted(changes)}):
        task = scope.get_task(task_id)
        if "completed" in changes:
            _apply_completion(task, changes.pop("completed"))
        task = scope.update_task(task_id, **changes)
        _commit(scope)
        scope.db.refresh(task)
    return _serialize_task(task)


@router.patch("/{task_id}/completion", response_model=TaskResponse)
def set_task_completion(
    task_id: UUID,
    payload: TaskCompletionRequest,
    scope: OwnerScope = Depends(get_owner_scope),
) -> TaskResponse:
    """Mark a task complete or incomplete."""
    with trace("task.complete", metadata={"task_id": str(task_id), "completed": payload.completed}):
        task = scope.get_task(task_id)
        changed = _apply_completion(task, payload.completed)
        _commit(scope)
        scope.db.refresh(task)

    log_metric("task.complete.changed", 1 if changed else 0, metadata={"task_id": str(task_id)})
    return _serialize_task(task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(task_id: UUID, scope: OwnerScope = Depends(get_owner_scope)) -> Response:
    """Delete permanently; there is no soft delete."""
    with trace("task.delete", metadata={"task_id": str(task_id)}):
        scope.delete_task(task_id)
        _commit(scope)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _commit(scope: OwnerScope) -> None:
    try:
        scope.db.commit()
    except Exception:
        scope.db.rollback()
        raise


def _apply_completion(task: Task, completed: bool) -> bool:
    if bool(task.completed) == completed:
        return False
    task.completed = completed
    task.completed_at = utcnow() if completed else None
    return True


def _clean_description(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _is_overdue(task: Task, now: datetime) -> bool:
    due = ensure_aware(task.due_date)
    return bool(not task.completed and due and due < now)


def _sort_tasks(tasks: List[Task], sort: str) -> List[Task]:
    if sort == "priority":
        # High first, then earliest due.
        return sorted(tasks, key=lambda task: (-PRIORITY_RANK.get(task.priority, 2), _due_key(task)))
    if sort == "due_date":
        return sorted(tasks, key=_due_key)
    if sort == "title":
        return sorted(tasks, key=lambda task: task.title.casefold())
    return sorted(tasks, key=lambda task: ensure_aware(task.created_date), reverse=True)


def _due_key(task: Task) -> tuple:
    due = ensure_aware(task.due_date)
    # Undated tasks sort last.
    return (due is None, due.timestamp() if due else 0.0)


def _serialize_task(task: Task) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        title=task.title,
        description=task.description,
        created_date=ensure_aware(task.created_date),
        due_date=ensure_aware(task.due_date),
        priority=task.priority,
        category=list(task.category or []),
        completed=bool(task.completed),
        completed_at=ensure_aware(task.completed_at),
        updated_at=ensure_aware(task.updated_at),
    )
