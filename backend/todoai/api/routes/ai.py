"""AI-assisted routes: sentence-to-task and productivity analysis."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from todoai.api.deps import get_current_owner_id, get_owner_scope
from todoai.api.schemas.ai import AnalyzeTodosRequest, AnalyzeTodosResponse, GenerateTodoRequest, GenerateTodoResponse
from todoai.core.clock import utcnow
from todoai.db.access import OwnerScope
from todoai.observability.metrics import log_metric, timed
from todoai.services.completion import CompletionService, get_completion_service
from todoai.services.productivity_analyzer import analyze_tasks, select_period, to_analysis_todo
from todoai.services.task_normalizer import normalize_task

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"], dependencies=[Depends(get_current_owner_id)])


@router.post("/generate-todo", response_model=GenerateTodoResponse)
def generate_todo(
    payload: GenerateTodoRequest,
    completion: Optional[CompletionService] = Depends(get_completion_service),
) -> GenerateTodoResponse:
    """Turn one natural-language sentence into a validated task draft."""
    with timed("ai.generate_todo"):
        draft = normalize_task(payload.natural_language_input, utcnow(), completion)
    return GenerateTodoResponse(data=draft)


@router.post("/analyze-todos", response_model=AnalyzeTodosResponse)
def analyze_todos(
    payload: AnalyzeTodosRequest,
    completion: Optional[CompletionService] = Depends(get_completion_service),
) -> AnalyzeTodosResponse:
    """Analyse a caller-supplied task list for "today" or "week"."""
    with timed("ai.analyze_todos", metadata={"period": payload.period if isinstance(payload.period, str) else None}):
        result = analyze_tasks(payload.todos, payload.period, utcnow(), completion)
    return AnalyzeTodosResponse(data=result)


@router.get("/analyze-todos/me", response_model=AnalyzeTodosResponse)
def analyze_my_todos(
    period: str = Query("today"),
    scope: OwnerScope = Depends(get_owner_scope),
    completion: Optional[CompletionService] = Depends(get_completion_service),
) -> AnalyzeTodosResponse:
    """Analyse the owner's own tasks due within today or the current week."""
    now = utcnow()
    # Unknown periods fall through to analyze_tasks, which rejects them.
    tasks = select_period(scope.tasks().all(), period, now) if period in ("today", "week") else []
    logger.debug("Selected %d task(s) due within %s", len(tasks), period)
    log_metric("ai.analyze_todos.me.selected", len(tasks), metadata={"period": period})
    with timed("ai.analyze_todos.me", metadata={"period": period}):
        result = analyze_tasks([to_analysis_todo(task) for task in tasks], period, now, completion)
    return AnalyzeTodosResponse(data=result)
