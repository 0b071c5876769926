"""Schemas for the AI-assisted endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

Priority = Literal["high", "medium", "low"]


class GenerateTodoRequest(BaseModel):
    # Type, emptiness and length are checked by the normalizer so they map to InvalidInput.
    natural_language_input: Any = Field(default=None, alias="naturalLanguageInput")

    model_config = ConfigDict(populate_by_name=True)


class TodoDraftShape(BaseModel):
    """Output shape requested from the completion service."""

    title: str = Field(..., description="Shortest phrase capturing the core action")
    description: Optional[str] = Field(default=None, description="Extra detail, if any")
    due_date: str = Field(..., description="Due date, YYYY-MM-DD")
    due_time: Optional[str] = Field(default=None, description="Due time, 24-hour HH:MM; 09:00 when absent")
    priority: Priority
    category: List[str] = Field(default_factory=list, description="Any of work, personal, health, study")


class TodoDraft(BaseModel):
    title: str
    description: Optional[str] = None
    due_date: str
    due_time: str
    priority: Priority
    category: List[str]


class GenerateTodoResponse(BaseModel):
    success: bool = True
    data: TodoDraft


class AnalysisTodo(BaseModel):
    id: Optional[UUID] = None
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: str = "medium"
    category: Optional[List[str]] = None
    completed: bool = False
    completed_at: Optional[datetime] = None


class AnalyzeTodosRequest(BaseModel):
    todos: Any = None
    period: Any = None


class AnalysisResult(BaseModel):
    """Narrative returned by the completion service, passed through as-is."""

    summary: str = Field(..., description="One or two sentences summarising the period")
    urgent_tasks: List[str] = Field(
        default_factory=list,
        alias="urgentTasks",
        max_length=5,
        description="Up to 5 titles of overdue or imminent incomplete tasks",
    )
    insights: List[str] = Field(..., min_length=3, max_length=5, description="3-5 data-driven observations")
    recommendations: List[str] = Field(..., min_length=3, max_length=5, description="3-5 concrete suggestions")

    model_config = ConfigDict(populate_by_name=True)


class AnalyzeTodosResponse(BaseModel):
    success: bool = True
    data: AnalysisResult
