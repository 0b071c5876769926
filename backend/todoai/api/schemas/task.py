"""Schemas for task CRUD."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

Priority = Literal["high", "medium", "low"]
StatusFilter = Literal["all", "active", "completed", "overdue"]
PriorityFilter = Literal["all", "high", "medium", "low"]
SortOption = Literal["created_date", "priority", "due_date", "title"]


def _strip_title(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("title must not be empty")
    return value


class TaskCreateRequest(BaseModel):
    title: str = Field(..., max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    due_date: Optional[datetime] = None
    priority: Priority = "medium"
    category: List[str] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        return _strip_title(value)


class TaskUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    due_date: Optional[datetime] = None
    priority: Optional[Priority] = None
    category: Optional[List[str]] = None
    completed: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return _strip_title(value) if value is not None else value


class TaskCompletionRequest(BaseModel):
    completed: bool


class TaskResponse(BaseModel):
    id: UUID
    title: str
    description: Optional[str]
    created_date: datetime
    due_date: Optional[datetime]
    priority: Priority
    category: List[str]
    completed: bool
    completed_at: Optional[datetime]
    updated_at: datetime
