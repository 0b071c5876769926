"""Task ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from todoai.db.base import Base
from todoai.db.types import StringList

PRIORITIES = ("high", "medium", "low")
DEFAULT_PRIORITY = "medium"


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint("priority IN ('high', 'medium', 'low')", name="ck_tasks_priority"),
        Index("ix_tasks_user_id", "user_id"),
        Index("ix_tasks_completed", "completed"),
        Index("ix_tasks_due_date", "due_date"),
        Index("ix_tasks_user_completed", "user_id", "completed"),
        Index("ix_tasks_user_due_date", "user_id", "due_date"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    created_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    due_date = Column(DateTime(timezone=True), nullable=True)
    priority = Column(Text, nullable=False, default=DEFAULT_PRIORITY, server_default=sa_text("'medium'"))
    category = Column(StringList, nullable=False, default=list)
    completed = Column(Boolean, nullable=False, default=False, server_default=sa_text("false"))
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    owner = relationship("User", back_populates="tasks")

    @property
    def owner_id(self):
        return self.user_id
