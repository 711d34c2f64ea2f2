"""
Task model
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tasksync.utils.date_utils import get_current_datetime


class TaskStatus(str, Enum):
    """Task lifecycle status"""
    INBOX = "inbox"
    ACTIVE = "active"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def from_db(cls, raw: Optional[str]) -> "TaskStatus":
        """Unknown or empty values fall back to inbox"""
        try:
            return cls(raw)
        except ValueError:
            return cls.INBOX


class TaskPriority(str, Enum):
    """Task priority, ordered none < low < medium < high"""
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANKS[self]

    @property
    def symbol(self) -> str:
        return _PRIORITY_SYMBOLS[self]

    @classmethod
    def from_db(cls, raw: Optional[str]) -> "TaskPriority":
        try:
            return cls(raw)
        except ValueError:
            return cls.NONE


class TaskKind(str, Enum):
    """Task kind; the gh:* kinds mark tasks that came from GitHub"""
    TASK = "task"
    BUG = "bug"
    FEATURE = "feature"
    CHORE = "chore"
    GH_ISSUE = "gh:issue"
    GH_PR = "gh:pr"
    GH_REVIEW = "gh:review"

    @property
    def symbol(self) -> str:
        return _KIND_SYMBOLS[self]

    @property
    def is_remote(self) -> bool:
        return self in (TaskKind.GH_ISSUE, TaskKind.GH_PR, TaskKind.GH_REVIEW)

    @classmethod
    def from_db(cls, raw: Optional[str]) -> Optional["TaskKind"]:
        try:
            return cls(raw)
        except ValueError:
            return None


class TaskSize(str, Enum):
    """T-shirt size estimate"""
    XS = "xs"
    S = "s"
    M = "m"
    L = "l"

    @property
    def display(self) -> str:
        return self.value.upper()

    @classmethod
    def from_db(cls, raw: Optional[str]) -> Optional["TaskSize"]:
        try:
            return cls(raw)
        except ValueError:
            return None


_PRIORITY_RANKS = {
    TaskPriority.NONE: 0,
    TaskPriority.LOW: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.HIGH: 3,
}

_PRIORITY_SYMBOLS = {
    TaskPriority.NONE: " ",
    TaskPriority.LOW: "!",
    TaskPriority.MEDIUM: "!!",
    TaskPriority.HIGH: "!!!",
}

_KIND_SYMBOLS = {
    TaskKind.TASK: "[T]",
    TaskKind.BUG: "[B]",
    TaskKind.FEATURE: "[F]",
    TaskKind.CHORE: "[C]",
    TaskKind.GH_ISSUE: "[ISS]",
    TaskKind.GH_PR: "[PR]",
    TaskKind.GH_REVIEW: "[REV]",
}


class Task(BaseModel):
    """
    Task model

    status == completed if and only if completed_at is set. Status changes
    go through set_status() so the two fields never drift apart.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=get_current_datetime)
    updated_at: datetime = Field(default_factory=get_current_datetime)
    due_date: Optional[date] = None
    start_date: Optional[date] = None
    completed_at: Optional[datetime] = None
    project_id: Optional[str] = None
    priority: TaskPriority = TaskPriority.NONE
    tags: List[str] = []
    status: TaskStatus = TaskStatus.INBOX
    order_index: int = 0
    deleted: bool = False
    kind: Optional[TaskKind] = None
    size: Optional[TaskSize] = None
    assignee: Optional[str] = None
    context_url: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _normalize_completion(self) -> "Task":
        # Rows written by older versions may violate the completion invariant
        if self.status == TaskStatus.COMPLETED and self.completed_at is None:
            self.completed_at = self.updated_at
        elif self.status != TaskStatus.COMPLETED and self.completed_at is not None:
            self.completed_at = None
        return self

    @classmethod
    def new(cls, title: str, now: Optional[datetime] = None) -> "Task":
        """Create a task with a fresh id and equal created/updated timestamps"""
        now = now or get_current_datetime()
        return cls(title=title, created_at=now, updated_at=now)

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def is_overdue(self, today: date) -> bool:
        return self.due_date is not None and self.due_date < today and not self.is_completed

    def is_due_today(self, today: date) -> bool:
        return self.due_date is not None and self.due_date == today

    def touch(self, now: Optional[datetime] = None) -> None:
        """Bump updated_at"""
        self.updated_at = now or get_current_datetime()

    def set_status(self, status: TaskStatus, now: Optional[datetime] = None) -> None:
        """
        Change status and keep completed_at consistent with it

        Args:
            status: New status
            now: Timestamp to stamp (defaults to current time)
        """
        now = now or get_current_datetime()
        self.status = status
        if status == TaskStatus.COMPLETED:
            self.completed_at = now
        else:
            self.completed_at = None
        self.touch(now)

    def complete(self, now: Optional[datetime] = None) -> None:
        self.set_status(TaskStatus.COMPLETED, now)
