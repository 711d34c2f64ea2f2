"""
Project model
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from tasksync.config.constants import DEFAULT_PROJECT_ICON
from tasksync.utils.date_utils import get_current_datetime


class Project(BaseModel):
    """
    Project model

    Projects created for GitHub repositories are named after the repository
    ("owner/repo"); the name doubles as the matching key during sync.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    order_index: int = 0
    is_inbox: bool = False
    created_at: datetime = Field(default_factory=get_current_datetime)
    updated_at: datetime = Field(default_factory=get_current_datetime)
    deleted: bool = False

    @classmethod
    def new(cls, name: str, now: Optional[datetime] = None) -> "Project":
        now = now or get_current_datetime()
        return cls(name=name, created_at=now, updated_at=now)

    def display_icon(self) -> str:
        """Returns the display icon or a default folder icon"""
        return self.icon if self.icon is not None else DEFAULT_PROJECT_ICON
