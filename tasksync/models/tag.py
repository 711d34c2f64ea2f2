"""
Tag model
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from tasksync.utils.date_utils import get_current_datetime


class Tag(BaseModel):
    """Tag model; tasks reference tags by id"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    color: Optional[str] = None
    created_at: datetime = Field(default_factory=get_current_datetime)
    updated_at: datetime = Field(default_factory=get_current_datetime)
    deleted: bool = False

    @classmethod
    def new(cls, name: str, now: Optional[datetime] = None) -> "Tag":
        now = now or get_current_datetime()
        return cls(name=name, created_at=now, updated_at=now)

    def display_symbol(self) -> str:
        return "#"
