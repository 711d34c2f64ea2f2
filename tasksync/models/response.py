"""
Response models for sync results and errors
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error response model"""
    message: str
    error_code: Optional[str] = None
    details: Optional[dict] = None


class ReconcileReport(BaseModel):
    """Local mutations performed by one reconciliation pass"""
    created_tasks: List[str] = Field(default_factory=list)
    updated_tasks: List[str] = Field(default_factory=list)
    closed_tasks: List[str] = Field(default_factory=list)
    created_projects: List[str] = Field(default_factory=list)
    failed: Dict[str, str] = Field(default_factory=dict)  # item url/name -> error
    seen_urls: List[str] = Field(default_factory=list)

    @property
    def write_count(self) -> int:
        return (
            len(self.created_tasks)
            + len(self.updated_tasks)
            + len(self.closed_tasks)
            + len(self.created_projects)
        )

    @property
    def is_noop(self) -> bool:
        return self.write_count == 0
