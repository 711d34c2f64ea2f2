"""
GitHub snapshot models

Items from the three GitHub streams (assigned issues, my open PRs, PRs
awaiting my review) share the same shape as the GitHub issues API.
"""

from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from tasksync.config.constants import UNKNOWN_CONTAINER
from tasksync.models.task import TaskKind


class ItemOrigin(str, Enum):
    """Which stream an item came from"""
    ISSUE = "issue"
    MY_PR = "my_pr"
    REVIEW = "review"

    @property
    def task_kind(self) -> TaskKind:
        return _ORIGIN_KINDS[self]


_ORIGIN_KINDS = {
    ItemOrigin.ISSUE: TaskKind.GH_ISSUE,
    ItemOrigin.MY_PR: TaskKind.GH_PR,
    ItemOrigin.REVIEW: TaskKind.GH_REVIEW,
}


class RemoteUser(BaseModel):
    """GitHub user reference"""
    login: str


class RemoteRepository(BaseModel):
    """GitHub repository reference"""
    full_name: str


class RemoteItem(BaseModel):
    """An issue or pull request as returned by GitHub"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    number: Optional[int] = None
    title: str
    html_url: str
    state: str = "open"
    body: Optional[str] = None
    repository: Optional[RemoteRepository] = None
    repository_url: Optional[str] = None
    user: Optional[RemoteUser] = None
    pull_request: Optional[Dict[str, Any]] = None

    @property
    def is_pr(self) -> bool:
        return self.pull_request is not None

    @property
    def is_closed(self) -> bool:
        return self.state == "closed"

    def repo_name(self) -> str:
        """
        Best-effort "owner/repo" name of the item's repository

        Tries the explicit repository field, then the API repository_url,
        then the html_url, and finally falls back to "unknown".
        """
        if self.repository is not None and self.repository.full_name:
            return self.repository.full_name

        if self.repository_url:
            name = extract_repo_from_url(self.repository_url)
            if name:
                return name

        name = extract_repo_from_html_url(self.html_url)
        if name:
            return name

        return UNKNOWN_CONTAINER

    def normalized(self) -> "RemoteItem":
        """Copy of the item with repository.full_name always populated"""
        if self.repository is not None:
            return self
        return self.model_copy(update={"repository": RemoteRepository(full_name=self.repo_name())})


class RemoteSearchResult(BaseModel):
    """GitHub search API envelope"""
    total_count: int = 0
    items: List[RemoteItem] = []


class RemoteSnapshot(BaseModel):
    """One complete fetch of the three GitHub streams"""
    review_prs: List[RemoteItem] = []
    my_prs: List[RemoteItem] = []
    assigned_issues: List[RemoteItem] = []

    def tagged_items(self) -> Iterator[Tuple[RemoteItem, ItemOrigin]]:
        """Flatten the streams, tagging each item with its origin"""
        for issue in self.assigned_issues:
            yield issue, ItemOrigin.ISSUE
        for pr in self.my_prs:
            yield pr, ItemOrigin.MY_PR
        for pr in self.review_prs:
            yield pr, ItemOrigin.REVIEW

    def __len__(self) -> int:
        return len(self.review_prs) + len(self.my_prs) + len(self.assigned_issues)


def extract_repo_from_url(url: str) -> Optional[str]:
    """Extract owner/repo from an API URL (https://api.github.com/repos/owner/repo)"""
    parts = [p for p in url.rstrip("/").split("/") if p]
    if len(parts) < 2:
        return None
    owner, repo = parts[-2], parts[-1]
    if not owner or not repo or owner.endswith(":"):
        return None
    return f"{owner}/{repo}"


def extract_repo_from_html_url(url: str) -> Optional[str]:
    """Extract owner/repo from a web URL (https://github.com/owner/repo/issues/123)"""
    parts = url.split("/")
    if len(parts) >= 5 and parts[2] == "github.com" and parts[3] and parts[4]:
        return f"{parts[3]}/{parts[4]}"
    return None
