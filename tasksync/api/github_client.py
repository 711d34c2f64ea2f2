"""
GitHub REST API client
"""

import asyncio
from typing import Dict, List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from tasksync.api.base_client import BaseAPIClient
from tasksync.config.constants import (
    GITHUB_ACCEPT_HEADER,
    GITHUB_API_BASE_URL,
    GITHUB_PAGE_SIZE,
    GITHUB_USER_AGENT,
    HTTP_TIMEOUT,
)
from tasksync.models.remote import RemoteItem, RemoteSearchResult, RemoteSnapshot
from tasksync.utils.error_handler import FetchError, FetchErrorReason
from tasksync.utils.logger import logger


class GitHubClient(BaseAPIClient):
    """Client for the issues and search endpoints of the GitHub API"""

    def __init__(
        self,
        token: str,
        base_url: str = GITHUB_API_BASE_URL,
        timeout: int = HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs,
    ):
        """
        Initialize GitHub client

        Args:
            token: Personal access token
            base_url: API base URL (GitHub Enterprise installs differ)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        if not token or not token.strip():
            raise FetchError("GitHub token not configured", FetchErrorReason.UNAUTHENTICATED)
        super().__init__(base_url, timeout=timeout, transport=transport, **kwargs)
        self.token = token
        self.logger = logger

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"token {self.token}",
            "Accept": GITHUB_ACCEPT_HEADER,
            "User-Agent": GITHUB_USER_AGENT,
        }

    async def fetch_assigned_issues(self) -> List[RemoteItem]:
        """
        Fetch open issues assigned to the authenticated user

        The issues endpoint also returns pull requests; those are dropped.
        """
        data = await self.get(
            "/issues",
            headers=self._headers(),
            params={"filter": "assigned", "state": "open", "per_page": GITHUB_PAGE_SIZE},
        )
        if not isinstance(data, list):
            raise FetchError("Unexpected response for assigned issues", FetchErrorReason.GENERIC)

        try:
            issues = [RemoteItem.model_validate(raw) for raw in data]
        except PydanticValidationError as e:
            raise FetchError(f"Malformed issue data: {e}", FetchErrorReason.GENERIC) from e

        issues = [issue.normalized() for issue in issues if not issue.is_pr]
        self.logger.info(f"[GitHub] Fetched {len(issues)} assigned issues")
        return issues

    async def _search_issues(self, query: str) -> List[RemoteItem]:
        data = await self.get(
            "/search/issues",
            headers=self._headers(),
            params={"q": query, "per_page": GITHUB_PAGE_SIZE},
        )
        try:
            result = RemoteSearchResult.model_validate(data)
        except PydanticValidationError as e:
            raise FetchError(f"Malformed search result: {e}", FetchErrorReason.GENERIC) from e
        return [item.normalized() for item in result.items]

    async def fetch_review_requested_prs(self) -> List[RemoteItem]:
        """Fetch open PRs requesting review from the authenticated user"""
        prs = await self._search_issues("review-requested:@me is:open is:pr")
        self.logger.info(f"[GitHub] Fetched {len(prs)} PRs awaiting review")
        return prs

    async def fetch_my_open_prs(self) -> List[RemoteItem]:
        """Fetch open PRs authored by the authenticated user"""
        prs = await self._search_issues("author:@me is:open is:pr")
        self.logger.info(f"[GitHub] Fetched {len(prs)} authored PRs")
        return prs

    async def fetch_all(self) -> RemoteSnapshot:
        """
        Fetch all three streams concurrently

        Returns:
            Complete snapshot

        Raises:
            FetchError: If any stream fails; no partial snapshot is returned
        """
        # Every stream finishes before the client can be closed
        results = await asyncio.gather(
            self.fetch_review_requested_prs(),
            self.fetch_my_open_prs(),
            self.fetch_assigned_issues(),
            return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            fetch_errors = [e for e in errors if isinstance(e, FetchError)]
            raise (fetch_errors or errors)[0]

        review_prs, my_prs, assigned_issues = results
        return RemoteSnapshot(
            review_prs=review_prs,
            my_prs=my_prs,
            assigned_issues=assigned_issues,
        )


async def fetch_snapshot(token: str, base_url: str = GITHUB_API_BASE_URL, **kwargs) -> RemoteSnapshot:
    """
    Fetch a snapshot with a short-lived client

    Raises:
        FetchError: On authentication, rate-limit or other HTTP failure
    """
    async with GitHubClient(token, base_url=base_url, **kwargs) as client:
        return await client.fetch_all()
