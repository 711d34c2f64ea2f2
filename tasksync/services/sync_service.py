"""
Sync coordination: background fetch, message delivery and reconciliation
"""

import asyncio
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from tasksync.api.github_client import fetch_snapshot
from tasksync.config.settings import Settings, settings as default_settings
from tasksync.db.repository import Repository
from tasksync.models.remote import RemoteSnapshot
from tasksync.models.response import ErrorResponse, ReconcileReport
from tasksync.models.task import Task
from tasksync.services.filter_service import ViewBucket, bucket_counts
from tasksync.services.reconciler import GitHubReconciler
from tasksync.utils.date_utils import get_current_datetime
from tasksync.utils.error_handler import FetchError, FetchErrorReason, StorageError, handle_error
from tasksync.utils.logger import logger

SnapshotFetcher = Callable[[str], Awaitable[RemoteSnapshot]]


class SyncMessage(BaseModel):
    """Outcome of one background fetch"""
    snapshot: Optional[RemoteSnapshot] = None
    error: Optional[ErrorResponse] = None


class SyncResult(BaseModel):
    """Outcome of processing one SyncMessage"""
    success: bool
    report: Optional[ReconcileReport] = None
    error: Optional[ErrorResponse] = None
    tasks: List[Task] = Field(default_factory=list)
    counts: Dict[ViewBucket, int] = Field(default_factory=dict)


class SyncService:
    """
    Runs GitHub fetches in the background and reconciles their results

    At most one fetch is in flight at a time. Results are delivered through
    a queue and only reconciled when the caller polls, so reconciliation
    always runs on the caller's side of the event loop.
    """

    def __init__(
        self,
        repository: Repository,
        fetcher: Optional[SnapshotFetcher] = None,
        config: Optional[Settings] = None,
        clock: Callable[[], datetime] = get_current_datetime,
    ):
        """
        Initialize sync service

        Args:
            repository: Local store
            fetcher: Coroutine function fetching a snapshot for a token
            config: Settings (defaults to the global settings)
            clock: Source of the current time
        """
        self.repository = repository
        self.config = config or default_settings
        self.fetcher = fetcher or self._default_fetcher
        self.clock = clock
        self.reconciler = GitHubReconciler(
            repository,
            url_marker=self.config.GITHUB_URL_MARKER,
            clock=clock,
        )
        self.logger = logger
        self._queue: "asyncio.Queue[SyncMessage]" = asyncio.Queue()
        self._in_flight: Optional[asyncio.Task] = None

    async def _default_fetcher(self, token: str) -> RemoteSnapshot:
        return await fetch_snapshot(
            token,
            base_url=self.config.GITHUB_API_BASE_URL,
            timeout=self.config.HTTP_TIMEOUT,
        )

    @property
    def is_fetching(self) -> bool:
        return self._in_flight is not None and not self._in_flight.done()

    def start_fetch(self) -> bool:
        """
        Start a background fetch

        Must be called from a running event loop.

        Returns:
            True if a fetch was started. False if one is already in flight, or
            if no token is configured (an error message is queued instead).
        """
        if self.is_fetching:
            self.logger.info("[Sync] Fetch already in flight, not starting another")
            return False

        if not self.config.has_github():
            error = FetchError("GitHub token not configured", FetchErrorReason.UNAUTHENTICATED)
            self.logger.warning("[Sync] GitHub token not configured")
            self._queue.put_nowait(SyncMessage(error=ErrorResponse(
                message="GitHub token not configured. Set GITHUB_TOKEN.",
                error_code=error.reason.value,
            )))
            return False

        self.logger.info("[Sync] Starting GitHub fetch")
        self._in_flight = asyncio.get_running_loop().create_task(self._run_fetch(self.config.GITHUB_TOKEN))
        return True

    async def _run_fetch(self, token: str) -> None:
        try:
            snapshot = await self.fetcher(token)
        except FetchError as e:
            message = SyncMessage(error=handle_error(e))
        except Exception as e:
            self.logger.error(f"[Sync] Unexpected fetch failure: {e}", exc_info=True)
            message = SyncMessage(error=handle_error(e))
        else:
            self.logger.info(f"[Sync] Fetch complete: {len(snapshot)} items")
            message = SyncMessage(snapshot=snapshot)
        self._queue.put_nowait(message)

    def poll_messages(self) -> List[SyncResult]:
        """Process every delivered fetch result without blocking"""
        results = []
        while True:
            try:
                message = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            results.append(self.process_message(message))
        return results

    def process_message(self, message: SyncMessage) -> SyncResult:
        """
        Reconcile a fetch result

        A failed fetch leaves the local store untouched.
        """
        if message.error is not None or message.snapshot is None:
            error = message.error or ErrorResponse(message="Fetch returned no data")
            self.logger.warning(f"[Sync] Skipping reconciliation: {error.message}")
            return SyncResult(success=False, error=error)

        try:
            tasks = self.repository.get_all_tasks(include_deleted=True)
            projects = self.repository.get_all_projects()
        except StorageError as e:
            return SyncResult(success=False, error=handle_error(e))

        report = self.reconciler.reconcile(tasks, projects, message.snapshot)

        try:
            reloaded = self.repository.get_all_tasks()
        except StorageError as e:
            return SyncResult(success=False, report=report, error=handle_error(e))

        today = self.clock().date()
        return SyncResult(
            success=True,
            report=report,
            tasks=reloaded,
            counts=bucket_counts(reloaded, today),
        )

    async def sync_once(self) -> SyncResult:
        """Fetch (or join the fetch in flight) and process the delivered result"""
        self.start_fetch()
        message = await self._queue.get()
        return self.process_message(message)
