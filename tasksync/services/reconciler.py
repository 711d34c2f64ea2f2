"""
GitHub to local task reconciliation

Merges one fetched GitHub snapshot into the local task store. The merge is
idempotent: running it twice with the same snapshot writes nothing the
second time.
"""

from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Set

from tasksync.config.constants import (
    GITHUB_PROJECT_ICON,
    GITHUB_URL_MARKER,
    META_GITHUB_ID,
    META_GITHUB_REPO,
    META_GITHUB_TYPE,
)
from tasksync.db.repository import EntityKind, Repository
from tasksync.models.project import Project
from tasksync.models.remote import ItemOrigin, RemoteItem, RemoteSnapshot
from tasksync.models.response import ReconcileReport
from tasksync.models.task import Task, TaskStatus
from tasksync.utils.date_utils import get_current_datetime
from tasksync.utils.error_handler import StorageError
from tasksync.utils.logger import logger


class GitHubReconciler:
    """Service for merging GitHub snapshots into local tasks"""

    def __init__(
        self,
        repository: Repository,
        url_marker: str = GITHUB_URL_MARKER,
        clock: Callable[[], datetime] = get_current_datetime,
    ):
        """
        Initialize reconciler

        Args:
            repository: Local store that receives the writes
            url_marker: Substring identifying context URLs that came from GitHub
            clock: Source of the current time
        """
        self.repository = repository
        self.url_marker = url_marker
        self.clock = clock
        self.logger = logger

    def reconcile(
        self,
        local_tasks: Iterable[Task],
        local_projects: Iterable[Project],
        snapshot: RemoteSnapshot,
    ) -> ReconcileReport:
        """
        Merge a snapshot into the local store

        Only call this with a successfully fetched snapshot: every GitHub
        task missing from it is treated as closed.

        Args:
            local_tasks: Current local tasks, soft-deleted ones included
            local_projects: Current local projects
            snapshot: Open items fetched from GitHub

        Returns:
            Report of the writes performed
        """
        report = ReconcileReport()
        tagged_items = list(snapshot.tagged_items())

        seen_urls: Set[str] = set()
        for item, _origin in tagged_items:
            if item.html_url not in seen_urls:
                seen_urls.add(item.html_url)
                report.seen_urls.append(item.html_url)

        # Project names are the only link between a repository and a project
        repo_to_project: Dict[str, str] = {}
        for project in local_projects:
            if not project.deleted:
                repo_to_project.setdefault(project.name, project.id)

        tasks_by_url: Dict[str, Task] = {}
        remote_tasks: List[Task] = []
        for task in local_tasks:
            if task.context_url:
                current = tasks_by_url.get(task.context_url)
                # A live task wins over a soft-deleted one with the same URL
                if current is None or (current.deleted and not task.deleted):
                    tasks_by_url[task.context_url] = task
                remote_tasks.append(task)

        self.logger.info(
            f"[Reconcile] Snapshot: {len(snapshot.assigned_issues)} issues, "
            f"{len(snapshot.my_prs)} my PRs, {len(snapshot.review_prs)} review PRs; "
            f"{len(tasks_by_url)} linked local tasks"
        )

        for item, origin in tagged_items:
            repo_name = item.repo_name()
            project_id = self._resolve_project(repo_name, repo_to_project, report)

            existing = tasks_by_url.get(item.html_url)
            if existing is not None:
                updated = self._update_existing(existing, item, project_id, report)
                if updated is not None:
                    tasks_by_url[item.html_url] = updated
            else:
                created = self._create_task(item, origin, repo_name, project_id, report)
                if created is not None:
                    tasks_by_url[item.html_url] = created

        for task in remote_tasks:
            self._close_if_missing(task, seen_urls, report)

        self.logger.info(
            f"[Reconcile] Done: {len(report.created_tasks)} created, "
            f"{len(report.updated_tasks)} updated, {len(report.closed_tasks)} closed, "
            f"{len(report.created_projects)} new projects, {len(report.failed)} failed"
        )
        return report

    def _resolve_project(
        self,
        repo_name: str,
        repo_to_project: Dict[str, str],
        report: ReconcileReport,
    ) -> Optional[str]:
        """Look up the project for a repository, creating it if missing"""
        project_id = repo_to_project.get(repo_name)
        if project_id is not None:
            return project_id

        now = self.clock()
        project = Project.new(repo_name, now=now)
        project.icon = GITHUB_PROJECT_ICON
        try:
            project.order_index = self.repository.get_next_order_index(EntityKind.PROJECTS)
            self.repository.insert_project(project)
        except StorageError as e:
            self.logger.warning(f"[Reconcile] Failed to create project '{repo_name}': {e}")
            report.failed[repo_name] = str(e)
            return None

        # Later items from the same repository reuse this project
        repo_to_project[repo_name] = project.id
        report.created_projects.append(project.id)
        self.logger.info(f"[Reconcile] Created project '{repo_name}' ({project.id})")
        return project.id

    def _update_existing(
        self,
        task: Task,
        item: RemoteItem,
        project_id: Optional[str],
        report: ReconcileReport,
    ) -> Optional[Task]:
        """Apply remote changes to a matched task; returns the written copy, if any"""
        if task.deleted:
            return None

        updated = task.model_copy(deep=True)
        needs_update = False
        now = self.clock()

        if item.is_closed and updated.status != TaskStatus.COMPLETED:
            updated.set_status(TaskStatus.COMPLETED, now)
            needs_update = True

        if updated.project_id is None and project_id is not None:
            updated.project_id = project_id
            needs_update = True

        if not needs_update:
            return None

        updated.touch(now)
        try:
            self.repository.update_task(updated)
        except StorageError as e:
            self.logger.warning(f"[Reconcile] Failed to update task {task.id} for {item.html_url}: {e}")
            report.failed[item.html_url] = str(e)
            return None

        report.updated_tasks.append(updated.id)
        self.logger.debug(f"[Reconcile] Updated task {updated.id} from {item.html_url}")
        return updated

    def _create_task(
        self,
        item: RemoteItem,
        origin: ItemOrigin,
        repo_name: str,
        project_id: Optional[str],
        report: ReconcileReport,
    ) -> Optional[Task]:
        now = self.clock()
        task = Task.new(item.title, now=now)
        task.context_url = item.html_url
        if item.is_closed:
            # Closed items start out completed
            task.set_status(TaskStatus.COMPLETED, now)
        else:
            task.status = TaskStatus.INBOX
        task.project_id = project_id
        task.notes = item.body
        task.kind = origin.task_kind
        task.metadata = {
            META_GITHUB_ID: str(item.id),
            META_GITHUB_TYPE: origin.value,
            META_GITHUB_REPO: repo_name,
        }

        try:
            task.order_index = self.repository.get_next_order_index(EntityKind.TASKS)
            self.repository.insert_task(task)
        except StorageError as e:
            self.logger.warning(f"[Reconcile] Failed to create task for {item.html_url}: {e}")
            report.failed[item.html_url] = str(e)
            return None

        report.created_tasks.append(task.id)
        self.logger.debug(f"[Reconcile] Created task {task.id} '{task.title}' ({origin.value})")
        return task

    def _close_if_missing(self, task: Task, seen_urls: Set[str], report: ReconcileReport) -> None:
        """GitHub only lists open items, so a linked task missing from the snapshot is closed"""
        url = task.context_url
        if not url or self.url_marker not in url or url in seen_urls:
            return
        if task.deleted or task.status == TaskStatus.COMPLETED:
            return

        closed = task.model_copy(deep=True)
        closed.set_status(TaskStatus.COMPLETED, self.clock())
        try:
            self.repository.update_task(closed)
        except StorageError as e:
            self.logger.warning(f"[Reconcile] Failed to close task {task.id} for {url}: {e}")
            report.failed[url] = str(e)
            return

        report.closed_tasks.append(closed.id)
        self.logger.info(f"[Reconcile] Closed task {closed.id} '{closed.title}' (no longer open on GitHub)")
