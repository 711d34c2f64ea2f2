"""
Pytest configuration and fixtures
"""

import pytest
from datetime import date, datetime, timezone
from typing import Optional

from tasksync.db.repository import SqliteRepository
from tasksync.models.remote import RemoteItem, RemoteRepository
from tasksync.utils.error_handler import StorageError


FIXED_NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)
TODAY = date(2026, 10, 19)


class FakeClock:
    """Clock that only moves when told to"""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FlakyRepository(SqliteRepository):
    """Repository that fails writes for selected task titles or project names"""

    def __init__(self, db_path, fail_titles=(), fail_projects=()):
        super().__init__(db_path)
        self.fail_titles = set(fail_titles)
        self.fail_projects = set(fail_projects)
        self.writes = 0

    def insert_task(self, task):
        if task.title in self.fail_titles:
            raise StorageError("disk I/O error", "insert_task")
        self.writes += 1
        super().insert_task(task)

    def update_task(self, task):
        if task.title in self.fail_titles:
            raise StorageError("disk I/O error", "update_task")
        self.writes += 1
        super().update_task(task)

    def insert_project(self, project):
        if project.name in self.fail_projects:
            raise StorageError("disk I/O error", "insert_project")
        self.writes += 1
        super().insert_project(project)


@pytest.fixture
def clock():
    """Fixed clock"""
    return FakeClock()


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def repository(tmp_path):
    """Repository backed by a temporary SQLite file"""
    repo = SqliteRepository(tmp_path / "test.db")
    yield repo
    repo.close()


@pytest.fixture
def make_item():
    """Factory for GitHub items"""
    counter = {"id": 1000}

    def _make(
        url: str,
        title: str = "Item",
        repo: Optional[str] = None,
        state: str = "open",
        body: Optional[str] = None,
        **extra,
    ) -> RemoteItem:
        counter["id"] += 1
        return RemoteItem(
            id=extra.pop("id", counter["id"]),
            title=title,
            html_url=url,
            state=state,
            body=body,
            repository=RemoteRepository(full_name=repo) if repo else None,
            **extra,
        )

    return _make


@pytest.fixture
def flaky_repository(tmp_path):
    """Factory for repositories that fail selected writes"""
    repos = []

    def _make(fail_titles=(), fail_projects=()):
        repo = FlakyRepository(tmp_path / f"flaky{len(repos)}.db", fail_titles, fail_projects)
        repos.append(repo)
        return repo

    yield _make
    for repo in repos:
        repo.close()
