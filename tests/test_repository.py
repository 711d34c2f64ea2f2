"""
Tests for the SQLite repository
"""

import sqlite3
import pytest
from datetime import date, datetime, timezone
from tasksync.db.repository import EntityKind, SqliteRepository
from tasksync.models.project import Project
from tasksync.models.tag import Tag
from tasksync.models.task import Task, TaskKind, TaskPriority, TaskSize, TaskStatus
from tasksync.utils.error_handler import StorageError


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def test_task_survives_storage(repository):
    """Test that every task field is stored and loaded back"""
    tag = Tag.new("work", now=NOW)
    repository.insert_tag(tag)
    task = Task.new("Review PR", now=NOW)
    task.notes = "Look at the migration"
    task.due_date = date(2026, 10, 20)
    task.start_date = date(2026, 10, 18)
    task.priority = TaskPriority.HIGH
    task.kind = TaskKind.GH_REVIEW
    task.size = TaskSize.M
    task.assignee = "me"
    task.context_url = "https://github.com/a/b/pull/1"
    task.metadata = {"github_id": "42", "github_repo": "a/b"}
    task.tags = [tag.id]
    task.complete(NOW)

    repository.insert_task(task)
    loaded = repository.get_task(task.id)

    assert loaded == task


def test_task_row_layout(tmp_path):
    """Test dates, timestamps and metadata use the documented text formats"""
    path = tmp_path / "layout.db"
    with SqliteRepository(path) as repo:
        task = Task.new("Plain", now=NOW)
        task.due_date = date(2026, 1, 2)
        repo.insert_task(task)

    conn = sqlite3.connect(str(path))
    row = conn.execute("SELECT created_at, due_date, metadata, deleted FROM tasks").fetchone()
    conn.close()

    assert row[0] == "2026-10-19T12:00:00+00:00"
    assert row[1] == "2026-01-02"
    assert row[2] is None
    assert row[3] == 0


def test_update_task_replaces_tags(repository):
    task = Task.new("Tagged", now=NOW)
    task.tags = ["a", "b"]
    repository.insert_task(task)

    task.tags = ["c"]
    task.title = "Retitled"
    repository.update_task(task)

    loaded = repository.get_task(task.id)
    assert loaded.tags == ["c"]
    assert loaded.title == "Retitled"


def test_soft_delete_keeps_row(repository):
    """Test deleted tasks are hidden by default but still stored"""
    task = Task.new("Temporary", now=NOW)
    repository.insert_task(task)

    repository.delete_task(task.id)

    assert repository.get_task(task.id) is None
    assert repository.get_all_tasks() == []
    stored = repository.get_all_tasks(include_deleted=True)
    assert len(stored) == 1
    assert stored[0].deleted


def test_next_order_index(repository):
    """Test order index is max + 1 over non-deleted rows, per entity kind"""
    assert repository.get_next_order_index(EntityKind.TASKS) == 1

    first = Task.new("First", now=NOW)
    first.order_index = 1
    second = Task.new("Second", now=NOW)
    second.order_index = 7
    repository.insert_task(first)
    repository.insert_task(second)

    assert repository.get_next_order_index(EntityKind.TASKS) == 8
    assert repository.get_next_order_index(EntityKind.PROJECTS) == 1

    repository.delete_task(second.id)
    assert repository.get_next_order_index(EntityKind.TASKS) == 2


def test_get_all_tasks_ordered_by_order_index(repository):
    for title, index in (("c", 3), ("a", 1), ("b", 2)):
        task = Task.new(title, now=NOW)
        task.order_index = index
        repository.insert_task(task)

    assert [t.title for t in repository.get_all_tasks()] == ["a", "b", "c"]


def test_projects_and_tags(repository):
    project = Project.new("octo/widgets", now=NOW)
    project.icon = ""
    repository.insert_project(project)

    project.description = "Widgets"
    repository.update_project(project)
    assert repository.get_project(project.id).description == "Widgets"
    assert [p.name for p in repository.get_all_projects()] == ["octo/widgets"]

    repository.delete_project(project.id)
    assert repository.get_all_projects() == []

    zeta, alpha = Tag.new("zeta", now=NOW), Tag.new("alpha", now=NOW)
    repository.insert_tag(zeta)
    repository.insert_tag(alpha)
    assert [t.name for t in repository.get_all_tags()] == ["alpha", "zeta"]

    alpha.color = "#fff"
    repository.update_tag(alpha)
    assert repository.get_tag(alpha.id).color == "#fff"
    repository.delete_tag(zeta.id)
    assert repository.get_tag(zeta.id) is None


def test_counts(repository):
    today = date(2026, 10, 19)
    due_today = Task.new("Today", now=NOW)
    due_today.due_date = today
    due_today.project_id = "p1"
    overdue = Task.new("Overdue", now=NOW)
    overdue.due_date = date(2026, 10, 1)
    done = Task.new("Done", now=NOW)
    done.due_date = date(2026, 10, 1)
    done.project_id = "p1"
    done.complete(NOW)
    for task in (due_today, overdue, done):
        repository.insert_task(task)

    assert repository.count_tasks_due_today(today) == 1
    assert repository.count_overdue_tasks(today) == 1
    assert repository.count_tasks_by_status(TaskStatus.COMPLETED) == 1
    assert repository.count_tasks_for_project("p1") == 1


def test_malformed_metadata_is_ignored(tmp_path):
    path = tmp_path / "bad.db"
    with SqliteRepository(path) as repo:
        repo.insert_task(Task.new("Odd", now=NOW))
        repo._conn.execute("UPDATE tasks SET metadata = 'not json'")
        repo._conn.commit()
        assert repo.get_all_tasks()[0].metadata == {}


def test_duplicate_insert_raises_storage_error(repository):
    task = Task.new("Once", now=NOW)
    repository.insert_task(task)

    with pytest.raises(StorageError):
        repository.insert_task(task)

    assert len(repository.get_all_tasks()) == 1


def test_schema_is_reused(tmp_path):
    """Test reopening an existing database keeps its data"""
    path = tmp_path / "reopen.db"
    with SqliteRepository(path) as repo:
        repo.insert_task(Task.new("Persisted", now=NOW))

    with SqliteRepository(path) as repo:
        assert [t.title for t in repo.get_all_tasks()] == ["Persisted"]
