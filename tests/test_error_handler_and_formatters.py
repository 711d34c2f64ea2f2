"""
Tests for error handling and message formatting
"""

from datetime import date

from tasksync.models.response import ReconcileReport
from tasksync.models.task import Task, TaskKind, TaskPriority
from tasksync.services.filter_service import ViewBucket
from tasksync.utils.error_handler import (
    FetchError,
    FetchErrorReason,
    StorageError,
    ValidationError,
    format_error_message,
    handle_error,
)
from tasksync.utils.formatters import (
    format_bucket_counts,
    format_reconcile_report,
    format_task_line,
    format_task_list,
)


def test_handle_fetch_errors_by_reason():
    unauthenticated = handle_error(FetchError("HTTP error: 401", FetchErrorReason.UNAUTHENTICATED, 401))
    rate_limited = handle_error(FetchError("HTTP error: 429", FetchErrorReason.RATE_LIMITED, 429))
    generic = handle_error(FetchError("Request error: timeout"))

    assert unauthenticated.error_code == "unauthenticated"
    assert "token" in unauthenticated.message
    assert unauthenticated.details == {"status_code": 401}
    assert rate_limited.error_code == "rate_limited"
    assert "rate limit" in rate_limited.message
    assert generic.error_code == "generic"
    assert generic.details is None
    assert "timeout" in generic.message


def test_handle_other_errors():
    assert handle_error(StorageError("disk full", "insert_task")).error_code == "storage"
    assert handle_error(ValidationError("empty title")).error_code == "validation"
    assert handle_error(KeyError("boom")).error_code is None
    assert format_error_message(StorageError("disk full")) == "Storage error: disk full"


def test_format_noop_report():
    report = ReconcileReport(seen_urls=["https://github.com/o/r/issues/1"])

    assert format_reconcile_report(report) == "✓ GitHub in sync (1 open items, nothing changed)"


def test_format_report_with_changes_and_failures():
    report = ReconcileReport(
        created_tasks=["a", "b"],
        closed_tasks=["c"],
        created_projects=["p"],
        failed={"https://github.com/o/r/issues/9": "disk I/O error"},
    )

    message = format_reconcile_report(report)

    assert message.startswith("✓ GitHub synced: 2 new, 1 closed, 1 new projects")
    assert message.endswith("⚠ 1 items could not be saved")
    assert report.write_count == 4


def test_format_bucket_counts_lists_every_bucket():
    text = format_bucket_counts({ViewBucket.INBOX: 3})

    lines = text.splitlines()
    assert len(lines) == len(ViewBucket)
    assert lines[0].split() == ["Inbox", "3"]
    assert lines[-1].split() == ["Review", "0"]


def test_format_task_line():
    task = Task(title="Review PR", kind=TaskKind.GH_REVIEW, priority=TaskPriority.HIGH, due_date=date(2026, 10, 20))

    assert format_task_line(task) == "[ ] [REV] !!! Review PR 2026-10-20"


def test_format_task_list_truncates():
    tasks = [Task(title=f"Task {i}") for i in range(3)]

    assert format_task_list([]) == "No tasks."
    assert format_task_list(tasks, limit=2).splitlines()[-1] == "... and 1 more"
