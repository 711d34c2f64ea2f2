"""
Message formatting utilities
"""

from typing import Dict, List

from tasksync.models.response import ReconcileReport
from tasksync.models.task import Task
from tasksync.services.filter_service import ViewBucket


def format_reconcile_report(report: ReconcileReport) -> str:
    """
    Format a one-line summary of a reconciliation pass

    Args:
        report: Reconciliation report

    Returns:
        Formatted message
    """
    if report.is_noop and not report.failed:
        return f"✓ GitHub in sync ({len(report.seen_urls)} open items, nothing changed)"

    parts = []
    if report.created_tasks:
        parts.append(f"{len(report.created_tasks)} new")
    if report.updated_tasks:
        parts.append(f"{len(report.updated_tasks)} updated")
    if report.closed_tasks:
        parts.append(f"{len(report.closed_tasks)} closed")
    if report.created_projects:
        parts.append(f"{len(report.created_projects)} new projects")

    message = f"✓ GitHub synced: {', '.join(parts)}" if parts else "✓ GitHub synced"
    if report.failed:
        message += f"\n⚠ {len(report.failed)} items could not be saved"
    return message


def format_bucket_counts(counts: Dict[ViewBucket, int]) -> str:
    """Format bucket counts in sidebar order"""
    lines = []
    for bucket in ViewBucket:
        lines.append(f"{bucket.value.capitalize():<10} {counts.get(bucket, 0):>4}")
    return "\n".join(lines)


def format_task_line(task: Task) -> str:
    """Format a task as a single list line"""
    kind = task.kind.symbol if task.kind else "   "
    due = task.due_date.isoformat() if task.due_date else ""
    mark = "x" if task.is_completed else " "
    return f"[{mark}] {kind} {task.priority.symbol:<3} {task.title} {due}".rstrip()


def format_task_list(tasks: List[Task], limit: int = 20) -> str:
    if not tasks:
        return "No tasks."
    lines = [format_task_line(t) for t in tasks[:limit]]
    if len(tasks) > limit:
        lines.append(f"... and {len(tasks) - limit} more")
    return "\n".join(lines)
