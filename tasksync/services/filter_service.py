"""
View filters, sorting and grouping over a task collection

All functions are pure: they never mutate the tasks they are given and take
the current date as an argument instead of reading the clock.
"""

from datetime import date
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from tasksync.models.task import Task, TaskStatus


class ViewBucket(str, Enum):
    """Named views over the task collection; a task may appear in several"""
    INBOX = "inbox"
    TODAY = "today"
    UPCOMING = "upcoming"
    ANYTIME = "anytime"
    COMPLETED = "completed"
    REVIEW = "review"


def _is_open(task: Task) -> bool:
    return not task.deleted and task.status != TaskStatus.COMPLETED


def filter_inbox(tasks: Iterable[Task], today: Optional[date] = None) -> List[Task]:
    """Tasks for the Inbox view (status = inbox)"""
    return [t for t in tasks if t.status == TaskStatus.INBOX and not t.deleted]


def filter_today(tasks: Iterable[Task], today: date) -> List[Task]:
    """Tasks due today or overdue, not completed"""
    return [t for t in tasks if _is_open(t) and t.due_date is not None and t.due_date <= today]


def filter_upcoming(tasks: Iterable[Task], today: date) -> List[Task]:
    """Tasks with a future due date, not completed"""
    return [t for t in tasks if _is_open(t) and t.due_date is not None and t.due_date > today]


def filter_anytime(tasks: Iterable[Task], today: Optional[date] = None) -> List[Task]:
    """Tasks without a due date, not completed"""
    return [t for t in tasks if _is_open(t) and t.due_date is None]


def filter_completed(tasks: Iterable[Task], today: Optional[date] = None) -> List[Task]:
    return [t for t in tasks if not t.deleted and t.status == TaskStatus.COMPLETED]


def filter_review(tasks: Iterable[Task], today: date) -> List[Task]:
    """Overdue tasks: due strictly before today, not completed"""
    return [t for t in tasks if _is_open(t) and t.due_date is not None and t.due_date < today]


_BUCKET_FILTERS: Dict[ViewBucket, Callable[[Iterable[Task], date], List[Task]]] = {
    ViewBucket.INBOX: filter_inbox,
    ViewBucket.TODAY: filter_today,
    ViewBucket.UPCOMING: filter_upcoming,
    ViewBucket.ANYTIME: filter_anytime,
    ViewBucket.COMPLETED: filter_completed,
    ViewBucket.REVIEW: filter_review,
}


def filter_bucket(tasks: Iterable[Task], bucket: ViewBucket, today: date) -> List[Task]:
    """Tasks belonging to a single bucket"""
    return _BUCKET_FILTERS[ViewBucket(bucket)](tasks, today)


def classify(tasks: Iterable[Task], today: date) -> Dict[ViewBucket, List[Task]]:
    """
    Assign tasks to every view bucket

    Args:
        tasks: Task collection (not modified)
        today: Current calendar date

    Returns:
        Mapping of every ViewBucket to the tasks it shows, in input order
    """
    task_list = list(tasks)
    return {bucket: _BUCKET_FILTERS[bucket](task_list, today) for bucket in ViewBucket}


def bucket_counts(tasks: Iterable[Task], today: date) -> Dict[ViewBucket, int]:
    """Number of tasks in each bucket"""
    return {bucket: len(items) for bucket, items in classify(tasks, today).items()}


def filter_by_project(tasks: Iterable[Task], project_id: str) -> List[Task]:
    return [t for t in tasks if _is_open(t) and t.project_id == project_id]


def filter_by_tag(tasks: Iterable[Task], tag_id: str) -> List[Task]:
    return [t for t in tasks if _is_open(t) and tag_id in t.tags]


def search_tasks(tasks: Iterable[Task], query: str) -> List[Task]:
    """Case-insensitive substring search over title and notes"""
    query_lower = query.lower()
    return [
        t for t in tasks
        if not t.deleted
        and (query_lower in t.title.lower() or (t.notes is not None and query_lower in t.notes.lower()))
    ]


def _due_date_key(task: Task) -> Tuple[int, date, int]:
    # Undated tasks sort after all dated ones, then by manual order
    if task.due_date is None:
        return (1, date.min, task.order_index)
    return (0, task.due_date, 0)


def sort_by_due_date(tasks: Iterable[Task]) -> List[Task]:
    """Ascending due date, undated last ordered by order_index"""
    return sorted(tasks, key=_due_date_key)


def sort_by_priority(tasks: Iterable[Task]) -> List[Task]:
    """Descending priority"""
    return sorted(tasks, key=lambda t: t.priority.rank, reverse=True)


def group_by_date(tasks: Iterable[Task]) -> List[Tuple[Optional[date], List[Task]]]:
    """
    Group tasks by exact due date

    The undated group comes first, followed by ascending dates. Tasks keep
    their input order inside each group.
    """
    groups: Dict[Optional[date], List[Task]] = {}
    for task in tasks:
        groups.setdefault(task.due_date, []).append(task)
    return sorted(groups.items(), key=lambda item: (item[0] is not None, item[0] or date.min))
