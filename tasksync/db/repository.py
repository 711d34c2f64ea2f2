"""
Task, project and tag persistence
"""

import json
import sqlite3
from abc import ABC, abstractmethod
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from tasksync.db.schema import init_database
from tasksync.models.project import Project
from tasksync.models.tag import Tag
from tasksync.models.task import Task, TaskKind, TaskPriority, TaskSize, TaskStatus
from tasksync.utils.date_utils import (
    get_current_datetime,
    parse_iso_date,
    parse_rfc3339,
    to_iso_date,
    to_rfc3339,
)
from tasksync.utils.error_handler import StorageError
from tasksync.utils.logger import logger


class EntityKind(str, Enum):
    """Entities that carry an ordering index"""
    TASKS = "tasks"
    PROJECTS = "projects"


_TASK_COLUMNS = (
    "id, title, notes, created_at, updated_at, due_date, start_date, "
    "completed_at, project_id, priority, status, order_index, deleted, "
    "kind, size, assignee, context_url, metadata"
)

_PROJECT_COLUMNS = (
    "id, name, description, color, icon, order_index, is_inbox, "
    "created_at, updated_at, deleted"
)

_TAG_COLUMNS = "id, name, color, created_at, updated_at, deleted"


class Repository(ABC):
    """
    Storage contract used by the services

    Every method raises StorageError when the backing store fails. Deletion
    is always soft: rows are flagged, never removed.
    """

    @abstractmethod
    def get_all_tasks(self, include_deleted: bool = False) -> List[Task]:
        pass

    @abstractmethod
    def get_task(self, task_id: str) -> Optional[Task]:
        pass

    @abstractmethod
    def insert_task(self, task: Task) -> None:
        pass

    @abstractmethod
    def update_task(self, task: Task) -> None:
        pass

    @abstractmethod
    def delete_task(self, task_id: str) -> None:
        pass

    @abstractmethod
    def get_all_projects(self) -> List[Project]:
        pass

    @abstractmethod
    def get_project(self, project_id: str) -> Optional[Project]:
        pass

    @abstractmethod
    def insert_project(self, project: Project) -> None:
        pass

    @abstractmethod
    def update_project(self, project: Project) -> None:
        pass

    @abstractmethod
    def delete_project(self, project_id: str) -> None:
        pass

    @abstractmethod
    def get_all_tags(self) -> List[Tag]:
        pass

    @abstractmethod
    def get_tag(self, tag_id: str) -> Optional[Tag]:
        pass

    @abstractmethod
    def insert_tag(self, tag: Tag) -> None:
        pass

    @abstractmethod
    def update_tag(self, tag: Tag) -> None:
        pass

    @abstractmethod
    def delete_tag(self, tag_id: str) -> None:
        pass

    @abstractmethod
    def get_next_order_index(self, kind: EntityKind) -> int:
        """One greater than the current maximum non-deleted order index"""
        pass


class SqliteRepository(Repository):
    """
    SQLite-backed repository

    Holds a single connection; callers are expected to use it from one
    thread at a time.
    """

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        """
        Initialize repository

        Args:
            db_path: Path to the SQLite file, or ":memory:"
        """
        self.logger = logger
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(self.db_path)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = OFF")
            init_database(self._conn)
        except sqlite3.Error as e:
            raise StorageError(f"Failed to open database {self.db_path}: {e}", "open") from e
        self.logger.debug(f"Repository ready: {self.db_path}")

    def close(self) -> None:
        self._conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # ---- low-level helpers ----

    def _query(self, sql: str, params: Sequence[Any] = (), operation: str = "query") -> List[sqlite3.Row]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"{operation} failed: {e}", operation) from e

    def _write(self, statements: List[tuple], operation: str) -> None:
        """Run (sql, params) statements in one transaction"""
        try:
            with self._conn:
                for sql, params in statements:
                    self._conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StorageError(f"{operation} failed: {e}", operation) from e

    @staticmethod
    def _metadata_to_str(metadata: Dict[str, str]) -> Optional[str]:
        if not metadata:
            return None
        return json.dumps(metadata, ensure_ascii=False, sort_keys=True)

    @staticmethod
    def _str_to_metadata(raw: Optional[str]) -> Dict[str, str]:
        if not raw:
            return {}
        try:
            value = json.loads(raw)
        except ValueError:
            logger.warning(f"Ignoring malformed task metadata: {raw[:100]}")
            return {}
        if not isinstance(value, dict):
            return {}
        return {str(k): str(v) for k, v in value.items()}

    def _row_to_task(self, row: sqlite3.Row, tags: List[str]) -> Task:
        now = get_current_datetime()
        return Task(
            id=row["id"],
            title=row["title"],
            notes=row["notes"],
            created_at=parse_rfc3339(row["created_at"]) or now,
            updated_at=parse_rfc3339(row["updated_at"]) or now,
            due_date=parse_iso_date(row["due_date"]),
            start_date=parse_iso_date(row["start_date"]),
            completed_at=parse_rfc3339(row["completed_at"]),
            project_id=row["project_id"],
            priority=TaskPriority.from_db(row["priority"]),
            tags=tags,
            status=TaskStatus.from_db(row["status"]),
            order_index=int(row["order_index"] or 0),
            deleted=bool(row["deleted"]),
            kind=TaskKind.from_db(row["kind"]),
            size=TaskSize.from_db(row["size"]),
            assignee=row["assignee"],
            context_url=row["context_url"],
            metadata=self._str_to_metadata(row["metadata"]),
        )

    @staticmethod
    def _row_to_project(row: sqlite3.Row) -> Project:
        now = get_current_datetime()
        return Project(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            color=row["color"],
            icon=row["icon"],
            order_index=int(row["order_index"] or 0),
            is_inbox=bool(row["is_inbox"]),
            created_at=parse_rfc3339(row["created_at"]) or now,
            updated_at=parse_rfc3339(row["updated_at"]) or now,
            deleted=bool(row["deleted"]),
        )

    @staticmethod
    def _row_to_tag(row: sqlite3.Row) -> Tag:
        now = get_current_datetime()
        return Tag(
            id=row["id"],
            name=row["name"],
            color=row["color"],
            created_at=parse_rfc3339(row["created_at"]) or now,
            updated_at=parse_rfc3339(row["updated_at"]) or now,
            deleted=bool(row["deleted"]),
        )

    def _task_values(self, task: Task) -> tuple:
        return (
            task.id,
            task.title,
            task.notes,
            to_rfc3339(task.created_at),
            to_rfc3339(task.updated_at),
            to_iso_date(task.due_date),
            to_iso_date(task.start_date),
            to_rfc3339(task.completed_at) if task.completed_at else None,
            task.project_id,
            task.priority.value,
            task.status.value,
            task.order_index,
            int(task.deleted),
            task.kind.value if task.kind else None,
            task.size.value if task.size else None,
            task.assignee,
            task.context_url,
            self._metadata_to_str(task.metadata),
        )

    @staticmethod
    def _tag_statements(task: Task) -> List[tuple]:
        return [
            ("INSERT OR IGNORE INTO task_tags (task_id, tag_id) VALUES (?, ?)", (task.id, tag_id))
            for tag_id in task.tags
        ]

    def _load_task_tags(self) -> Dict[str, List[str]]:
        tags: Dict[str, List[str]] = {}
        for row in self._query("SELECT task_id, tag_id FROM task_tags ORDER BY rowid", operation="load_task_tags"):
            tags.setdefault(row["task_id"], []).append(row["tag_id"])
        return tags

    # ---- tasks ----

    def get_all_tasks(self, include_deleted: bool = False) -> List[Task]:
        where = "" if include_deleted else "WHERE deleted = 0"
        rows = self._query(
            f"SELECT {_TASK_COLUMNS} FROM tasks {where} ORDER BY order_index ASC, created_at DESC",
            operation="get_all_tasks",
        )
        tags = self._load_task_tags()
        return [self._row_to_task(row, tags.get(row["id"], [])) for row in rows]

    def get_task(self, task_id: str) -> Optional[Task]:
        rows = self._query(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = ? AND deleted = 0",
            (task_id,),
            operation="get_task",
        )
        if not rows:
            return None
        tag_rows = self._query(
            "SELECT tag_id FROM task_tags WHERE task_id = ? ORDER BY rowid",
            (task_id,),
            operation="get_task",
        )
        return self._row_to_task(rows[0], [r["tag_id"] for r in tag_rows])

    def insert_task(self, task: Task) -> None:
        statements = [
            (
                f"INSERT INTO tasks ({_TASK_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                self._task_values(task),
            )
        ]
        statements.extend(self._tag_statements(task))
        self._write(statements, "insert_task")
        self.logger.debug(f"Task inserted id={task.id} title='{task.title}' status={task.status.value}")

    def update_task(self, task: Task) -> None:
        values = self._task_values(task)
        statements = [
            (
                """
                UPDATE tasks SET title = ?, notes = ?, updated_at = ?, due_date = ?,
                                 start_date = ?, completed_at = ?, project_id = ?,
                                 priority = ?, status = ?, order_index = ?, deleted = ?,
                                 kind = ?, size = ?, assignee = ?, context_url = ?,
                                 metadata = ?
                WHERE id = ?
                """,
                (values[1], values[2]) + values[4:] + (task.id,),
            ),
            ("DELETE FROM task_tags WHERE task_id = ?", (task.id,)),
        ]
        statements.extend(self._tag_statements(task))
        self._write(statements, "update_task")
        self.logger.debug(f"Task updated id={task.id} status={task.status.value}")

    def delete_task(self, task_id: str) -> None:
        self._write(
            [(
                "UPDATE tasks SET deleted = 1, updated_at = ? WHERE id = ?",
                (to_rfc3339(get_current_datetime()), task_id),
            )],
            "delete_task",
        )

    # ---- projects ----

    def get_all_projects(self) -> List[Project]:
        rows = self._query(
            f"SELECT {_PROJECT_COLUMNS} FROM projects WHERE deleted = 0 ORDER BY order_index ASC",
            operation="get_all_projects",
        )
        return [self._row_to_project(row) for row in rows]

    def get_project(self, project_id: str) -> Optional[Project]:
        rows = self._query(
            f"SELECT {_PROJECT_COLUMNS} FROM projects WHERE id = ? AND deleted = 0",
            (project_id,),
            operation="get_project",
        )
        return self._row_to_project(rows[0]) if rows else None

    def insert_project(self, project: Project) -> None:
        self._write(
            [(
                f"INSERT INTO projects ({_PROJECT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    project.id,
                    project.name,
                    project.description,
                    project.color,
                    project.icon,
                    project.order_index,
                    int(project.is_inbox),
                    to_rfc3339(project.created_at),
                    to_rfc3339(project.updated_at),
                    int(project.deleted),
                ),
            )],
            "insert_project",
        )
        self.logger.debug(f"Project inserted id={project.id} name='{project.name}'")

    def update_project(self, project: Project) -> None:
        self._write(
            [(
                """
                UPDATE projects SET name = ?, description = ?, color = ?, icon = ?,
                                    order_index = ?, is_inbox = ?, updated_at = ?, deleted = ?
                WHERE id = ?
                """,
                (
                    project.name,
                    project.description,
                    project.color,
                    project.icon,
                    project.order_index,
                    int(project.is_inbox),
                    to_rfc3339(project.updated_at),
                    int(project.deleted),
                    project.id,
                ),
            )],
            "update_project",
        )

    def delete_project(self, project_id: str) -> None:
        self._write(
            [(
                "UPDATE projects SET deleted = 1, updated_at = ? WHERE id = ?",
                (to_rfc3339(get_current_datetime()), project_id),
            )],
            "delete_project",
        )

    # ---- tags ----

    def get_all_tags(self) -> List[Tag]:
        rows = self._query(
            f"SELECT {_TAG_COLUMNS} FROM tags WHERE deleted = 0 ORDER BY name ASC",
            operation="get_all_tags",
        )
        return [self._row_to_tag(row) for row in rows]

    def get_tag(self, tag_id: str) -> Optional[Tag]:
        rows = self._query(
            f"SELECT {_TAG_COLUMNS} FROM tags WHERE id = ? AND deleted = 0",
            (tag_id,),
            operation="get_tag",
        )
        return self._row_to_tag(rows[0]) if rows else None

    def insert_tag(self, tag: Tag) -> None:
        self._write(
            [(
                f"INSERT INTO tags ({_TAG_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    tag.id,
                    tag.name,
                    tag.color,
                    to_rfc3339(tag.created_at),
                    to_rfc3339(tag.updated_at),
                    int(tag.deleted),
                ),
            )],
            "insert_tag",
        )

    def update_tag(self, tag: Tag) -> None:
        self._write(
            [(
                "UPDATE tags SET name = ?, color = ?, updated_at = ?, deleted = ? WHERE id = ?",
                (tag.name, tag.color, to_rfc3339(tag.updated_at), int(tag.deleted), tag.id),
            )],
            "update_tag",
        )

    def delete_tag(self, tag_id: str) -> None:
        self._write(
            [(
                "UPDATE tags SET deleted = 1, updated_at = ? WHERE id = ?",
                (to_rfc3339(get_current_datetime()), tag_id),
            )],
            "delete_tag",
        )

    # ---- ordering and stats ----

    def get_next_order_index(self, kind: EntityKind) -> int:
        table = EntityKind(kind).value
        rows = self._query(
            f"SELECT COALESCE(MAX(order_index), 0) + 1 FROM {table} WHERE deleted = 0",
            operation="get_next_order_index",
        )
        return int(rows[0][0])

    def count_tasks_by_status(self, status: TaskStatus) -> int:
        rows = self._query(
            "SELECT COUNT(*) FROM tasks WHERE status = ? AND deleted = 0",
            (status.value,),
            operation="count_tasks_by_status",
        )
        return int(rows[0][0])

    def count_tasks_due_today(self, today: date) -> int:
        rows = self._query(
            "SELECT COUNT(*) FROM tasks WHERE due_date = ? AND status != 'completed' AND deleted = 0",
            (today.isoformat(),),
            operation="count_tasks_due_today",
        )
        return int(rows[0][0])

    def count_overdue_tasks(self, today: date) -> int:
        rows = self._query(
            "SELECT COUNT(*) FROM tasks WHERE due_date < ? AND status != 'completed' AND deleted = 0",
            (today.isoformat(),),
            operation="count_overdue_tasks",
        )
        return int(rows[0][0])

    def count_tasks_for_project(self, project_id: str) -> int:
        rows = self._query(
            "SELECT COUNT(*) FROM tasks WHERE project_id = ? AND status != 'completed' AND deleted = 0",
            (project_id,),
            operation="count_tasks_for_project",
        )
        return int(rows[0][0])
