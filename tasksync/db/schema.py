"""
Database schema
"""

import sqlite3

from tasksync.config.constants import SCHEMA_VERSION
from tasksync.utils.logger import logger


def init_database(conn: sqlite3.Connection) -> None:
    """
    Create tables if the stored schema version is behind

    Args:
        conn: Open SQLite connection
    """
    conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_version (version INTEGER PRIMARY KEY)"
    )

    row = conn.execute("SELECT COALESCE(MAX(version), 0) FROM schema_version").fetchone()
    current_version = int(row[0]) if row else 0

    if current_version < SCHEMA_VERSION:
        _create_tables(conn)
        conn.execute(
            "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,),
        )
        logger.info(f"Database schema initialized (version {current_version} -> {SCHEMA_VERSION})")

    conn.commit()


def _create_tables(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS projects (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT,
            color TEXT,
            icon TEXT,
            order_index INTEGER NOT NULL DEFAULT 0,
            is_inbox INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            deleted INTEGER NOT NULL DEFAULT 0
        )
        """
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS tags (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            color TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            deleted INTEGER NOT NULL DEFAULT 0
        )
        """
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS tasks (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            notes TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            due_date TEXT,
            start_date TEXT,
            completed_at TEXT,
            project_id TEXT REFERENCES projects(id),
            priority TEXT NOT NULL DEFAULT 'none',
            status TEXT NOT NULL DEFAULT 'inbox',
            order_index INTEGER NOT NULL DEFAULT 0,
            deleted INTEGER NOT NULL DEFAULT 0,
            kind TEXT,
            size TEXT,
            assignee TEXT,
            context_url TEXT,
            metadata TEXT
        )
        """
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS task_tags (
            task_id TEXT NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
            tag_id TEXT NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
            PRIMARY KEY (task_id, tag_id)
        )
        """
    )

    conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status) WHERE deleted = 0")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_due_date ON tasks(due_date) WHERE deleted = 0")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_project ON tasks(project_id) WHERE deleted = 0")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_context_url ON tasks(context_url)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_task_tags_task ON task_tags(task_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_task_tags_tag ON task_tags(tag_id)")
