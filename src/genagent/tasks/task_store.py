# src/genagent/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from .errors import PersistenceFailure
from .task_models import Task

logger = logging.getLogger(__name__)

# Column name -> record key (Task.to_record()).
_COLUMNS: dict[str, str] = {
    "id": "id",
    "name": "name",
    "type": "type",
    "schedule": "schedule",
    "command": "command",
    "skill": "skill",
    "context": "context",
    "interval_ms": "interval",
    "cron": "cron",
    "run_at": "datetime",
    "enabled": "enabled",
    "max_attempts": "maxAttempts",
    "created_at": "createdAt",
    "last_run": "lastRun",
    "next_run": "nextRun",
    "run_count": "runCount",
    "success_count": "successCount",
    "failure_count": "failureCount",
}


class TaskStore:
    """
    SQLite schedule store: one row per task, keyed by task id.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Every write replaces one row in its own transaction, so a failed or
    partial write of one task never touches another task's record.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "schedules.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._schema_ready = False
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._ensure_schema()
        except (OSError, sqlite3.Error):
            # load_all() degrades to an empty set; save() will report the failure.
            logger.warning("TaskStore schema init failed db=%s", self._db_path, exc_info=True)
            return
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        if self._schema_ready:
            return

        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS schedules (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    type TEXT NOT NULL,
                    schedule TEXT NOT NULL,
                    command TEXT NOT NULL,
                    skill TEXT,
                    context TEXT NOT NULL DEFAULT '[]',
                    interval_ms INTEGER,
                    cron TEXT,
                    run_at TEXT,
                    enabled INTEGER NOT NULL DEFAULT 1,
                    max_attempts INTEGER NOT NULL DEFAULT 5,
                    created_at TEXT,
                    last_run TEXT,
                    next_run TEXT,
                    run_count INTEGER NOT NULL DEFAULT 0,
                    success_count INTEGER NOT NULL DEFAULT 0,
                    failure_count INTEGER NOT NULL DEFAULT 0
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(schedules)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE schedules ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("skill", "TEXT")
            add_col("context", "TEXT NOT NULL DEFAULT '[]'")
            add_col("max_attempts", "INTEGER NOT NULL DEFAULT 5")
            add_col("next_run", "TEXT")

            conn.commit()
        finally:
            conn.close()

        self._schema_ready = True

    @staticmethod
    def _context_to_str(context: list[dict[str, str]]) -> str:
        try:
            return json.dumps(context or [], ensure_ascii=False)
        except (TypeError, ValueError):
            logger.exception("Failed to JSON-encode task context; storing [].")
            return "[]"

    @staticmethod
    def _str_to_context(s: str | None) -> list[Any]:
        if not s:
            return []
        try:
            val = json.loads(s)
            return val if isinstance(val, list) else []
        except ValueError:
            return []

    def _task_to_row(self, task: Task) -> dict[str, Any]:
        record = task.to_record()
        row = {col: record[key] for col, key in _COLUMNS.items()}
        row["context"] = self._context_to_str(record["context"])
        row["enabled"] = 1 if task.enabled else 0
        return row

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        record = {key: row[col] for col, key in _COLUMNS.items()}
        record["context"] = self._str_to_context(row["context"])
        record["enabled"] = bool(row["enabled"])
        return Task.from_record(record)

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM schedules")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def load_all(self) -> list[Task]:
        """
        Read every persisted task.

        Never raises: a missing/corrupt database yields [], a malformed row
        is skipped. Both are logged as warnings.
        """
        try:
            self._ensure_schema()
            conn = self._get_conn()
            try:
                rows = conn.execute("SELECT * FROM schedules").fetchall()
            finally:
                conn.close()
        except sqlite3.Error:
            logger.warning("Failed to load scheduled tasks from %s", self._db_path, exc_info=True)
            return []

        tasks: list[Task] = []
        for row in rows:
            try:
                tasks.append(self._row_to_task(row))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed task record id=%s", row["id"], exc_info=True)
        return tasks

    def save(self, task: Task) -> None:
        """Insert or overwrite the full record for task.id."""
        row = self._task_to_row(task)
        cols = list(row)
        placeholders = ", ".join("?" for _ in cols)
        try:
            self._ensure_schema()
            conn = self._get_conn()
            try:
                conn.execute(
                    f"INSERT OR REPLACE INTO schedules ({', '.join(cols)}) VALUES ({placeholders})",
                    [row[c] for c in cols],
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Failed to save task {task.id}: {e}") from e
        logger.debug("Task saved id=%s runs=%s", task.id, task.run_count)

    def delete(self, task_id: str) -> None:
        try:
            self._ensure_schema()
            conn = self._get_conn()
            try:
                conn.execute("DELETE FROM schedules WHERE id = ?", (task_id,))
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Failed to delete task {task_id}: {e}") from e
        logger.debug("Task deleted id=%s", task_id)
