"""SQLite store for tasks and their trigger ids.

Architecture:
- `tasks` table: task snapshot columns the scheduler reads (owned by the task service)
- `task_triggers` table: one row per (task, trigger type) holding the live trigger id

Trigger ids are written one row at a time, so updates to different trigger
types of the same task never overwrite each other.
"""
import sqlite3
from datetime import datetime
from pathlib import Path

from loguru import logger

from ..errors import StoreError, TaskNotFoundError
from ..models import Task
from ..types import TriggerRecord, TriggerType

logger = logger.bind(module="scheduler.store")

# ============== SQL Schema ==============

_INIT_SQL = """
CREATE TABLE IF NOT EXISTS tasks (
    id          TEXT PRIMARY KEY,
    list_id     TEXT NOT NULL DEFAULT '',
    user_id     INTEGER,
    title       TEXT NOT NULL DEFAULT '',
    pester      INTEGER DEFAULT 0,
    due_at      INTEGER DEFAULT 0,
    checked     INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS task_triggers (
    task_id       TEXT NOT NULL REFERENCES tasks (id) ON DELETE CASCADE,
    trigger_type  TEXT NOT NULL,
    trigger_id    TEXT,
    updated_at_ms INTEGER NOT NULL,
    PRIMARY KEY (task_id, trigger_type)
);

CREATE INDEX IF NOT EXISTS idx_triggers_live ON task_triggers(trigger_id);
"""

_EXPECTED_TABLES = ("tasks", "task_triggers")


def _now_ms() -> int:
    return int(datetime.now().timestamp() * 1000)


class SqliteTaskStore:
    """SQLite implementation of `TaskSource` and `JobStore`.

    Thread-safety: SQLite handles its own locking. All calls come from the
    single event loop that also drives the scheduler.
    """

    def __init__(self, db_path: str | Path):
        """Initialize store.

        Args:
            db_path: Path of the SQLite database file
        """
        self.db_path = Path(db_path).expanduser()
        self._db: sqlite3.Connection | None = None

    # ============== Lifecycle ==============

    async def initialize(self) -> None:
        """Open SQLite and create the schema if missing."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._db = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._db.row_factory = sqlite3.Row
            self._db.execute("PRAGMA journal_mode=WAL")
            self._db.execute("PRAGMA synchronous=NORMAL")
            self._db.execute("PRAGMA foreign_keys=ON")
            self._db.executescript(_INIT_SQL)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to open {self.db_path}: {e}") from e

        logger.info(f"Store initialized at {self.db_path}")

    async def close(self) -> None:
        """Close store."""
        if self._db:
            self._db.close()
            self._db = None

    async def healthy(self) -> bool:
        """Connection is usable and every expected table exists."""
        if self._db is None:
            return False
        try:
            rows = self._db.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            ).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Store health check failed: {e}")
            return False
        names = {row["name"] for row in rows}
        return all(table in names for table in _EXPECTED_TABLES)

    def _conn(self) -> sqlite3.Connection:
        if self._db is None:
            raise StoreError("Store is not initialized")
        return self._db

    # ============== Tasks ==============

    async def get_task(self, task_id: str) -> Task | None:
        """Get a task snapshot by ID."""
        try:
            row = self._conn().execute(
                "SELECT * FROM tasks WHERE id = ?", (task_id,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to load task {task_id}: {e}") from e

        if row is None:
            return None
        return Task(
            id=row["id"],
            list_id=row["list_id"],
            user_id=row["user_id"],
            title=row["title"],
            pester=row["pester"],
            due_at=row["due_at"],
            checked=bool(row["checked"]),
        )

    async def save_task(self, task: Task) -> None:
        """Insert or update a task snapshot."""
        db = self._conn()
        try:
            db.execute(
                """INSERT INTO tasks (id, list_id, user_id, title, pester, due_at, checked)
                   VALUES (?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET
                    list_id=excluded.list_id,
                    user_id=excluded.user_id,
                    title=excluded.title,
                    pester=excluded.pester,
                    due_at=excluded.due_at,
                    checked=excluded.checked
                """,
                (
                    task.id,
                    task.list_id,
                    task.user_id,
                    task.title,
                    task.pester or 0,
                    task.due_at or 0,
                    int(task.checked),
                ),
            )
            db.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to save task {task.id}: {e}") from e

    async def delete_task(self, task_id: str) -> bool:
        """Delete a task and its trigger rows."""
        db = self._conn()
        try:
            cursor = db.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            db.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to delete task {task_id}: {e}") from e
        return cursor.rowcount > 0

    # ============== Trigger Records ==============

    async def get_trigger_record(self, task_id: str) -> TriggerRecord:
        """Get the trigger ids of a task.

        Raises:
            TaskNotFoundError: if the task does not exist
        """
        db = self._conn()
        try:
            exists = db.execute(
                "SELECT 1 FROM tasks WHERE id = ?", (task_id,)
            ).fetchone()
            rows = db.execute(
                "SELECT trigger_type, trigger_id FROM task_triggers WHERE task_id = ?",
                (task_id,),
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to load triggers of {task_id}: {e}") from e

        if exists is None:
            raise TaskNotFoundError(task_id)

        record = TriggerRecord(task_id=task_id)
        for row in rows:
            try:
                trigger_type = TriggerType(row["trigger_type"])
            except ValueError:
                logger.warning(f"Ignoring unknown trigger type {row['trigger_type']!r} on {task_id}")
                continue
            record.set_id(trigger_type, row["trigger_id"])
        return record

    async def set_trigger_id(
        self,
        task_id: str,
        trigger_type: TriggerType,
        trigger_id: str | None,
    ) -> None:
        """Set or clear a single (task, trigger type) field."""
        db = self._conn()
        try:
            db.execute(
                """INSERT INTO task_triggers (task_id, trigger_type, trigger_id, updated_at_ms)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(task_id, trigger_type) DO UPDATE SET
                    trigger_id=excluded.trigger_id,
                    updated_at_ms=excluded.updated_at_ms
                """,
                (task_id, trigger_type.value, trigger_id, _now_ms()),
            )
            db.commit()
        except sqlite3.Error as e:
            raise StoreError(
                f"Failed to set {trigger_type.value} trigger of {task_id}: {e}"
            ) from e

        logger.debug(f"Set {trigger_type.value} trigger of {task_id} to {trigger_id}")

    async def list_tasks_with_any_trigger(self) -> list[str]:
        """IDs of tasks with at least one non-null trigger id."""
        try:
            rows = self._conn().execute(
                """SELECT DISTINCT task_id FROM task_triggers
                   WHERE trigger_id IS NOT NULL
                   ORDER BY task_id"""
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to list triggered tasks: {e}") from e
        return [row["task_id"] for row in rows]
