"""SQLite schema management (code-first approach)."""

import logging

from src.core import db_client


logger = logging.getLogger(__name__)


# Central list of all collections in the schema
COLLECTIONS = [
    "users",
    "routines",
    "tasks",
    "time_records",
]

_TABLES: dict[str, str] = {
    "users": """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            name TEXT,
            image TEXT,
            created TEXT NOT NULL,
            updated TEXT NOT NULL
        )
    """,
    "routines": """
        CREATE TABLE IF NOT EXISTS routines (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            description TEXT,
            repeat_type TEXT NOT NULL CHECK (repeat_type IN ('DAILY', 'WEEKLY', 'MONTHLY')),
            repeat_interval INTEGER NOT NULL DEFAULT 1 CHECK (repeat_interval > 0),
            estimated_minutes INTEGER NOT NULL DEFAULT 60 CHECK (estimated_minutes > 0),
            is_active INTEGER NOT NULL DEFAULT 1,
            created TEXT NOT NULL,
            updated TEXT NOT NULL
        )
    """,
    "tasks": """
        CREATE TABLE IF NOT EXISTS tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            routine_id INTEGER REFERENCES routines(id) ON DELETE SET NULL,
            title TEXT NOT NULL,
            description TEXT,
            category TEXT,
            planned_date TEXT NOT NULL,
            planned_start_time TEXT,
            estimated_minutes INTEGER NOT NULL CHECK (estimated_minutes > 0),
            priority TEXT NOT NULL DEFAULT 'MEDIUM',
            importance TEXT NOT NULL DEFAULT 'MEDIUM',
            status TEXT NOT NULL DEFAULT 'PENDING',
            notes TEXT,
            actual_start_time TEXT,
            actual_end_time TEXT,
            actual_minutes INTEGER,
            interruptions INTEGER NOT NULL DEFAULT 0,
            tags TEXT NOT NULL DEFAULT '[]',
            created TEXT NOT NULL,
            updated TEXT NOT NULL
        )
    """,
    "time_records": """
        CREATE TABLE IF NOT EXISTS time_records (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            task_id INTEGER NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
            start_time TEXT NOT NULL,
            end_time TEXT,
            created TEXT NOT NULL,
            updated TEXT NOT NULL
        )
    """,
}

_INDEXES = [
    # Final backstop against generating the same routine twice for one day
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_tasks_routine_date ON tasks (routine_id, planned_date)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_user_date ON tasks (user_id, planned_date)",
    "CREATE INDEX IF NOT EXISTS idx_routines_user ON routines (user_id)",
    "CREATE INDEX IF NOT EXISTS idx_time_records_task ON time_records (task_id, start_time)",
]


async def init_db(*, db_path: str | None = None) -> None:
    """Create all tables and indexes if they do not exist yet."""
    conn = await db_client.get_connection(db_path=db_path)

    for collection in COLLECTIONS:
        await conn.execute(_TABLES[collection])
    for statement in _INDEXES:
        await conn.execute(statement)
    await conn.commit()

    logger.info("Schema initialized", extra={"collections": COLLECTIONS})
