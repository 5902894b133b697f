"""Sync server database setup and initialization."""

from pathlib import Path

import aiosqlite

from ..config import DATA_DIR, SERVER_DB_FILENAME


def get_server_db_path(data_dir: Path | None = None) -> Path:
    """Get the sync server's database file path."""
    if data_dir is None:
        data_dir = DATA_DIR
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / SERVER_DB_FILENAME


async def init_db(db_path: Path | None = None) -> None:
    """Initialize the sync server schema.

    Programs and workouts are stored as whole JSON documents keyed by the
    client-generated id; the server never interprets them beyond the few
    columns it sorts on.
    """
    if db_path is None:
        db_path = get_server_db_path()

    async with aiosqlite.connect(db_path) as db:
        # One user per device
        await db.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                device_id TEXT UNIQUE NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS programs (
                id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                data TEXT NOT NULL,
                is_active INTEGER DEFAULT 0,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (user_id, id),
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS workouts (
                id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                data TEXT NOT NULL,
                date TEXT NOT NULL,
                PRIMARY KEY (user_id, id),
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS chat_messages (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                role TEXT NOT NULL CHECK (role IN ('user', 'assistant')),
                content TEXT NOT NULL,
                created_at TEXT NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
            )
        """)

        # Create indexes for common queries
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_workouts_user_date
            ON workouts(user_id, date)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_chat_messages_user
            ON chat_messages(user_id, created_at)
        """)

        await db.commit()
