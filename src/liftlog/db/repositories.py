"""Data access layer for the sync server."""

import json
from datetime import datetime
from pathlib import Path

import aiosqlite

from ..utils import format_timestamp, new_id, parse_timestamp, utcnow
from .engine import get_server_db_path


def _recency(value: str | None) -> str:
    """Normalize a client timestamp so the column sorts chronologically."""
    try:
        return format_timestamp(parse_timestamp(value)) if value else format_timestamp(utcnow())
    except ValueError:
        return format_timestamp(utcnow())


class UserRepository:
    """Repository for device-identified users."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_server_db_path()

    async def find_or_create(self, device_id: str) -> str:
        """Return the user id for a device, creating the user on first contact."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "SELECT id FROM users WHERE device_id = ?", (device_id,)
            )
            row = await cursor.fetchone()
            if row is not None:
                return row[0]

            user_id = new_id()
            await db.execute(
                "INSERT OR IGNORE INTO users (id, device_id) VALUES (?, ?)",
                (user_id, device_id),
            )
            await db.commit()
            # A concurrent first request may have won the insert
            cursor = await db.execute(
                "SELECT id FROM users WHERE device_id = ?", (device_id,)
            )
            row = await cursor.fetchone()
            return row[0]


class ProgramRepository:
    """Repository for program documents."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_server_db_path()

    async def list_for_user(self, user_id: str) -> list[dict]:
        """All of a user's programs, most recently updated first.

        Each document carries an ``isActive`` flag.
        """
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                SELECT data, is_active FROM programs
                WHERE user_id = ?
                ORDER BY updated_at DESC
                """,
                (user_id,),
            )
            rows = await cursor.fetchall()
        return [{**json.loads(data), "isActive": bool(active)} for data, active in rows]

    async def upsert(self, user_id: str, program: dict) -> None:
        """Store the whole document, replacing any previous version."""
        doc = {k: v for k, v in program.items() if k != "isActive"}
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO programs (id, user_id, data, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (user_id, id) DO UPDATE SET
                    data = excluded.data,
                    updated_at = excluded.updated_at
                """,
                (
                    doc["id"],
                    user_id,
                    json.dumps(doc),
                    _recency(doc.get("updatedAt") or doc.get("createdAt")),
                ),
            )
            await db.commit()

    async def delete(self, user_id: str, program_id: str) -> bool:
        """Delete a program. Returns whether it existed."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "DELETE FROM programs WHERE user_id = ? AND id = ?",
                (user_id, program_id),
            )
            await db.commit()
            return cursor.rowcount > 0

    async def set_active(self, user_id: str, program_id: str | None) -> None:
        """Flag exactly one program (or none) as active."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "UPDATE programs SET is_active = 0 WHERE user_id = ?", (user_id,)
            )
            if program_id:
                await db.execute(
                    "UPDATE programs SET is_active = 1 WHERE user_id = ? AND id = ?",
                    (user_id, program_id),
                )
            await db.commit()


class WorkoutRepository:
    """Repository for workout log documents."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_server_db_path()

    async def list_for_user(self, user_id: str, limit: int = 500) -> list[dict]:
        """A user's most recent workouts, newest first."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                SELECT data FROM workouts
                WHERE user_id = ?
                ORDER BY date DESC
                LIMIT ?
                """,
                (user_id, limit),
            )
            rows = await cursor.fetchall()
        return [json.loads(row[0]) for row in rows]

    async def upsert(self, user_id: str, workout: dict) -> None:
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO workouts (id, user_id, data, date)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (user_id, id) DO UPDATE SET
                    data = excluded.data,
                    date = excluded.date
                """,
                (workout["id"], user_id, json.dumps(workout), _recency(workout.get("date"))),
            )
            await db.commit()

    async def delete(self, user_id: str, workout_id: str) -> bool:
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "DELETE FROM workouts WHERE user_id = ? AND id = ?",
                (user_id, workout_id),
            )
            await db.commit()
            return cursor.rowcount > 0


class ChatRepository:
    """Repository for coaching chat messages."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_server_db_path()

    async def list_for_user(self, user_id: str, limit: int = 100) -> list[dict]:
        """The user's latest ``limit`` messages, oldest first."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                SELECT id, role, content, created_at FROM (
                    SELECT * FROM chat_messages
                    WHERE user_id = ?
                    ORDER BY created_at DESC
                    LIMIT ?
                ) ORDER BY created_at ASC
                """,
                (user_id, limit),
            )
            rows = await cursor.fetchall()
        return [
            {"id": row[0], "role": row[1], "content": row[2], "createdAt": row[3]}
            for row in rows
        ]

    async def create(
        self,
        user_id: str,
        role: str,
        content: str,
        message_id: str | None = None,
        created_at: datetime | None = None,
    ) -> str:
        """Store a message and return its id."""
        message_id = message_id or new_id()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT OR REPLACE INTO chat_messages (id, user_id, role, content, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    message_id,
                    user_id,
                    role,
                    content,
                    format_timestamp(created_at or utcnow()),
                ),
            )
            await db.commit()
        return message_id

    async def clear(self, user_id: str) -> int:
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "DELETE FROM chat_messages WHERE user_id = ?", (user_id,)
            )
            await db.commit()
            return cursor.rowcount
