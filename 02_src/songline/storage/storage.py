"""SQLite storage implementation."""

from pathlib import Path
from typing import Any, Protocol, Sequence

import aiosqlite

from ..config import resolve_db_path
from ..errors import PersistenceFailure
from ..models import Message, User


class IStorage(Protocol):
    """Persistent storage for users and messages (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Users
    async def upsert_user(self, user: User) -> None:
        """Insert a user, or update the name of an existing one."""
        ...

    async def get_user(self, user_id: str) -> User | None:
        """Get a user by ID."""
        ...

    async def list_users(self) -> list[User]:
        """Get all users in creation order."""
        ...

    async def set_credits(self, user_id: str, credits: int, updated_at: int) -> None:
        """Overwrite a user's credit count."""
        ...

    # Messages
    async def save_message(self, message: Message) -> int:
        """Save a message and return its row ID."""
        ...

    async def get_messages(self, user_id: str | None = None) -> list[Message]:
        """Get messages in insertion order, optionally for one user."""
        ...

    async def mark_read(self, user_id: str) -> None:
        """Mark all inbound messages of a user as read."""
        ...


class Storage:
    """SQLite storage implementation.

    Every write commits before returning. Driver errors on writes surface as
    PersistenceFailure so callers never mistake them for a missing user.
    """

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    async def _write(self, sql: str, params: Sequence[Any]) -> int:
        """Execute one statement and commit. Returns lastrowid."""
        conn = self._require_conn()
        try:
            cursor = await conn.execute(sql, params)
            await conn.commit()
        except aiosqlite.Error as e:
            try:
                await conn.rollback()
            except aiosqlite.Error:
                pass  # connection is already unusable; report the original error
            raise PersistenceFailure(f"Write failed: {e}") from e
        return cursor.lastrowid

    # Users
    async def upsert_user(self, user: User) -> None:
        """Insert a user, or update the name of an existing one.

        Credits of an existing row are left untouched.
        """
        await self._write(
            """
            INSERT INTO users (id, name, credits, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                updated_at = excluded.updated_at
            """,
            (user.id, user.name, user.credits, user.created_at, user.updated_at),
        )

    async def get_user(self, user_id: str) -> User | None:
        """Get a user by ID."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, name, credits, created_at, updated_at
            FROM users
            WHERE id = ?
            """,
            (user_id,),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return User(
            id=row[0], name=row[1], credits=row[2], created_at=row[3], updated_at=row[4]
        )

    async def list_users(self) -> list[User]:
        """Get all users in creation order."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, name, credits, created_at, updated_at
            FROM users
            ORDER BY created_at ASC, rowid ASC
            """
        )
        rows = await cursor.fetchall()

        return [
            User(id=row[0], name=row[1], credits=row[2], created_at=row[3], updated_at=row[4])
            for row in rows
        ]

    async def set_credits(self, user_id: str, credits: int, updated_at: int) -> None:
        """Overwrite a user's credit count."""
        if credits < 0:
            raise ValueError("credits must be non-negative")

        await self._write(
            "UPDATE users SET credits = ?, updated_at = ? WHERE id = ?",
            (credits, updated_at, user_id),
        )

    # Messages
    async def save_message(self, message: Message) -> int:
        """Save a message and return its row ID."""
        return await self._write(
            """
            INSERT INTO messages (user_id, direction, content, timestamp, read, media_kind)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                message.user_id,
                message.direction,
                message.content,
                message.timestamp,
                int(message.read),
                message.media_kind,
            ),
        )

    async def get_messages(self, user_id: str | None = None) -> list[Message]:
        """Get messages in insertion order, optionally for one user."""
        conn = self._require_conn()

        if user_id is not None:
            cursor = await conn.execute(
                """
                SELECT id, user_id, direction, content, timestamp, read, media_kind
                FROM messages
                WHERE user_id = ?
                ORDER BY id ASC
                """,
                (user_id,),
            )
        else:
            cursor = await conn.execute(
                """
                SELECT id, user_id, direction, content, timestamp, read, media_kind
                FROM messages
                ORDER BY id ASC
                """
            )

        rows = await cursor.fetchall()

        return [
            Message(
                id=row[0],
                user_id=row[1],
                direction=row[2],
                content=row[3],
                timestamp=row[4],
                read=bool(row[5]),
                media_kind=row[6],
            )
            for row in rows
        ]

    async def mark_read(self, user_id: str) -> None:
        """Mark all inbound messages of a user as read."""
        await self._write(
            """
            UPDATE messages SET read = 1
            WHERE user_id = ? AND direction = 'inbound' AND read = 0
            """,
            (user_id,),
        )
