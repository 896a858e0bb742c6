"""
SQLite user provider implementation.

Users are plain rows (dicts); the guard only sees them through the
``UserProvider`` interface.
"""

import json
import re
import aiosqlite
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
from gatehouse.adapters.providers import UserProvider, UserId
from gatehouse.adapters.impl.memory_provider import check_password, hash_password

_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


class SQLiteUserProvider(UserProvider):
    """SQLite-based user provider."""

    def __init__(
        self,
        db_path: str = "/var/lib/gatehouse/users.db",
        users_table: str = "users",
        uids: Sequence[str] = ("email", "username"),
        identifier_key: str = "id"
    ):
        """
        Initialize the SQLite user provider.

        Args:
            db_path: Path to SQLite database file
            users_table: Table holding the users
            uids: Columns checked, in order, by find_by_uid
            identifier_key: Primary key column
        """
        self.db_path = db_path
        self.users_table = _check_identifier(users_table)
        self.uids = [_check_identifier(uid) for uid in uids]
        self.identifier_key = _check_identifier(identifier_key)
        self._initialized = False

    async def _init_db(self) -> None:
        """Initialize database schema."""
        if self._initialized:
            return

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(f"""
                CREATE TABLE IF NOT EXISTS {self.users_table} (
                    {self.identifier_key} INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT NOT NULL UNIQUE,
                    email TEXT UNIQUE,
                    password_hash TEXT NOT NULL,
                    remember_token TEXT,
                    meta TEXT NOT NULL DEFAULT '{{}}',
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
            """)
            await db.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_{self.users_table}_remember_token
                ON {self.users_table}(remember_token)
            """)
            await db.commit()

        self._initialized = True

    def _row_to_user(self, row: aiosqlite.Row) -> Dict[str, Any]:
        user = dict(row)
        if isinstance(user.get("meta"), str):
            user["meta"] = json.loads(user["meta"] or "{}")
        return user

    async def _fetch_one(self, where: str, value: Any) -> Optional[Dict[str, Any]]:
        await self._init_db()

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                f"SELECT * FROM {self.users_table} WHERE {where} = ? LIMIT 1",
                (value,)
            ) as cursor:
                row = await cursor.fetchone()

        return self._row_to_user(row) if row else None

    async def find_by_uid(self, uid: str) -> Optional[Dict[str, Any]]:
        for column in self.uids:
            user = await self._fetch_one(column, uid)
            if user is not None:
                return user
        return None

    async def find_by_id(self, user_id: UserId) -> Optional[Dict[str, Any]]:
        return await self._fetch_one(self.identifier_key, user_id)

    async def find_by_remember_token(self, token: str) -> Optional[Dict[str, Any]]:
        if not token:
            return None
        return await self._fetch_one("remember_token", token)

    async def verify_password(self, user: Dict[str, Any], password: str) -> bool:
        password_hash = user.get("password_hash")
        if not password_hash:
            return False
        return check_password(password, password_hash)

    async def save_remember_token(self, user: Dict[str, Any], token: str) -> None:
        await self._init_db()
        now = datetime.utcnow().isoformat()

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                f"UPDATE {self.users_table} SET remember_token = ?, updated_at = ? "
                f"WHERE {self.identifier_key} = ?",
                (token, now, self.get_id(user))
            )
            await db.commit()

        user["remember_token"] = token
        user["updated_at"] = now

    # User management

    async def create_user(
        self,
        username: str,
        password: str,
        email: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Create a new user.

        Raises:
            ValueError: If the username or email is already taken
        """
        await self._init_db()
        now = datetime.utcnow().isoformat()

        try:
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute(
                    f"INSERT INTO {self.users_table} "
                    "(username, email, password_hash, meta, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (username, email, hash_password(password), json.dumps(meta or {}), now, now)
                )
                user_id = cursor.lastrowid
                await db.commit()
        except aiosqlite.IntegrityError:
            raise ValueError(f"User '{username}' already exists")

        return await self.find_by_id(user_id)

    async def delete_user(self, user_id: UserId) -> bool:
        """Delete a user, returning False if it did not exist."""
        await self._init_db()

        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                f"DELETE FROM {self.users_table} WHERE {self.identifier_key} = ?",
                (user_id,)
            )
            await db.commit()
            return cursor.rowcount > 0

    async def list_users(self) -> List[Dict[str, Any]]:
        await self._init_db()

        users = []
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                f"SELECT * FROM {self.users_table} ORDER BY {self.identifier_key}"
            ) as cursor:
                async for row in cursor:
                    users.append(self._row_to_user(row))

        return users
