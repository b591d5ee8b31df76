"""Async SQLite storage layer for Gatekeeper."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import aiosqlite

from gatekeeper.models import ChannelRecord, PermissionGroup, UserRecord, encode_permissions

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger("gatekeeper.storage.db")

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    platform TEXT NOT NULL,
    pid TEXT NOT NULL,
    permissions TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (platform, pid)
);

CREATE TABLE IF NOT EXISTS channels (
    platform TEXT NOT NULL,
    id TEXT NOT NULL,
    permissions TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (platform, id)
);

CREATE TABLE IF NOT EXISTS permission_groups (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL,
    permissions TEXT NOT NULL DEFAULT '[]'
);
"""


class Database:
    """Async SQLite database wrapper for user, channel and group records."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Create parent directories, open connection, run schema."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self._path)
        await self._conn.executescript(SCHEMA_SQL)
        await self._conn.commit()
        logger.info("Database initialized at %s", self._path)

    async def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    @property
    def connection(self) -> aiosqlite.Connection:
        """Return the active connection. Raises if not initialized."""
        if self._conn is None:
            raise RuntimeError("Database not initialized — call init() first")
        return self._conn

    # ── Users ────────────────────────────────────────────────────────────

    async def get_user(self, platform: str, pid: str) -> UserRecord | None:
        """Fetch a user by platform identity, or None if not found."""
        async with self.connection.execute(
            "SELECT id, platform, pid, permissions FROM users WHERE platform = ? AND pid = ?",
            (platform, pid),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return UserRecord.from_row(row)

    async def create_user(self, platform: str, pid: str) -> UserRecord:
        """Insert a user row with no permissions, or return the existing one."""
        await self.connection.execute(
            "INSERT INTO users (platform, pid) VALUES (?, ?) "
            "ON CONFLICT (platform, pid) DO NOTHING",
            (platform, pid),
        )
        await self.connection.commit()
        user = await self.get_user(platform, pid)
        if user is None:
            raise RuntimeError(f"User {platform}:{pid} missing after insert")
        logger.info("Created user %s:%s (id=%s)", platform, pid, user.id)
        return user

    async def set_user_permissions(self, user_id: int, permissions: list[str]) -> None:
        """Replace the permission list of a user."""
        await self.connection.execute(
            "UPDATE users SET permissions = ? WHERE id = ?",
            (encode_permissions(permissions), user_id),
        )
        await self.connection.commit()

    async def list_users(self) -> list[UserRecord]:
        """List all users that have a row."""
        async with self.connection.execute(
            "SELECT id, platform, pid, permissions FROM users ORDER BY id"
        ) as cursor:
            rows = await cursor.fetchall()
        return [UserRecord.from_row(row) for row in rows]

    # ── Channels ─────────────────────────────────────────────────────────

    async def get_channel(self, platform: str, channel_id: str) -> ChannelRecord | None:
        """Fetch a channel by platform identity, or None if not found."""
        async with self.connection.execute(
            "SELECT platform, id, permissions FROM channels WHERE platform = ? AND id = ?",
            (platform, channel_id),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return ChannelRecord.from_row(row)

    async def create_channel(self, platform: str, channel_id: str) -> ChannelRecord:
        """Insert a channel row with no permissions, or return the existing one."""
        await self.connection.execute(
            "INSERT INTO channels (platform, id) VALUES (?, ?) "
            "ON CONFLICT (platform, id) DO NOTHING",
            (platform, channel_id),
        )
        await self.connection.commit()
        channel = await self.get_channel(platform, channel_id)
        if channel is None:
            raise RuntimeError(f"Channel {platform}:{channel_id} missing after insert")
        logger.info("Created channel %s:%s", platform, channel_id)
        return channel

    async def set_channel_permissions(
        self, platform: str, channel_id: str, permissions: list[str]
    ) -> None:
        """Replace the permission list of a channel."""
        await self.connection.execute(
            "UPDATE channels SET permissions = ? WHERE platform = ? AND id = ?",
            (encode_permissions(permissions), platform, channel_id),
        )
        await self.connection.commit()

    async def list_channels(self) -> list[ChannelRecord]:
        """List all channels that have a row."""
        async with self.connection.execute(
            "SELECT platform, id, permissions FROM channels ORDER BY platform, id"
        ) as cursor:
            rows = await cursor.fetchall()
        return [ChannelRecord.from_row(row) for row in rows]

    # ── Permission groups ────────────────────────────────────────────────

    async def get_group(self, name: str) -> PermissionGroup | None:
        """Fetch a permission group by its full ``group.<name>`` key."""
        async with self.connection.execute(
            "SELECT id, name, permissions FROM permission_groups WHERE name = ?",
            (name,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return PermissionGroup.from_row(row)

    async def create_group(self, name: str) -> PermissionGroup:
        """Insert an empty permission group, or return the existing one."""
        await self.connection.execute(
            "INSERT INTO permission_groups (name) VALUES (?) ON CONFLICT (name) DO NOTHING",
            (name,),
        )
        await self.connection.commit()
        group = await self.get_group(name)
        if group is None:
            raise RuntimeError(f"Group {name} missing after insert")
        logger.info("Created permission group %s (id=%s)", name, group.id)
        return group

    async def set_group_permissions(self, name: str, permissions: list[str]) -> None:
        """Replace the permission list of a group."""
        await self.connection.execute(
            "UPDATE permission_groups SET permissions = ? WHERE name = ?",
            (encode_permissions(permissions), name),
        )
        await self.connection.commit()

    async def list_groups(self) -> list[PermissionGroup]:
        """List all permission groups ordered by id."""
        async with self.connection.execute(
            "SELECT id, name, permissions FROM permission_groups ORDER BY id"
        ) as cursor:
            rows = await cursor.fetchall()
        return [PermissionGroup.from_row(row) for row in rows]

    async def remove_group(self, name: str) -> bool:
        """Delete a permission group. Returns False if no row matched."""
        cursor = await self.connection.execute(
            "DELETE FROM permission_groups WHERE name = ?", (name,)
        )
        await self.connection.commit()
        removed = cursor.rowcount > 0
        await cursor.close()
        if removed:
            logger.info("Removed permission group %s", name)
        return removed
