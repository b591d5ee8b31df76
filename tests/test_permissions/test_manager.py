"""Tests for gatekeeper.permissions.manager — permission set editing."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from gatekeeper.models import UnknownGroupError, UnknownPermissionError
from gatekeeper.permissions.manager import PermissionManager
from gatekeeper.permissions.registry import PermissionRegistry
from gatekeeper.storage.db import Database


class TestListPermissions:
    async def test_empty_target(self, manager: PermissionManager) -> None:
        assert await manager.list_permissions(None) is None
        assert await manager.list_permissions("") is None

    async def test_missing_records_return_none(self, manager: PermissionManager) -> None:
        assert await manager.list_permissions("@discord:1") is None
        assert await manager.list_permissions("#discord:1") is None
        assert await manager.list_permissions("group.ghost") is None

    async def test_existing_user(self, manager: PermissionManager, db: Database) -> None:
        user = await db.create_user("discord", "1")
        await db.set_user_permissions(user.id, ["command.echo"])
        assert await manager.list_permissions("@discord:1") == ["command.echo"]


class TestModifyUserAndChannel:
    async def test_empty_target_returns_false(
        self, manager: PermissionManager, db: Database
    ) -> None:
        assert await manager.modify_permissions(None, ["command.echo"], []) is False
        assert await db.list_users() == []

    async def test_creates_user_on_first_grant(
        self, manager: PermissionManager, db: Database
    ) -> None:
        assert await manager.modify_permissions("@discord:42", ["command.echo"], []) is True
        user = await db.get_user("discord", "42")
        assert user is not None
        assert user.permissions == ["command.echo"]

    async def test_set_and_unset_merge(self, manager: PermissionManager) -> None:
        await manager.modify_permissions("@discord:42", ["command.echo", "command.ban"], [])
        await manager.modify_permissions("@discord:42", ["command.kick"], ["command.echo"])
        assert await manager.list_permissions("@discord:42") == ["command.ban", "command.kick"]

    async def test_grant_is_idempotent(self, manager: PermissionManager) -> None:
        await manager.modify_permissions("@discord:42", ["command.echo"], [])
        await manager.modify_permissions("@discord:42", ["command.echo", "command.echo"], [])
        assert await manager.list_permissions("@discord:42") == ["command.echo"]

    async def test_channel_grant(self, manager: PermissionManager, db: Database) -> None:
        await manager.modify_permissions("#discord:900", ["admin.view"], [])
        channel = await db.get_channel("discord", "900")
        assert channel is not None
        assert channel.permissions == ["admin.view"]

    async def test_unset_only_creates_empty_record(
        self, manager: PermissionManager, db: Database
    ) -> None:
        assert await manager.modify_permissions("#discord:900", [], ["stale.name"]) is True
        channel = await db.get_channel("discord", "900")
        assert channel is not None
        assert channel.permissions == []


class TestUnknownPermissions:
    async def test_unknown_rejected_before_mutation(
        self, manager: PermissionManager, db: Database
    ) -> None:
        with pytest.raises(UnknownPermissionError) as exc_info:
            await manager.modify_permissions("@discord:42", ["command.echo", "nope"], [])
        assert exc_info.value.names == ["nope"]
        assert await db.get_user("discord", "42") is None

    async def test_unset_names_not_validated(self, manager: PermissionManager) -> None:
        await manager.modify_permissions("@discord:42", ["command.echo"], ["retired.name"])
        assert await manager.list_permissions("@discord:42") == ["command.echo"]

    async def test_published_group_is_assignable(self, manager: PermissionManager) -> None:
        await manager.modify_permissions("group.mods", ["command.kick"], [])
        assert await manager.modify_permissions("@discord:42", ["group.mods"], []) is True


class TestGroups:
    async def test_group_created_and_published(
        self, manager: PermissionManager, registry: PermissionRegistry, db: Database
    ) -> None:
        await manager.modify_permissions("group.mods", ["command.kick", "command.ban"], [])
        group = await db.get_group("group.mods")
        assert group is not None
        assert group.permissions == ["command.ban", "command.kick"]
        assert registry.get("group.mods") == ("command.ban", "command.kick")
        assert manager.published_groups() == ["group.mods"]

    async def test_group_republished_on_change(
        self, manager: PermissionManager, registry: PermissionRegistry
    ) -> None:
        await manager.modify_permissions("group.mods", ["command.kick"], [])
        await manager.modify_permissions("group.mods", ["command.ban"], ["command.kick"])
        assert registry.get("group.mods") == ("command.ban",)

    async def test_dollar_sigil_targets_same_group(
        self, manager: PermissionManager, db: Database
    ) -> None:
        await manager.modify_permissions("$mods", ["command.kick"], [])
        assert await db.get_group("group.mods") is not None
        assert await manager.list_permissions("group.mods") == ["command.kick"]

    async def test_delete_group(
        self, manager: PermissionManager, registry: PermissionRegistry, db: Database
    ) -> None:
        await manager.modify_permissions("group.mods", ["command.kick"], [])
        await manager.delete_group("mods")
        assert await db.get_group("group.mods") is None
        assert not registry.is_defined("group.mods")
        assert manager.published_groups() == []

    async def test_delete_unknown_group(self, manager: PermissionManager) -> None:
        with pytest.raises(UnknownGroupError):
            await manager.delete_group("ghost")

    async def test_restore_groups_publishes_stored_groups(
        self, db: Database, registry: PermissionRegistry
    ) -> None:
        await db.create_group("group.mods")
        await db.set_group_permissions("group.mods", ["command.kick"])
        fresh = PermissionManager(db, registry)
        assert await fresh.restore_groups() == 1
        assert registry.get("group.mods") == ("command.kick",)


class TestConcurrentEdits:
    async def test_simultaneous_grants_to_new_user(
        self, manager: PermissionManager, db: Database
    ) -> None:
        results = await asyncio.gather(
            manager.modify_permissions("@discord:7", ["command.echo"], []),
            manager.modify_permissions("@discord:7", ["command.ban"], []),
        )
        assert results == [True, True]
        assert await manager.list_permissions("@discord:7") == ["command.ban", "command.echo"]
        assert len(await db.list_users()) == 1

    async def test_simultaneous_grants_to_existing_channel(
        self, manager: PermissionManager
    ) -> None:
        await manager.modify_permissions("#discord:5", ["command.kick"], [])
        await asyncio.gather(
            manager.modify_permissions("#discord:5", ["command.echo"], []),
            manager.modify_permissions("#discord:5", ["command.ban"], ["command.kick"]),
        )
        assert await manager.list_permissions("#discord:5") == ["command.ban", "command.echo"]

    async def test_simultaneous_group_edits_keep_both(self, manager: PermissionManager) -> None:
        await asyncio.gather(
            manager.modify_permissions("$mods", ["command.kick"], []),
            manager.modify_permissions("group.mods", ["command.ban"], []),
        )
        assert await manager.list_permissions("group.mods") == ["command.ban", "command.kick"]
        assert manager.registry.get("group.mods") == ("command.ban", "command.kick")


class TestStorageErrors:
    async def test_datastore_errors_propagate(self, registry: PermissionRegistry) -> None:
        db = AsyncMock(spec=Database)
        db.get_user.side_effect = RuntimeError("disk full")
        mgr = PermissionManager(db, registry)
        with pytest.raises(RuntimeError, match="disk full"):
            await mgr.modify_permissions("@discord:1", ["command.echo"], [])
