"""Tests for gatekeeper.models — records and errors."""

from __future__ import annotations

from gatekeeper.models import (
    ChannelRecord,
    PermissionGroup,
    UnknownPermissionError,
    UserRecord,
    decode_permissions,
    encode_permissions,
)


class TestPermissionEncoding:
    def test_encode_dedupes_and_sorts(self) -> None:
        assert encode_permissions(["b", "a", "b"]) == '["a", "b"]'

    def test_decode_empty(self) -> None:
        assert decode_permissions(None) == []
        assert decode_permissions("") == []
        assert decode_permissions("[]") == []


class TestRecords:
    def test_user_from_row(self) -> None:
        user = UserRecord.from_row((3, "discord", "42", '["command.echo"]'))
        assert user.to_dict() == {
            "id": 3,
            "platform": "discord",
            "pid": "42",
            "permissions": ["command.echo"],
        }

    def test_channel_from_row(self) -> None:
        channel = ChannelRecord.from_row(("discord", "900", "[]"))
        assert channel.to_dict() == {"platform": "discord", "id": "900", "permissions": []}

    def test_group_from_row(self) -> None:
        group = PermissionGroup.from_row((1, "group.mods", '["a"]'))
        assert group.name == "group.mods"
        assert group.permissions == ["a"]


class TestErrors:
    def test_unknown_permission_message(self) -> None:
        exc = UnknownPermissionError(["x", "y"])
        assert exc.names == ["x", "y"]
        assert str(exc) == "Unknown permission(s): x, y"
        assert isinstance(exc, KeyError)
