"""Data models for Gatekeeper permission targets and records."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

USER_SIGIL = "@"
CHANNEL_SIGIL = "#"
GROUP_PREFIX = "group."
GROUP_SIGIL = "$"


class InvalidTargetError(ValueError):
    """Raised when a target key cannot be parsed."""


class UnknownPermissionError(KeyError):
    """Raised when assigning permission names the registry does not know."""

    def __init__(self, names: list[str]) -> None:
        super().__init__(names)
        self.names = names

    def __str__(self) -> str:
        return f"Unknown permission(s): {', '.join(self.names)}"


class UnknownGroupError(LookupError):
    """Raised when a permission group does not exist."""


class TargetKind(Enum):
    """What a target key points at."""

    USER = "user"
    CHANNEL = "channel"
    GROUP = "group"


@dataclass(frozen=True)
class Target:
    """A parsed target key.

    For users and channels ``platform`` and ``ident`` hold the two halves of
    ``platform:id``. For groups ``ident`` is the full ``group.<name>`` key and
    ``platform`` is empty.
    """

    kind: TargetKind
    key: str
    platform: str = ""
    ident: str = ""


def decode_permissions(raw: str | None) -> list[str]:
    """Decode a JSON-encoded permission column."""
    if not raw:
        return []
    return list(json.loads(raw))


def encode_permissions(permissions: list[str] | set[str]) -> str:
    """Encode permissions for storage, deduplicated and sorted."""
    return json.dumps(sorted(set(permissions)))


@dataclass
class UserRecord:
    """Host-owned user row; Gatekeeper only patches ``permissions``."""

    id: int
    platform: str
    pid: str
    permissions: list[str] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Any) -> UserRecord:
        return cls(
            id=row[0],
            platform=row[1],
            pid=row[2],
            permissions=decode_permissions(row[3]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "platform": self.platform,
            "pid": self.pid,
            "permissions": self.permissions,
        }


@dataclass
class ChannelRecord:
    """Host-owned channel row, keyed by ``(platform, id)``."""

    platform: str
    id: str
    permissions: list[str] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Any) -> ChannelRecord:
        return cls(platform=row[0], id=row[1], permissions=decode_permissions(row[2]))

    def to_dict(self) -> dict[str, Any]:
        return {"platform": self.platform, "id": self.id, "permissions": self.permissions}


@dataclass
class PermissionGroup:
    """Add-on-owned bundle of permission names, stored as ``group.<name>``."""

    id: int
    name: str
    permissions: list[str] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Any) -> PermissionGroup:
        return cls(id=row[0], name=row[1], permissions=decode_permissions(row[2]))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "permissions": self.permissions}
