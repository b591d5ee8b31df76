"""Permission management — target keys, the permission registry and set editing."""

from gatekeeper.permissions.manager import PermissionManager
from gatekeeper.permissions.registry import PermissionRegistry
from gatekeeper.permissions.target import (
    group_key,
    parse_platform,
    parse_target,
    resolve_target,
    split_permissions,
)

__all__ = [
    "PermissionManager",
    "PermissionRegistry",
    "group_key",
    "parse_platform",
    "parse_target",
    "resolve_target",
    "split_permissions",
]
