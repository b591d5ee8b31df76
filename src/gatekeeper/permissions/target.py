"""Target keys — parse command flags into ``@user``, ``#channel`` or ``group.name``."""

from __future__ import annotations

from gatekeeper.models import (
    CHANNEL_SIGIL,
    GROUP_PREFIX,
    GROUP_SIGIL,
    USER_SIGIL,
    InvalidTargetError,
    Target,
    TargetKind,
)

REVOKE_PREFIX = "~"


def parse_platform(value: str) -> tuple[str, str]:
    """Split ``platform:id`` on the first colon.

    Raises :exc:`InvalidTargetError` if either half is missing.
    """
    platform, sep, ident = value.partition(":")
    if not sep or not platform or not ident:
        raise InvalidTargetError(f"Expected 'platform:id', got {value!r}")
    return platform, ident


def group_key(name: str) -> str:
    """Normalize a group name to its ``group.<name>`` key."""
    if name.startswith(GROUP_PREFIX):
        name = name[len(GROUP_PREFIX):]
    elif name.startswith(GROUP_SIGIL):
        name = name[len(GROUP_SIGIL):]
    name = name.strip()
    if not name:
        raise InvalidTargetError("Group name must not be empty")
    return f"{GROUP_PREFIX}{name}"


def resolve_target(
    *,
    platform: str,
    user_id: str | None = None,
    channel_id: str | None = None,
    user: str | None = None,
    current_user: bool = False,
    channel: str | None = None,
    current_channel: bool = False,
    group: str | None = None,
) -> str | None:
    """Pick one target key from the flags of a single invocation.

    *user_id* and *channel_id* belong to the invoking session and back the
    ``current_*`` flags. Explicit *user*/*channel* ids are qualified with
    *platform* unless they already carry one. When several flags are set the
    first in the order user, current user, channel, current channel, group
    wins. Returns None when nothing selects a target.
    """
    if user:
        return f"{USER_SIGIL}{_qualify(platform, user)}"
    if current_user and user_id:
        return f"{USER_SIGIL}{_qualify(platform, user_id)}"
    if channel:
        return f"{CHANNEL_SIGIL}{_qualify(platform, channel)}"
    if current_channel and channel_id:
        return f"{CHANNEL_SIGIL}{_qualify(platform, channel_id)}"
    if group:
        return group_key(group)
    return None


def _qualify(platform: str, ident: str) -> str:
    return ident if ":" in ident else f"{platform}:{ident}"


def parse_target(key: str) -> Target:
    """Parse a target key into a :class:`Target`."""
    if key.startswith(USER_SIGIL):
        platform, ident = parse_platform(key[len(USER_SIGIL):])
        return Target(TargetKind.USER, key, platform, ident)
    if key.startswith(CHANNEL_SIGIL):
        platform, ident = parse_platform(key[len(CHANNEL_SIGIL):])
        return Target(TargetKind.CHANNEL, key, platform, ident)
    if key.startswith((GROUP_PREFIX, GROUP_SIGIL)):
        name = group_key(key)
        return Target(TargetKind.GROUP, name, ident=name)
    raise InvalidTargetError(f"Unrecognized target key: {key!r}")


def split_permissions(perms: list[str]) -> tuple[list[str], list[str]]:
    """Split raw names into (to set, to unset); ``~name`` means unset."""
    to_set: list[str] = []
    to_unset: list[str] = []
    for perm in perms:
        if perm.startswith(REVOKE_PREFIX):
            name = perm[len(REVOKE_PREFIX):]
            if name:
                to_unset.append(name)
        elif perm:
            to_set.append(perm)
    return to_set, to_unset
