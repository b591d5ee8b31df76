"""Quick CLI for querying the Gatekeeper SQLite database from the host.

Usage:
    python -m gatekeeper.db_shell users
    python -m gatekeeper.db_shell channels
    python -m gatekeeper.db_shell groups --name admins
    python -m gatekeeper.db_shell status
"""

from __future__ import annotations

import argparse
import sqlite3
import sys
from pathlib import Path

from gatekeeper.models import decode_permissions
from gatekeeper.permissions.target import group_key


def _resolve_db_path() -> Path:
    """Find the Gatekeeper DB path from environment or conventions."""
    import os

    # 1. GATEKEEPER_HOME env var
    home = os.environ.get("GATEKEEPER_HOME", "").strip()
    if home:
        return Path(home).expanduser().resolve() / "db" / "gatekeeper.db"

    # 2. ./data exists in cwd (Docker host convention)
    data_dir = Path.cwd() / "data"
    if data_dir.is_dir():
        return data_dir / "db" / "gatekeeper.db"

    # 3. Default ~/.gatekeeper
    return Path.home() / ".gatekeeper" / "db" / "gatekeeper.db"


def _format_permissions(raw: str | None) -> str:
    return ", ".join(decode_permissions(raw)) or "-"


def cmd_users(conn: sqlite3.Connection, args: argparse.Namespace) -> None:
    """List users and their permissions."""
    rows = conn.execute(
        "SELECT platform, pid, permissions FROM users ORDER BY platform, pid"
    ).fetchall()
    if not rows:
        print("No users found.")
        return
    print(f"{'User':<32} Permissions")
    print("-" * 79)
    for platform, pid, permissions in rows:
        print(f"{'@' + platform + ':' + pid:<32} {_format_permissions(permissions)}")
    print(f"\n{len(rows)} user(s)")


def cmd_channels(conn: sqlite3.Connection, args: argparse.Namespace) -> None:
    """List channels and their permissions."""
    rows = conn.execute(
        "SELECT platform, id, permissions FROM channels ORDER BY platform, id"
    ).fetchall()
    if not rows:
        print("No channels found.")
        return
    print(f"{'Channel':<32} Permissions")
    print("-" * 79)
    for platform, channel_id, permissions in rows:
        print(f"{'#' + platform + ':' + channel_id:<32} {_format_permissions(permissions)}")
    print(f"\n{len(rows)} channel(s)")


def cmd_groups(conn: sqlite3.Connection, args: argparse.Namespace) -> None:
    """List permission groups, or show one group with --name."""
    if args.name:
        key = group_key(args.name)
        row = conn.execute(
            "SELECT permissions FROM permission_groups WHERE name = ?", (key,)
        ).fetchone()
        if row is None:
            print(f"Group '{key}' not found.")
            sys.exit(1)
        for perm in decode_permissions(row[0]):
            print(perm)
        return

    rows = conn.execute(
        "SELECT id, name, permissions FROM permission_groups ORDER BY id"
    ).fetchall()
    if not rows:
        print("No groups found.")
        return
    print(f"{'ID':<6} {'Name':<26} Permissions")
    print("-" * 79)
    for group_id, name, permissions in rows:
        print(f"{group_id:<6} {name:<26} {_format_permissions(permissions)}")
    print(f"\n{len(rows)} group(s)")


def cmd_status(conn: sqlite3.Connection, args: argparse.Namespace) -> None:
    """Show DB stats."""
    user_count = conn.execute("SELECT COUNT(*) FROM users").fetchone()[0]
    channel_count = conn.execute("SELECT COUNT(*) FROM channels").fetchone()[0]
    group_count = conn.execute("SELECT COUNT(*) FROM permission_groups").fetchone()[0]

    print("Gatekeeper DB Status")
    print("-" * 30)
    print(f"Users:         {user_count}")
    print(f"Channels:      {channel_count}")
    print(f"Groups:        {group_count}")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="gatekeeper.db_shell",
        description="Query the Gatekeeper SQLite database",
    )
    parser.add_argument(
        "--db",
        type=str,
        default=None,
        help="Path to gatekeeper.db (auto-detected if not set)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Subcommand")

    subparsers.add_parser("users", help="List users with permissions")
    subparsers.add_parser("channels", help="List channels with permissions")

    group_parser = subparsers.add_parser("groups", help="List permission groups")
    group_parser.add_argument("--name", type=str, default=None, help="Show a single group")

    subparsers.add_parser("status", help="Show DB stats")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the db_shell CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    db_path = Path(args.db) if args.db else _resolve_db_path()
    if not db_path.exists():
        print(f"Database not found at {db_path}")
        sys.exit(1)

    conn = sqlite3.connect(str(db_path))
    try:
        dispatch = {
            "users": cmd_users,
            "channels": cmd_channels,
            "groups": cmd_groups,
            "status": cmd_status,
        }
        dispatch[args.command](conn, args)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
