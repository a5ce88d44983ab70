"""
Terminal formatting shared by the CLI commands.
"""

from __future__ import annotations

import sys
from datetime import UTC, datetime
from typing import NoReturn

import click


def format_size(size_bytes: int | None) -> str:
    """Format bytes into a human-readable string."""
    if size_bytes is None:
        return "missing"
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"


def format_relative_time(when: datetime | None, now: datetime | None = None) -> str:
    """'just now', '5 minutes ago', '2 days ago' …"""
    if when is None:
        return "unknown"
    now = now or datetime.now(UTC)
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)

    seconds = int((now - when).total_seconds())
    if seconds < 60:
        return "just now"

    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "just now"


def fail(exc: BaseException) -> NoReturn:
    """Print ``❌ <error>`` plus its hint, then exit 1."""
    click.secho(f"❌ {exc}", fg="red")
    hint = getattr(exc, "hint", "")
    if hint:
        for line in str(hint).splitlines():
            click.secho(f"   {line}", dim=True)
    sys.exit(1)


def step(message: str) -> None:
    """Progress line for multi-step commands."""
    click.secho(f"   → {message}", dim=True)
