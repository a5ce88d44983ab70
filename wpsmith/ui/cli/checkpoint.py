"""
CLI commands for database checkpoints.

Thin wrappers over ``wpsmith.core.persistence.checkpoints``.
"""

from __future__ import annotations

import json

import click

from wpsmith.ui.cli.formatting import fail, format_relative_time, format_size


def _store():
    """Checkpoint store of the current project (exits when there is none)."""
    from wpsmith.core.config.loader import ProjectNotFound
    from wpsmith.core.context import require_project_root
    from wpsmith.core.persistence.checkpoints import CheckpointStore

    try:
        return CheckpointStore.for_project(require_project_root())
    except ProjectNotFound as e:
        fail(e)


@click.group()
def checkpoint() -> None:
    """Checkpoints — save and restore database snapshots."""


@checkpoint.command()
@click.argument("name", required=False)
@click.option("--description", "-d", default=None, help="Description of the checkpoint.")
def create(name: str | None, description: str | None) -> None:
    """Save the current database as a checkpoint.

    NAME defaults to checkpoint-<timestamp>.
    """
    from wpsmith.core.persistence.checkpoints import CheckpointError

    store = _store()
    try:
        record = store.create(name, description)
    except CheckpointError as e:
        fail(e)

    click.secho(f"✅ Checkpoint created: {record.name}", fg="green", bold=True)
    click.echo(f"   Size: {format_size(store.size_of(record))}")
    if record.description:
        click.echo(f"   Description: {record.description}")


@checkpoint.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def list_checkpoints(as_json: bool) -> None:
    """List checkpoints, newest first."""
    store = _store()
    records = list(reversed(store.list()))

    if as_json:
        click.echo(json.dumps(
            [{**r.model_dump(mode="json"), "size": store.size_of(r)} for r in records],
            indent=2,
        ))
        return

    if not records:
        click.secho("No checkpoints found.", fg="yellow")
        click.secho("   Create one with: wpsmith checkpoint create <name>", dim=True)
        return

    click.secho(f"📦 Checkpoints ({len(records)}):", fg="cyan", bold=True)
    latest = records[0].name
    for r in records:
        marker = " ← latest" if r.name == latest else ""
        size = format_size(store.size_of(r))
        click.echo(f"   {r.name}  ({size}, {format_relative_time(r.created_at)}){marker}")
        if r.description:
            click.secho(f"      {r.description}", dim=True)


def _restore(name: str | None) -> None:
    from wpsmith.core.persistence.checkpoints import CheckpointError

    store = _store()
    try:
        record = store.restore(name)
    except CheckpointError as e:
        fail(e)

    click.secho(f"✅ Database restored from: {record.name}", fg="green", bold=True)
    click.echo(f"   Created: {format_relative_time(record.created_at)}")


@checkpoint.command()
@click.argument("name", required=False)
def restore(name: str | None) -> None:
    """Replace the database with a checkpoint (the latest by default)."""
    _restore(name)


@click.command()
@click.argument("name", required=False)
def rollback(name: str | None) -> None:
    """Restore a checkpoint (alias of: checkpoint restore)."""
    _restore(name)


@checkpoint.command()
@click.argument("name")
def delete(name: str) -> None:
    """Delete a checkpoint."""
    from wpsmith.core.persistence.checkpoints import CheckpointError

    store = _store()
    try:
        store.delete(name)
    except CheckpointError as e:
        fail(e)

    click.secho(f"🗑  Checkpoint deleted: {name}", fg="green")


@checkpoint.command()
@click.option("--force", "-f", is_flag=True, help="Skip the confirmation prompt.")
def clear(force: bool) -> None:
    """Delete every checkpoint."""
    from wpsmith.core.persistence.checkpoints import CheckpointError

    store = _store()
    count = len(store.list())
    if count == 0:
        click.secho("No checkpoints to clear.", fg="yellow")
        return

    if not force and not click.confirm(f"Delete all {count} checkpoints?", default=False):
        click.echo("Cancelled.")
        return

    try:
        removed = store.clear()
    except CheckpointError as e:
        fail(e)

    click.secho(f"🗑  Cleared {removed} checkpoint(s)", fg="green")


@checkpoint.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def repair(as_json: bool) -> None:
    """Reconcile the checkpoint index with the files on disk."""
    from wpsmith.core.persistence.checkpoints import CheckpointError

    store = _store()
    try:
        report = store.reconcile()
    except CheckpointError as e:
        fail(e)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    if not report.changed:
        click.secho("✅ Checkpoints are consistent.", fg="green")
        return

    click.secho("🔧 Checkpoints repaired:", fg="cyan", bold=True)
    for name in report.dropped:
        click.echo(f"   − dropped record without file: {name}")
    for name in report.adopted:
        click.echo(f"   + adopted untracked file: {name}")
    for name in report.cleaned:
        click.secho(f"   · removed staging file: {name}", dim=True)
