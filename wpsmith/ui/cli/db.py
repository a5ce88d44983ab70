"""
CLI commands for the project database.

Thin wrappers over ``wpsmith.core.services.database``.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import click

from wpsmith.ui.cli.formatting import fail, step


def _wp():
    """WP-CLI bound to the current project (exits when unavailable)."""
    from wpsmith.core.config.loader import ProjectNotFound
    from wpsmith.core.context import require_project_root
    from wpsmith.core.services.wpcli import WpCli, WpCliNotInstalled, ensure_wp_cli

    try:
        root = require_project_root()
        ensure_wp_cli()
    except (ProjectNotFound, WpCliNotInstalled) as e:
        fail(e)
    return WpCli(root)


def _print_seed_report(report) -> None:
    if report.failed:
        click.secho(
            f"⚠️  Seeded {report.succeeded}/{report.total} steps "
            f"({len(report.failed)} failed)",
            fg="yellow",
        )
        for label in report.failed:
            click.secho(f"   ✗ {label}", fg="yellow")
    else:
        click.secho(f"✅ Seeded {report.total} step(s)", fg="green")


@click.group()
def db() -> None:
    """Database — reset, seed, export and import."""


@db.command()
@click.option("--seed", "run_seed", is_flag=True, help="Run a seeder afterwards.")
@click.option("--seeder", default="default", show_default=True, help="Seeder to run with --seed.")
def fresh(run_seed: bool, seeder: str) -> None:
    """Reset the database to a fresh WordPress install."""
    from wpsmith.core.persistence.blueprint_file import load_blueprint
    from wpsmith.core.services.database import SeederError, fresh as fresh_db, seed
    from wpsmith.core.services.wpcli import WpCliError, WpCliNotInstalled

    wp = _wp()
    port = load_blueprint(wp.project_path).port

    try:
        fresh_db(wp, port=port, title=wp.project_path.name, progress=step)
    except (WpCliError, WpCliNotInstalled) as e:
        fail(e)
    click.secho("✅ Database reset", fg="green", bold=True)

    if run_seed:
        try:
            report = seed(wp, seeder, progress=step)
        except (SeederError, WpCliNotInstalled) as e:
            fail(e)
        _print_seed_report(report)


@db.command("seed")
@click.option("--seeder", default="default", show_default=True, help="Seeder name (seeders/<name>.json|yml).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def seed_cmd(seeder: str, as_json: bool) -> None:
    """Seed the database with test data."""
    from wpsmith.core.services.database import SeederError, seed
    from wpsmith.core.services.wpcli import WpCliNotInstalled

    wp = _wp()
    try:
        report = seed(wp, seeder, progress=(lambda _m: None) if as_json else step)
    except (SeederError, WpCliNotInstalled) as e:
        fail(e)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    if report.source is None:
        click.secho(f"No seeder file for {seeder!r}, used built-in defaults", dim=True)
    _print_seed_report(report)


@db.command("export")
@click.argument("file", required=False, type=click.Path(dir_okay=False, path_type=Path))
def export_cmd(file: Path | None) -> None:
    """Export the database to an SQL file."""
    from wpsmith.core.services.database import export_database
    from wpsmith.core.services.wpcli import WpCliError, WpCliNotInstalled

    wp = _wp()
    if file is None:
        file = Path(f"backup-{datetime.now():%Y-%m-%d-%H%M%S}.sql")

    try:
        export_database(wp, file.resolve())
    except (WpCliError, WpCliNotInstalled) as e:
        fail(e)
    click.secho(f"✅ Database exported to {file}", fg="green")


@db.command("import")
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
def import_cmd(file: Path) -> None:
    """Import an SQL file into the database."""
    from wpsmith.core.services.database import import_database
    from wpsmith.core.services.wpcli import WpCliError, WpCliNotInstalled

    wp = _wp()
    try:
        import_database(wp, file.resolve())
    except (FileNotFoundError, WpCliError, WpCliNotInstalled) as e:
        fail(e)
    click.secho(f"✅ Database imported from {file}", fg="green")
