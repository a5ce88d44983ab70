"""
CLI commands for the project blueprint (``blueprint.json``).

Thin wrappers over ``wpsmith.core.persistence.blueprint_file``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from wpsmith.ui.cli.formatting import fail


def _project_root():
    from wpsmith.core.config.loader import ProjectNotFound
    from wpsmith.core.context import require_project_root

    try:
        return require_project_root()
    except ProjectNotFound as e:
        fail(e)


def _blueprint_file(root) -> Path:
    from wpsmith.core.config.paths import blueprint_path

    path = blueprint_path(root)
    if not path.is_file():
        click.secho(f"❌ No blueprint at {path}", fg="red")
        click.secho("   Create one with: wpsmith blueprint set-port 9400", dim=True)
        sys.exit(1)
    return path


def _save(root, partial: dict):
    from pydantic import ValidationError

    from wpsmith.core.persistence.blueprint_file import BlueprintError, save_blueprint

    try:
        return save_blueprint(root, partial)
    except (BlueprintError, ValidationError, OSError) as e:
        fail(e)


@click.group()
def blueprint() -> None:
    """Blueprint — view and edit the project configuration."""


@blueprint.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def show(as_json: bool) -> None:
    """Show the effective blueprint (file merged over defaults)."""
    from wpsmith.core.persistence.blueprint_file import load_blueprint, plugins_from_blueprint

    bp = load_blueprint(_project_root())

    if as_json:
        click.echo(json.dumps(bp.to_json_dict(), indent=2))
        return

    click.secho("📋 Blueprint", fg="cyan", bold=True)
    click.echo(f"   PHP:       {bp.preferred_versions.php}")
    click.echo(f"   WordPress: {bp.preferred_versions.wp}")
    click.echo(f"   Port:      {bp.port}")
    plugins = plugins_from_blueprint(bp)
    if plugins:
        click.echo(f"   Plugins:   {', '.join(plugins)}")
    click.echo(f"   Steps:     {len(bp.steps or [])}")


@blueprint.command("set-version")
@click.option("--php", "php_version", default=None, help="Preferred PHP version.")
@click.option("--wp", "wp_version", default=None, help="Preferred WordPress version.")
def set_version(php_version: str | None, wp_version: str | None) -> None:
    """Update the preferred PHP and/or WordPress version."""
    if php_version is None and wp_version is None:
        click.secho("❌ Give --php and/or --wp", fg="red")
        sys.exit(1)

    versions = {}
    if php_version is not None:
        versions["php"] = php_version
    if wp_version is not None:
        versions["wp"] = wp_version

    bp = _save(_project_root(), {"preferredVersions": versions})
    click.secho(
        f"✅ Preferred versions: PHP {bp.preferred_versions.php}, "
        f"WordPress {bp.preferred_versions.wp}",
        fg="green",
    )


@blueprint.command("set-port")
@click.argument("port", type=click.IntRange(1, 65535))
def set_port(port: int) -> None:
    """Set the default port used by serve."""
    bp = _save(_project_root(), {"wpsmith": {"port": port}})
    click.secho(f"✅ Default port: {bp.port}", fg="green")


@blueprint.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def plugins(as_json: bool) -> None:
    """List the plugins installed by the blueprint."""
    from wpsmith.core.persistence.blueprint_file import load_blueprint, plugins_from_blueprint

    slugs = plugins_from_blueprint(load_blueprint(_project_root()))

    if as_json:
        click.echo(json.dumps(slugs, indent=2))
        return

    if not slugs:
        click.secho("No plugins in blueprint.json.", fg="yellow")
        return
    for slug in slugs:
        click.echo(f"   • {slug}")


@blueprint.command()
def apply() -> None:
    """Run blueprint.json through Playground without starting a server."""
    from wpsmith.core.persistence.blueprint_file import load_blueprint
    from wpsmith.core.services.playground import PlaygroundError, run_blueprint_args, run_to_completion

    root = _project_root()
    bp = load_blueprint(root)
    args = run_blueprint_args(
        _blueprint_file(root), php=bp.preferred_versions.php, wp=bp.preferred_versions.wp,
    )
    try:
        code = run_to_completion(args, cwd=root)
    except PlaygroundError as e:
        fail(e)
    sys.exit(code)


@blueprint.command()
@click.argument("outfile", type=click.Path(dir_okay=False, path_type=Path))
def snapshot(outfile: Path) -> None:
    """Bake blueprint.json into a Playground snapshot zip."""
    from wpsmith.core.persistence.blueprint_file import load_blueprint
    from wpsmith.core.services.playground import PlaygroundError, build_snapshot_args, run_to_completion

    root = _project_root()
    bp = load_blueprint(root)
    args = build_snapshot_args(
        _blueprint_file(root), outfile.resolve(),
        php=bp.preferred_versions.php, wp=bp.preferred_versions.wp,
    )
    try:
        code = run_to_completion(args, cwd=root)
    except PlaygroundError as e:
        fail(e)
    if code == 0:
        click.secho(f"✅ Snapshot written to {outfile}", fg="green")
    sys.exit(code)
