"""
wpsmith — CLI entrypoint.

Usage:
    wpsmith --help
    wpsmith new my-site
    wpsmith checkpoint create before-migration
"""

from __future__ import annotations

from pathlib import Path

import click

from wpsmith import __version__
from wpsmith.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="wpsmith")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--project",
    "project_path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="WordPress project root (default: auto-detect from cwd).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    project_path: Path | None,
) -> None:
    """wpsmith — local WordPress development on SQLite and Playground."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        quiet_third_party=not debug,
    )

    # Register the project root; commands that need one fail later if None
    from wpsmith.core.config.loader import (
        ProjectNotFound,
        find_project_root,
        resolve_project_root,
    )
    from wpsmith.core.context import set_project_root

    if project_path is not None:
        try:
            root = resolve_project_root(project_path)
        except ProjectNotFound as e:
            from wpsmith.ui.cli.formatting import fail

            fail(e)
    else:
        root = find_project_root()
    set_project_root(root)
    ctx.obj["project_root"] = root


# ── Sub-command groups ──────────────────────────────────────────

from wpsmith.ui.cli.blueprint import blueprint  # noqa: E402
from wpsmith.ui.cli.checkpoint import checkpoint, rollback  # noqa: E402
from wpsmith.ui.cli.db import db  # noqa: E402
from wpsmith.ui.cli.forge import forge  # noqa: E402
from wpsmith.ui.cli.project import console, new, serve, wp_cmd  # noqa: E402

cli.add_command(new)
cli.add_command(serve)
cli.add_command(console)
cli.add_command(console, name="shell")
cli.add_command(wp_cmd)
cli.add_command(db)
cli.add_command(checkpoint)
cli.add_command(rollback)
cli.add_command(forge)
cli.add_command(blueprint)


if __name__ == "__main__":
    cli()
