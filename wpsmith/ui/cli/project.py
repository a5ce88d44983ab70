"""
CLI commands for working with a project — new, serve, console, wp.

Thin wrappers over ``wpsmith.core.services.scaffold``,
``wpsmith.core.services.playground`` and ``wpsmith.core.services.wpcli``.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from wpsmith.ui.cli.formatting import fail, step

WP_VERSION_CHOICES = ["latest", "6.7", "6.6", "6.5", "6.4"]
PHP_VERSION_CHOICES = ["8.3", "8.2", "8.1", "8.0"]


def _project_root() -> Path:
    from wpsmith.core.config.loader import ProjectNotFound
    from wpsmith.core.context import require_project_root

    try:
        return require_project_root()
    except ProjectNotFound as e:
        fail(e)


def _require_wp_cli() -> None:
    from wpsmith.core.services.wpcli import WpCliNotInstalled, ensure_wp_cli

    try:
        ensure_wp_cli()
    except WpCliNotInstalled as e:
        fail(e)


# ── new ─────────────────────────────────────────────────────────


@click.command("new")
@click.argument("name", required=False)
@click.option("--wp", "wp_version", default="latest", show_default=True, help="WordPress version.")
@click.option("--php", "php_version", default="8.3", show_default=True, help="PHP version for Playground.")
@click.option("--port", "-p", type=int, default=9400, show_default=True, help="Default port for serve.")
@click.option("--no-git", is_flag=True, help="Skip git initialization.")
@click.option("--with-woocommerce", is_flag=True, help="Include WooCommerce.")
@click.option("--with-gutenberg", is_flag=True, help="Include the Gutenberg plugin.")
@click.option("--with-query-monitor", is_flag=True, help="Include Query Monitor.")
@click.option("--plugin", "extra_plugins", multiple=True, help="Extra wordpress.org plugin slug (repeatable).")
def new(
    name: str | None,
    wp_version: str,
    php_version: str,
    port: int,
    no_git: bool,
    with_woocommerce: bool,
    with_gutenberg: bool,
    with_query_monitor: bool,
    extra_plugins: tuple[str, ...],
) -> None:
    """Create a new WordPress project backed by SQLite.

    Without NAME the project settings are asked for interactively.

    Examples:

        wpsmith new my-site

        wpsmith new shop --with-woocommerce --php 8.2
    """
    from wpsmith.core.services.scaffold import (
        NewProjectOptions,
        ScaffoldError,
        create_project,
    )
    from wpsmith.core.services.wpcli import WpCliError, WpCliNotInstalled

    plugins: list[str] = []
    if name is None:
        name = click.prompt("Project name", default="wordpress-site")
        wp_version = click.prompt(
            "WordPress version", type=click.Choice(WP_VERSION_CHOICES), default=wp_version,
        )
        php_version = click.prompt(
            "PHP version", type=click.Choice(PHP_VERSION_CHOICES), default=php_version,
        )

    if with_woocommerce:
        plugins.append("woocommerce")
    if with_gutenberg:
        plugins.append("gutenberg")
    if with_query_monitor:
        plugins.append("query-monitor")
    plugins.extend(extra_plugins)

    options = NewProjectOptions(
        name=name,
        parent_dir=Path.cwd(),
        wp=wp_version,
        php=php_version,
        port=port,
        git=not no_git,
        plugins=plugins,
    )

    click.secho(f"\n⚡ Crafting new WordPress project: {name}\n", fg="blue", bold=True)
    _require_wp_cli()

    try:
        result = create_project(options, progress=step)
    except (ScaffoldError, WpCliError, WpCliNotInstalled) as e:
        fail(e)

    for slug in result.skipped_plugins:
        click.secho(f"⚠️  Failed to install {slug}, skipped", fg="yellow")

    click.echo()
    click.secho("✅ Project crafted successfully!", fg="green", bold=True)
    click.echo()
    click.echo(f"   Directory: {result.project_path}")
    click.echo(f"   Admin URL: {result.admin_url}")
    click.echo("   Username:  admin")
    click.echo("   Password:  password")
    click.echo()
    click.secho("   Get started:", dim=True)
    click.secho(f"     cd {name}", fg="cyan")
    click.secho("     wpsmith serve", fg="cyan")
    click.echo()


# ── serve ───────────────────────────────────────────────────────


@click.command()
@click.option("--port", "-p", type=int, default=None, help="Port number (default: blueprint port).")
@click.option("--php", "php_version", default=None, help="PHP version.")
@click.option("--wp", "wp_version", default=None, help="WordPress version.")
@click.option("--xdebug", is_flag=True, help="Enable Xdebug.")
@click.option("--no-open", is_flag=True, help="Don't open the browser.")
def serve(
    port: int | None,
    php_version: str | None,
    wp_version: str | None,
    xdebug: bool,
    no_open: bool,
) -> None:
    """Start the WordPress Playground development server."""
    from wpsmith.core.persistence.blueprint_file import load_blueprint
    from wpsmith.core.services.playground import (
        PlaygroundError,
        ServerOptions,
        find_available_port,
        open_browser,
        serve as run_server,
    )

    root = _project_root()
    blueprint = load_blueprint(root)

    requested = port or blueprint.port
    try:
        actual = find_available_port(requested)
    except PlaygroundError as e:
        fail(e)
    if actual != requested:
        click.secho(f"Port {requested} is in use, using {actual} instead.", fg="yellow")

    options = ServerOptions(
        project_path=root,
        port=actual,
        php=php_version or blueprint.preferred_versions.php,
        wp=wp_version or blueprint.preferred_versions.wp,
        xdebug=xdebug,
    )

    def on_ready() -> None:
        click.secho("✔ WordPress Playground started\n", fg="green")
        click.secho("⚡ Server running at:", fg="blue", bold=True)
        click.echo(f"   URL:       {options.url}")
        click.echo(f"   Admin:     {options.admin_url}")
        click.echo(f"   PHP:       {options.php}")
        if options.wp and options.wp != "latest":
            click.echo(f"   WordPress: {options.wp}")
        if options.xdebug:
            click.echo("   Xdebug:    enabled")
        click.echo(f"   Project:   {root}\n")
        click.secho("   Press Ctrl+C to stop\n", dim=True)
        if not no_open:
            open_browser(options.url)

    click.secho("Starting WordPress Playground...", dim=True)
    try:
        code = run_server(options, on_ready=on_ready, out=sys.stdout)
    except PlaygroundError as e:
        fail(e)

    click.secho("\nServer stopped.", dim=True)
    sys.exit(code)


# ── console / wp ────────────────────────────────────────────────


@click.command()
def console() -> None:
    """Interactive PHP shell with WordPress loaded (wp shell)."""
    from wpsmith.core.services.wpcli import WpCli, WpCliNotInstalled

    root = _project_root()
    _require_wp_cli()

    click.secho("\n⚡ wpsmith console", fg="blue", bold=True)
    click.secho("   Interactive PHP shell with WordPress loaded\n", dim=True)
    click.secho("   Examples:", dim=True)
    click.secho("     get_bloginfo('name')", dim=True)
    click.secho("     get_posts(['numberposts' => 5])", dim=True)
    click.secho('\n   Type "exit" or press Ctrl+D to quit\n', dim=True)

    try:
        WpCli(root).run_interactive(["shell"])
    except WpCliNotInstalled as e:
        fail(e)


@click.command(
    "wp",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.argument("args", nargs=-1, required=True, type=click.UNPROCESSED)
def wp_cmd(args: tuple[str, ...]) -> None:
    """Run any WP-CLI command against the project.

    Example:

        wpsmith wp plugin list --status=active
    """
    from wpsmith.core.services.wpcli import WpCli, WpCliNotInstalled

    root = _project_root()
    _require_wp_cli()

    try:
        code = WpCli(root).run_interactive(list(args))
    except WpCliNotInstalled as e:
        fail(e)
    sys.exit(code)
