"""
CLI commands for code scaffolding.

Thin wrappers over ``wpsmith.core.services.forge``.
"""

from __future__ import annotations

import json

import click

from wpsmith.ui.cli.formatting import fail, step


def _wp():
    from wpsmith.core.config.loader import ProjectNotFound
    from wpsmith.core.context import require_project_root
    from wpsmith.core.services.wpcli import WpCli, WpCliNotInstalled, ensure_wp_cli

    try:
        root = require_project_root()
        ensure_wp_cli()
    except (ProjectNotFound, WpCliNotInstalled) as e:
        fail(e)
    return WpCli(root)


def _run(label: str, action, as_json: bool = False) -> None:
    """Run a forge action and report where the result landed."""
    from wpsmith.core.services.wpcli import WpCliError, WpCliNotInstalled

    try:
        result = action()
    except (WpCliError, WpCliNotInstalled) as e:
        fail(e)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    click.secho(f"✅ {label} forged: {result.slug}", fg="green", bold=True)
    click.echo(f"   Location: {result.location}")
    if result.plugin_created:
        click.echo(f"   Plugin: {result.plugin} (created and activated)")
    elif result.plugin:
        click.echo(f"   Plugin: {result.plugin}")
    for note in result.notes:
        click.secho(f"   {note}", dim=True)


_json_option = click.option(
    "--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.",
)


@click.group()
def forge() -> None:
    """Forge — scaffold plugins, themes, post types, taxonomies and blocks."""


@forge.command()
@click.argument("slug")
@click.option("--dir", "directory", default=None, help="Custom directory for the plugin.")
@click.option("--plugin-name", "--plugin_name", "plugin_name", default=None, help="Plugin name.")
@click.option("--plugin-description", "--plugin_description", "plugin_description", default=None)
@click.option("--plugin-author", "--plugin_author", "plugin_author", default=None)
@click.option("--plugin-author-uri", "--plugin_author_uri", "plugin_author_uri", default=None)
@click.option("--plugin-uri", "--plugin_uri", "plugin_uri", default=None)
@click.option("--skip-tests", is_flag=True, help="Skip generating test files.")
@click.option("--ci", is_flag=True, help="Include CI configuration.")
@_json_option
def plugin(
    slug: str,
    directory: str | None,
    plugin_name: str | None,
    plugin_description: str | None,
    plugin_author: str | None,
    plugin_author_uri: str | None,
    plugin_uri: str | None,
    skip_tests: bool,
    ci: bool,
    as_json: bool,
) -> None:
    """Scaffold a new plugin."""
    from wpsmith.core.services.forge import forge_plugin

    wp = _wp()
    _run("Plugin", lambda: forge_plugin(
        wp, slug,
        dir=directory,
        plugin_name=plugin_name,
        plugin_description=plugin_description,
        plugin_author=plugin_author,
        plugin_author_uri=plugin_author_uri,
        plugin_uri=plugin_uri,
        skip_tests=skip_tests,
        ci=ci,
    ), as_json)


@forge.command()
@click.argument("slug")
@click.option("--theme-name", "--theme_name", "theme_name", default=None, help="Theme name.")
@click.option("--author", default=None, help="Theme author.")
@click.option("--author-uri", "--author_uri", "author_uri", default=None, help="Theme author URI.")
@click.option("--sassify", is_flag=True, help="Include Sass boilerplate.")
@_json_option
def theme(
    slug: str,
    theme_name: str | None,
    author: str | None,
    author_uri: str | None,
    sassify: bool,
    as_json: bool,
) -> None:
    """Scaffold a starter theme (Underscores)."""
    from wpsmith.core.services.forge import forge_theme

    wp = _wp()
    _run("Theme", lambda: forge_theme(
        wp, slug, theme_name=theme_name, author=author, author_uri=author_uri, sassify=sassify,
    ), as_json)


@forge.command("child-theme")
@click.argument("slug")
@click.option(
    "--parent-theme", "--parent_theme", "parent_theme",
    default="twentytwentyfour", show_default=True, help="Parent theme slug.",
)
@click.option("--theme-name", "--theme_name", "theme_name", default=None, help="Child theme name.")
@click.option("--author", default=None, help="Theme author.")
@_json_option
def child_theme(
    slug: str, parent_theme: str, theme_name: str | None, author: str | None, as_json: bool,
) -> None:
    """Scaffold a child theme."""
    from wpsmith.core.services.forge import forge_child_theme

    wp = _wp()
    _run("Child theme", lambda: forge_child_theme(
        wp, slug, parent_theme=parent_theme, theme_name=theme_name, author=author,
    ), as_json)


@forge.command("post-type")
@click.argument("slug")
@click.option("--label", default=None, help="Post type label.")
@click.option("--textdomain", default=None, help="Text domain.")
@click.option("--plugin", "host", default=None, help="Add to an existing plugin.")
@_json_option
def post_type(
    slug: str, label: str | None, textdomain: str | None, host: str | None, as_json: bool,
) -> None:
    """Scaffold a custom post type (in a new plugin unless --plugin is given)."""
    from wpsmith.core.services.forge import forge_post_type

    wp = _wp()
    _run("Post type", lambda: forge_post_type(
        wp, slug, plugin=host, label=label, textdomain=textdomain,
        progress=(lambda _m: None) if as_json else step,
    ), as_json)


@forge.command()
@click.argument("slug")
@click.option("--post-types", "--post_types", "post_types", default=None, help="Comma-separated post types.")
@click.option("--label", default=None, help="Taxonomy label.")
@click.option("--textdomain", default=None, help="Text domain.")
@click.option("--plugin", "host", default=None, help="Add to an existing plugin.")
@_json_option
def taxonomy(
    slug: str,
    post_types: str | None,
    label: str | None,
    textdomain: str | None,
    host: str | None,
    as_json: bool,
) -> None:
    """Scaffold a custom taxonomy (in a new plugin unless --plugin is given)."""
    from wpsmith.core.services.forge import forge_taxonomy

    wp = _wp()
    _run("Taxonomy", lambda: forge_taxonomy(
        wp, slug, plugin=host, post_types=post_types, label=label, textdomain=textdomain,
        progress=(lambda _m: None) if as_json else step,
    ), as_json)


@forge.command()
@click.argument("slug")
@click.option("--title", default=None, help="Block title.")
@click.option("--namespace", default="wpsmith", show_default=True, help="Block namespace.")
@click.option("--category", default="widgets", show_default=True, help="Block category.")
@click.option("--plugin", "host", default=None, help="Add to an existing plugin.")
@_json_option
def block(
    slug: str,
    title: str | None,
    namespace: str,
    category: str,
    host: str | None,
    as_json: bool,
) -> None:
    """Scaffold a Gutenberg block (in a new plugin unless --plugin is given)."""
    from wpsmith.core.services.forge import forge_block

    wp = _wp()
    _run("Block", lambda: forge_block(
        wp, slug, plugin=host, title=title, namespace=namespace, category=category,
        progress=(lambda _m: None) if as_json else step,
    ), as_json)
