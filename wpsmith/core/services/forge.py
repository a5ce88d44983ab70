"""
Forge — code scaffolding through ``wp scaffold``.

Each ``*_args`` function builds the WP-CLI argument list; the ``forge_*``
functions run it.  Post types, taxonomies and blocks need a host plugin:
unless one is named, a ``<slug>-<kind>`` plugin is scaffolded first and
activated afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Mapping

from wpsmith.core.services.wpcli import WpCli

logger = logging.getLogger(__name__)

Progress = Callable[[str], None]

DEFAULT_PARENT_THEME = "twentytwentyfour"
DEFAULT_BLOCK_NAMESPACE = "wpsmith"
DEFAULT_BLOCK_CATEGORY = "widgets"


@dataclass
class ForgeResult:
    """What a forge command produced."""

    kind: str
    slug: str
    location: str
    plugin: str | None = None
    plugin_created: bool = False
    notes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "slug": self.slug,
            "location": self.location,
            "plugin": self.plugin,
            "plugin_created": self.plugin_created,
            "notes": self.notes,
        }


def _noop(_message: str) -> None:
    pass


def _options(values: Mapping[str, str | None]) -> list[str]:
    """``--key=value`` for every non-empty value, in mapping order."""
    return [f"--{key}={value}" for key, value in values.items() if value]


def _flags(values: Mapping[str, bool]) -> list[str]:
    return [f"--{key}" for key, enabled in values.items() if enabled]


# ── Argument builders ───────────────────────────────────────────


def plugin_args(
    slug: str,
    *,
    dir: str | None = None,
    plugin_name: str | None = None,
    plugin_description: str | None = None,
    plugin_author: str | None = None,
    plugin_author_uri: str | None = None,
    plugin_uri: str | None = None,
    skip_tests: bool = False,
    ci: bool = False,
) -> list[str]:
    return [
        "scaffold", "plugin", slug,
        *_options({
            "dir": dir,
            "plugin_name": plugin_name,
            "plugin_description": plugin_description,
            "plugin_author": plugin_author,
            "plugin_author_uri": plugin_author_uri,
            "plugin_uri": plugin_uri,
        }),
        *_flags({"skip-tests": skip_tests, "ci": ci}),
    ]


def theme_args(
    slug: str,
    *,
    theme_name: str | None = None,
    author: str | None = None,
    author_uri: str | None = None,
    sassify: bool = False,
) -> list[str]:
    """``wp scaffold _s`` — an Underscores starter theme."""
    return [
        "scaffold", "_s", slug,
        *_options({"theme_name": theme_name, "author": author, "author_uri": author_uri}),
        *_flags({"sassify": sassify}),
    ]


def child_theme_args(
    slug: str,
    *,
    parent_theme: str = DEFAULT_PARENT_THEME,
    theme_name: str | None = None,
    author: str | None = None,
) -> list[str]:
    return [
        "scaffold", "child-theme", slug,
        f"--parent_theme={parent_theme}",
        *_options({"theme_name": theme_name, "author": author}),
    ]


def post_type_args(
    slug: str, plugin: str, *, label: str | None = None, textdomain: str | None = None,
) -> list[str]:
    return [
        "scaffold", "post-type", slug, f"--plugin={plugin}",
        *_options({"label": label, "textdomain": textdomain}),
    ]


def taxonomy_args(
    slug: str,
    plugin: str,
    *,
    post_types: str | None = None,
    label: str | None = None,
    textdomain: str | None = None,
) -> list[str]:
    return [
        "scaffold", "taxonomy", slug, f"--plugin={plugin}",
        *_options({"post_types": post_types, "label": label, "textdomain": textdomain}),
    ]


def block_args(
    slug: str,
    plugin: str,
    *,
    title: str | None = None,
    namespace: str | None = DEFAULT_BLOCK_NAMESPACE,
    category: str | None = DEFAULT_BLOCK_CATEGORY,
) -> list[str]:
    return [
        "scaffold", "block", slug, f"--plugin={plugin}",
        *_options({"title": title, "namespace": namespace, "category": category}),
    ]


def host_plugin_args(host: str, slug: str, kind_label: str) -> list[str]:
    """The plugin created to hold a post type / taxonomy / block."""
    return plugin_args(
        host,
        plugin_name=f"{slug} {kind_label}",
        plugin_description=f"Custom {kind_label.lower()}: {slug}",
        skip_tests=True,
    )


# ── Runners ─────────────────────────────────────────────────────


def forge_plugin(wp: WpCli, slug: str, **options) -> ForgeResult:
    wp.run(plugin_args(slug, **options))
    location = options.get("dir") or f"wp-content/plugins/{slug}/"
    return ForgeResult(kind="plugin", slug=slug, location=location)


def forge_theme(wp: WpCli, slug: str, **options) -> ForgeResult:
    wp.run(theme_args(slug, **options))
    return ForgeResult(kind="theme", slug=slug, location=f"wp-content/themes/{slug}/")


def forge_child_theme(wp: WpCli, slug: str, **options) -> ForgeResult:
    args = child_theme_args(slug, **options)
    wp.run(args)
    parent = options.get("parent_theme") or DEFAULT_PARENT_THEME
    return ForgeResult(
        kind="child-theme",
        slug=slug,
        location=f"wp-content/themes/{slug}/",
        notes=[f"Parent: {parent}"],
    )


def _forge_in_plugin(
    wp: WpCli,
    kind: str,
    kind_label: str,
    slug: str,
    plugin: str | None,
    build: Callable[[str], list[str]],
    progress: Progress,
) -> ForgeResult:
    host = plugin or f"{slug}-{kind}"
    created = plugin is None

    if created:
        progress(f"Creating plugin: {host}...")
        wp.run(host_plugin_args(host, slug, kind_label))

    progress(f"Forging {kind_label.lower()}: {slug}...")
    wp.run(build(host))

    if created:
        progress("Activating plugin...")
        wp.run(["plugin", "activate", host])

    logger.info("Forged %s %s in plugin %s", kind, slug, host)
    return ForgeResult(
        kind=kind,
        slug=slug,
        location=f"wp-content/plugins/{host}/",
        plugin=host,
        plugin_created=created,
    )


def forge_post_type(
    wp: WpCli,
    slug: str,
    *,
    plugin: str | None = None,
    label: str | None = None,
    textdomain: str | None = None,
    progress: Progress = _noop,
) -> ForgeResult:
    return _forge_in_plugin(
        wp, "post-type", "Post Type", slug, plugin,
        lambda host: post_type_args(slug, host, label=label, textdomain=textdomain),
        progress,
    )


def forge_taxonomy(
    wp: WpCli,
    slug: str,
    *,
    plugin: str | None = None,
    post_types: str | None = None,
    label: str | None = None,
    textdomain: str | None = None,
    progress: Progress = _noop,
) -> ForgeResult:
    return _forge_in_plugin(
        wp, "taxonomy", "Taxonomy", slug, plugin,
        lambda host: taxonomy_args(
            slug, host, post_types=post_types, label=label, textdomain=textdomain,
        ),
        progress,
    )


def forge_block(
    wp: WpCli,
    slug: str,
    *,
    plugin: str | None = None,
    title: str | None = None,
    namespace: str | None = DEFAULT_BLOCK_NAMESPACE,
    category: str | None = DEFAULT_BLOCK_CATEGORY,
    progress: Progress = _noop,
) -> ForgeResult:
    return _forge_in_plugin(
        wp, "block", "Block", slug, plugin,
        lambda host: block_args(slug, host, title=title, namespace=namespace, category=category),
        progress,
    )
