"""
Blueprint persistence — load with defaults, save by merging.

Loading never fails: a missing ``blueprint.json`` and an unreadable one
both yield the built-in defaults (the second with a warning), because
"no config yet" and "config unusable" lead to the same next step.

Saving merges a partial document over what is on disk.  How each
top-level key merges is declared in ``MERGE_POLICY``; keys not listed
are replaced wholesale (so ``steps`` is never merged element-wise).
Saving never discards what the user wrote: a file that is not JSON is
moved aside to ``blueprint.json.corrupt`` first, and a JSON document
that does not validate is left untouched and ``BlueprintError`` raised.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Iterable, Literal, Mapping

from pydantic import BaseModel, ValidationError

from wpsmith.core.config.paths import blueprint_path
from wpsmith.core.models.blueprint import (
    BLUEPRINT_SCHEMA,
    Blueprint,
    InstallPluginStep,
    InstallThemeStep,
    PluginData,
    ThemeData,
    default_blueprint_dict,
)
from wpsmith.core.persistence.atomic import write_json_atomic

logger = logging.getLogger(__name__)

MergeMode = Literal["replace", "deep"]

MERGE_POLICY: dict[str, MergeMode] = {
    "preferredVersions": "deep",
    "wpsmith": "deep",
}

SCHEMA_KEY = "$schema"
CORRUPT_SUFFIX = ".corrupt"


class BlueprintError(Exception):
    """An existing blueprint.json is not a valid document and was not rewritten."""

    hint = "Fix blueprint.json by hand (or move it away), then run the command again."


class _Unreadable(Exception):
    """blueprint.json exists but is not a JSON object."""


def merge_documents(
    base: Mapping[str, Any],
    update: Mapping[str, Any],
    policy: Mapping[str, MergeMode] = MERGE_POLICY,
) -> dict[str, Any]:
    """Merge ``update`` over ``base`` following ``policy``.

    ``deep`` keys merge one level down (key by key) when both sides are
    mappings; everything else is replaced.  Neither input is mutated.
    """
    merged = copy.deepcopy(dict(base))
    for key, value in update.items():
        current = merged.get(key)
        if (
            policy.get(key, "replace") == "deep"
            and isinstance(current, Mapping)
            and isinstance(value, Mapping)
        ):
            merged[key] = {**current, **copy.deepcopy(dict(value))}
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _read_raw(path: Path) -> dict[str, Any] | None:
    """The JSON object stored at ``path``; None when there is no file.

    Raises:
        _Unreadable: The file exists but does not hold a JSON object.
    """
    if not path.is_file():
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise _Unreadable(str(e)) from e

    if not isinstance(data, dict):
        raise _Unreadable(f"expected a JSON object, got {type(data).__name__}")
    return data


def _validate(data: Mapping[str, Any]) -> Blueprint:
    return Blueprint.model_validate(merge_documents(default_blueprint_dict(), data))


def load_blueprint(project_path: Path) -> Blueprint:
    """Load ``blueprint.json`` with defaults filled in. Never raises."""
    path = blueprint_path(project_path)
    try:
        data = _read_raw(path)
    except _Unreadable as e:
        logger.warning("Cannot read blueprint %s: %s — using defaults", path, e)
        return Blueprint()

    if data is None:
        logger.debug("No blueprint at %s — using defaults", path)
        return Blueprint()

    try:
        return _validate(data)
    except ValidationError as e:
        logger.warning("Invalid blueprint %s: %s — using defaults", path, e)
        return Blueprint()


def save_blueprint(project_path: Path, partial: Mapping[str, Any] | BaseModel) -> Blueprint:
    """Merge ``partial`` into the project's blueprint and write it.

    Args:
        project_path: Project root.
        partial: camelCase mapping (as in the JSON file) or a Blueprint.
            A Blueprint contributes only the fields explicitly set on it.

    Returns:
        The blueprint as written.

    Raises:
        BlueprintError: The existing file is JSON but not a valid blueprint.
        pydantic.ValidationError: If the merged document is invalid.
        OSError: If the file cannot be written.
    """
    if isinstance(partial, BaseModel):
        update = _explicit_fields(partial)
    else:
        update = dict(partial)

    path = blueprint_path(project_path)
    existing = _existing_for_update(path)
    merged = merge_documents(existing, update)
    blueprint = Blueprint.model_validate(merged)

    # $schema always leads; the model declares it first, but re-pin it
    document = blueprint.to_json_dict()
    document.pop(SCHEMA_KEY, None)
    ordered = {SCHEMA_KEY: BLUEPRINT_SCHEMA, **document}

    write_json_atomic(path, ordered)
    logger.debug("Saved blueprint for %s", project_path)
    return blueprint


def _existing_for_update(path: Path) -> dict[str, Any]:
    """The on-disk document to merge into, defaults filled in.

    An unreadable file is set aside so the save can proceed from defaults.
    """
    try:
        data = _read_raw(path)
    except _Unreadable as e:
        backup = path.with_name(path.name + CORRUPT_SUFFIX)
        os.replace(path, backup)
        logger.warning("Cannot read blueprint %s: %s — moved to %s", path, e, backup)
        return default_blueprint_dict()

    if data is None:
        return default_blueprint_dict()

    try:
        return _validate(data).to_json_dict()
    except ValidationError as e:
        raise BlueprintError(f"Invalid blueprint {path}: {e}") from e


def _explicit_fields(model: BaseModel) -> dict[str, Any]:
    """The fields set on ``model`` as a camelCase update mapping.

    Deep-merged keys keep only their explicitly set sub-fields, so
    ``PreferredVersions(wp="6.7")`` does not reset ``php`` to its default.
    """
    full = model.model_dump(mode="json", by_alias=True)
    fields = type(model).model_fields
    update: dict[str, Any] = {}
    for name in model.model_fields_set:
        info = fields.get(name)
        key = (info.alias or name) if info is not None else name
        value = getattr(model, name, None)
        if MERGE_POLICY.get(key) == "deep" and isinstance(value, BaseModel):
            update[key] = value.model_dump(mode="json", by_alias=True, exclude_unset=True)
        elif key in full:
            update[key] = full[key]
    return update


# ── Step helpers ────────────────────────────────────────────────


def plugins_from_blueprint(blueprint: Blueprint) -> list[str]:
    """Slugs of the install-plugin steps, in step order."""
    if not blueprint.steps:
        return []
    return [
        step.plugin_data.slug
        for step in blueprint.steps
        if isinstance(step, InstallPluginStep) and step.plugin_data.slug
    ]


def themes_from_blueprint(blueprint: Blueprint) -> list[str]:
    """Slugs of the install-theme steps, in step order."""
    if not blueprint.steps:
        return []
    return [
        step.theme_data.slug
        for step in blueprint.steps
        if isinstance(step, InstallThemeStep) and step.theme_data.slug
    ]


def plugin_steps(slugs: Iterable[str]) -> list[InstallPluginStep]:
    """One wordpress.org install-plugin step per slug, order kept."""
    return [InstallPluginStep(plugin_data=PluginData(slug=slug)) for slug in slugs]


def theme_steps(slugs: Iterable[str]) -> list[InstallThemeStep]:
    """One wordpress.org install-theme step per slug, order kept."""
    return [InstallThemeStep(theme_data=ThemeData(slug=slug)) for slug in slugs]
