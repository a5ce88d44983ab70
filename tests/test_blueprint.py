"""
Tests for blueprint persistence — fail-open load, merge-on-save, step helpers.
"""

import json
import logging
from pathlib import Path

import pytest

from wpsmith.core.models.blueprint import (
    BLUEPRINT_SCHEMA,
    Blueprint,
    InstallPluginStep,
    PreferredVersions,
    WpsmithSettings,
)
from wpsmith.core.persistence.blueprint_file import (
    BlueprintError,
    load_blueprint,
    merge_documents,
    plugin_steps,
    plugins_from_blueprint,
    save_blueprint,
    theme_steps,
    themes_from_blueprint,
)


def _write(project: Path, data) -> Path:
    path = project / "blueprint.json"
    path.write_text(json.dumps(data))
    return path


def _read(project: Path) -> dict:
    return json.loads((project / "blueprint.json").read_text())


class TestLoad:
    """load_blueprint never raises."""

    def test_missing_file_gives_defaults(self, tmp_path: Path):
        bp = load_blueprint(tmp_path)
        assert bp.preferred_versions.php == "8.3"
        assert bp.preferred_versions.wp == "latest"
        assert bp.port == 9400
        assert bp.steps is None

    def test_partial_file_merged_over_defaults(self, tmp_path: Path):
        _write(tmp_path, {"preferredVersions": {"php": "8.1"}})
        bp = load_blueprint(tmp_path)
        assert bp.preferred_versions.php == "8.1"
        assert bp.preferred_versions.wp == "latest"
        assert bp.port == 9400

    def test_malformed_json_gives_defaults_with_warning(self, tmp_path: Path, caplog):
        _write(tmp_path, {})
        (tmp_path / "blueprint.json").write_text("{ nope")
        with caplog.at_level(logging.WARNING):
            bp = load_blueprint(tmp_path)
        assert bp.port == 9400
        assert "using defaults" in caplog.text

    def test_non_object_gives_defaults(self, tmp_path: Path):
        _write(tmp_path, ["a", "list"])
        assert load_blueprint(tmp_path).port == 9400

    def test_invalid_values_give_defaults(self, tmp_path: Path):
        _write(tmp_path, {"wpsmith": {"port": "not-a-port"}})
        assert load_blueprint(tmp_path).port == 9400

    def test_steps_parsed_into_variants(self, tmp_path: Path):
        _write(tmp_path, {"steps": [
            {"step": "installPlugin", "pluginData": {"resource": "wordpress.org/plugins", "slug": "akismet"}},
            {"step": "login", "username": "admin"},
            {"step": "defineWpConfigConsts", "consts": {"WP_DEBUG": True}},
        ]})
        bp = load_blueprint(tmp_path)
        kinds = [type(s).__name__ for s in bp.steps]
        assert kinds == ["InstallPluginStep", "LoginStep", "GenericStep"]
        assert bp.steps[2].step == "defineWpConfigConsts"


class TestSave:
    """save_blueprint merges and writes."""

    def test_creates_file_with_schema_first(self, tmp_path: Path):
        save_blueprint(tmp_path, {"wpsmith": {"port": 9500}})
        data = _read(tmp_path)
        assert list(data)[0] == "$schema"
        assert data["$schema"] == BLUEPRINT_SCHEMA
        assert data["wpsmith"] == {"port": 9500}

    def test_two_space_indent(self, tmp_path: Path):
        save_blueprint(tmp_path, {})
        assert (tmp_path / "blueprint.json").read_text().startswith('{\n  "$schema"')

    def test_deep_merge_of_preferred_versions(self, tmp_path: Path):
        _write(tmp_path, {"preferredVersions": {"php": "8.1", "wp": "6.5"}})
        bp = save_blueprint(tmp_path, {"preferredVersions": {"wp": "6.7"}})
        assert bp.preferred_versions.php == "8.1"
        assert bp.preferred_versions.wp == "6.7"
        assert _read(tmp_path)["preferredVersions"] == {"php": "8.1", "wp": "6.7"}

    def test_steps_replaced_wholesale(self, tmp_path: Path):
        save_blueprint(tmp_path, {"steps": [s.model_dump(by_alias=True) for s in plugin_steps(["a", "b"])]})
        save_blueprint(tmp_path, {"steps": [{"step": "login"}]})
        assert _read(tmp_path)["steps"] == [{"step": "login"}]

    def test_unknown_keys_survive(self, tmp_path: Path):
        _write(tmp_path, {"landingPage": "/wp-admin/", "extraThing": {"x": 1}})
        save_blueprint(tmp_path, {"wpsmith": {"port": 9401}})
        data = _read(tmp_path)
        assert data["landingPage"] == "/wp-admin/"
        assert data["extraThing"] == {"x": 1}

    def test_save_over_corrupt_file_sets_it_aside(self, tmp_path: Path):
        (tmp_path / "blueprint.json").write_text("garbage")
        bp = save_blueprint(tmp_path, {"wpsmith": {"port": 9999}})
        assert bp.port == 9999
        assert _read(tmp_path)["preferredVersions"] == {"php": "8.3", "wp": "latest"}
        assert (tmp_path / "blueprint.json.corrupt").read_text() == "garbage"

    def test_save_refuses_invalid_document(self, tmp_path: Path):
        original = {"wpsmith": {"port": "not-a-port"}, "steps": [{"step": "login"}]}
        path = _write(tmp_path, original)
        with pytest.raises(BlueprintError):
            save_blueprint(tmp_path, {"preferredVersions": {"wp": "6.7"}})
        assert json.loads(path.read_text()) == original

    def test_model_partial_keeps_unset_fields(self, tmp_path: Path):
        _write(tmp_path, {"preferredVersions": {"php": "8.0", "wp": "6.4"}, "wpsmith": {"port": 9410}})
        save_blueprint(tmp_path, Blueprint(preferred_versions=PreferredVersions(wp="6.7")))
        data = _read(tmp_path)
        assert data["preferredVersions"] == {"php": "8.0", "wp": "6.7"}
        assert data["wpsmith"] == {"port": 9410}

    def test_model_with_steps(self, tmp_path: Path):
        save_blueprint(tmp_path, Blueprint(
            preferred_versions=PreferredVersions(php="8.2", wp="latest"),
            steps=plugin_steps(["woocommerce"]),
            wpsmith=WpsmithSettings(port=9402),
        ))
        data = _read(tmp_path)
        assert data["steps"] == [{
            "step": "installPlugin",
            "pluginData": {"resource": "wordpress.org/plugins", "slug": "woocommerce"},
        }]
        assert data["wpsmith"] == {"port": 9402}
        assert list(data)[0] == "$schema"

    def test_no_staging_files_left(self, tmp_path: Path):
        save_blueprint(tmp_path, {})
        assert list(tmp_path.glob(".wpsmith_*.tmp")) == []


class TestPlaygroundShapes:
    """Blueprints using step forms wpsmith does not model survive a save."""

    STEPS = [
        {"step": "installPlugin", "pluginData": {"resource": "wordpress.org/plugins", "slug": "akismet"}},
        {"step": "installPlugin", "pluginData": {"resource": "vfs", "path": "/tmp/my.zip"}},
        {"step": "installPlugin", "pluginZipFile": {"resource": "url", "url": "https://example.com/p.zip"}},
        {"step": "runPHP"},
    ]

    def test_other_resources_load_without_falling_back(self, tmp_path: Path):
        _write(tmp_path, {"preferredVersions": {"php": "8.2", "wp": "6.5"}, "steps": self.STEPS})
        bp = load_blueprint(tmp_path)
        kinds = [type(s).__name__ for s in bp.steps]
        assert kinds == ["InstallPluginStep", "InstallPluginStep", "GenericStep", "GenericStep"]
        assert bp.preferred_versions.php == "8.2"
        assert plugins_from_blueprint(bp) == ["akismet"]

    def test_set_port_keeps_steps_and_versions(self, tmp_path: Path):
        _write(tmp_path, {
            "landingPage": "/wp-admin/",
            "preferredVersions": {"php": "8.2", "wp": "6.5"},
            "steps": self.STEPS,
        })
        save_blueprint(tmp_path, {"wpsmith": {"port": 9500}})

        data = _read(tmp_path)
        assert data["steps"] == self.STEPS
        assert data["preferredVersions"] == {"php": "8.2", "wp": "6.5"}
        assert data["landingPage"] == "/wp-admin/"
        assert data["wpsmith"] == {"port": 9500}

    def test_explicit_nulls_survive_save(self, tmp_path: Path):
        step = {"step": "defineWpConfigConsts", "consts": {"WP_X": None}, "method": None}
        _write(tmp_path, {"landingPage": None, "extraKey": None, "steps": [step]})
        save_blueprint(tmp_path, {"wpsmith": {"port": 9401}})

        data = _read(tmp_path)
        assert data["steps"] == [step]
        assert "landingPage" in data and data["landingPage"] is None
        assert "extraKey" in data and data["extraKey"] is None

    def test_unset_optionals_not_written(self, tmp_path: Path):
        save_blueprint(tmp_path, {})
        data = _read(tmp_path)
        assert "landingPage" not in data
        assert "features" not in data
        assert "steps" not in data


class TestMerge:
    """merge_documents policy."""

    def test_inputs_not_mutated(self):
        base = {"wpsmith": {"port": 1}, "steps": [1]}
        update = {"wpsmith": {"extra": True}}
        merged = merge_documents(base, update)
        assert merged == {"wpsmith": {"port": 1, "extra": True}, "steps": [1]}
        assert base == {"wpsmith": {"port": 1}, "steps": [1]}

    def test_unlisted_keys_replace(self):
        merged = merge_documents({"features": {"networking": True}}, {"features": {"intl": True}})
        assert merged == {"features": {"intl": True}}

    def test_deep_key_replaced_by_non_mapping(self):
        merged = merge_documents({"wpsmith": {"port": 1}}, {"wpsmith": None})
        assert merged == {"wpsmith": None}


class TestStepHelpers:
    """plugin_steps / plugins_from_blueprint and the theme counterparts."""

    def test_plugin_steps_keep_order(self):
        steps = plugin_steps(["woocommerce", "gutenberg", "query-monitor"])
        assert all(isinstance(s, InstallPluginStep) for s in steps)
        assert [s.plugin_data.slug for s in steps] == ["woocommerce", "gutenberg", "query-monitor"]

    def test_plugin_steps_empty(self):
        assert plugin_steps([]) == []

    def test_plugins_from_blueprint(self):
        bp = Blueprint.model_validate({"steps": [
            {"step": "installPlugin", "pluginData": {"resource": "wordpress.org/plugins", "slug": "a"}},
            {"step": "installTheme", "themeData": {"resource": "wordpress.org/themes", "slug": "t"}},
            {"step": "installPlugin", "pluginData": {"resource": "url", "url": "https://x/y.zip"}},
            {"step": "installPlugin", "pluginData": {"resource": "wordpress.org/plugins", "slug": "b"}},
        ]})
        assert plugins_from_blueprint(bp) == ["a", "b"]
        assert themes_from_blueprint(bp) == ["t"]

    def test_plugins_from_blueprint_without_steps(self):
        assert plugins_from_blueprint(Blueprint()) == []

    def test_theme_steps(self):
        steps = theme_steps(["twentytwentyfour"])
        assert steps[0].model_dump(by_alias=True) == {
            "step": "installTheme",
            "themeData": {"resource": "wordpress.org/themes", "slug": "twentytwentyfour"},
        }
