"""
Tests for domain models — checkpoint index, blueprint steps, seeders.
"""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from wpsmith.core.models import (
    DEFAULT_SEEDER,
    Blueprint,
    CheckpointIndex,
    CheckpointRecord,
    GenericStep,
    InstallPluginStep,
    InstallThemeStep,
    RunPHPStep,
    Seeder,
    SetSiteOptionsStep,
)
from wpsmith.core.models.checkpoint import CHECKPOINT_NAME_RE, generated_name


class TestCheckpointRecord:
    """Tests for CheckpointRecord."""

    def test_file_derived_from_name(self):
        record = CheckpointRecord(name="before-upgrade")
        assert record.file == "before-upgrade.sqlite"

    def test_explicit_file_kept(self):
        record = CheckpointRecord(name="x", file="other.sqlite")
        assert record.file == "other.sqlite"

    def test_created_is_utc_iso(self):
        record = CheckpointRecord(name="x")
        assert record.created_at is not None
        assert record.created_at.tzinfo is not None

    def test_created_with_z_suffix(self):
        record = CheckpointRecord(name="x", created="2024-05-01T10:00:00.000Z")
        assert record.created_at == datetime(2024, 5, 1, 10, 0, tzinfo=UTC)

    def test_unparseable_created(self):
        assert CheckpointRecord(name="x", created="yesterday").created_at is None

    def test_generated_name(self):
        moment = datetime(2024, 1, 1, tzinfo=UTC)
        assert generated_name(moment) == f"checkpoint-{int(moment.timestamp() * 1000)}"
        assert CHECKPOINT_NAME_RE.match(generated_name())


class TestCheckpointIndex:
    """Tests for CheckpointIndex."""

    def test_reads_checkpoints_key(self):
        index = CheckpointIndex.model_validate({"checkpoints": [
            {"name": "a", "created": "2024-01-01T00:00:00Z", "file": "a.sqlite"},
        ]})
        assert index.names() == ["a"]

    def test_reads_entries_key(self):
        index = CheckpointIndex.model_validate({"entries": [{"name": "a"}]})
        assert index.names() == ["a"]

    def test_dumps_checkpoints_key(self):
        index = CheckpointIndex()
        index.append(CheckpointRecord(name="a", created="2024-01-01T00:00:00+00:00"))
        assert index.to_json_dict() == {"checkpoints": [
            {"name": "a", "created": "2024-01-01T00:00:00+00:00", "file": "a.sqlite"},
        ]}

    def test_latest_is_last(self):
        index = CheckpointIndex()
        assert index.latest() is None
        index.append(CheckpointRecord(name="a"))
        index.append(CheckpointRecord(name="b"))
        assert index.latest().name == "b"
        assert len(index) == 2

    def test_remove(self):
        index = CheckpointIndex()
        index.append(CheckpointRecord(name="a"))
        assert index.remove("a").name == "a"
        assert index.remove("a") is None
        assert index.find("a") is None


class TestBlueprintModel:
    """Tests for the Blueprint model and its step union."""

    def test_defaults(self):
        data = Blueprint().to_json_dict()
        assert list(data)[0] == "$schema"
        assert data["preferredVersions"] == {"php": "8.3", "wp": "latest"}
        assert data["wpsmith"] == {"port": 9400}
        assert "steps" not in data

    def test_known_steps(self):
        bp = Blueprint.model_validate({"steps": [
            {"step": "setSiteOptions", "options": {"blogname": "Demo"}},
            {"step": "runPHP", "code": "<?php echo 1;"},
        ]})
        assert isinstance(bp.steps[0], SetSiteOptionsStep)
        assert bp.steps[0].options == {"blogname": "Demo"}
        assert isinstance(bp.steps[1], RunPHPStep)

    def test_unknown_step_kept_verbatim(self):
        raw = {"step": "importWxr", "file": {"resource": "url", "url": "https://x/y.xml"}}
        bp = Blueprint.model_validate({"steps": [raw]})
        assert isinstance(bp.steps[0], GenericStep)
        assert bp.to_json_dict()["steps"] == [raw]

    def test_install_plugin_without_plugin_data_is_generic(self):
        raw = {"step": "installPlugin", "pluginZipFile": {"resource": "url", "url": "https://x/p.zip"}}
        bp = Blueprint.model_validate({"steps": [raw]})
        assert isinstance(bp.steps[0], GenericStep)
        assert bp.to_json_dict()["steps"] == [raw]

    def test_any_resource_accepted(self):
        bp = Blueprint.model_validate({"steps": [
            {"step": "installTheme", "themeData": {"resource": "git:directory", "url": "https://x/t.git"}},
        ]})
        assert isinstance(bp.steps[0], InstallThemeStep)
        assert bp.steps[0].theme_data.resource == "git:directory"

    def test_steps_must_be_objects(self):
        with pytest.raises(ValidationError):
            Blueprint.model_validate({"steps": ["installPlugin"]})

    def test_plugin_step_by_field_name(self):
        step = InstallPluginStep.model_validate({"plugin_data": {"slug": "akismet"}})
        assert step.model_dump(by_alias=True, exclude_none=True) == {
            "step": "installPlugin",
            "pluginData": {"resource": "wordpress.org/plugins", "slug": "akismet"},
        }


class TestSeeder:
    """Tests for Seeder / SeederStep."""

    def test_argv_respects_quotes(self):
        step = DEFAULT_SEEDER.steps[3]
        assert step.argv() == [
            "post", "create", "--post_type=page", "--post_title=About", "--post_status=publish",
        ]

    def test_label_falls_back_to_command(self):
        seeder = Seeder.model_validate({"steps": [{"command": "cache flush"}]})
        assert seeder.steps[0].label == "cache flush"

    def test_default_seeder(self):
        assert len(DEFAULT_SEEDER.steps) == 5
        assert DEFAULT_SEEDER.steps[0].argv()[:2] == ["user", "create"]
