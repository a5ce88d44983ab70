"""
Tests for database operations — fresh, seeders, export/import.

WP-CLI is replaced by a MagicMock; only the calls made are checked.
"""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from wpsmith.core.config.paths import database_path, database_sidecars
from wpsmith.core.services.database import (
    SeederError,
    export_database,
    find_seeder,
    fresh,
    import_database,
    load_seeder,
    remove_database_files,
    seed,
    write_default_seeder,
)


@pytest.fixture
def wp(wp_project: Path) -> MagicMock:
    mock = MagicMock()
    mock.project_path = wp_project
    mock.try_run.return_value = True
    return mock


def _calls(mock_method: MagicMock) -> list[list[str]]:
    return [list(c.args[0]) for c in mock_method.call_args_list]


class TestFresh:
    """db fresh."""

    def test_removes_database_and_sidecars(self, wp_project: Path, live_db: Path):
        for sidecar in database_sidecars(live_db):
            sidecar.write_text("x")
        removed = remove_database_files(wp_project)
        assert len(removed) == 4
        assert not database_path(wp_project).exists()

    def test_reinstalls(self, wp: MagicMock, live_db: Path):
        progress = []
        fresh(wp, port=9401, title="Demo", progress=progress.append)

        assert not live_db.exists()
        run_calls = _calls(wp.run)
        assert run_calls[0][:2] == ["core", "install"]
        assert "--url=http://localhost:9401" in run_calls[0]
        assert "--title=Demo" in run_calls[0]
        assert "--admin_user=admin" in run_calls[0]
        assert ["plugin", "activate", "sqlite-database-integration"] in run_calls
        assert ["rewrite", "structure", "/%postname%/"] in run_calls
        assert ["rewrite", "flush"] in run_calls
        assert ["post", "delete", "1", "--force"] in _calls(wp.try_run)
        assert progress == ["Resetting database...", "Reinstalling WordPress..."]


class TestSeeders:
    """Seeder discovery, parsing and running."""

    def test_find_prefers_json(self, wp_project: Path):
        seeders = wp_project / "seeders"
        seeders.mkdir()
        (seeders / "demo.yml").write_text("steps: []\n")
        (seeders / "demo.json").write_text('{"steps": []}')
        assert find_seeder(wp_project, "demo").name == "demo.json"
        assert find_seeder(wp_project, "missing") is None

    def test_load_yaml(self, tmp_path: Path):
        path = tmp_path / "shop.yaml"
        path.write_text(
            "name: Shop\n"
            "steps:\n"
            "  - command: plugin activate woocommerce\n"
            "    description: Activate WooCommerce\n"
            "  - command: wc product create --name=Mug --regular_price=9\n"
        )
        seeder = load_seeder(path)
        assert seeder.name == "Shop"
        assert [s.label for s in seeder.steps] == [
            "Activate WooCommerce", "wc product create --name=Mug --regular_price=9",
        ]

    def test_load_invalid(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text('{"steps": [{"description": "no command"}]}')
        with pytest.raises(SeederError):
            load_seeder(path)

    def test_load_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(SeederError):
            load_seeder(path)

    def test_load_unparseable(self, tmp_path: Path):
        path = tmp_path / "broken.yml"
        path.write_text("steps: [unclosed\n")
        with pytest.raises(SeederError):
            load_seeder(path)

    def test_seed_from_file(self, wp: MagicMock, wp_project: Path):
        (wp_project / "seeders").mkdir()
        (wp_project / "seeders" / "default.json").write_text(json.dumps({"steps": [
            {"command": "option update blogname Demo", "description": "Rename"},
            {"command": "cache flush"},
        ]}))

        report = seed(wp, "default")

        assert report.source == wp_project / "seeders" / "default.json"
        assert report.total == 2
        assert _calls(wp.try_run) == [["option", "update", "blogname", "Demo"], ["cache", "flush"]]

    def test_seed_builtin_default(self, wp: MagicMock):
        report = seed(wp)
        assert report.source is None
        assert report.total == 5
        assert wp.try_run.call_count == 5

    def test_failed_steps_reported(self, wp: MagicMock):
        wp.try_run.side_effect = [True, False, True, False, True]
        report = seed(wp)
        assert report.succeeded == 3
        assert report.failed == ["Create author user", "Create About page"]
        assert report.to_dict()["failed"] == report.failed

    def test_write_default_seeder(self, wp_project: Path):
        path = write_default_seeder(wp_project)
        data = json.loads(path.read_text())
        assert data["name"] == "Default Seeder"
        assert len(data["steps"]) == 5
        assert load_seeder(path).steps[2].command == "post generate --count=10"


class TestExportImport:
    """db export / db import."""

    def test_export(self, wp: MagicMock, tmp_path: Path):
        out = tmp_path / "dump.sql"
        assert export_database(wp, out) == out
        wp.run.assert_called_once_with(["db", "export", str(out)])

    def test_import(self, wp: MagicMock, tmp_path: Path):
        dump = tmp_path / "dump.sql"
        dump.write_text("-- sql")
        import_database(wp, dump)
        wp.run.assert_called_once_with(["db", "import", str(dump)])

    def test_import_missing_file(self, wp: MagicMock, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            import_database(wp, tmp_path / "nope.sql")
        wp.run.assert_not_called()
