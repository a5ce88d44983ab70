"""
Tests for configuration — project discovery, path layout, settings, context.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from wpsmith.core.config.loader import (
    ProjectNotFound,
    find_project_root,
    is_wordpress_project,
    resolve_project_root,
)
from wpsmith.core.config.paths import (
    checkpoints_path,
    database_path,
    database_sidecars,
    seeders_path,
)
from wpsmith.core.config.settings import Settings, get_settings
from wpsmith.core.context import get_project_root, require_project_root, set_project_root


class TestFindProjectRoot:
    """Tests for upward project discovery."""

    def test_wp_config_marker(self, wp_project: Path):
        assert is_wordpress_project(wp_project)
        assert find_project_root(wp_project) == wp_project.resolve()

    def test_wpsmith_marker(self, tmp_path: Path):
        (tmp_path / ".wpsmith.json").write_text("{}")
        assert find_project_root(tmp_path) == tmp_path.resolve()

    def test_found_from_subdirectory(self, wp_project: Path):
        nested = wp_project / "wp-content" / "themes" / "mine"
        nested.mkdir(parents=True)
        assert find_project_root(nested) == wp_project.resolve()

    def test_not_found(self, tmp_path: Path):
        assert find_project_root(tmp_path) is None

    def test_defaults_to_cwd(self, wp_project: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(wp_project)
        assert find_project_root() == wp_project.resolve()

    def test_resolve_explicit(self, wp_project: Path):
        assert resolve_project_root(wp_project) == wp_project.resolve()

    def test_resolve_explicit_not_a_project(self, tmp_path: Path):
        with pytest.raises(ProjectNotFound) as exc:
            resolve_project_root(tmp_path)
        assert "wpsmith new" in exc.value.hint


class TestPaths:
    """Project layout helpers."""

    def test_database_path(self, tmp_path: Path):
        assert database_path(tmp_path) == tmp_path / "wp-content" / "database" / ".ht.sqlite"

    def test_checkpoints_path(self, tmp_path: Path):
        assert checkpoints_path(tmp_path) == tmp_path / "wp-content" / "database" / "checkpoints"

    def test_sidecars(self, tmp_path: Path):
        db = database_path(tmp_path)
        assert [p.name for p in database_sidecars(db)] == [
            ".ht.sqlite-journal", ".ht.sqlite-wal", ".ht.sqlite-shm",
        ]

    def test_seeders_path(self, tmp_path: Path):
        assert seeders_path(tmp_path) == tmp_path / "seeders"


class TestSettings:
    """Settings from WPSMITH_* variables."""

    def test_defaults(self):
        s = Settings.from_env({})
        assert s.php == "php"
        assert s.php_memory_limit == "512M"
        assert s.playground_package == "@wp-playground/cli"
        assert s.lock_timeout == 10.0
        assert s.wp_cli

    def test_env_overrides(self):
        s = Settings.from_env({
            "WPSMITH_PHP": "/opt/php/bin/php",
            "WPSMITH_WP_CLI": "/opt/wp-cli.phar",
            "WPSMITH_LOCK_TIMEOUT": "2.5",
            "WPSMITH_DEFAULT_PORT": "9500",
        })
        assert s.php == "/opt/php/bin/php"
        assert s.wp_cli == "/opt/wp-cli.phar"
        assert s.lock_timeout == 2.5
        assert s.default_port == 9500

    def test_empty_value_keeps_default(self):
        assert Settings.from_env({"WPSMITH_PHP": ""}).php == "php"

    def test_invalid_port(self):
        with pytest.raises(ValidationError):
            Settings.from_env({"WPSMITH_DEFAULT_PORT": "70000"})

    def test_get_settings_cached(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("WPSMITH_PHP_MEMORY_LIMIT", "1G")
        assert get_settings().php_memory_limit == "1G"
        monkeypatch.setenv("WPSMITH_PHP_MEMORY_LIMIT", "2G")
        assert get_settings().php_memory_limit == "1G"
        get_settings.cache_clear()
        assert get_settings().php_memory_limit == "2G"


class TestContext:
    """Process-wide project root."""

    def test_set_and_get(self, wp_project: Path):
        set_project_root(wp_project)
        assert get_project_root() == wp_project
        assert require_project_root() == wp_project

    def test_require_discovers(self, wp_project: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(wp_project)
        assert require_project_root() == wp_project.resolve()
        assert get_project_root() == wp_project.resolve()

    def test_require_raises_outside_project(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ProjectNotFound):
            require_project_root()
