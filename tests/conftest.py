"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from wpsmith.core.config.paths import checkpoints_path, database_path
from wpsmith.core.config.settings import get_settings
from wpsmith.core.context import set_project_root


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch):
    """Fresh settings and no registered project for every test."""
    for name in ("WPSMITH_LOG_LEVEL", "WPSMITH_LOG_FILE", "WPSMITH_LOG_FILE_LEVEL",
                 "WPSMITH_LOCK_TIMEOUT", "WPSMITH_LOCK_STALE_AFTER"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    set_project_root(None)
    yield
    get_settings.cache_clear()
    set_project_root(None)


@pytest.fixture
def wp_project(tmp_path: Path) -> Path:
    """A minimal project directory: wp-config.php marker, empty database dir."""
    root = tmp_path / "site"
    root.mkdir()
    (root / "wp-config.php").write_text("<?php\n")
    database_path(root).parent.mkdir(parents=True)
    return root


@pytest.fixture
def live_db(wp_project: Path) -> Path:
    """The project's live database, with recognizable content."""
    db = database_path(wp_project)
    db.write_bytes(b"SQLite format 3\x00 original")
    return db


@pytest.fixture
def checkpoint_dir(wp_project: Path) -> Path:
    return checkpoints_path(wp_project)
