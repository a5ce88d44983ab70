"""
Project path layout.

Every location wpsmith reads or writes inside a project is derived here,
so the checkpoint store, ``db fresh`` and ``new`` agree on where the
SQLite database lives.
"""

from __future__ import annotations

from pathlib import Path

BLUEPRINT_FILE = "blueprint.json"
SEEDERS_DIR = "seeders"
DATABASE_DIR = Path("wp-content") / "database"
DATABASE_FILE = ".ht.sqlite"
CHECKPOINTS_DIR = "checkpoints"

# Files SQLite creates next to the database while it is open
SQLITE_SIDECAR_SUFFIXES = ("-journal", "-wal", "-shm")


def blueprint_path(project_path: Path) -> Path:
    return project_path / BLUEPRINT_FILE


def database_dir(project_path: Path) -> Path:
    return project_path / DATABASE_DIR


def database_path(project_path: Path) -> Path:
    """The live SQLite database of a project."""
    return database_dir(project_path) / DATABASE_FILE


def database_sidecars(db_path: Path) -> list[Path]:
    """Journal, write-ahead log and shared-memory files of a database."""
    return [db_path.with_name(db_path.name + suffix) for suffix in SQLITE_SIDECAR_SUFFIXES]


def checkpoints_path(project_path: Path) -> Path:
    return database_dir(project_path) / CHECKPOINTS_DIR


def seeders_path(project_path: Path) -> Path:
    return project_path / SEEDERS_DIR


def plugins_path(project_path: Path) -> Path:
    return project_path / "wp-content" / "plugins"
