"""
Database operations — reset, seed, export and import.

All of them go through WP-CLI; only ``fresh`` touches the SQLite files
directly (deleting them so ``wp core install`` starts from nothing).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import yaml
from pydantic import ValidationError

from wpsmith.core.config.paths import database_path, database_sidecars, seeders_path
from wpsmith.core.models.seeder import DEFAULT_SEEDER, Seeder
from wpsmith.core.services.wpcli import WpCli

logger = logging.getLogger(__name__)

SQLITE_PLUGIN = "sqlite-database-integration"
PERMALINK_STRUCTURE = "/%postname%/"

ADMIN_USER = "admin"
ADMIN_PASSWORD = "password"
ADMIN_EMAIL = "admin@localhost.local"

SEEDER_SUFFIXES = (".json", ".yml", ".yaml")

Progress = Callable[[str], None]


class SeederError(Exception):
    hint = "Seeder files are JSON or YAML with a 'steps' list of {command, description}."


@dataclass
class SeedReport:
    """Outcome of running a seeder."""

    seeder: str
    source: Path | None = None          # None = built-in defaults
    total: int = 0
    failed: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return self.total - len(self.failed)

    def to_dict(self) -> dict:
        return {
            "seeder": self.seeder,
            "source": str(self.source) if self.source else None,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
        }


def _noop(_message: str) -> None:
    pass


# ── Site installation (shared with `wpsmith new`) ───────────────


def install_site(wp: WpCli, *, title: str, port: int) -> None:
    """``wp core install`` with the local admin credentials."""
    wp.run([
        "core", "install",
        f"--url=http://localhost:{port}",
        f"--title={title}",
        f"--admin_user={ADMIN_USER}",
        f"--admin_password={ADMIN_PASSWORD}",
        f"--admin_email={ADMIN_EMAIL}",
        "--skip-email",
    ])


def activate_sqlite_plugin(wp: WpCli) -> None:
    wp.run(["plugin", "activate", SQLITE_PLUGIN])


def configure_permalinks(wp: WpCli) -> None:
    wp.run(["rewrite", "structure", PERMALINK_STRUCTURE])
    wp.run(["rewrite", "flush"])


def remove_default_content(wp: WpCli) -> None:
    """Delete the sample post, sample page and first comment, if present."""
    wp.try_run(["post", "delete", "1", "--force"])
    wp.try_run(["post", "delete", "2", "--force"])
    wp.try_run(["comment", "delete", "1", "--force"])


# ── fresh ───────────────────────────────────────────────────────


def remove_database_files(project_path: Path) -> list[Path]:
    """Delete the SQLite database and its sidecars. Returns what was removed."""
    db = database_path(project_path)
    removed = []
    for path in [db, *database_sidecars(db)]:
        if path.exists():
            path.unlink()
            removed.append(path)
    logger.info("Removed %d database file(s)", len(removed))
    return removed


def fresh(wp: WpCli, *, port: int, title: str = "WordPress", progress: Progress = _noop) -> None:
    """Reset the database to a freshly installed site.

    Raises:
        WpCliError: A required WP-CLI step failed.
    """
    progress("Resetting database...")
    remove_database_files(wp.project_path)

    progress("Reinstalling WordPress...")
    install_site(wp, title=title, port=port)
    activate_sqlite_plugin(wp)
    configure_permalinks(wp)
    remove_default_content(wp)


# ── seed ────────────────────────────────────────────────────────


def find_seeder(project_path: Path, name: str) -> Path | None:
    """``seeders/<name>.json|.yml|.yaml``, first match wins."""
    base = seeders_path(project_path)
    for suffix in SEEDER_SUFFIXES:
        candidate = base / f"{name}{suffix}"
        if candidate.is_file():
            return candidate
    return None


def load_seeder(path: Path) -> Seeder:
    """Parse a seeder file (YAML is a superset of JSON, so one parser reads both).

    Raises:
        SeederError: The file is unreadable or not a valid seeder.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise SeederError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise SeederError(f"Invalid seeder file {path}: {e}") from e

    if not isinstance(data, dict):
        raise SeederError(f"Expected a mapping in {path}, got {type(data).__name__}")

    try:
        return Seeder.model_validate(data)
    except ValidationError as e:
        raise SeederError(f"Invalid seeder {path}: {e}") from e


def seed(wp: WpCli, seeder_name: str = "default", *, progress: Progress = _noop) -> SeedReport:
    """Run a seeder's steps; a failing step is recorded and skipped.

    Without a seeder file the built-in default seeder runs.
    """
    path = find_seeder(wp.project_path, seeder_name)
    seeder = load_seeder(path) if path else DEFAULT_SEEDER
    report = SeedReport(seeder=seeder_name, source=path, total=len(seeder.steps))

    for i, step in enumerate(seeder.steps, start=1):
        progress(f"[{i}/{report.total}] {step.label}")
        if not wp.try_run(step.argv()):
            report.failed.append(step.label)

    logger.info(
        "Seeder %s: %d/%d steps succeeded", seeder_name, report.succeeded, report.total,
    )
    return report


def write_default_seeder(project_path: Path) -> Path:
    """Write ``seeders/default.json`` for a new project."""
    path = seeders_path(project_path) / "default.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    data = DEFAULT_SEEDER.model_dump(mode="json")
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    return path


# ── export / import ─────────────────────────────────────────────


def export_database(wp: WpCli, file: Path) -> Path:
    wp.run(["db", "export", str(file)])
    return file


def import_database(wp: WpCli, file: Path) -> Path:
    """Import an SQL dump.

    Raises:
        FileNotFoundError: ``file`` does not exist.
        WpCliError: The import failed.
    """
    if not file.is_file():
        raise FileNotFoundError(f"File not found: {file}")
    wp.run(["db", "import", str(file)])
    return file
