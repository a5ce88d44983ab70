"""
New project scaffolding — everything ``wpsmith new`` does.

A project is WordPress core plus the SQLite Database Integration plugin,
its ``db.php`` drop-in and a ``wp-config.php`` pointing at
``wp-content/database/.ht.sqlite``.  No MySQL server is involved at any
point, which is why the plugin is downloaded directly instead of through
``wp plugin install`` (that would need a working database first).
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
import urllib.request
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from wpsmith.core.config.paths import database_dir, plugins_path
from wpsmith.core.config.settings import Settings, get_settings
from wpsmith.core.models.blueprint import (
    DEFAULT_PHP_VERSION,
    DEFAULT_PORT,
    DEFAULT_WP_VERSION,
    Blueprint,
    PreferredVersions,
    WpsmithSettings,
)
from wpsmith.core.persistence.blueprint_file import plugin_steps, save_blueprint
from wpsmith.core.services.database import (
    SQLITE_PLUGIN,
    activate_sqlite_plugin,
    configure_permalinks,
    install_site,
    remove_default_content,
    write_default_seeder,
)
from wpsmith.core.services.wpcli import WpCli

logger = logging.getLogger(__name__)

Progress = Callable[[str], None]

PROJECT_NAME_RE = re.compile(r"^[a-z0-9_-]+$", re.IGNORECASE)

WP_CONFIG_MARKER = "/* That's all, stop editing!"

OPTIONAL_PLUGINS = {
    "woocommerce": "WooCommerce",
    "gutenberg": "Gutenberg (latest)",
    "query-monitor": "Query Monitor",
    "debug-bar": "Debug Bar",
}

GITIGNORE = """\
# WordPress core (download fresh with wpsmith new)
/wp-admin/
/wp-includes/
/wp-*.php
!/wp-config.php
/index.php
/license.txt
/readme.html
/xmlrpc.php

# Uploads and generated content
/wp-content/uploads/
/wp-content/upgrade/
/wp-content/cache/
/wp-content/backup-db/

# SQLite database files
/wp-content/database/*.sqlite
/wp-content/database/*.sqlite-*
/wp-content/database/.ht.sqlite*
/wp-content/database/checkpoints/

# Keep db.php (SQLite drop-in)
!/wp-content/db.php

# Environment and secrets
.env
.env.*
*.log

# Dependencies
/node_modules/
/vendor/

# OS files
.DS_Store
Thumbs.db
*.swp
*.swo

# IDE
.idea/
.vscode/
*.sublime-*
"""


class ScaffoldError(Exception):
    hint = "Remove the partially created directory and run `wpsmith new` again."


class InvalidProjectName(ScaffoldError):
    hint = "Use letters, numbers, hyphens and underscores only."


class ProjectExists(ScaffoldError):
    hint = "Pick another name or remove the existing directory."


@dataclass
class NewProjectOptions:
    name: str
    parent_dir: Path
    wp: str = DEFAULT_WP_VERSION
    php: str = DEFAULT_PHP_VERSION
    port: int = DEFAULT_PORT
    git: bool = True
    plugins: list[str] = field(default_factory=list)

    @property
    def project_path(self) -> Path:
        return (self.parent_dir / self.name).resolve()


@dataclass
class NewProjectResult:
    project_path: Path
    port: int
    installed_plugins: list[str] = field(default_factory=list)
    skipped_plugins: list[str] = field(default_factory=list)
    git_initialized: bool = False

    @property
    def admin_url(self) -> str:
        return f"http://localhost:{self.port}/wp-admin"


def _noop(_message: str) -> None:
    pass


def validate_project_name(name: str, parent_dir: Path) -> None:
    """
    Raises:
        InvalidProjectName: ``name`` has characters other than ``[a-z0-9_-]``.
        ProjectExists: ``parent_dir / name`` already exists.
    """
    if not PROJECT_NAME_RE.match(name):
        raise InvalidProjectName(
            f"Invalid project name {name!r}: only letters, numbers, hyphens and underscores"
        )
    if (parent_dir / name).exists():
        raise ProjectExists(f'Directory "{name}" already exists')


# ── Steps ───────────────────────────────────────────────────────


def download_core(wp: WpCli, version: str = DEFAULT_WP_VERSION) -> None:
    args = ["core", "download"]
    if version != "latest":
        args.append(f"--version={version}")
    wp.run(args)


def download_file(url: str, dest: Path, timeout: int = 60) -> Path:
    """Fetch ``url`` into ``dest`` (urllib follows redirects)."""
    logger.debug("Downloading %s -> %s", url, dest)
    req = urllib.request.Request(url, headers={"User-Agent": "wpsmith"})
    with urllib.request.urlopen(req, timeout=timeout) as resp, dest.open("wb") as out:
        shutil.copyfileobj(resp, out)
    return dest


def install_sqlite_plugin(project_path: Path, settings: Settings | None = None) -> Path:
    """Download and unpack the SQLite Database Integration plugin.

    Returns the plugin directory.

    Raises:
        ScaffoldError: Download or extraction failed.
    """
    s = settings or get_settings()
    plugins_dir = plugins_path(project_path)
    plugins_dir.mkdir(parents=True, exist_ok=True)
    archive = plugins_dir / f"{SQLITE_PLUGIN}.zip"

    try:
        download_file(s.sqlite_plugin_url, archive, timeout=s.download_timeout)
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(plugins_dir)
    except (OSError, zipfile.BadZipFile) as e:
        raise ScaffoldError(f"Failed to install the SQLite plugin: {e}") from e
    finally:
        archive.unlink(missing_ok=True)

    return plugins_dir / SQLITE_PLUGIN


def install_db_dropin(project_path: Path) -> Path:
    """Create the database directory and copy ``db.copy`` to ``wp-content/db.php``."""
    database_dir(project_path).mkdir(parents=True, exist_ok=True)
    source = plugins_path(project_path) / SQLITE_PLUGIN / "db.copy"
    dest = project_path / "wp-content" / "db.php"
    if not source.is_file():
        raise ScaffoldError(f"SQLite drop-in not found: {source}")
    shutil.copyfile(source, dest)
    return dest


def wp_config_constants(port: int, debug: bool = True) -> str:
    """PHP ``define()`` block for SQLite, debugging and the serve port."""
    flag = "true" if debug else "false"
    return f"""
// SQLite Database Configuration
define('DB_DIR', __DIR__ . '/wp-content/database/');
define('DB_FILE', '.ht.sqlite');

// Development Settings
define('WP_DEBUG', {flag});
define('WP_DEBUG_LOG', {flag});
define('WP_DEBUG_DISPLAY', false);
define('SCRIPT_DEBUG', {flag});
define('SAVEQUERIES', {flag});

// wpsmith Configuration
define('WPSMITH_PORT', {port});
"""


def inject_wp_config(config: str, port: int, debug: bool = True) -> str:
    """Insert the constants before the "stop editing" marker.

    Without the marker the block is appended.
    """
    block = wp_config_constants(port, debug)
    if WP_CONFIG_MARKER in config:
        return config.replace(WP_CONFIG_MARKER, f"{block}\n{WP_CONFIG_MARKER}", 1)
    logger.warning("wp-config.php has no stop-editing marker; appending constants")
    return config.rstrip("\n") + "\n" + block


def write_wp_config(wp: WpCli, port: int = DEFAULT_PORT, debug: bool = True) -> Path:
    """Generate ``wp-config.php`` and add the SQLite constants.

    The database credentials are placeholders: the db.php drop-in
    replaces the MySQL connection entirely.
    """
    wp.run([
        "config", "create",
        "--dbname=wordpress",
        "--dbuser=",
        "--dbpass=",
        "--dbhost=",
        "--skip-check",
        "--force",
    ])
    path = wp.project_path / "wp-config.php"
    config = path.read_text(encoding="utf-8")
    path.write_text(inject_wp_config(config, port, debug), encoding="utf-8")
    return path


def install_plugins(wp: WpCli, slugs: list[str], progress: Progress = _noop) -> tuple[list[str], list[str]]:
    """Install and activate optional plugins. Returns (installed, skipped)."""
    installed, skipped = [], []
    for slug in slugs:
        progress(f"Installing {slug}...")
        if wp.try_run(["plugin", "install", slug, "--activate"]):
            installed.append(slug)
        else:
            logger.warning("Failed to install %s, skipping", slug)
            skipped.append(slug)
    return installed, skipped


def init_git(project_path: Path) -> bool:
    """``git init`` plus a WordPress ``.gitignore``. False if git is unavailable."""
    try:
        subprocess.run(
            ["git", "init"], cwd=project_path, capture_output=True, check=True, timeout=30,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning("Git not available, skipping initialization: %s", e)
        return False
    (project_path / ".gitignore").write_text(GITIGNORE, encoding="utf-8")
    return True


# ── Orchestration ───────────────────────────────────────────────


def create_project(
    options: NewProjectOptions,
    *,
    settings: Settings | None = None,
    progress: Progress = _noop,
) -> NewProjectResult:
    """Create a ready-to-serve WordPress project.

    Raises:
        InvalidProjectName, ProjectExists: Before anything is created.
        ScaffoldError: The SQLite plugin could not be installed.
        WpCliError: A required WP-CLI step failed.
    """
    validate_project_name(options.name, options.parent_dir)
    project_path = options.project_path
    wp = WpCli(project_path, settings)
    slugs = list(dict.fromkeys(options.plugins))

    progress("Creating project directory...")
    project_path.mkdir(parents=True)

    progress(f"Downloading WordPress {options.wp}...")
    download_core(wp, options.wp)

    progress("Installing SQLite database integration...")
    install_sqlite_plugin(project_path, settings)
    install_db_dropin(project_path)

    progress("Creating wp-config.php...")
    write_wp_config(wp, options.port, debug=True)

    progress("Installing WordPress...")
    install_site(wp, title=options.name, port=options.port)
    activate_sqlite_plugin(wp)

    installed, skipped = install_plugins(wp, slugs, progress)

    progress("Configuring permalinks...")
    configure_permalinks(wp)
    remove_default_content(wp)

    progress("Creating blueprint.json...")
    save_blueprint(project_path, Blueprint(
        preferred_versions=PreferredVersions(php=options.php, wp=options.wp),
        steps=plugin_steps(slugs),
        wpsmith=WpsmithSettings(port=options.port),
    ))
    write_default_seeder(project_path)

    git_initialized = False
    if options.git:
        progress("Initializing git repository...")
        git_initialized = init_git(project_path)

    logger.info("Created project %s", project_path)
    return NewProjectResult(
        project_path=project_path,
        port=options.port,
        installed_plugins=installed,
        skipped_plugins=skipped,
        git_initialized=git_initialized,
    )
