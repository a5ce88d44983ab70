"""
Project discovery — find the WordPress project a command operates on.

A directory is a wpsmith project when it holds ``.wpsmith.json`` or
``wp-config.php``.  Commands can be run from any subdirectory: the
search walks up towards the filesystem root.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

PROJECT_MARKERS = (".wpsmith.json", "wp-config.php")


class ProjectNotFound(Exception):
    """Raised when no WordPress project encloses the working directory."""

    hint = "Run this command from a WordPress project root, or create one with: wpsmith new my-site"

    def __init__(self, start_dir: Path | None = None):
        where = f" at or above {start_dir}" if start_dir else ""
        super().__init__(f"Not a WordPress project directory{where}.")


def is_wordpress_project(directory: Path) -> bool:
    """Whether ``directory`` holds one of the project markers."""
    return any((directory / marker).is_file() for marker in PROJECT_MARKERS)


def find_project_root(start_dir: Path | None = None) -> Path | None:
    """Search for a project marker starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        The project root directory, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(64):  # safety limit
        if is_wordpress_project(current):
            logger.debug("Project root: %s", current)
            return current
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def resolve_project_root(explicit: Path | None = None) -> Path:
    """Resolve the project root from an explicit path or by discovery.

    Raises:
        ProjectNotFound: If ``explicit`` is not a project or none is found.
    """
    if explicit is not None:
        root = explicit.resolve()
        if not is_wordpress_project(root):
            raise ProjectNotFound(root)
        return root

    root = find_project_root()
    if root is None:
        raise ProjectNotFound(Path.cwd())
    return root
