"""
Project context — which WordPress project this process is working on.

Set ONCE at startup by the CLI entry point (``main.py``) after the
``--project`` option and the upward marker search are resolved.
Tests set it directly with ``set_project_root(tmp_path)``.

Module-level singleton: commands that need a project call
``require_project_root()``, which falls back to discovery when unset.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


_project_root: Optional[Path] = None


def set_project_root(root: Path | None) -> None:
    """Register the project root for the current process."""
    global _project_root
    _project_root = root


def get_project_root() -> Optional[Path]:
    """Return the current project root, or None if not yet set."""
    return _project_root


def require_project_root() -> Path:
    """Return the registered project root, discovering it if needed.

    Raises:
        ProjectNotFound: If no WordPress project encloses the cwd.
    """
    if _project_root is not None:
        return _project_root

    from wpsmith.core.config.loader import ProjectNotFound, find_project_root

    root = find_project_root()
    if root is None:
        raise ProjectNotFound()
    set_project_root(root)
    return root
