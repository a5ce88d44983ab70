"""
Atomic file writes — temp file in the target directory, then rename.

A reader never sees a half-written index or blueprint: either the old
file or the new one.  ``os.replace`` overwrites on every platform.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

STAGING_PREFIX = ".wpsmith_"
STAGING_SUFFIX = ".tmp"


def staging_path(target: Path) -> Path:
    """Reserve a unique staging file next to ``target``."""
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(
        dir=target.parent,
        prefix=STAGING_PREFIX,
        suffix=STAGING_SUFFIX,
    )
    os.close(fd)
    return Path(tmp_path)


def write_text_atomic(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` atomically (UTF-8)."""
    tmp = staging_path(path)
    try:
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, path)
        logger.debug("Wrote %s", path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


def write_json_atomic(path: Path, data: Any) -> None:
    """Serialize ``data`` as 2-space indented JSON and write it atomically."""
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    write_text_atomic(path, content)

