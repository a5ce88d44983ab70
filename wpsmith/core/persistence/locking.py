"""
Index lock — serialize read-modify-write of the checkpoint index.

Two ``wpsmith checkpoint`` invocations against the same project would
otherwise race on ``meta.json`` and lose an entry.  The lock is a
sentinel file created with ``O_CREAT | O_EXCL``: whoever creates it
owns it.  The owner's PID and a timestamp are written inside so a lock
left behind by a killed process can be recognised and broken.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path

logger = logging.getLogger(__name__)

LOCK_FILENAME = ".meta.lock"
_POLL_INTERVAL = 0.05


class LockTimeout(OSError):
    """The lock could not be acquired within the timeout."""

    def __init__(self, path: Path, timeout: float):
        super().__init__(f"Timed out after {timeout:g}s waiting for lock {path}")
        self.path = path
        self.timeout = timeout


class IndexLock:
    """Exclusive advisory lock on a directory.

    Usage::

        with IndexLock(checkpoint_dir, timeout=10):
            index = read_index()
            ...
            write_index(index)
    """

    def __init__(self, directory: Path, timeout: float = 10.0, stale_after: float = 300.0):
        self._path = directory / LOCK_FILENAME
        self._timeout = timeout
        self._stale_after = stale_after
        self._held = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        deadline = time.monotonic() + self._timeout

        while True:
            try:
                fd = os.open(self._path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
            except FileExistsError:
                if self._break_if_stale():
                    continue
                if time.monotonic() >= deadline:
                    raise LockTimeout(self._path, self._timeout) from None
                time.sleep(_POLL_INTERVAL)
                continue

            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(f"{os.getpid()} {time.time():.3f}\n")
            self._held = True
            logger.debug("Acquired %s", self._path)
            return

    def release(self) -> None:
        if not self._held:
            return
        self._held = False
        try:
            self._path.unlink()
            logger.debug("Released %s", self._path)
        except FileNotFoundError:
            logger.warning("Lock %s vanished while held", self._path)

    def _break_if_stale(self) -> bool:
        """Remove the lock file if it is older than the stale threshold."""
        try:
            age = time.time() - self._path.stat().st_mtime
        except FileNotFoundError:
            return True  # released between open() and stat(); retry now
        if age < self._stale_after:
            return False
        logger.warning("Breaking stale lock %s (%.0fs old)", self._path, age)
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass
        return True

    def __enter__(self) -> IndexLock:
        self.acquire()
        return self

    def __exit__(self, *exc: object) -> None:
        self.release()
