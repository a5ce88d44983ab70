"""
Checkpoint store — named point-in-time copies of the SQLite database.

Layout inside ``wp-content/database/checkpoints/``::

    meta.json            ordered index (see CheckpointIndex)
    <name>.sqlite        one byte-for-byte copy per checkpoint
    .meta.lock           present while a command mutates the index

Every index read-modify-write runs under ``IndexLock``.  Files and the
index are published with atomic renames, so a crash leaves either the
old state or a staging file that ``reconcile()`` sweeps up.  Restoring
is destructive: the live database is not checkpointed first.

Reads of the index are lenient: a missing or corrupt ``meta.json`` is
an empty index, not an error.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import shutil
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Iterator

from pydantic import ValidationError

from wpsmith.core.config.paths import checkpoints_path, database_path, database_sidecars
from wpsmith.core.config.settings import get_settings
from wpsmith.core.models.checkpoint import (
    CHECKPOINT_FILE_RE,
    CHECKPOINT_NAME_RE,
    CHECKPOINT_SUFFIX,
    CheckpointIndex,
    CheckpointRecord,
    checkpoint_filename,
    generated_name,
)
from wpsmith.core.persistence.atomic import (
    STAGING_PREFIX,
    STAGING_SUFFIX,
    staging_path,
    write_json_atomic,
)
from wpsmith.core.persistence.locking import IndexLock, LockTimeout

logger = logging.getLogger(__name__)

INDEX_FILENAME = "meta.json"


# ═══════════════════════════════════════════════════════════════════
#  Errors
# ═══════════════════════════════════════════════════════════════════


class CheckpointError(Exception):
    """Base class for checkpoint failures. ``hint`` says what to do next."""

    hint = ""

    def __init__(self, message: str, hint: str | None = None):
        super().__init__(message)
        if hint is not None:
            self.hint = hint


class NoLiveDatabase(CheckpointError):
    hint = "Run the site first (wpsmith serve) to create a database."

    def __init__(self, db_path: Path):
        super().__init__(f"No database found at {db_path}.")
        self.db_path = db_path


class DuplicateCheckpoint(CheckpointError):
    hint = "Use a different name or delete the existing checkpoint first."

    def __init__(self, name: str):
        super().__init__(f'Checkpoint "{name}" already exists.')
        self.name = name


class CheckpointNotFound(CheckpointError):
    hint = "List checkpoints with: wpsmith checkpoint list"

    def __init__(self, name: str | None):
        if name is None:
            super().__init__(
                "No checkpoints found.",
                hint="Create one with: wpsmith checkpoint create <name>",
            )
        else:
            super().__init__(f'Checkpoint "{name}" not found.')
        self.name = name


class CheckpointFileMissing(CheckpointError):
    hint = "Run 'wpsmith checkpoint repair' to drop records whose files are gone."

    def __init__(self, record: CheckpointRecord):
        super().__init__(f"Checkpoint file not found: {record.file}")
        self.record = record


class UnsafeCheckpointFile(CheckpointError):
    hint = "Run 'wpsmith checkpoint repair' to drop the record."

    def __init__(self, record: CheckpointRecord):
        super().__init__(
            f'Checkpoint "{record.name}" points outside the checkpoint directory: {record.file}'
        )
        self.record = record


class InvalidCheckpointName(CheckpointError):
    hint = "Use letters, digits, '.', '_' and '-', starting with a letter or digit."

    def __init__(self, name: str):
        super().__init__(f'Invalid checkpoint name: "{name}"')
        self.name = name


class CheckpointIOError(CheckpointError):
    hint = "Check file permissions and free disk space."


class CheckpointLockTimeout(CheckpointIOError):
    def __init__(self, exc: LockTimeout):
        super().__init__(
            str(exc),
            hint=(
                "Another wpsmith command is working on the checkpoints. "
                f"Retry, or delete {exc.path} if none is running."
            ),
        )


# ═══════════════════════════════════════════════════════════════════
#  Reconcile report
# ═══════════════════════════════════════════════════════════════════


@dataclass
class ReconcileReport:
    """What ``CheckpointStore.reconcile()`` changed."""

    dropped: list[str] = field(default_factory=list)   # records without a file
    adopted: list[str] = field(default_factory=list)   # files without a record
    cleaned: list[str] = field(default_factory=list)   # stale staging files

    @property
    def changed(self) -> bool:
        return bool(self.dropped or self.adopted or self.cleaned)

    def to_dict(self) -> dict:
        return {
            "dropped": self.dropped,
            "adopted": self.adopted,
            "cleaned": self.cleaned,
        }


# ═══════════════════════════════════════════════════════════════════
#  Store
# ═══════════════════════════════════════════════════════════════════


class CheckpointStore:
    """Create, list, restore and delete checkpoints of one database file."""

    def __init__(
        self,
        db_path: Path,
        directory: Path,
        *,
        lock_timeout: float | None = None,
        lock_stale_after: float | None = None,
    ):
        settings = get_settings()
        self._db_path = db_path
        self._dir = directory
        self._lock_timeout = settings.lock_timeout if lock_timeout is None else lock_timeout
        self._lock_stale_after = (
            settings.lock_stale_after if lock_stale_after is None else lock_stale_after
        )

    @classmethod
    def for_project(cls, project_path: Path, **kwargs: float) -> CheckpointStore:
        """Store for the standard layout of a wpsmith project."""
        return cls(database_path(project_path), checkpoints_path(project_path), **kwargs)

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def directory(self) -> Path:
        return self._dir

    @property
    def index_path(self) -> Path:
        return self._dir / INDEX_FILENAME

    def file_path(self, record: CheckpointRecord) -> Path:
        """Backing file of ``record``.

        Raises:
            UnsafeCheckpointFile: ``record.file`` is not a bare ``*.sqlite`` name.
        """
        if not CHECKPOINT_FILE_RE.fullmatch(record.file):
            raise UnsafeCheckpointFile(record)
        return self._dir / record.file

    # ── Queries ─────────────────────────────────────────────────

    def list(self) -> list[CheckpointRecord]:
        """All records, oldest first."""
        return list(self.read_index().entries)

    def get(self, name: str) -> CheckpointRecord | None:
        return self.read_index().find(name)

    def latest(self) -> CheckpointRecord | None:
        return self.read_index().latest()

    def size_of(self, record: CheckpointRecord) -> int | None:
        """Size of the backing file in bytes, or None if it is gone."""
        try:
            return self.file_path(record).stat().st_size
        except (OSError, UnsafeCheckpointFile):
            return None

    def read_index(self) -> CheckpointIndex:
        """Read the index; missing or unreadable means empty."""
        index, _corrupt = self._parse_index()
        return index

    # ── Mutations ───────────────────────────────────────────────

    def create(self, name: str | None = None, description: str | None = None) -> CheckpointRecord:
        """Copy the live database into a new checkpoint.

        Raises:
            InvalidCheckpointName, NoLiveDatabase, DuplicateCheckpoint,
            CheckpointIOError
        """
        name = name or generated_name()
        _validate_name(name)

        if not self._db_path.is_file():
            raise NoLiveDatabase(self._db_path)

        target = self._dir / checkpoint_filename(name)

        with self._guarded():
            self._dir.mkdir(parents=True, exist_ok=True)
            staged = staging_path(target)
            try:
                shutil.copyfile(self._db_path, staged)
                record = CheckpointRecord(name=name, description=description or None)

                index = self._load_for_update()
                if target.exists() or index.find(name) is not None:
                    raise DuplicateCheckpoint(name)

                os.replace(staged, target)
                index.append(record)
                try:
                    self._write_index(index)
                except OSError:
                    target.unlink(missing_ok=True)
                    raise
            finally:
                staged.unlink(missing_ok=True)

        logger.info("Checkpoint created: %s (%s)", name, target)
        return record

    def restore(self, name: str | None = None) -> CheckpointRecord:
        """Replace the live database with a checkpoint (latest when ``name`` is None).

        Raises:
            CheckpointNotFound, CheckpointFileMissing, UnsafeCheckpointFile,
            CheckpointIOError
        """
        with self._guarded():
            index = self.read_index()
            if not index.entries:
                raise CheckpointNotFound(None)

            record = index.find(name) if name is not None else index.latest()
            if record is None:
                raise CheckpointNotFound(name)

            source = self.file_path(record)
            if not source.is_file():
                raise CheckpointFileMissing(record)

            staged = staging_path(self._db_path)
            try:
                shutil.copyfile(source, staged)
                for path in [self._db_path, *database_sidecars(self._db_path)]:
                    path.unlink(missing_ok=True)
                os.replace(staged, self._db_path)
            finally:
                staged.unlink(missing_ok=True)

        logger.info("Database restored from checkpoint %s", record.name)
        return record

    def delete(self, name: str) -> CheckpointRecord:
        """Remove one checkpoint: its file first, then its record.

        Raises:
            CheckpointNotFound, CheckpointIOError
        """
        with self._guarded():
            index = self._load_for_update()
            record = index.find(name)
            if record is None:
                raise CheckpointNotFound(name)

            self._remove_file(record)
            index.remove(name)
            self._write_index(index)

        logger.info("Checkpoint deleted: %s", name)
        return record

    def clear(self) -> int:
        """Remove every checkpoint and empty the index. Returns the count removed."""
        with self._guarded():
            index = self._load_for_update()
            for record in index.entries:
                self._remove_file(record)
            self._write_index(CheckpointIndex())

        logger.info("Cleared %d checkpoints", len(index))
        return len(index)

    def reconcile(self) -> ReconcileReport:
        """Bring the index and the directory back in line.

        Drops records whose file is gone, adopts ``*.sqlite`` files that no
        record tracks (created = file mtime), deletes left-over staging files.
        """
        report = ReconcileReport()
        if not self._dir.is_dir():
            return report

        with self._guarded():
            index = self._load_for_update()

            for record in list(index.entries):
                if not self._has_file(record):
                    index.remove(record.name)
                    report.dropped.append(record.name)

            tracked = {record.file for record in index.entries}
            orphans = sorted(
                (p for p in self._dir.glob(f"*{CHECKPOINT_SUFFIX}") if p.name not in tracked),
                key=lambda p: p.stat().st_mtime,
            )
            for path in orphans:
                name = path.name[: -len(CHECKPOINT_SUFFIX)]
                if not CHECKPOINT_NAME_RE.match(name) or index.find(name) is not None:
                    logger.warning("Leaving untracked file %s alone", path)
                    continue
                created = datetime.fromtimestamp(path.stat().st_mtime, UTC)
                _insert_by_created(
                    index,
                    CheckpointRecord(name=name, created=created.isoformat(), file=path.name),
                )
                report.adopted.append(name)

            for directory in (self._dir, self._db_path.parent):
                for tmp in directory.glob(f"{STAGING_PREFIX}*{STAGING_SUFFIX}"):
                    tmp.unlink(missing_ok=True)
                    report.cleaned.append(tmp.name)

            if report.dropped or report.adopted:
                self._write_index(index)

        if report.changed:
            logger.info(
                "Reconciled checkpoints: %d dropped, %d adopted, %d cleaned",
                len(report.dropped), len(report.adopted), len(report.cleaned),
            )
        return report

    # ── Internals ───────────────────────────────────────────────

    @contextlib.contextmanager
    def _guarded(self) -> Iterator[None]:
        """Hold the index lock; surface OS failures as CheckpointIOError."""
        lock = IndexLock(
            self._dir,
            timeout=self._lock_timeout,
            stale_after=self._lock_stale_after,
        )
        try:
            lock.acquire()
        except LockTimeout as e:
            raise CheckpointLockTimeout(e) from e
        except OSError as e:
            raise CheckpointIOError(f"Cannot lock {self._dir}: {e}") from e

        try:
            yield
        except OSError as e:
            raise CheckpointIOError(str(e)) from e
        finally:
            lock.release()

    def _parse_index(self) -> tuple[CheckpointIndex, bool]:
        """Return (index, corrupt). A missing file is empty, not corrupt."""
        path = self.index_path
        if not path.is_file():
            return CheckpointIndex(), False

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return CheckpointIndex.model_validate(data), False
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("Unreadable checkpoint index %s: %s — treating as empty", path, e)
            return CheckpointIndex(), True

    def _load_for_update(self) -> CheckpointIndex:
        """Read the index before a write, setting a corrupt one aside."""
        index, corrupt = self._parse_index()
        if corrupt:
            backup = self.index_path.with_name(INDEX_FILENAME + ".corrupt")
            os.replace(self.index_path, backup)
            logger.warning("Moved corrupt checkpoint index to %s", backup)
        return index

    def _write_index(self, index: CheckpointIndex) -> None:
        write_json_atomic(self.index_path, index.to_json_dict())

    def _has_file(self, record: CheckpointRecord) -> bool:
        try:
            return self.file_path(record).is_file()
        except UnsafeCheckpointFile:
            return False

    def _remove_file(self, record: CheckpointRecord) -> None:
        """Delete a checkpoint's file; failure is logged, not raised."""
        try:
            path = self.file_path(record)
        except UnsafeCheckpointFile as e:
            logger.warning("%s; leaving it alone", e)
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove %s: %s", path, e)


def _validate_name(name: str) -> None:
    if not CHECKPOINT_NAME_RE.match(name):
        raise InvalidCheckpointName(name)


def _insert_by_created(index: CheckpointIndex, record: CheckpointRecord) -> None:
    """Insert ``record`` before the first entry created after it."""
    when = record.created_at
    for i, existing in enumerate(index.entries):
        existing_at = existing.created_at
        if when is not None and existing_at is not None and existing_at > when:
            index.entries.insert(i, record)
            return
    index.entries.append(record)
