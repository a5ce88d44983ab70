"""
Checkpoint models — the snapshot index and its records.

The index is serialized to ``wp-content/database/checkpoints/meta.json``.
Records are kept in creation order; the last one is the latest.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

CHECKPOINT_SUFFIX = ".sqlite"

# Names become file names inside the checkpoint directory
CHECKPOINT_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

# A record's file must be a bare name inside that directory
CHECKPOINT_FILE_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*\.sqlite$")


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


def checkpoint_filename(name: str) -> str:
    """File name holding the copy for checkpoint ``name``."""
    return f"{name}{CHECKPOINT_SUFFIX}"


def generated_name(now: datetime | None = None) -> str:
    """Name for an unnamed checkpoint: ``checkpoint-<unix millis>``."""
    moment = now or datetime.now(UTC)
    return f"checkpoint-{int(moment.timestamp() * 1000)}"


class CheckpointRecord(BaseModel):
    """One named copy of the live database."""

    name: str
    created: str = Field(default_factory=_now_iso)
    file: str = ""
    description: str | None = None

    def model_post_init(self, __context: object) -> None:
        if not self.file:
            self.file = checkpoint_filename(self.name)

    @property
    def created_at(self) -> datetime | None:
        """``created`` parsed back to a datetime (None if unparseable)."""
        try:
            parsed = datetime.fromisoformat(self.created.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed


class CheckpointIndex(BaseModel):
    """Ordered catalogue of checkpoint records.

    On disk the list lives under ``checkpoints``; ``entries`` is accepted
    as well when reading.
    """

    model_config = ConfigDict(populate_by_name=True)

    entries: list[CheckpointRecord] = Field(default_factory=list, alias="checkpoints")

    def __len__(self) -> int:
        return len(self.entries)

    def names(self) -> list[str]:
        return [record.name for record in self.entries]

    def find(self, name: str) -> CheckpointRecord | None:
        """Look up a record by name."""
        for record in self.entries:
            if record.name == name:
                return record
        return None

    def latest(self) -> CheckpointRecord | None:
        return self.entries[-1] if self.entries else None

    def append(self, record: CheckpointRecord) -> None:
        self.entries.append(record)

    def remove(self, name: str) -> CheckpointRecord | None:
        """Drop the record called ``name`` and return it."""
        for i, record in enumerate(self.entries):
            if record.name == name:
                return self.entries.pop(i)
        return None

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
