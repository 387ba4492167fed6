from __future__ import annotations

import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Protocol

from anyio import to_thread
from pydantic import BaseModel, ConfigDict, Field

from neuro_core.config import BRAIN_FILENAME, BRAIN_SCHEMA, BRAIN_SCHEMA_VERSION
from neuro_core.errors import PersistenceError
from neuro_user.brain import UserBrain

log = logging.getLogger(__name__)


class BrainRecord(BaseModel):
    """Versioned, self-describing envelope for one persisted brain."""

    model_config = ConfigDict(populate_by_name=True)

    record_schema: str = Field(alias="schema")
    version: int
    saved_at: float
    brain: dict[str, Any]

    @classmethod
    def wrap(cls, brain: UserBrain) -> "BrainRecord":
        return cls(
            record_schema=BRAIN_SCHEMA,
            version=BRAIN_SCHEMA_VERSION,
            saved_at=time.time(),
            brain=brain.to_dict(),
        )

    def dump(self) -> str:
        return self.model_dump_json(by_alias=True)


def decode_record(raw: str | bytes, *, source: str) -> UserBrain | None:
    """Parse + version-check a record. Any failure is a miss, never an exception."""
    try:
        rec = BrainRecord.model_validate_json(raw)
    except Exception as e:
        log.warning("Unreadable brain record at %s: %s", source, e)
        return None
    if rec.record_schema != BRAIN_SCHEMA or rec.version != BRAIN_SCHEMA_VERSION:
        log.warning(
            "Ignoring brain record at %s with schema=%s version=%s (want %s v%s)",
            source,
            rec.record_schema,
            rec.version,
            BRAIN_SCHEMA,
            BRAIN_SCHEMA_VERSION,
        )
        return None
    try:
        return UserBrain.from_dict(rec.brain)
    except Exception as e:
        log.warning("Malformed brain payload at %s: %s", source, e)
        return None


class BrainRepo(Protocol):
    async def load(self) -> UserBrain | None: ...

    async def save(self, brain: UserBrain) -> None: ...


class FileBrainStore:
    """
    Local JSON file, one per profile.

    Writes go to a temp file in the same directory, are fsync'd, then
    ``os.replace``d over the target so a crash never leaves a torn record.
    """

    def __init__(self, directory: str | Path, *, filename: str = BRAIN_FILENAME):
        self.directory = Path(directory)
        self.path = self.directory / filename

    # ---------- Async facade ----------
    async def load(self) -> UserBrain | None:
        return await to_thread.run_sync(self._load_sync)

    async def save(self, brain: UserBrain) -> None:
        await to_thread.run_sync(self._save_sync, brain)

    # ---------- Private sync impls ----------
    def _load_sync(self) -> UserBrain | None:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            log.warning("Cannot read brain file %s: %s", self.path, e)
            return None
        if not raw.strip():
            log.warning("Empty brain file %s", self.path)
            return None
        return decode_record(raw, source=str(self.path))

    def _save_sync(self, brain: UserBrain) -> None:
        payload = BrainRecord.wrap(brain).dump().encode("utf-8")
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.directory
            )
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise PersistenceError(f"brain save failed: {e}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass


class MemoryBrainStore:
    """In-process store; keeps the serialized record so round-trips match the file store."""

    def __init__(self, raw: str | None = None):
        self.raw = raw
        self.saves = 0

    async def load(self) -> UserBrain | None:
        if not self.raw:
            return None
        return decode_record(self.raw, source="memory")

    async def save(self, brain: UserBrain) -> None:
        self.raw = BrainRecord.wrap(brain).dump()
        self.saves += 1
