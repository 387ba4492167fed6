from __future__ import annotations

import logging
import threading
import time
from dataclasses import asdict, dataclass
from typing import Any

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Root logging setup for hosts; library modules only ever call getLogger."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


@dataclass
class TelemetrySnapshot:
    signals: int = 0
    flushes: int = 0
    flush_failures: int = 0
    flush_abandoned: int = 0
    last_flush_at: float | None = None
    last_flush_ms: int | None = None
    last_error: str | None = None


class EngineTelemetry:
    """
    In-process counters for the engine: signals applied, flushes, failures.

    Cheap enough to bump on every call; read via ``snapshot()`` for the
    diagnostics export. Also logs flush outcomes through ``log``.
    """

    def __init__(self, name: str = "neuro_engine", *, enabled: bool = True):
        self.log = logging.getLogger(name)
        self.enabled = enabled
        self._lock = threading.Lock()
        self._s = TelemetrySnapshot()

    def signal(self) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._s.signals += 1

    def flush_ok(self, started: float) -> None:
        dur_ms = int((time.perf_counter() - started) * 1000)
        with self._lock:
            self._s.flushes += 1
            self._s.last_flush_at = time.time()
            self._s.last_flush_ms = dur_ms
        self.log.debug("brain flushed in %dms", dur_ms)

    def flush_failed(self, attempt: int, err: BaseException) -> None:
        with self._lock:
            self._s.flush_failures += 1
            self._s.last_error = str(err)[:300]
        self.log.warning("brain flush attempt %d failed: %s", attempt, err)

    def flush_abandoned(self, attempts: int) -> None:
        with self._lock:
            self._s.flush_abandoned += 1
        self.log.error(
            "brain flush abandoned after %d attempts; durable copy is stale until next change",
            attempts,
        )

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return asdict(self._s)
