from datetime import datetime
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from neuro_core.errors import PersistenceError
from neuro_core.types import BrainParams, Interaction, SignalKind
from neuro_user.brain import UserBrain
from neuro_user.store import MemoryBrainStore

# a Wednesday afternoon, local time
NOON = datetime(2024, 5, 15, 14, 0, 0)


def make_signal(kind: str | SignalKind, topics=(), **kw: Any) -> Interaction:
    kw.setdefault("timestamp", NOON)
    return Interaction(kind=kind, topics=list(topics), **kw)


class CountingStore(MemoryBrainStore):
    """Memory store that counts loads and can be told to fail saves."""

    def __init__(self, raw: str | None = None, *, fail_saves: int = 0):
        super().__init__(raw)
        self.loads = 0
        self.fail_saves = fail_saves
        self.save_attempts = 0
        self.saved: List[UserBrain] = []

    async def load(self):
        self.loads += 1
        return await super().load()

    async def save(self, brain: UserBrain) -> None:
        self.save_attempts += 1
        if self.fail_saves:
            self.fail_saves -= 1
            raise PersistenceError("disk full")
        await super().save(brain)
        self.saved.append(brain)


class FakeRedis:
    def __init__(self, *, broken: bool = False):
        self.data: Dict[str, bytes] = {}
        self.broken = broken
        self.closed = False

    def _check(self):
        if self.broken:
            from redis.exceptions import ConnectionError

            raise ConnectionError("connection refused")

    async def get(self, key: str):
        self._check()
        return self.data.get(key)

    async def set(self, key: str, value: bytes):
        self._check()
        self.data[key] = value
        return True

    async def delete(self, key: str):
        self._check()
        return 1 if self.data.pop(key, None) is not None else 0

    async def aclose(self):
        self.closed = True


@pytest.fixture()
def anyio_backend():
    # the engine's flusher is an asyncio task
    return "asyncio"


@pytest.fixture()
def params() -> BrainParams:
    return BrainParams(flush_debounce_sec=0.05, flush_backoff_base=0.0)


@pytest.fixture()
def store() -> CountingStore:
    return CountingStore()


@pytest.fixture()
def test_client(tmp_path, monkeypatch):
    monkeypatch.setenv("BRAIN_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("USE_REDIS_BRAIN_STORE", "false")
    monkeypatch.setenv("FLUSH_DEBOUNCE_SEC", "0.05")
    monkeypatch.setenv("PROFILE_ID", "tester")

    # Import after env is set so Settings picks it up in the lifespan
    from app.main import app  # type: ignore

    with TestClient(app) as client:
        yield client
