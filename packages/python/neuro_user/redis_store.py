from __future__ import annotations

import gzip
import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from neuro_core.config import REDIS_NAMESPACE
from neuro_core.errors import PersistenceError
from neuro_user.brain import UserBrain
from neuro_user.store import BrainRecord, decode_record

log = logging.getLogger(__name__)


class RedisBrainStore:
    """
    Redis-backed brain store: {namespace}{profile_id} -> gzip'd JSON record.

    SET replaces the whole value at once, so there is no partial-write window.
    Read errors are treated as a miss; write errors raise so the flusher retries.
    """

    def __init__(
        self,
        *,
        client: Redis,
        profile_id: str = "default",
        namespace: str = REDIS_NAMESPACE,
        compression_level: int = 5,
    ) -> None:
        # client should be created with decode_responses=False (bytes payloads)
        self._r = client
        self._key = f"{namespace}{profile_id}"
        self._level = int(compression_level)

    # ----- codec -----
    def _encode(self, brain: UserBrain) -> bytes:
        raw = BrainRecord.wrap(brain).dump().encode("utf-8")
        return gzip.compress(raw, compresslevel=self._level)

    def _decode(self, b: bytes) -> UserBrain | None:
        try:
            raw = gzip.decompress(b)
        except Exception as e:
            log.warning("Corrupt brain blob at %s: %s", self._key, e)
            return None
        return decode_record(raw, source=self._key)

    # ----- API -----
    async def load(self) -> UserBrain | None:
        try:
            b = await self._r.get(self._key)
        except (RedisError, RuntimeError) as e:
            # Treat Redis connection errors as cache misses.
            log.warning("Redis load failed for %s: %s", self._key, e)
            return None
        if not b:
            return None
        return self._decode(b)

    async def save(self, brain: UserBrain) -> None:
        try:
            await self._r.set(self._key, self._encode(brain))
        except (RedisError, RuntimeError) as e:
            raise PersistenceError(f"redis save failed: {e}") from e

    async def delete(self) -> None:
        try:
            await self._r.delete(self._key)
        except (RedisError, RuntimeError):
            return

    async def aclose(self) -> None:
        try:
            await self._r.aclose()
        except (RedisError, RuntimeError):
            pass
