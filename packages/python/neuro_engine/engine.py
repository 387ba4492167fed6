from __future__ import annotations

import asyncio
import logging
import random
import threading
import time
from collections import deque
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping

from pydantic import ValidationError

from neuro_core.errors import InvalidSignal, NotInitialized
from neuro_core.types import BrainParams, Interaction, SignalKind
from neuro_discovery.queries import generate_discovery_queries
from neuro_logging.logger import EngineTelemetry
from neuro_persona.engagement import EngagementLevel, get_engagement
from neuro_persona.persona import Persona, get_persona
from neuro_ranking.rank import rank
from neuro_ranking.types import ScoredItem
from neuro_user.brain import BrainStore, UserBrain
from neuro_user.features import ContentItem
from neuro_user.store import BrainRepo

from .schemas import BrainExport
from .views import build_export

log = logging.getLogger(__name__)

Mutation = Callable[[BrainStore], bool]

# mutations applied before the persisted brain finished loading
_REPLAY_LIMIT = 10_000


def _coerce(signal: Interaction | Mapping[str, Any]) -> Interaction:
    if isinstance(signal, Interaction):
        return signal
    try:
        return Interaction.model_validate(signal)
    except ValidationError as e:
        raise InvalidSignal(str(e.errors(include_url=False)[:3])) from e


class PersonalizationEngine:
    """
    Owns one profile's brain: applies signals, answers queries, persists.

    Construct explicitly and hand the instance to hosts; nothing is global.
    All sync methods are safe to call from any thread or coroutine and only
    ever hold the state lock for CPU work. Persistence runs on a single
    background task started by ``initialize``.
    """

    def __init__(
        self,
        params: BrainParams | None = None,
        *,
        telemetry: EngineTelemetry | None = None,
    ):
        self.params = params or BrainParams()
        self.telemetry = telemetry or EngineTelemetry()
        self._store = BrainStore(self.params)
        self._lock = threading.Lock()

        self._repo: BrainRepo | None = None
        self._init_lock: asyncio.Lock | None = None
        self._save_lock: asyncio.Lock | None = None
        self._initialized = False
        self._replay: deque[Mutation] | None = deque(maxlen=_REPLAY_LIMIT)
        self._replay_overflow = False

        self._loop: asyncio.AbstractEventLoop | None = None
        self._dirty: asyncio.Event | None = None
        self._urgent: asyncio.Event | None = None
        self._flusher: asyncio.Task | None = None
        self._closed = False

        self._version = 0
        self._saved_version = 0

    @property
    def initialized(self) -> bool:
        return self._initialized

    # ---------- Lifecycle ----------
    async def initialize(self, repo: BrainRepo) -> None:
        """Load the persisted brain (or start empty) and start the flusher. Idempotent."""
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        async with self._init_lock:
            if self._initialized:
                return
            self._repo = repo
            try:
                loaded = await repo.load()
            except Exception as e:
                log.warning("Brain load failed, starting empty: %s", e)
                loaded = None

            with self._lock:
                replay = list(self._replay or ())
                self._replay = None
                if loaded is not None:
                    self._store.brain = loaded
                    for fn in replay:
                        fn(self._store)
                if replay:
                    self._version += 1
                log.info(
                    "Brain ready: %d interactions, %d topics (%d replayed)",
                    self._store.brain.total_interactions,
                    len(self._store.brain.global_vector.topics),
                    len(replay),
                )

            self._loop = asyncio.get_running_loop()
            self._dirty = asyncio.Event()
            self._urgent = asyncio.Event()
            self._save_lock = asyncio.Lock()
            self._flusher = asyncio.create_task(self._flush_loop(), name="brain-flusher")
            self._initialized = True
            if replay:
                self._schedule_flush(urgent=False)

    async def flush(self) -> bool:
        """Persist the current brain now. Returns False when every attempt failed."""
        if self._repo is None or self._save_lock is None:
            raise NotInitialized("engine.initialize() has not completed")
        async with self._save_lock:
            return await self._flush_with_retry()

    async def shutdown(self) -> None:
        """Stop the background flusher and write a final snapshot."""
        if not self._initialized or self._closed:
            return
        self._closed = True
        task, self._flusher = self._flusher, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self.flush()
        log.info("Brain engine shut down")

    # ---------- Flushing ----------
    def _schedule_flush(self, *, urgent: bool) -> None:
        loop = self._loop
        if loop is None or self._closed:
            return

        def _mark() -> None:
            if urgent:
                self._urgent.set()
            self._dirty.set()

        try:
            loop.call_soon_threadsafe(_mark)
        except RuntimeError:
            # loop already closed; shutdown() has done or will do the final write
            log.debug("Flush request dropped: event loop closed")

    async def _flush_loop(self) -> None:
        while True:
            await self._dirty.wait()
            if not self._urgent.is_set():
                try:
                    await asyncio.wait_for(
                        self._urgent.wait(), timeout=self.params.flush_debounce_sec
                    )
                except asyncio.TimeoutError:
                    pass
            # cleared before the snapshot so later mutations trigger another pass
            self._dirty.clear()
            self._urgent.clear()
            async with self._save_lock:
                await self._flush_with_retry()

    async def _flush_with_retry(self) -> bool:
        p = self.params
        attempts = max(1, p.flush_retry_attempts)
        for attempt in range(1, attempts + 1):
            with self._lock:
                brain = self._store.brain
                version = self._version
            if version == self._saved_version:
                return True
            started = time.perf_counter()
            try:
                await self._repo.save(brain)
            except Exception as e:
                self.telemetry.flush_failed(attempt, e)
                if attempt < attempts:
                    await asyncio.sleep(
                        min(p.flush_backoff_cap, p.flush_backoff_base * 2 ** (attempt - 1))
                    )
                continue
            self._saved_version = version
            self.telemetry.flush_ok(started)
            return True
        self.telemetry.flush_abandoned(attempts)
        return False

    # ---------- Mutations ----------
    def _mutate(self, fn: Mutation, *, urgent: bool) -> bool:
        with self._lock:
            changed = fn(self._store)
            if self._replay is not None:
                if len(self._replay) == self._replay.maxlen and not self._replay_overflow:
                    self._replay_overflow = True
                    log.warning(
                        "More than %d changes before initialize; the oldest will not be replayed",
                        self._replay.maxlen,
                    )
                self._replay.append(fn)
            if changed:
                self._version += 1
        if changed:
            self._schedule_flush(urgent=urgent)
        return changed

    def record_interaction(self, signal: Interaction | Mapping[str, Any]) -> bool:
        """Apply one signal in memory and schedule a debounced write. Never blocks on I/O.

        Malformed input is logged and dropped; returns False in that case.
        """
        try:
            signal = _coerce(signal)
        except InvalidSignal as e:
            log.warning("Dropping malformed interaction: %s", e)
            return False

        def apply(store: BrainStore) -> bool:
            store.apply_signal(signal)
            return True

        self._mutate(apply, urgent=False)
        self.telemetry.signal()
        return True

    def block_topic(self, topic: str) -> bool:
        return self._mutate(lambda s: s.block_topic(topic), urgent=True)

    def remove_blocked_topic(self, topic: str) -> bool:
        return self._mutate(lambda s: s.unblock_topic(topic), urgent=True)

    unblock_topic = remove_blocked_topic

    def block_channel(self, channel_id: str) -> bool:
        return self._mutate(lambda s: s.block_channel(channel_id), urgent=True)

    def unblock_channel(self, channel_id: str) -> bool:
        return self._mutate(lambda s: s.unblock_channel(channel_id), urgent=True)

    def reset_brain(self) -> UserBrain:
        def wipe(store: BrainStore) -> bool:
            store.reset()
            return True

        self._mutate(wipe, urgent=True)
        log.info("Brain reset")
        return self.get_brain_snapshot()

    def add_preferred_topic(self, topic: str) -> bool:
        return self._mutate(lambda s: s.seed_topics([topic]), urgent=True)

    def remove_preferred_topic(self, topic: str) -> bool:
        return self._mutate(lambda s: s.drop_topic(topic), urgent=True)

    def complete_onboarding(self, topics: Iterable[str]) -> bool:
        """Seed the global vector with the topics picked during onboarding."""
        picked = list(topics)
        return self._mutate(lambda s: s.seed_topics(picked), urgent=True)

    def mark_not_interested(
        self, topics: Iterable[str] = (), channel_id: str | None = None
    ) -> bool:
        """Record an explicit dislike; penalizes the topics and the channel.

        With no usable topic and no channel there is nothing to penalize and
        False is returned.
        """
        it = Interaction(kind=SignalKind.DISLIKE, topics=list(topics), channel_id=channel_id)
        if not it.topics and not it.channel_id:
            return False

        def apply(store: BrainStore) -> bool:
            store.apply_signal(it)
            return True

        self._mutate(apply, urgent=True)
        self.telemetry.signal()
        return True

    # ---------- Reads ----------
    def get_brain_snapshot(self) -> UserBrain:
        with self._lock:
            return self._store.brain

    def get_persona(self, brain: UserBrain | None = None) -> Persona:
        return get_persona(brain or self.get_brain_snapshot(), self.params)

    def get_engagement(self, brain: UserBrain | None = None) -> EngagementLevel:
        return get_engagement(
            brain or self.get_brain_snapshot(), self.params.engagement_thresholds
        )

    def generate_discovery_queries(self, now: datetime | None = None) -> list[str]:
        brain = self.get_brain_snapshot()
        return generate_discovery_queries(
            brain, persona=self.get_persona(brain), now=now, params=self.params
        )

    def get_preferred_topics(self, n: int | None = None) -> list[str]:
        return self.get_brain_snapshot().preferred_topics(n or self.params.preferred_n)

    def get_blocked_topics(self) -> list[str]:
        return sorted(self.get_brain_snapshot().blocked_topics)

    def get_blocked_channels(self) -> list[str]:
        return sorted(self.get_brain_snapshot().blocked_channels)

    def export_snapshot(self) -> BrainExport:
        brain = self.get_brain_snapshot()
        return build_export(
            brain,
            persona=self.get_persona(brain),
            engagement=self.get_engagement(brain),
            telemetry=self.telemetry.snapshot(),
            top_n=self.params.preferred_n,
        )

    def rank(
        self,
        candidates: Iterable[ContentItem],
        subscriptions: Iterable[str] = (),
        *,
        now: datetime | None = None,
        rng: random.Random | None = None,
    ) -> list[ScoredItem]:
        return rank(
            candidates,
            self.get_brain_snapshot(),
            subscriptions=subscriptions,
            now=now,
            rng=rng,
        )
