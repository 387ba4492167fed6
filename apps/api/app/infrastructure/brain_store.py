from __future__ import annotations

import logging
from pathlib import Path

from neuro_core.config import DEFAULT_DATA_DIR, REDIS_NAMESPACE
from neuro_user.redis_store import RedisBrainStore
from neuro_user.store import BrainRepo, FileBrainStore

from app.infrastructure.cache.redis_infra import make_redis_client

log = logging.getLogger(__name__)


def make_brain_store(
    *,
    use_redis: bool,
    redis_url: str | None,
    data_dir: str | Path | None = None,
    profile_id: str = "default",
    namespace: str = REDIS_NAMESPACE,
) -> BrainRepo:
    if use_redis:
        if not redis_url:
            raise RuntimeError("USE_REDIS_BRAIN_STORE is set but REDIS_URL is missing")
        log.info("Brain store: redis %s%s", namespace, profile_id)
        return RedisBrainStore(
            client=make_redis_client(redis_url),
            profile_id=profile_id,
            namespace=namespace,
        )

    directory = Path(data_dir) if data_dir else DEFAULT_DATA_DIR
    store = FileBrainStore(directory / profile_id)
    log.info("Brain store: file %s", store.path)
    return store
