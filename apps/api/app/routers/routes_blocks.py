from fastapi import APIRouter, Depends

from neuro_engine.engine import PersonalizationEngine

from app.deps.deps import get_engine
from app.schemas import ChangedOut

router = APIRouter(prefix="/brain/blocks", tags=["blocks"])


def _out(engine: PersonalizationEngine, changed: bool) -> ChangedOut:
    return ChangedOut(
        changed=changed,
        blocked_topics=engine.get_blocked_topics(),
        blocked_channels=engine.get_blocked_channels(),
    )


@router.post("/topics/{topic}", response_model=ChangedOut)
async def block_topic(topic: str, engine: PersonalizationEngine = Depends(get_engine)):
    return _out(engine, engine.block_topic(topic))


@router.delete("/topics/{topic}", response_model=ChangedOut)
async def unblock_topic(topic: str, engine: PersonalizationEngine = Depends(get_engine)):
    return _out(engine, engine.remove_blocked_topic(topic))


@router.post("/channels/{channel_id}", response_model=ChangedOut)
async def block_channel(
    channel_id: str, engine: PersonalizationEngine = Depends(get_engine)
):
    return _out(engine, engine.block_channel(channel_id))


@router.delete("/channels/{channel_id}", response_model=ChangedOut)
async def unblock_channel(
    channel_id: str, engine: PersonalizationEngine = Depends(get_engine)
):
    return _out(engine, engine.unblock_channel(channel_id))
