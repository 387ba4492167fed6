from fastapi import APIRouter, Depends

from neuro_engine.engine import PersonalizationEngine

from app.deps.deps import get_engine
from app.schemas import ChangedOut

router = APIRouter(prefix="/brain/preferences", tags=["preferences"])


@router.get("/topics", response_model=ChangedOut)
async def list_preferred_topics(engine: PersonalizationEngine = Depends(get_engine)):
    return ChangedOut(changed=False, preferred_topics=engine.get_preferred_topics())


@router.post("/topics/{topic}", response_model=ChangedOut)
async def add_preferred_topic(
    topic: str, engine: PersonalizationEngine = Depends(get_engine)
):
    changed = engine.add_preferred_topic(topic)
    return ChangedOut(changed=changed, preferred_topics=engine.get_preferred_topics())


@router.delete("/topics/{topic}", response_model=ChangedOut)
async def remove_preferred_topic(
    topic: str, engine: PersonalizationEngine = Depends(get_engine)
):
    changed = engine.remove_preferred_topic(topic)
    return ChangedOut(changed=changed, preferred_topics=engine.get_preferred_topics())
