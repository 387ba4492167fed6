from fastapi import APIRouter, Depends

from neuro_engine.engine import PersonalizationEngine

from app.deps.deps import get_engine
from app.schemas import InteractionRequest, NotInterestedRequest

router = APIRouter(prefix="/brain", tags=["interactions"])


@router.post("/interactions", status_code=202)
async def record_interaction(
    req: InteractionRequest,
    engine: PersonalizationEngine = Depends(get_engine),
):
    accepted = engine.record_interaction(req)
    brain = engine.get_brain_snapshot()
    return {
        "accepted": accepted,
        "total_interactions": brain.total_interactions,
        "consecutive_skips": brain.consecutive_skips,
        "engagement": engine.get_engagement(brain).value,
    }


@router.post("/not-interested", status_code=202)
async def mark_not_interested(
    req: NotInterestedRequest,
    engine: PersonalizationEngine = Depends(get_engine),
):
    return {"accepted": engine.mark_not_interested(req.topics, req.channel_id)}
