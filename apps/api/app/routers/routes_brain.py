import random
from typing import List

from fastapi import APIRouter, Depends

from neuro_engine.engine import PersonalizationEngine
from neuro_engine.schemas import BrainExport, BrainSnapshotOut, PersonaOut
from neuro_engine.views import persona_out, snapshot_out

from app.deps.deps import get_engine
from app.schemas import ChangedOut, OnboardingRequest, RankedItemOut, RankRequest

router = APIRouter(prefix="/brain", tags=["brain"])


@router.get("/snapshot", response_model=BrainSnapshotOut)
async def get_snapshot(engine: PersonalizationEngine = Depends(get_engine)):
    return snapshot_out(engine.get_brain_snapshot(), preferred_n=engine.params.preferred_n)


@router.get("/persona", response_model=PersonaOut)
async def get_persona(engine: PersonalizationEngine = Depends(get_engine)):
    return persona_out(engine.get_persona())


@router.get("/engagement")
async def get_engagement(engine: PersonalizationEngine = Depends(get_engine)):
    brain = engine.get_brain_snapshot()
    level = engine.get_engagement(brain)
    return {
        "level": level.value,
        "severity": level.severity,
        "consecutive_skips": brain.consecutive_skips,
    }


@router.get("/queries", response_model=List[str])
async def get_discovery_queries(engine: PersonalizationEngine = Depends(get_engine)):
    return engine.generate_discovery_queries()


@router.get("/export", response_model=BrainExport)
async def export_brain(engine: PersonalizationEngine = Depends(get_engine)):
    return engine.export_snapshot()


@router.post("/rank", response_model=List[RankedItemOut])
async def rank_feed(
    req: RankRequest,
    engine: PersonalizationEngine = Depends(get_engine),
):
    rng = random.Random(req.seed) if req.seed is not None else None
    ranked = engine.rank(
        [c.to_item() for c in req.candidates],
        req.subscriptions,
        rng=rng,
    )
    if req.limit:
        ranked = ranked[: req.limit]
    return [
        RankedItemOut(
            id=s.item.id,
            title=s.item.title,
            channel_id=s.item.channel_id,
            score=s.score,
            primary_topic=s.primary_topic,
        )
        for s in ranked
    ]


@router.post("/onboarding", response_model=ChangedOut)
async def complete_onboarding(
    req: OnboardingRequest,
    engine: PersonalizationEngine = Depends(get_engine),
):
    changed = engine.complete_onboarding(req.topics)
    return ChangedOut(changed=changed, preferred_topics=engine.get_preferred_topics())


@router.post("/reset", response_model=BrainSnapshotOut)
async def reset_brain(engine: PersonalizationEngine = Depends(get_engine)):
    return snapshot_out(engine.reset_brain(), preferred_n=engine.params.preferred_n)
