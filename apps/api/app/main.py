import logging
from contextlib import asynccontextmanager

from dotenv import find_dotenv, load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic_settings import BaseSettings, SettingsConfigDict

from neuro_core.config import REDIS_NAMESPACE
from neuro_core.types import BrainParams
from neuro_engine.engine import PersonalizationEngine
from neuro_logging.logger import EngineTelemetry, configure_logging

from app.infrastructure.brain_store import make_brain_store
from .routers import all_routers

log = logging.getLogger(__name__)


class Settings(BaseSettings):
    app_name: str = "Neuro Brain API"
    log_level: str = "INFO"
    # brain store config
    profile_id: str = "default"
    brain_data_dir: str | None = None  # defaults to ~/.neurofeed
    use_redis_brain_store: bool = False
    redis_url: str | None = None
    brain_namespace: str = REDIS_NAMESPACE
    # engine tunables
    flush_debounce_sec: float = 3.0
    flush_retry_attempts: int = 3
    telemetry_enabled: bool = True
    # env config
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def _build_engine(settings: Settings) -> PersonalizationEngine:
    params = BrainParams(
        flush_debounce_sec=settings.flush_debounce_sec,
        flush_retry_attempts=settings.flush_retry_attempts,
    )
    return PersonalizationEngine(
        params, telemetry=EngineTelemetry(enabled=settings.telemetry_enabled)
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    load_dotenv(find_dotenv(), override=False)

    settings = Settings()
    app.state.settings = settings
    configure_logging(settings.log_level)

    store = make_brain_store(
        use_redis=settings.use_redis_brain_store,
        redis_url=settings.redis_url,
        data_dir=settings.brain_data_dir,
        profile_id=settings.profile_id,
        namespace=settings.brain_namespace,
    )
    engine = _build_engine(settings)
    await engine.initialize(store)
    app.state.brain_store = store
    app.state.engine = engine
    log.info("%s ready (profile=%s)", settings.app_name, settings.profile_id)

    try:
        yield
    finally:
        await engine.shutdown()
        aclose = getattr(store, "aclose", None)
        if aclose is not None:
            await aclose()
        app.state.engine = None


app = FastAPI(title="Neuro Brain API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    s = app.state.settings
    return {"status": "ok", "service": s.app_name}


@app.get("/")
def read_root():
    return {"status": "ok"}


for r in all_routers:
    app.include_router(r)
