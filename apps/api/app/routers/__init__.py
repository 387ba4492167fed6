from .routes_interactions import router as interactions_router
from .routes_brain import router as brain_router
from .routes_blocks import router as blocks_router
from .routes_preferences import router as preferences_router

all_routers = [
    interactions_router,
    brain_router,
    blocks_router,
    preferences_router,
]
