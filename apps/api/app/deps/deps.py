from typing import Any, cast

from fastapi import HTTPException, Request, status

from neuro_engine.engine import PersonalizationEngine


def _get_state_attr(request: Request, name: str, error_detail: str) -> Any:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_detail,
        )
    return value


def get_settings(request: Request) -> Any:
    return _get_state_attr(request, "settings", "Settings not initialized")


def get_engine(request: Request) -> PersonalizationEngine:
    engine = cast(
        PersonalizationEngine,
        _get_state_attr(request, "engine", "Brain engine not initialized"),
    )
    if not engine.initialized:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Brain engine still loading",
        )
    return engine
