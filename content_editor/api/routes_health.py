"""Health and readiness routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from content_editor.config import Settings, get_settings

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    """Simple liveness probe."""
    return {"status": "ok"}


@router.get("/ready")
def ready(settings: Annotated[Settings, Depends(get_settings)]) -> dict[str, str]:
    """
    Readiness probe.

    Regeneration needs an API key for the model provider; without one the service
    can still load, align and render content but is reported as not ready.
    """
    if not settings.regeneration_enabled:
        raise HTTPException(status_code=503, detail="OPENROUTER_API_KEY is not configured")
    return {"status": "ok"}
