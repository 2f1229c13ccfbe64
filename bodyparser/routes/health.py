"""Health check endpoint for liveness probes."""

import logging

from fastapi import APIRouter

router = APIRouter(tags=["health"])

log = logging.getLogger("uvicorn.error")


@router.get("/health", summary="Liveness probe")
def health() -> dict[str, str]:
    """Liveness probe: always returns 200 if the service is running."""
    log.debug("Liveness check")
    return {"status": "alive"}
