"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /v1/health_check always returns 200 if process is up (liveness)
    - GET /v1/health_check/ready returns 503 if the bucket or the broker is unreachable
"""

import logging
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from exam_gateway.config import get_settings

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/health_check", tags=["health"])


@router.get("", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    settings = get_settings()
    return {
        "status": "healthy",
        "service": settings.service_name,
        "address": f"{settings.host}:{settings.port}",
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness probe — object store bucket and Kafka producer."""
    state = request.app.state
    store = getattr(state, "object_store", None)
    broker = getattr(state, "message_broker", None)
    bucket = get_settings().bucket_name

    storage_ok = bool(store and bucket) and await store.health_check(bucket)
    messaging_ok = bool(broker) and await broker.health_check()
    checks = {
        "object_store": "healthy" if storage_ok else "unavailable",
        "message_broker": "healthy" if messaging_ok else "unavailable",
    }
    if not (storage_ok and messaging_ok):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}
