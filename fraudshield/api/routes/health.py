"""Health and readiness endpoints."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from fraudshield.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    from fraudshield.main import get_uptime

    return {
        "status": "healthy",
        "version": settings.app_version,
        "uptime_seconds": get_uptime(),
    }


@router.get("/ready")
async def ready() -> JSONResponse:
    from fraudshield.api.dependencies import alert_dispatcher
    from fraudshield.db.database import check_db

    db_ok = await check_db()
    kafka_ok = alert_dispatcher.producer is not None if settings.kafka_alerts_enabled else None

    all_ready = db_ok and kafka_ok is not False
    return JSONResponse(
        status_code=200 if all_ready else 503,
        content={
            "status": "ready" if all_ready else "degraded",
            "database": db_ok,
            "kafka": kafka_ok,
        },
    )
