from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.database import check_connection

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """
    Full health check endpoint.

    Probes the database and reports which external collaborators are
    configured. Responds 503 when the database is unreachable.

    Returns:
        dict: Health status with timestamp and per-service checks
    """
    db_ok = await run_in_threadpool(check_connection)
    provider = getattr(request.app.state, "provider_config", None)

    body = {
        "status": "healthy" if db_ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "services": {
            "database": "healthy" if db_ok else "unhealthy",
            "provider": bool(provider and provider.is_configured),
            "identity_provider": settings.identity_provider_configured,
        },
    }
    return JSONResponse(status_code=200 if db_ok else 503, content=body)


@router.get("/healthz")
async def healthz():
    """
    Simple liveness probe.

    Used for quick health checks without database load.

    Returns:
        dict: Simple status indicator
    """
    return {"status": "healthy"}
