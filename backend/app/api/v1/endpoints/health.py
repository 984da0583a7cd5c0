"""
Health Check Endpoints

- /health       - Basic status (used by the console's `health_check`)
- /health/live  - Liveness (app is running)
- /health/ready - Readiness (database reachable, tables created)
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from datetime import datetime
from typing import Dict, Any
import time

from sqlalchemy import text

from app.core.config import settings
from app.core.database import get_session_local
from app.core.logging_config import logger
from app.services.event_bus import event_bus


router = APIRouter(prefix="/health", tags=["Health Checks"])


async def check_database() -> Dict[str, Any]:
    """Check database connectivity and that the schema exists"""
    start = time.time()
    try:
        session_factory = get_session_local()
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
            try:
                await session.execute(text("SELECT COUNT(*) FROM departments"))
                tables_ok = True
            except Exception:
                tables_ok = False

        return {
            "status": "healthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "tables_ready": tables_ok,
        }
    except Exception as e:
        logger.error(f"[HealthCheck] Database check failed: {e}")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "error": str(e),
        }


@router.get("")
async def health():
    return {"status": "healthy", "service": "campusdesk-backend", "version": settings.API_VERSION}


@router.get("/live")
async def liveness():
    return {"status": "alive", "timestamp": datetime.utcnow().isoformat()}


@router.get("/ready")
async def readiness():
    database = await check_database()
    ready = database["status"] == "healthy" and database.get("tables_ready", False)
    body = {
        "status": "ready" if ready else "not_ready",
        "checks": {
            "database": database,
            "event_stream": {"status": "healthy", "subscribers": event_bus.subscriber_count},
        },
    }
    return JSONResponse(status_code=200 if ready else 503, content=body)
