"""
Health Check Endpoints

- /health       - status summary used by the frontend and load balancers
- /health/live  - basic liveness (app is running)
- /health/ready - readiness (database reachable and tables present)
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, Any
import time

from app.core.config import settings
from app.core.database import get_db
from app.core.logging_config import logger
from app.core.types import utcnow


router = APIRouter(prefix="/health", tags=["Health Checks"])


async def check_database(db: AsyncSession) -> Dict[str, Any]:
    """Check database connectivity and that the schema is in place"""
    start = time.time()
    try:
        await db.execute(text("SELECT 1"))
        await db.execute(text("SELECT COUNT(*) FROM users"))
        return {
            "status": "connected",
            "latency_ms": round((time.time() - start) * 1000, 2),
        }
    except SQLAlchemyError as e:
        logger.error(f"[HealthCheck] Database check failed: {e}")
        return {
            "status": "disconnected",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "error": str(e) if settings.DEBUG else "Database unavailable",
        }


@router.get("")
async def health(db: AsyncSession = Depends(get_db)):
    database = await check_database(db)
    return {
        "success": True,
        "status": "OK" if database["status"] == "connected" else "DEGRADED",
        "timestamp": utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
        "version": settings.APP_VERSION,
        "database": database["status"],
        "demoMode": settings.is_demo_mode,
    }


@router.get("/live")
async def liveness():
    return {"status": "alive", "timestamp": utcnow().isoformat()}


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_db)):
    """503 until the database answers"""
    database = await check_database(db)
    ready = database["status"] == "connected"
    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "not_ready",
            "checks": {"database": database},
            "timestamp": utcnow().isoformat(),
        },
    )
