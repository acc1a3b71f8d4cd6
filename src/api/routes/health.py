"""Health check endpoints."""

import json

from fastapi import APIRouter, Response

from src import database

router = APIRouter()


@router.get("/health")
async def health():
    """Basic health check."""
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness():
    """Readiness check: the sync pipeline is useless without its database."""
    checks = {
        "database": await database.check_db_connection(),
    }

    all_healthy = all(checks.values())

    return Response(
        content=json.dumps(
            {
                "status": "ready" if all_healthy else "not_ready",
                "checks": checks,
            }
        ),
        status_code=200 if all_healthy else 503,
        media_type="application/json",
    )


@router.get("/health/live")
async def liveness():
    """Liveness check for container orchestration."""
    return {"status": "alive"}
