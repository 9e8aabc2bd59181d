"""Liveness endpoint; also checks the SQLite file."""

import sqlite3
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Request

from eduportal.db.database import get_db
from eduportal.web.schemas import HealthResponse

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


def _database_status() -> str:
    try:
        with get_db() as conn:
            conn.execute("SELECT 1").fetchone()
    except sqlite3.Error as e:
        logger.warning("health.database_unavailable", error=str(e))
        return "unavailable"
    return "ok"


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    database = _database_status()
    return HealthResponse(
        status="ok" if database == "ok" else "degraded",
        version=request.app.version,
        database=database,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
