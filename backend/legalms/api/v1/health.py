"""
GET /health             load-balancer health check (always 200).
GET /api/v1/status      detailed server/database status (503 when DB is down).

No authentication required.
"""
import time
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from legalms import __version__
from legalms.core.config import get_settings
from legalms.core.db import check_db_connection

router = APIRouter(tags=["health"])
status_router = APIRouter(tags=["health"])

_started_at = time.monotonic()


class HealthResponse(BaseModel):
    status: str
    db: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    db_ok = await check_db_connection()
    return HealthResponse(
        status="ok",
        db="ok" if db_ok else "error",
    )


@status_router.get("/status")
async def server_status() -> JSONResponse:
    db_ok = await check_db_connection()
    body = {
        "success": db_ok,
        "server": {
            "status": "running",
            "uptime": round(time.monotonic() - _started_at, 3),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": get_settings().environment,
        },
        "database": {
            "status": "connected" if db_ok else "disconnected",
            "connected": db_ok,
        },
        "version": __version__,
    }
    return JSONResponse(status_code=200 if db_ok else 503, content=body)
