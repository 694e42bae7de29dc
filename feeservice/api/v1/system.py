"""System health endpoint — checks connectivity to the database."""

import logging
import time

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from feeservice.api.deps import Session
from feeservice.core.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/system", tags=["system"])

settings = get_settings()
_start_time = time.time()


class ServiceHealth(BaseModel):
    status: str  # "ok" or "error"
    detail: str | None = None
    latency_ms: int | None = None


class HealthResponse(BaseModel):
    status: str
    uptime_seconds: int
    database: ServiceHealth
    object_store: dict


@router.get("/health", response_model=HealthResponse)
async def system_health(session: Session) -> HealthResponse:
    db = await _check_database(session)
    return HealthResponse(
        status=db.status if db.status == "ok" else "degraded",
        uptime_seconds=int(time.time() - _start_time),
        database=db,
        # Config only; probing S3 would need bucket-level permissions
        object_store={
            "bucket": settings.aws_bucket_name,
            "region": settings.aws_region,
            "static_credentials": bool(settings.aws_access_key_id),
            "upload_url_ttl_minutes": settings.upload_url_ttl_minutes,
        },
    )


async def _check_database(session) -> ServiceHealth:
    try:
        t0 = time.monotonic()
        await session.execute(text("SELECT 1"))
        latency = int((time.monotonic() - t0) * 1000)
        return ServiceHealth(status="ok", latency_ms=latency)
    except Exception:
        logger.exception("Database health check failed")
        return ServiceHealth(status="error", detail="Database is unreachable.")
