"""FastAPI application entrypoint."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from feeservice.api.v1 import v1_router
from feeservice.core.config import get_settings
from feeservice.core.database import init_db
from feeservice.core.errors import FeeServiceError, Internal, InvalidArgument
from feeservice.core.logging import configure_logging, get_correlation_id, install_request_logging

VERSION = "1.0.0"

_settings = get_settings()
configure_logging(_settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup: ensure tables exist (use Alembic in production)
    await init_db()
    yield


app = FastAPI(
    title="Fee Management Service",
    version=VERSION,
    description="School fee records with direct-to-S3 image uploads via presigned URLs",
    lifespan=lifespan,
)

# ── CORS ─────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in _settings.allowed_origins.split(",")],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-Id"],
)

install_request_logging(app)


# ── Error mapping ────────────────────────────────────────────
@app.exception_handler(FeeServiceError)
async def service_error_handler(request: Request, exc: FeeServiceError) -> JSONResponse:
    cid = get_correlation_id()
    if isinstance(exc, Internal):
        logger.error(
            "Internal error on %s %s: %s", request.method, request.url.path, exc.message,
            exc_info=exc,
        )
        detail = Internal.PUBLIC_MESSAGE
    else:
        detail = exc.message
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"title": exc.title, "detail": detail, "correlation_id": cid},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    detail = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}" for err in errors
    )
    logger.warning("Request validation failed on %s %s: %s", request.method, request.url.path, detail)
    return JSONResponse(
        status_code=400,
        content={
            "title": InvalidArgument.title,
            "detail": detail or "Invalid request.",
            "correlation_id": get_correlation_id(),
        },
    )


# ── API routes ───────────────────────────────────────────────
app.include_router(v1_router)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    return {"status": "healthy", "service": _settings.service_name, "version": VERSION}
