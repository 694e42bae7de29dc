"""Logging setup and per-request correlation ids."""

import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from contextvars import ContextVar

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from feeservice.core.errors import Internal

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

logger = logging.getLogger("feeservice.http")

LOG_FORMAT = "[%(asctime)s %(levelname)s] %(name)s: %(message)s [cid=%(correlation_id)s]"

# Paths that produce no request log line
_QUIET_PREFIXES = ("/health", "/docs", "/openapi.json", "/redoc", "/favicon.ico")


def get_correlation_id() -> str | None:
    return _correlation_id.get()


class CorrelationIdFilter(logging.Filter):
    """Stamp every record with the current request's correlation id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get() or "-"
        return True


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())
    if any(isinstance(f, CorrelationIdFilter) for h in root.handlers for f in h.filters):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)


def install_request_logging(app: FastAPI) -> None:
    """Attach X-Correlation-Id handling and one completion log line per request.

    Exceptions that escape the route handlers are logged here, while the
    correlation id is still bound, and answered with a generic 500 body.
    """

    @app.middleware("http")
    async def _correlation_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        cid = request.headers.get("x-correlation-id") or uuid.uuid4().hex
        token = _correlation_id.set(cid)
        path = request.url.path
        start = time.monotonic()
        try:
            try:
                response = await call_next(request)
            except Exception:
                logger.exception("Unhandled error on %s %s", request.method, path)
                response = JSONResponse(
                    status_code=500,
                    content={"detail": Internal.PUBLIC_MESSAGE, "correlation_id": cid},
                )

            if not path.startswith(_QUIET_PREFIXES):
                status_code = response.status_code
                level = (
                    logging.ERROR if status_code >= 500
                    else logging.WARNING if status_code >= 400
                    else logging.INFO
                )
                elapsed_ms = int((time.monotonic() - start) * 1000)
                logger.log(level, "%s %s -> %d in %dms", request.method, path, status_code, elapsed_ms)
        finally:
            _correlation_id.reset(token)

        response.headers["X-Correlation-Id"] = cid
        return response
