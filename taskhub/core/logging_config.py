"""
Logging setup and request logging middleware.
"""
import logging
import time
import uuid

from fastapi import FastAPI, Request

from taskhub.config import settings

logger = logging.getLogger("taskhub.requests")

SLOW_REQUEST_SECONDS = 1.0


def setup_logging(level: str | None = None) -> None:
    level = (level or settings.LOG_LEVEL).upper()
    if settings.is_development:
        fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    else:
        fmt = "%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]"
    logging.basicConfig(level=level, format=fmt)
    # SQL echo is controlled by SQL_ECHO, not by the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING if not settings.SQL_ECHO else logging.INFO)


def setup_request_logging(app: FastAPI) -> None:

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        if response.status_code >= 500:
            log = logger.error
        elif response.status_code >= 400:
            log = logger.warning
        else:
            log = logger.info
        log("[%s] %s %s -> %s (%.3fs)", request_id, request.method, request.url.path, response.status_code, duration)

        if duration > SLOW_REQUEST_SECONDS:
            logger.warning("[%s] slow request %s %s took %.3fs", request_id, request.method, request.url.path, duration)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response
