# taskhub/main.py
import logging
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import exc as sa_exc
from sqlalchemy import text

from taskhub import __version__
from taskhub.config import settings
from taskhub.core.auth import get_optional_user
from taskhub.core.errors import register_exception_handlers
from taskhub.core.logging_config import setup_logging, setup_request_logging
from taskhub.database import Base, engine
from taskhub.models import User
from taskhub.routers import auth, projects, stats, tags, tasks, users
from taskhub.utils.response import success_response
from taskhub.utils.time import utcnow

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(title="TaskHub API", version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Response-Time"],
    )
    setup_request_logging(app)
    register_exception_handlers(app)

    # Include Routers
    app.include_router(auth.router, prefix=API_PREFIX)
    app.include_router(projects.router, prefix=API_PREFIX)
    app.include_router(tasks.router, prefix=API_PREFIX)
    app.include_router(tags.router, prefix=API_PREFIX)
    app.include_router(users.router, prefix=API_PREFIX)
    app.include_router(stats.router, prefix=API_PREFIX)

    # Create DB Tables for development databases; migrations live in alembic/
    @app.on_event("startup")
    async def startup_event():
        async with engine.begin() as conn:
            try:
                await conn.run_sync(Base.metadata.create_all)
            except sa_exc.IntegrityError as e:
                msg = str(getattr(e, "orig", e))
                if "duplicate key value violates unique constraint" in msg or "already exists" in msg:
                    logger.warning("Ignored duplicate DDL error during create_all: %s", msg)
                else:
                    raise
        logger.info("TaskHub API %s started (%s)", __version__, settings.ENVIRONMENT)

    @app.get(f"{API_PREFIX}/health")
    async def health():
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            database = "connected"
        except sa_exc.SQLAlchemyError:
            logger.exception("Health check could not reach the database")
            database = "unavailable"
        return success_response({
            "status": "ok" if database == "connected" else "degraded",
            "timestamp": utcnow().isoformat(),
            "environment": settings.ENVIRONMENT,
            "database": database,
        })

    @app.get("/")
    async def read_root(current_user: Optional[User] = Depends(get_optional_user)):
        if current_user is not None:
            return {"message": f"Welcome back to TaskHub, {current_user.first_name}"}
        return {"message": "Welcome to TaskHub API"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("taskhub.main:app", host="0.0.0.0", port=8000, reload=settings.is_development)
