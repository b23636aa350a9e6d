"""FastAPI application — the main entrypoint for the feature voting API."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api.errors import register_exception_handlers
from backend.app.api.features import router as features_router
from backend.app.config import settings
from backend.app.db import Database
from backend.app.limiter import limiter

logger = logging.getLogger(__name__)

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(levelname)s:%(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    database = Database(settings.sqlalchemy_url, echo=settings.sql_echo)
    await database.create_all()
    app.state.database = database
    logger.info("Feature voting API ready")
    try:
        yield
    finally:
        # Shutdown
        await database.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Feature Voting",
        description="Submit feature requests and vote on them",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.limiter = limiter

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(features_router, prefix="/api")

    @app.get("/api/health")
    async def health(request: Request) -> dict[str, str]:
        """Health check with DB connectivity verification."""
        db_ok = await request.app.state.database.ping()
        return {
            "status": "ok" if db_ok else "degraded",
            "database": "ok" if db_ok else "error",
        }

    return app


app = create_app()
