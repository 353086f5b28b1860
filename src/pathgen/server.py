"""FastAPI application factory and server configuration."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from pathgen.config import get_settings
from pathgen.db.base import close_db, init_db
from pathgen.errors import register_exception_handlers
from pathgen.middleware import AuthMiddleware, RequestIDMiddleware
from pathgen.routes import auth, learning_paths, user_metrics

STATIC_DIR = Path(__file__).resolve().parent / "web" / "static"

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("pathgen").setLevel(level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan manager."""
    # Startup
    await init_db()
    logger.info("Database initialized")

    yield

    # Shutdown
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(AuthMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # Routes
    prefix = settings.api_prefix.rstrip("/")
    app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["auth"])
    app.include_router(
        learning_paths.router,
        prefix=f"{prefix}/learning-paths",
        tags=["learning-paths"],
    )
    app.include_router(
        user_metrics.router, prefix=f"{prefix}/user-metrics", tags=["user-metrics"]
    )

    # Health check
    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "service": "pathgen"}

    @app.get("/")
    async def root():
        return JSONResponse(
            content={
                "service": settings.app_name,
                "version": "0.1.0",
                "app": "/app",
                "docs": "/docs" if settings.debug else None,
            }
        )

    # Single-page UI
    app.mount("/app", StaticFiles(directory=STATIC_DIR, html=True), name="app")

    return app


app = create_app()
