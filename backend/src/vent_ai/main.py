"""FastAPI application entry point for Vent-AI"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vent_ai.api.chat import router as chat_router
from vent_ai.api.conversations import router as conversations_router
from vent_ai.api.websocket import router as ws_router
from vent_ai.core.config import Settings, get_settings
from vent_ai.core.logging import configure_logging, get_logger
from vent_ai.db import create_db_engine, init_db
from vent_ai.oracle import OpenAICompatOracle
from vent_ai.store import MessageStore

logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application with its services attached to ``app.state``.

    Args:
        settings: Settings to use. Defaults to the environment-derived ones.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan context manager for startup/shutdown."""
        # Startup
        configure_logging(settings.log_level, settings.log_json)
        engine = create_db_engine(settings.database_path)
        init_db(engine)
        logger.info("database_initialized", path=str(settings.database_path))
        app.state.store = MessageStore(engine)
        app.state.oracle = OpenAICompatOracle.from_settings(settings)
        yield
        # Shutdown
        app.state.store.close()
        await app.state.oracle.close()

    app = FastAPI(
        title="Vent-AI API",
        description="Empathetic AI companion chat",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    app.include_router(chat_router)
    app.include_router(conversations_router)
    app.include_router(ws_router)

    @app.get("/api/v1/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint.

        Returns:
            dict with status "ok" if the service is healthy.
        """
        return {"status": "ok"}

    return app


app = create_app()
