from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sequenceable.app import App
from sequenceable.config import Config
from sequenceable.errors import SequenceError, UserError
from sequenceable.web.error_handlers import general_exception_handler, sequence_error_handler, user_error_handler
from sequenceable.web.openapi import set_custom_openapi
from sequenceable.web.routers import counters_router, sequences_router

API_VERSION = "0.1.0"


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        async with app_instance.lifespan():
            yield

    app = FastAPI(title="Sequenceable API", lifespan=lifespan)
    # Available to dependencies before lifespan startup completes
    app.state.app = app_instance
    app.state.config = config

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Health check endpoint (at root level, not versioned)
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    # API v1 routes
    app.include_router(sequences_router, prefix="/api/v1")
    app.include_router(counters_router, prefix="/api/v1")

    # Register error handlers
    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(SequenceError, sequence_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app, API_VERSION)

    return app
