"""
Main application entry point - FastAPI app instance and configuration.
Run with: uvicorn toolgen.main:app --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from toolgen.ai.monitoring import configure_logging
from toolgen.core.config import Settings, settings as default_settings
from toolgen.routers import tools
from toolgen.services.synthesis_pipeline import PipelineHolder


def create_app(settings: Settings = default_settings) -> FastAPI:
    """
    Build the ASGI application.

    The pipeline is created in the lifespan and stored on app.state, so
    every app instance (including test apps) owns its own pipeline.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.LOG_LEVEL)
        app.state.pipeline_holder = PipelineHolder.from_settings(settings)
        yield
        await app.state.pipeline_holder.close()

    app = FastAPI(
        title=settings.APP_NAME,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # ---------------------------------------------------------------------------
    # CORS MIDDLEWARE
    # ---------------------------------------------------------------------------
    # The generator UI may be served from a different origin than the API.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------------------------------------------------------------------
    # REGISTER ROUTERS
    # ---------------------------------------------------------------------------
    # tools.router: /api/generate, /api/download, /api/files, /api/providers, /api/reload
    app.include_router(tools.router)

    # ---------------------------------------------------------------------------
    # HEALTH CHECK ENDPOINT
    # ---------------------------------------------------------------------------
    @app.get("/health", tags=["health"])
    def health_check():
        """
        Simple liveness check.

        Does NOT contact the AI providers (use POST /api/providers/diagnose).

        Returns:
            {"status": "ok"}
        """
        return {"status": "ok"}

    return app


app = create_app()
