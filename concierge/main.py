"""
Trip Concierge Service - FastAPI Application
LLM Provider (per user, see /api/concierge/users/{user_id}/ai-settings):
- gpt-* models: OpenAI chat completions
- gemini-* models: Google Gemini generateContent
Empty replies are retried once on the other provider when it has a system key.
"""

import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from concierge import __version__
from concierge.agents.concierge_agent import ConciergeAgent
from concierge.api.concierge import router as concierge_router
from concierge.config import Settings
from concierge.errors import ConfigurationError
from concierge.interfaces.user_config_store import UserConfigStore
from concierge.llm.providers import ProviderClient, ProviderFamily, resolve_model
from concierge.schemas.concierge_schemas import HealthResponse


def configure_logging(level: str = "INFO"):
    """Single stderr sink at the configured level"""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
    )


def _provider_status(settings: Settings) -> dict:
    return {
        ProviderFamily.OPENAI.value: "configured" if settings.OPENAI_API_KEY else "missing key",
        ProviderFamily.GEMINI.value: "configured" if settings.GEMINI_API_KEY else "missing key",
    }


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[UserConfigStore] = None,
    providers: Optional[ProviderClient] = None,
) -> FastAPI:
    """
    Build the application. Components not passed in are built from settings.

    Args:
        settings: Service settings (default: read from environment)
        store: User AI settings store
        providers: Provider client shared by all requests

    Returns:
        FastAPI app
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.LOG_LEVEL)

    store = store or UserConfigStore(
        redis_host=settings.REDIS_HOST,
        redis_port=settings.REDIS_PORT,
        redis_db=settings.REDIS_DB,
        enabled=settings.REDIS_ENABLED,
    )
    providers = providers or ProviderClient(
        timeout=settings.PROVIDER_TIMEOUT,
        openai_base_url=settings.OPENAI_BASE_URL,
        gemini_base_url=settings.GEMINI_BASE_URL,
    )
    agent = ConciergeAgent(settings, store, providers)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler"""
        logger.info("=" * 50)
        logger.info("Starting Trip Concierge Service")
        logger.info("=" * 50)
        logger.info(f"Environment: {settings.API_ENV}")
        logger.info(f"Default model: {settings.DEFAULT_MODEL}")
        for name, status in _provider_status(settings).items():
            logger.info(f"  {'✓' if status == 'configured' else '✗'} {name}: {status}")
        logger.info(f"User settings store: {store.backend}")

        yield

        await providers.aclose()
        logger.info("Concierge Service shutdown complete")

    app = FastAPI(
        title="Trip Concierge Service",
        description="Travel concierge chat: intent routing, OpenAI/Gemini calls and structured suggestions.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.user_config_store = store
    app.state.concierge_agent = agent

    # CORS (preflight included)
    origins = settings.cors_origins_list or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        logger.warning(f"Invalid request to {request.url.path}: {message}")
        return JSONResponse(status_code=400, content={"error": message})

    app.include_router(concierge_router)

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "service": "Trip Concierge Service",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
            "endpoints": [
                "/api/concierge/health",
                "/api/concierge/agent",
                "/api/concierge/models",
                "/api/concierge/suggestions/{category}",
                "/api/concierge/users/{user_id}/ai-settings",
            ],
        }

    @app.get("/api/concierge/health", response_model=HealthResponse)
    async def health_check():
        """Detailed health check"""
        try:
            resolve_model(settings.DEFAULT_MODEL)
            default_model_status = "ready"
        except ConfigurationError:
            default_model_status = "unknown model"

        return HealthResponse(
            status="healthy",
            default_model=settings.DEFAULT_MODEL,
            providers=_provider_status(settings),
            components={
                "default_model": default_model_status,
                "user_config_store": store.health(),
            },
            timestamp=datetime.now(timezone.utc),
        )

    return app


def run():
    """Console entry point"""
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(
        "concierge.main:create_app",
        factory=True,
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_ENV == "development",
    )


if __name__ == "__main__":
    run()
