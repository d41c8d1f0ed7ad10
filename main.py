from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import register_exception_handlers
from app.api.router import api_router
from app.core.auth_cache import auth_cache
from app.core.config import settings
from app.core.database import init_db
from app.core.logging_config import configure_logging
from app.services.generation import GenerationOrchestrator, record_analysis
from app.services.provider import ProviderConfig, ProviderGateway

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan event handler.

    Builds the provider configuration once and wires the gateway and
    orchestrator onto app.state; closes outbound clients on shutdown.
    """
    # Configure logging (reduce noise from polling endpoints)
    configure_logging()

    logger.info("FastAPI application starting up...")

    if settings.AUTO_CREATE_TABLES:
        init_db()

    provider_config = ProviderConfig.from_settings(settings)
    gateway = ProviderGateway(provider_config)
    app.state.provider_config = provider_config
    app.state.orchestrator = GenerationOrchestrator(
        provider_config,
        gateway,
        analysis_recorder=record_analysis,
    )

    if provider_config.is_configured:
        logger.info(f"Generation provider configured (base URL: {provider_config.base_url})")
    else:
        logger.warning("OPENAI_API_KEY not set: generation endpoints will fail with a configuration error")

    if settings.identity_provider_configured:
        logger.info("Identity provider configured: bearer tokens will be verified")
    else:
        logger.warning("Identity provider not configured: every caller is treated as a guest")

    yield  # Application runs

    logger.info("FastAPI application shutting down...")
    await gateway.aclose()
    await auth_cache.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        lifespan=lifespan,
    )

    # Domain exception → HTTP response mapping
    register_exception_handlers(app)

    # Set up CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "docs": "/docs"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    # Custom log config to work with our filter
    # Must disable uvicorn's default config and let our lifespan event handle it
    log_config = uvicorn.config.LOGGING_CONFIG.copy()
    log_config["loggers"]["uvicorn.access"] = {
        "handlers": ["access"],
        "level": "INFO",
        "propagate": False
    }

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_config=log_config
    )
