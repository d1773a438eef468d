"""
FastAPI Application Factory
Creates and configures the FastAPI app instance
"""
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from listhub.api.endpoints import manifest, catalog, configure, health
from listhub.core.config import settings
from listhub.core.context import EngineContext
import logging

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    engine: EngineContext = app.state.engine
    logger.info("Starting ListHub addon")
    logger.info(f"Base URL: {settings.BASE_URL}")
    await engine.start()

    yield

    logger.info("Shutting down ListHub addon")
    await engine.close()


def create_app(engine: Optional[EngineContext] = None) -> FastAPI:
    """
    Create and configure FastAPI application

    Args:
        engine: Engine context to serve from; a fresh one is built when omitted
    """
    app = FastAPI(
        title="ListHub Stremio Addon",
        description="MDBList, Trakt and imported addon lists as Stremio catalogs",
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )
    app.state.engine = engine or EngineContext(settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Config-Token"],
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(configure.router)
    app.include_router(manifest.router)
    app.include_router(catalog.router)

    return app
