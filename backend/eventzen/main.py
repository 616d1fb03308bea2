"""
EventZen API - Main Application Entry Point

Venue and event booking with Stripe payments:
- Server-side pricing and optimistic-locking ticket reservation
- Atomic, idempotent payment confirmation
- Persisted notifications pushed live over a socket
- Redis caching of event listings, structured logging, Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from eventzen.core.config import get_settings
from eventzen.core.exceptions import register_exception_handlers
from eventzen.core.logging import setup_logging, get_logger
from eventzen.core.metrics import metrics_endpoint
from eventzen.api.router import api_router
from eventzen.api.routes import ws
from eventzen.api.middleware import RequestLoggingMiddleware
from eventzen.realtime.connection_registry import ConnectionRegistry
from eventzen.services.cache_service import get_redis, close_redis, get_cache_stats
from eventzen.services.gateway_factory import get_payment_gateway

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    gateway = get_payment_gateway()
    logger.info("payment_gateway_ready", gateway=type(gateway).__name__)

    yield

    await close_redis()
    logger.info(
        "application_shutdown",
        open_sockets=app.state.connections.connection_count(),
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Venue and event booking API with payment processing",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # One registry per application instance; handed out via get_connection_registry
    app.state.connections = ConnectionRegistry()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    app.include_router(api_router)
    app.include_router(ws.router)

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for Docker and load balancers."""
        cache_stats = await get_cache_stats()
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "cache": cache_stats,
            "sockets": app.state.connections.connection_count(),
        }

    @app.get("/metrics", tags=["Health"], include_in_schema=False)
    async def metrics():
        return metrics_endpoint()

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "message": f"Welcome to {settings.APP_NAME}",
            "version": settings.APP_VERSION,
            "docs": "/docs",
        }

    return app


app = create_app()
