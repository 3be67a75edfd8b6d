"""Workflow Simulator - FastAPI Application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from api.v1.router import api_v1_router
from api.routes import health
from api.routes.ws import router as ws_router
from api.websockets.connection_manager import manager
from core.logging_config import setup_logging
from core.middleware import RequestTrackingMiddleware, setup_exception_handlers
from simulator.synthesizer.registry import get_generator_registry


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging, check the delay window and warm the generator registry."""
    settings = get_settings()
    setup_logging(settings)

    try:
        settings.validate_delays()
    except RuntimeError as e:
        print(f"[startup] FATAL: {e}")
        raise

    categories = get_generator_registry().available_categories
    low, high = settings.delay_window
    seed = settings.SIMULATION_SEED if settings.SIMULATION_SEED is not None else "random"
    print(f"[startup] {len(categories)} generators: {', '.join(categories)}")
    print(f"[startup] Animated delay {low}-{high}ms, seed {seed}, max {settings.SIMULATION_MAX_NODES} nodes")
    print(f"[startup] {settings.APP_NAME} v{settings.APP_VERSION} ready ({settings.ENVIRONMENT})")
    yield
    print(f"[shutdown] Closing with {manager.get_connection_count()} open simulation socket(s)")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Simulates n8n workflow executions with synthesized node outputs, "
                    "for previewing templates without running them.",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestTrackingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )

    setup_exception_handlers(app)

    # Unversioned liveness probe
    app.include_router(health.router, prefix="/api", tags=["Health"])
    app.include_router(api_v1_router, prefix=settings.API_V1_PREFIX)
    # Streaming runs: /ws/simulations
    app.include_router(ws_router)

    return app


app = create_app()
