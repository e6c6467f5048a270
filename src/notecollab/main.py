# Main application entry point
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api import collab_router, health_router, websocket_router
from .config import get_settings
from .core.logging import LoggingMiddleware, get_logger, setup_logging
from .core.redis_client import get_redis_client
from .realtime import get_idle_sweeper

# Setup logging first
setup_logging()
logger = get_logger("main")

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info(
        "Starting NoteCollab application",
        extra={"version": __version__, "environment": settings.environment, "debug": settings.debug},
    )

    redis_client = get_redis_client()
    try:
        await redis_client.connect()
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed: {e}. Continuing without token blacklist...")

    sweeper = get_idle_sweeper()
    sweeper.start()

    yield

    # Shutdown
    logger.info("Shutting down NoteCollab application")
    await sweeper.stop()
    try:
        await redis_client.disconnect()
        logger.info("Redis connection closed")
    except Exception as e:
        logger.warning(f"Redis disconnect failed: {e}")


app = FastAPI(
    title="NoteCollab",
    description="Real-time collaboration presence and broadcast service for notes",
    version=__version__,
    lifespan=lifespan,
)

# Add logging middleware
app.add_middleware(LoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(collab_router, prefix="/api")
app.include_router(health_router, prefix="/api")
app.include_router(websocket_router)


# Root endpoint
@app.get("/")
async def root():
    return {"message": "NoteCollab API"}


# API root endpoint for better navigation
@app.get("/api/")
async def api_root():
    return {
        "message": "NoteCollab API",
        "version": __version__,
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "endpoints": {
            "collaboration": "/api/collab/",
            "websocket": "/ws/collab",
            "health": "/api/health/"
        }
    }


# Basic unprefixed health endpoint for load balancers
@app.get("/health")
async def basic_health():
    return {"status": "ok"}


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run("notecollab.main:app", host=settings.host, port=settings.port, reload=settings.reload)


if __name__ == "__main__":
    run()
