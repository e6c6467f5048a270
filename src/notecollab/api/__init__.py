"""API routers for NoteCollab."""

from .collab import router as collab_router
from .health import router as health_router
from .websocket import router as websocket_router

__all__ = ["collab_router", "health_router", "websocket_router"]
