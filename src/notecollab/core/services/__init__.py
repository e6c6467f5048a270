"""
Service layer interfaces and implementations.
"""

from .interfaces import (
    ICollaborationHub,
    IHealthService,
    ITransport,
)

from .collaboration_service import CollaborationHub, ColorPicker
from .health_service import HealthService
from .idle_sweeper import IdleSweeper
from .websocket_transport import WebSocketTransport

__all__ = [
    # Interfaces
    "ICollaborationHub",
    "IHealthService",
    "ITransport",

    # Implementations
    "CollaborationHub",
    "ColorPicker",
    "HealthService",
    "IdleSweeper",
    "WebSocketTransport",
]
