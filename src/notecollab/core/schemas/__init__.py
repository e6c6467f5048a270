"""
Pydantic schemas for the websocket frame and the REST request/response
contracts of the collaboration and health endpoints.
"""

from .collab import (
    ClientFrame,
    CollabStatsResponse,
    PresenceMember,
    PushRequest,
    PushResponse,
    RoomMembersResponse,
    SweepRequest,
    SweepResponse,
)
from .common import HealthCheckResponse

__all__ = [
    # Collaboration schemas
    "ClientFrame",
    "PresenceMember",
    "RoomMembersResponse",
    "CollabStatsResponse",
    "PushRequest",
    "PushResponse",
    "SweepRequest",
    "SweepResponse",
    # Common schemas
    "HealthCheckResponse",
]
