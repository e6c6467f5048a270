"""
Collaboration schemas.

Wire frame of the websocket protocol plus the request/response contracts of
the REST endpoints that inspect the hub or push server events through it.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.events import RESERVED_EVENT_NAMES


class ClientFrame(BaseModel):
    """One inbound websocket frame: ``{"event": ..., "data": {...}}``."""

    event: str = Field(min_length=1, max_length=64)
    data: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")


class PresenceMember(BaseModel):
    """Roster entry."""

    user_id: str = Field(alias="userId")
    display_name: str = Field(alias="displayName")
    color: str

    model_config = ConfigDict(populate_by_name=True)


class RoomMembersResponse(BaseModel):
    """Who is currently in a document room."""

    document_id: str = Field(description="Document (room) identifier")
    members: List[PresenceMember] = Field(default_factory=list)
    count: int = Field(description="Number of connections in the room")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "document_id": "123e4567-e89b-12d3-a456-426614174000",
                "members": [
                    {"userId": "u-1", "displayName": "Ada", "color": "#4ECDC4"}
                ],
                "count": 1,
            }
        }
    )


class CollabStatsResponse(BaseModel):
    """Hub counters."""

    connections: int = Field(description="Authenticated connections")
    rooms: int = Field(description="Non-empty document rooms")
    users: int = Field(description="Distinct users connected")


class PushRequest(BaseModel):
    """Server-originated event pushed through the hub."""

    event: str = Field(min_length=1, max_length=64, description="Event name delivered to clients")
    data: Dict[str, Any] = Field(default_factory=dict, description="Event payload")

    @field_validator("event")
    @classmethod
    def validate_event(cls, v):
        """Hub-owned event names cannot be forged from outside."""
        if v in RESERVED_EVENT_NAMES:
            raise ValueError(f"Event name '{v}' is reserved")
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "event": "note.saved",
                "data": {"version": 12},
            }
        }
    )


class PushResponse(BaseModel):
    """Result of a server push."""

    recipients: int = Field(description="Connections the event was queued for")


class SweepRequest(BaseModel):
    """Manual idle sweep."""

    threshold_seconds: Optional[float] = Field(
        default=None, gt=0, description="Idle threshold, defaults to the configured timeout"
    )


class SweepResponse(BaseModel):
    """Connections evicted by a sweep."""

    evicted: List[str] = Field(default_factory=list)
    threshold_seconds: float
