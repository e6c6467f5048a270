"""Collaboration hub API endpoints."""


from fastapi import APIRouter, Depends

from ..config import Settings, get_settings
from ..core.schemas.collab import (
    CollabStatsResponse,
    PresenceMember,
    PushRequest,
    PushResponse,
    RoomMembersResponse,
    SweepRequest,
    SweepResponse,
)
from ..core.services import CollaborationHub
from ..middleware.auth import get_current_user_id
from ..realtime import get_collaboration_hub

router = APIRouter(prefix="/collab", tags=["collaboration"])


@router.get("/stats", response_model=CollabStatsResponse)
async def collaboration_stats(
    current_user_id: str = Depends(get_current_user_id),
    hub: CollaborationHub = Depends(get_collaboration_hub),
):
    """Connected users, connections and active rooms."""
    return CollabStatsResponse(**hub.stats())


@router.get("/documents/{document_id}/members", response_model=RoomMembersResponse)
async def document_members(
    document_id: str,
    current_user_id: str = Depends(get_current_user_id),
    hub: CollaborationHub = Depends(get_collaboration_hub),
):
    """Presence roster of a document."""
    members = [PresenceMember.model_validate(m) for m in hub.roster(document_id)]
    return RoomMembersResponse(document_id=document_id, members=members, count=len(members))


@router.post("/documents/{document_id}/broadcast", response_model=PushResponse)
async def broadcast_to_document(
    document_id: str,
    request: PushRequest,
    current_user_id: str = Depends(get_current_user_id),
    hub: CollaborationHub = Depends(get_collaboration_hub),
):
    """Push an event to everyone editing a document (e.g. after a save)."""
    return PushResponse(recipients=hub.broadcast_to_room(document_id, request.event, request.data))


@router.post("/users/{user_id}/notify", response_model=PushResponse)
async def notify_user(
    user_id: str,
    request: PushRequest,
    current_user_id: str = Depends(get_current_user_id),
    hub: CollaborationHub = Depends(get_collaboration_hub),
):
    """Push an event to every open connection of a user (e.g. a new share)."""
    return PushResponse(recipients=hub.send_to_user(user_id, request.event, request.data))


@router.post("/sweep", response_model=SweepResponse)
async def sweep_idle_connections(
    request: SweepRequest,
    current_user_id: str = Depends(get_current_user_id),
    hub: CollaborationHub = Depends(get_collaboration_hub),
    settings: Settings = Depends(get_settings),
):
    """Evict idle connections now instead of waiting for the sweeper."""
    threshold = request.threshold_seconds or settings.collab_idle_timeout_seconds
    return SweepResponse(evicted=hub.sweep_idle(threshold), threshold_seconds=threshold)
