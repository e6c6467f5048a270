"""Collaboration websocket endpoint."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket, status
from pydantic import ValidationError

from ..config import Settings, get_settings
from ..core.logging import get_logger
from ..core.models.events import ClientEvent
from ..core.schemas.collab import ClientFrame
from ..core.services import CollaborationHub, WebSocketTransport
from ..middleware.auth import authenticate_websocket
from ..realtime import get_collaboration_hub, get_transport

router = APIRouter(tags=["collaboration"])
logger = get_logger("collab.ws")


def parse_frame(raw) -> Optional[ClientFrame]:
    """Decode one inbound frame, None when it is not a valid event envelope."""
    if raw is None:
        return None
    try:
        return ClientFrame.model_validate_json(raw)
    except ValidationError:
        return None


@router.websocket("/ws/collab")
async def collaboration_socket(
    websocket: WebSocket,
    hub: CollaborationHub = Depends(get_collaboration_hub),
    transport: WebSocketTransport = Depends(get_transport),
    settings: Settings = Depends(get_settings),
):
    """Duplex collaboration channel, one connection per open editor."""
    identity = await authenticate_websocket(websocket)
    if identity is None and settings.collab_require_token:
        logger.info("WebSocket rejected: missing or invalid token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid or missing token")
        return

    await websocket.accept()
    connection_id = uuid.uuid4().hex
    transport.register(connection_id, websocket)
    logger.info("WebSocket connected", extra={
        "connection_id": connection_id,
        "user_id": identity.user_id if identity else None,
    })

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            raw = message.get("text")
            if raw is None and message.get("bytes") is not None:
                raw = message["bytes"]
            frame = parse_frame(raw)
            if frame is None:
                logger.debug("Dropping malformed frame", extra={"connection_id": connection_id})
                continue

            data = frame.data
            if frame.event == ClientEvent.AUTHENTICATE.value and identity is not None:
                # the token decides who this is, the client only picks a label
                data = {
                    **data,
                    "userId": identity.user_id,
                    "displayName": data.get("displayName") or identity.display_name or identity.user_id,
                }
            hub.handle_event(connection_id, frame.event, data)
    except Exception as e:
        logger.error("WebSocket receive loop failed", exc_info=e, extra={
            "connection_id": connection_id,
        })
    finally:
        hub.disconnect(connection_id)
        await transport.unregister(connection_id)
        logger.info("WebSocket disconnected", extra={"connection_id": connection_id})
