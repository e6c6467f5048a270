"""
In-memory models for the collaboration hub.

Nothing here is persisted: connection records and room membership live only
as long as the process does.

Models included:
    - Connection: one authenticated transport session and its presence state
    - Outbound: a frame queued for delivery after a hub operation
    - ClientEvent / ServerEvent: event names of the websocket protocol
"""

from .connection import Connection, Outbound
from .events import COLORED_EVENTS, RELAYED_EVENTS, ClientEvent, ServerEvent, parse_client_event

__all__ = [
    "Connection",
    "Outbound",
    "ClientEvent",
    "ServerEvent",
    "RELAYED_EVENTS",
    "COLORED_EVENTS",
    "parse_client_event",
]
