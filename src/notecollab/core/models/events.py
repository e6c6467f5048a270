"""Names of the events exchanged over a collaboration connection."""

from enum import Enum


class ClientEvent(str, Enum):
    """Events a client may send to the hub."""

    AUTHENTICATE = "authenticate"
    ROOM_JOIN = "room.join"
    ROOM_LEAVE = "room.leave"
    CONTENT_DELTA = "content.delta"
    CURSOR_MOVE = "cursor.move"
    SELECTION_SET = "selection.set"
    TYPING = "typing"
    ACTIVITY_PING = "activity.ping"


class ServerEvent(str, Enum):
    """Events only the hub itself emits."""

    AUTHENTICATED = "authenticated"
    ROOM_SNAPSHOT = "room.snapshot"
    MEMBER_JOINED = "member.joined"
    MEMBER_LEFT = "member.left"


# Events fanned out to the sender's room with identity stamped on
RELAYED_EVENTS = frozenset({
    ClientEvent.CONTENT_DELTA,
    ClientEvent.CURSOR_MOVE,
    ClientEvent.SELECTION_SET,
    ClientEvent.TYPING,
})

# Relayed events that also carry the sender's presence color
COLORED_EVENTS = frozenset({
    ClientEvent.CURSOR_MOVE,
    ClientEvent.SELECTION_SET,
})

RESERVED_EVENT_NAMES = frozenset(e.value for e in ServerEvent)


def parse_client_event(name: object):
    """Map a wire event name to a ClientEvent, None for anything unknown."""
    if not isinstance(name, str):
        return None
    try:
        return ClientEvent(name)
    except ValueError:
        return None
