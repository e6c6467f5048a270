"""
Real-time collaboration hub.

Tracks authenticated connections and the document room each one is in,
relays edit/cursor/selection/typing events between members of a room and
keeps presence rosters. The hub never persists or merges content: it is a
notification bus, the document store stays the source of truth.

Every operation mutates the connection and room maps completely under the
lock, then hands the resulting frames to the transport outside of it, so a
recipient never observes a half-applied membership change.
"""

import itertools
import random
import threading
import time
from dataclasses import replace
from datetime import timedelta
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Union

from ...config import get_settings
from ..logging import get_logger
from ..models.connection import Connection, Outbound
from ..models.events import (
    COLORED_EVENTS,
    RELAYED_EVENTS,
    ClientEvent,
    ServerEvent,
    parse_client_event,
)
from .interfaces import ICollaborationHub, ITransport

logger = get_logger("collab.hub")

COLOR_STRATEGIES = ("random", "round_robin")


class ColorPicker:
    """Hands out presence colors from a fixed palette."""

    def __init__(
        self,
        palette: Sequence[str],
        strategy: str = "random",
        rng: Optional[random.Random] = None,
    ):
        if not palette:
            raise ValueError("Presence color palette must not be empty")
        if strategy not in COLOR_STRATEGIES:
            raise ValueError(f"Unknown color strategy: {strategy}")
        self.palette = list(palette)
        self.strategy = strategy
        self._rng = rng or random.Random()
        self._cycle = itertools.cycle(self.palette)

    def next(self) -> str:
        if self.strategy == "round_robin":
            return next(self._cycle)
        return self._rng.choice(self.palette)


def normalize_document_id(value: Any) -> Optional[str]:
    """Document ids arrive as strings or numbers; blank means missing."""
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (str, int)):
        return None
    document_id = str(value).strip()
    return document_id or None


class CollaborationHub(ICollaborationHub):
    """Presence and broadcast hub.

    Owns two maps: ``connections`` (connection id -> Connection) and
    ``rooms`` (document id -> member connection ids). A room exists exactly
    as long as it has members.
    """

    def __init__(
        self,
        transport: ITransport,
        *,
        palette: Optional[Sequence[str]] = None,
        color_strategy: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ):
        settings = get_settings()
        self.transport = transport
        self.colors = ColorPicker(
            palette if palette is not None else settings.collab_presence_colors,
            color_strategy or settings.collab_color_strategy,
            rng,
        )
        self.clock = clock
        self.connections: Dict[str, Connection] = {}
        self.rooms: Dict[str, Set[str]] = {}
        self._lock = threading.RLock()

    # ---------- connection lifecycle ----------

    def authenticate(self, connection_id: str, user_id: str, display_name: str) -> str:
        outbound: List[Outbound] = []
        with self._lock:
            now = self.clock()
            conn = self.connections.get(connection_id)
            if conn is None:
                conn = Connection(
                    connection_id=connection_id,
                    user_id=user_id,
                    display_name=display_name,
                    color=self.colors.next(),
                    last_activity=now,
                    connected_at=now,
                )
                self.connections[connection_id] = conn
            else:
                # color is kept for the lifetime of the connection
                previous = conn.identity()
                conn.user_id = user_id
                conn.display_name = display_name
                conn.last_activity = now
                if conn.in_room and conn.identity() != previous:
                    # room members see the old identity leave and the new one arrive
                    others = [m for m in self.rooms.get(conn.document_id, ()) if m != connection_id]
                    joined = conn.presence()
                    outbound.extend(
                        Outbound(m, ServerEvent.MEMBER_LEFT.value, previous) for m in others
                    )
                    outbound.extend(
                        Outbound(m, ServerEvent.MEMBER_JOINED.value, joined) for m in others
                    )
            color = conn.color

        self._deliver(outbound)
        logger.info("Connection authenticated", extra={
            "connection_id": connection_id,
            "user_id": user_id,
            "color": color,
        })
        return color

    def touch_activity(self, connection_id: str) -> bool:
        with self._lock:
            conn = self.connections.get(connection_id)
            if conn is None:
                return False
            conn.last_activity = self.clock()
            return True

    def disconnect(self, connection_id: str) -> bool:
        with self._lock:
            conn = self.connections.get(connection_id)
            if conn is None:
                return False
            outbound = self._leave_locked(conn) if conn.in_room else []
            del self.connections[connection_id]

        self._deliver(outbound)
        logger.info("Connection removed", extra={
            "connection_id": connection_id,
            "user_id": conn.user_id,
        })
        return True

    def sweep_idle(self, threshold: Union[float, timedelta]) -> List[str]:
        if isinstance(threshold, timedelta):
            threshold = threshold.total_seconds()

        with self._lock:
            now = self.clock()
            stale = [
                cid for cid, conn in self.connections.items()
                if now - conn.last_activity > threshold
            ]
            outbound: List[Outbound] = []
            for cid in stale:
                conn = self.connections[cid]
                if conn.in_room:
                    outbound.extend(self._leave_locked(conn))
                del self.connections[cid]

        evicted = set(stale)
        self._deliver(item for item in outbound if item.connection_id not in evicted)
        for cid in stale:
            try:
                self.transport.close(cid)
            except Exception:
                logger.debug("Transport close failed", exc_info=True, extra={"connection_id": cid})

        if stale:
            logger.info("Idle connections evicted", extra={
                "count": len(stale),
                "threshold_s": threshold,
            })
        return stale

    # ---------- room membership ----------

    def join(self, connection_id: str, document_id: str) -> bool:
        with self._lock:
            conn = self.connections.get(connection_id)
            if conn is None:
                return False
            conn.last_activity = self.clock()

            outbound: List[Outbound] = []
            announce: List[str] = []
            if conn.document_id != document_id:
                if conn.in_room:
                    outbound.extend(self._leave_locked(conn))
                members = self.rooms.setdefault(document_id, set())
                announce = [m for m in members if m != connection_id]
                members.add(connection_id)
                conn.document_id = document_id

            outbound.append(Outbound(connection_id, ServerEvent.ROOM_SNAPSHOT.value, {
                "documentId": document_id,
                "members": self._roster_locked(document_id, exclude=connection_id),
            }))
            joined = conn.presence()
            outbound.extend(
                Outbound(m, ServerEvent.MEMBER_JOINED.value, joined) for m in announce
            )

        self._deliver(outbound)
        logger.debug("Joined document", extra={
            "connection_id": connection_id,
            "document_id": document_id,
            "others": len(announce),
        })
        return True

    def leave(self, connection_id: str, document_id: str) -> bool:
        with self._lock:
            conn = self.connections.get(connection_id)
            if conn is None or conn.document_id != document_id:
                return False
            conn.last_activity = self.clock()
            outbound = self._leave_locked(conn)

        self._deliver(outbound)
        logger.debug("Left document", extra={
            "connection_id": connection_id,
            "document_id": document_id,
        })
        return True

    def _leave_locked(self, conn: Connection) -> List[Outbound]:
        document_id = conn.document_id
        members = self.rooms.get(document_id, set())
        members.discard(conn.connection_id)
        if not members:
            self.rooms.pop(document_id, None)
        conn.document_id = None

        left = conn.identity()
        return [Outbound(m, ServerEvent.MEMBER_LEFT.value, left) for m in members]

    def _roster_locked(self, document_id: str, exclude: Optional[str] = None) -> List[Dict[str, Any]]:
        members = [
            self.connections[cid]
            for cid in self.rooms.get(document_id, ())
            if cid != exclude and cid in self.connections
        ]
        members.sort(key=lambda c: (c.connected_at, c.connection_id))
        return [c.presence() for c in members]

    # ---------- relay ----------

    def relay(self, connection_id: str, event_kind: Any, payload: Any) -> int:
        event = event_kind if isinstance(event_kind, ClientEvent) else parse_client_event(event_kind)
        if event not in RELAYED_EVENTS or not isinstance(payload, Mapping):
            return 0

        with self._lock:
            conn = self.connections.get(connection_id)
            if conn is None:
                return 0
            conn.last_activity = self.clock()
            if not conn.in_room:
                return 0

            claimed = payload.get("documentId")
            if claimed is not None and normalize_document_id(claimed) != conn.document_id:
                return 0

            stamped = dict(payload)
            stamped.update(conn.identity())
            if event in COLORED_EVENTS:
                stamped["color"] = conn.color
            else:
                stamped.pop("color", None)
            recipients = [m for m in self.rooms.get(conn.document_id, ()) if m != connection_id]

        self._deliver(Outbound(m, event.value, stamped) for m in recipients)
        return len(recipients)

    # ---------- inbound dispatch ----------

    def handle_event(self, connection_id: str, event: Any, data: Any) -> None:
        kind = parse_client_event(event)
        if kind is None:
            logger.debug("Ignoring unknown event", extra={
                "connection_id": connection_id,
                "event": str(event)[:64],
            })
            return
        if not isinstance(data, Mapping):
            data = {}

        if kind is ClientEvent.AUTHENTICATE:
            self._handle_authenticate(connection_id, data)
            return

        if not self.touch_activity(connection_id):
            # not authenticated yet, or already evicted
            return

        if kind is ClientEvent.ACTIVITY_PING:
            return
        if kind in (ClientEvent.ROOM_JOIN, ClientEvent.ROOM_LEAVE):
            document_id = normalize_document_id(data.get("documentId"))
            if document_id is None:
                return
            if kind is ClientEvent.ROOM_JOIN:
                self.join(connection_id, document_id)
            else:
                self.leave(connection_id, document_id)
            return

        self.relay(connection_id, kind, data)

    def _handle_authenticate(self, connection_id: str, data: Mapping) -> None:
        user_id = data.get("userId")
        if isinstance(user_id, bool) or not isinstance(user_id, (str, int)) or not str(user_id).strip():
            return
        user_id = str(user_id).strip()
        display_name = data.get("displayName")
        if not isinstance(display_name, str) or not display_name.strip():
            display_name = user_id

        color = self.authenticate(connection_id, user_id, display_name.strip())
        self._deliver([Outbound(connection_id, ServerEvent.AUTHENTICATED.value, {"color": color})])

    # ---------- server-side pushes and queries ----------

    def roster(self, document_id: str, exclude: Optional[str] = None) -> List[Dict[str, Any]]:
        with self._lock:
            return self._roster_locked(document_id, exclude=exclude)

    def broadcast_to_room(self, document_id: str, event: str, payload: Dict[str, Any]) -> int:
        with self._lock:
            recipients = list(self.rooms.get(document_id, ()))
        self._deliver(Outbound(m, event, payload) for m in recipients)
        return len(recipients)

    def send_to_user(self, user_id: str, event: str, payload: Dict[str, Any]) -> int:
        with self._lock:
            recipients = [cid for cid, c in self.connections.items() if c.user_id == user_id]
        self._deliver(Outbound(cid, event, payload) for cid in recipients)
        return len(recipients)

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        with self._lock:
            conn = self.connections.get(connection_id)
            return replace(conn) if conn is not None else None

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "connections": len(self.connections),
                "rooms": len(self.rooms),
                "users": len({c.user_id for c in self.connections.values()}),
            }

    # ---------- helpers ----------

    def _deliver(self, outbound: Iterable[Outbound]) -> None:
        for item in outbound:
            try:
                self.transport.send(item.connection_id, item.event, item.payload)
            except Exception as e:
                # one dead recipient must not stop the fan-out
                logger.debug("Dropped outbound event", extra={
                    "connection_id": item.connection_id,
                    "event": item.event,
                    "error": str(e),
                })
