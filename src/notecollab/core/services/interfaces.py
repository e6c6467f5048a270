"""
Service interfaces for NoteCollab.
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, Dict, List, Optional, Union

from ..models.connection import Connection
from ..schemas.common import HealthCheckResponse


class ITransport(ABC):
    """Outbound side of the duplex channel the hub talks through."""

    @abstractmethod
    def send(self, connection_id: str, event: str, payload: Dict[str, Any]) -> None:
        """Queue a named event for one connection. Must not block."""
        pass

    def close(self, connection_id: str) -> None:
        """Ask the transport to drop a connection the hub evicted."""
        return None


class ICollaborationHub(ABC):
    """Presence and broadcast hub for document rooms."""

    @abstractmethod
    def authenticate(self, connection_id: str, user_id: str, display_name: str) -> str:
        """Register a connection, return its presence color."""
        pass

    @abstractmethod
    def touch_activity(self, connection_id: str) -> bool:
        """Refresh last activity."""
        pass

    @abstractmethod
    def disconnect(self, connection_id: str) -> bool:
        """Leave the current room and forget the connection."""
        pass

    @abstractmethod
    def sweep_idle(self, threshold: Union[float, timedelta]) -> List[str]:
        """Evict connections idle for longer than threshold."""
        pass

    @abstractmethod
    def join(self, connection_id: str, document_id: str) -> bool:
        """Move a connection into a document room."""
        pass

    @abstractmethod
    def leave(self, connection_id: str, document_id: str) -> bool:
        """Take a connection out of a document room."""
        pass

    @abstractmethod
    def relay(self, connection_id: str, event_kind: Any, payload: Any) -> int:
        """Fan a collaboration event out to the sender's room."""
        pass

    @abstractmethod
    def handle_event(self, connection_id: str, event: Any, data: Any) -> None:
        """Dispatch one inbound client event."""
        pass

    @abstractmethod
    def roster(self, document_id: str, exclude: Optional[str] = None) -> List[Dict[str, Any]]:
        """Presence roster of a room."""
        pass

    @abstractmethod
    def broadcast_to_room(self, document_id: str, event: str, payload: Dict[str, Any]) -> int:
        """Server-originated push to every member of a room."""
        pass

    @abstractmethod
    def send_to_user(self, user_id: str, event: str, payload: Dict[str, Any]) -> int:
        """Server-originated push to every connection of a user."""
        pass

    @abstractmethod
    def get_connection(self, connection_id: str) -> Optional[Connection]:
        """Snapshot of a connection record."""
        pass

    @abstractmethod
    def stats(self) -> Dict[str, int]:
        """Connection, room and user counts."""
        pass


class IHealthService(ABC):
    """Health check service."""

    @abstractmethod
    async def get_health_status(self) -> HealthCheckResponse:
        """Get app health status."""
        pass

    @abstractmethod
    async def check_redis_health(self) -> Dict[str, Any]:
        """Check Redis connection."""
        pass

    @abstractmethod
    def check_collaboration_health(self) -> Dict[str, Any]:
        """Report hub state."""
        pass

    @abstractmethod
    async def get_system_metrics(self) -> Dict[str, Any]:
        """Get system metrics."""
        pass
