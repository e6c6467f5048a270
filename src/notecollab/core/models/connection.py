"""In-memory records owned by the collaboration hub."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class Connection:
    """One authenticated transport session.

    ``document_id`` is None until the client joins a document; ``color`` is
    fixed when the record is created and survives room switches.
    """

    connection_id: str
    user_id: str
    display_name: str
    color: str
    last_activity: float
    connected_at: float
    document_id: Optional[str] = None

    @property
    def in_room(self) -> bool:
        return self.document_id is not None

    def identity(self) -> Dict[str, Any]:
        return {"userId": self.user_id, "displayName": self.display_name}

    def presence(self) -> Dict[str, Any]:
        """Roster entry for this connection."""
        return {"userId": self.user_id, "displayName": self.display_name, "color": self.color}


@dataclass
class Outbound:
    """A frame the hub wants delivered once its maps are consistent again."""

    connection_id: str
    event: str
    payload: Dict[str, Any] = field(default_factory=dict)
