# Collaboration hub setup
from .config import get_settings
from .core.services import CollaborationHub, IdleSweeper, WebSocketTransport

# Get settings
settings = get_settings()

# One hub per process, state is rebuilt from zero on restart
transport = WebSocketTransport(queue_size=settings.collab_send_queue_size)
hub = CollaborationHub(transport)
sweeper = IdleSweeper(
    hub,
    threshold_seconds=settings.collab_idle_timeout_seconds,
    interval_seconds=settings.collab_sweep_interval_seconds,
)


def get_collaboration_hub() -> CollaborationHub:
    """Get the process-wide collaboration hub."""
    return hub


def get_transport() -> WebSocketTransport:
    """Get the websocket transport the hub sends through."""
    return transport


def get_idle_sweeper() -> IdleSweeper:
    """Get the idle sweeper."""
    return sweeper
