"""Middleware for authentication and other cross-cutting concerns."""

from .auth import JWTBearer, authenticate_websocket, extract_websocket_token, get_current_user_id

__all__ = ["get_current_user_id", "JWTBearer", "authenticate_websocket", "extract_websocket_token"]
