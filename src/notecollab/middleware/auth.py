"""Authentication middleware."""

from typing import Optional

from fastapi import HTTPException, status, Depends, Request, WebSocket
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..security import TokenIdentity, get_identity_from_token, get_user_id_from_token


class JWTBearer(HTTPBearer):
    """JWT Bearer token authentication."""

    def __init__(self, auto_error: bool = True):
        super(JWTBearer, self).__init__(auto_error=auto_error)

    async def __call__(self, request: Request):
        credentials: Optional[HTTPAuthorizationCredentials] = await super().__call__(request)
        if credentials:
            if credentials.scheme != "Bearer":
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Invalid authentication scheme"
                )

            user_id = await get_user_id_from_token(credentials.credentials)
            if not user_id:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Invalid token or expired token"
                )

            return user_id
        else:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid authorization code"
            )


# Dependency for getting current user ID from JWT
async def get_current_user_id(user_id: str = Depends(JWTBearer())) -> str:
    """Get current authenticated user ID."""
    return user_id


def extract_websocket_token(websocket: WebSocket) -> Optional[str]:
    """Bearer token from the ``token`` query param or the Authorization header.

    Browsers cannot set headers on a websocket handshake, hence the query
    param; non-browser clients may use either.
    """
    token = websocket.query_params.get("token")
    if token:
        return token

    authorization = websocket.headers.get("authorization")
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials:
            return credentials.strip()
    return None


async def authenticate_websocket(websocket: WebSocket) -> Optional[TokenIdentity]:
    """Resolve the identity behind a websocket handshake, None if unauthenticated."""
    token = extract_websocket_token(websocket)
    if not token:
        return None
    return await get_identity_from_token(token)
