"""JWT token utilities."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from ..config import get_settings
from ..core.redis_client import get_redis_client


@dataclass(frozen=True)
class TokenIdentity:
    """Who a bearer token belongs to."""

    user_id: str
    display_name: Optional[str] = None


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token with JTI for Redis blacklisting."""
    settings = get_settings()
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.access_token_expire_minutes
        )

    to_encode.update({"exp": expire, "type": "access", "jti": str(uuid.uuid4())})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


async def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and validate access token, checking Redis blacklist."""
    try:
        settings = get_settings()
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    if payload.get("type") != "access":
        return None

    jti = payload.get("jti")
    if jti:
        redis_client = get_redis_client()
        try:
            await redis_client.connect()
            if await redis_client.is_token_blacklisted(jti):
                return None
        except Exception:
            # If Redis is down, allow token validation to continue
            pass

    return payload


async def get_identity_from_token(token: str) -> Optional[TokenIdentity]:
    """Resolve a token to a presence identity.

    The user id is the ``sub`` claim taken verbatim; the display name comes
    from ``name`` or ``username`` when the issuer put one in the token.
    """
    payload = await decode_access_token(token)
    if not payload:
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    display_name = payload.get("name") or payload.get("username")
    return TokenIdentity(user_id=str(user_id), display_name=display_name)


async def get_user_id_from_token(token: str) -> Optional[str]:
    """Extract user ID from token, the same ``sub`` the websocket trusts."""
    identity = await get_identity_from_token(token)
    return identity.user_id if identity else None
