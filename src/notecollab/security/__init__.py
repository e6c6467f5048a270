"""Security utilities."""

from .jwt import (
    TokenIdentity,
    create_access_token,
    decode_access_token,
    get_identity_from_token,
    get_user_id_from_token,
)

__all__ = [
    "TokenIdentity",
    "create_access_token",
    "decode_access_token",
    "get_identity_from_token",
    "get_user_id_from_token",
]
