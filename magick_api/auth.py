"""
Authentication utilities
"""
import secrets
from typing import Optional

from fastapi import Depends, Header

from magick_api.config import Settings, get_settings
from magick_api.errors import AuthMissingError, AuthInvalidError

def verify_token(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    """Check the Authorization header against API_TOKEN, if one is configured.

    Accepts both "Bearer TOKEN" and a bare "TOKEN".
    """
    if not settings.auth_enabled:
        return None

    if not authorization:
        raise AuthMissingError("Authorization header missing. Please provide API token.")

    token = authorization[7:] if authorization.startswith("Bearer ") else authorization
    if not secrets.compare_digest(token.encode(), settings.API_TOKEN.encode()):
        raise AuthInvalidError("Invalid API token.")
    return token
