from __future__ import annotations

"""Authentication helpers resolving API keys to users."""

from dataclasses import dataclass

from fastapi import HTTPException, Request, status

from src.app.settings import key_user_id, settings

ANONYMOUS_USER_ID = "anonymous"


@dataclass(frozen=True)
class AuthContext:
    """Resolved user for the current request."""
    api_key: str | None
    user_id: str
    full_name: str
    group_name: str


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_api_key(request: Request) -> AuthContext:
    """Validate the API key or allow anonymous access if configured."""
    api_key = _extract_api_key(request)
    key_map = settings.api_key_map
    allowed = settings.api_keys
    if not (key_map or allowed):
        if settings.allow_anonymous:
            return AuthContext(
                api_key=None,
                user_id=ANONYMOUS_USER_ID,
                full_name="Anonymous",
                group_name="",
            )
        raise _unauthorized("API key required")
    if api_key is None:
        raise _unauthorized("Invalid or missing API key")
    entry = key_map.get(api_key)
    if entry:
        return AuthContext(
            api_key=api_key,
            user_id=entry["user_id"],
            full_name=entry["full_name"],
            group_name=entry["group_name"],
        )
    if api_key not in allowed:
        raise _unauthorized("Invalid or missing API key")
    return AuthContext(
        api_key=api_key,
        user_id=key_user_id(api_key),
        full_name="Unknown User",
        group_name="",
    )


def _extract_api_key(request: Request) -> str | None:
    """Extract API key from headers."""
    header_key = request.headers.get("x-api-key")
    if header_key:
        return header_key.strip()
    auth = request.headers.get("authorization")
    if not auth:
        return None
    parts = auth.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1].strip()
    return None
