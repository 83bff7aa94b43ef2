from __future__ import annotations

from typing import Dict, Optional

from fastapi import Header
from jose import JWTError, jwt

from mintly_api.config import _get_env
from mintly_api.errors import ApiError

DEV_USER_ID = "demo-user"


class AuthSettings:
    def __init__(self) -> None:
        self.access_secret = _get_env("JWT_ACCESS_SECRET", "").strip()
        self.dev_bypass = _get_env("DEV_BYPASS_AUTH", "false").strip().lower() == "true"


def _unauthorized(message: str) -> ApiError:
    return ApiError(code="UNAUTHORIZED", message=message, status_code=401)


def verify_jwt(authorization: Optional[str]) -> Dict:
    settings = AuthSettings()
    if settings.dev_bypass:
        return {"sub": DEV_USER_ID}

    if not authorization:
        raise _unauthorized("Missing token")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise _unauthorized("Invalid token format")
    if not settings.access_secret:
        raise _unauthorized("Token verification is not configured")

    try:
        claims = jwt.decode(parts[1], settings.access_secret, algorithms=["HS256"])
    except JWTError as exc:
        raise _unauthorized(str(exc) or "Invalid token") from exc

    if not str(claims.get("sub") or "").strip():
        raise _unauthorized("Token has no subject")
    return claims


def current_user(authorization: Optional[str] = Header(None)) -> Dict:
    return verify_jwt(authorization)
