"""
Bearer-token identity for the HTTP API.

Tokens are HS256 JWTs whose ``sub`` is the account id and whose ``role``
claim carries the account role. The session layer that issues them lives
elsewhere; this module only verifies them and turns them into a Caller.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from config.settings import Settings
from models.caller import Caller


# auto_error=False so a missing header yields 401 rather than FastAPI's default
bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(settings: Settings, account_id: str, role: str, expires_minutes: int = 60) -> str:
    """Create JWT access token."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    claims = {"sub": account_id, "role": role, "exp": expire}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(settings: Settings, token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def get_current_caller(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Caller:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    payload = decode_token(request.app.state.container.settings, credentials.credentials)
    if not payload or not payload.get("sub"):
        raise credentials_exception
    return Caller(account_id=str(payload["sub"]), role=str(payload.get("role") or ""))


def require_admin(request: Request, caller: Caller = Depends(get_current_caller)) -> Caller:
    """Dependency - Require the admin role."""
    if not caller.has_role(request.app.state.container.settings.admin_role):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return caller
