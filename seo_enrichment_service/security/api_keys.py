"""API key roles for the job routes."""

from __future__ import annotations

import hmac
from enum import Enum
from typing import Optional

from fastapi import Depends, HTTPException, Security
from fastapi.security import APIKeyHeader

from ..config import get_settings


class Role(str, Enum):
    """ADMIN may delete jobs and trigger scans; SUBMITTER uploads and reads jobs."""

    ADMIN = "admin"
    SUBMITTER = "submitter"


_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def _role_for_key(api_key: str) -> Optional[Role]:
    settings = get_settings()
    for role, keys in ((Role.ADMIN, settings.admin_api_keys), (Role.SUBMITTER, settings.submitter_api_keys)):
        if any(hmac.compare_digest(api_key, key) for key in keys):
            return role
    return None


def get_current_role(api_key: Optional[str] = Security(_api_key_header)) -> Role:
    """Validate the ``X-API-Key`` header and return its role."""

    if not api_key:
        raise HTTPException(status_code=401, detail="Missing API key")
    role = _role_for_key(api_key)
    if role is None:
        raise HTTPException(status_code=403, detail="Invalid API key")
    return role


def require_roles(*allowed_roles: Role):
    """FastAPI dependency restricting a route to ``allowed_roles``."""

    allowed = {Role(role) for role in allowed_roles}

    def _dependency(role: Role = Depends(get_current_role)) -> Role:
        if role not in allowed:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return role

    return _dependency


__all__ = ["Role", "get_current_role", "require_roles"]
