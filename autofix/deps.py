from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from autofix.core.config import PLATFORM_ADMIN_TOKEN
from autofix.schemas.user import User
from autofix.services.data_store import DataStore
from autofix.services.kv_store import KeyValueStore
from autofix.services.session import user_for_token
from autofix.services.tenant_resolver import tenant_id_for

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

logger = logging.getLogger(__name__)


def get_kv_store(request: Request) -> KeyValueStore:
    return request.app.state.kv_store


def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
    kv: KeyValueStore = Depends(get_kv_store),
) -> User:
    """Resolve the bearer session token to a fresh user record.

    Log context is bound earlier by ``TenantContextMiddleware``; this only
    enforces that the session is valid.
    """
    user = user_for_token(kv, token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
            headers={"WWW-Authenticate": "Bearer"},
        )

    request.state.user = user
    request.state.tenant_id = tenant_id_for(user)
    return user


def require_owner(user: User = Depends(get_current_user)) -> User:
    if user.role != "Owner":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only workshop owners can do this")
    return user


def get_data_store(
    user: User = Depends(get_current_user),
    kv: KeyValueStore = Depends(get_kv_store),
) -> DataStore:
    return DataStore(kv, user)


def get_platform_store(kv: KeyValueStore = Depends(get_kv_store)) -> DataStore:
    """Store without an active tenant, for back-office requests."""
    return DataStore(kv)


def require_platform_admin(
    request: Request,
    x_admin_token: str | None = Header(default=None),
) -> None:
    configured = (PLATFORM_ADMIN_TOKEN or "").strip()
    incoming = (x_admin_token or "").strip()
    if not configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Platform admin requires PLATFORM_ADMIN_TOKEN to be configured",
        )
    if incoming != configured:
        logger.warning("Platform admin access denied endpoint=%s %s", request.method, request.url.path)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin token")
