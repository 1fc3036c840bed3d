"""Per-request identifiers picked up by the JSON log formatter."""
from __future__ import annotations

from contextvars import ContextVar
from typing import Dict, Optional

from autofix.schemas.user import User
from autofix.services.tenant_resolver import tenant_id_for

_request_id: ContextVar[Optional[str]] = ContextVar("autofix_request_id", default=None)
_tenant_id: ContextVar[Optional[str]] = ContextVar("autofix_tenant_id", default=None)
_user_id: ContextVar[Optional[str]] = ContextVar("autofix_user_id", default=None)


def set_request_context(
    *, request_id: Optional[str] = None, tenant_id: Optional[str] = None, user_id: Optional[str] = None
) -> None:
    if request_id is not None:
        _request_id.set(request_id)
    if tenant_id is not None:
        _tenant_id.set(tenant_id)
    if user_id is not None:
        _user_id.set(user_id)


def bind_user(user: User) -> str:
    """Stamp the workshop partition and user id of ``user``; returns the tenant id."""
    tenant_id = tenant_id_for(user)
    set_request_context(tenant_id=tenant_id, user_id=user.id)
    return tenant_id


def current_context() -> Dict[str, Optional[str]]:
    return {"request_id": _request_id.get(), "tenant_id": _tenant_id.get(), "user_id": _user_id.get()}


def clear_request_context() -> None:
    for var in (_request_id, _tenant_id, _user_id):
        var.set(None)
