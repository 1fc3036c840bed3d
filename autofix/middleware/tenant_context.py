from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware

from autofix.core.request_context import bind_user
from autofix.services.session import user_for_token


class TenantContextMiddleware(BaseHTTPMiddleware):
    """Resolve the bearer session before routing so log lines carry the workshop id.

    Authorization is still enforced by ``deps.get_current_user``; an invalid
    token here just leaves the request unbound.
    """

    async def dispatch(self, request, call_next):
        request.state.user = None
        request.state.tenant_id = None

        scheme, _, token = request.headers.get("Authorization", "").partition(" ")
        kv = getattr(request.app.state, "kv_store", None)
        if scheme.lower() == "bearer" and token and kv is not None:
            user = user_for_token(kv, token.strip())
            if user is not None:
                request.state.user = user
                request.state.tenant_id = bind_user(user)

        return await call_next(request)
