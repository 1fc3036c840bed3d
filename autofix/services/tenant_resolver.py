from __future__ import annotations

from autofix.core.config import STORAGE_NAMESPACE
from autofix.schemas.user import User

GUEST_TENANT_ID = "guest"

TENANT_COLLECTIONS = (
    "quotes",
    "jobs",
    "invoices",
    "inventory",
    "customers",
    "technicians",
    "activities",
    "categories",
)


def tenant_id_for(user: User | None) -> str:
    """Staff resolve to their owner's id so the whole workshop shares one partition."""
    if user is None:
        return GUEST_TENANT_ID
    return user.owner_id or user.id or GUEST_TENANT_ID


class TenantResolver:
    def __init__(self, namespace: str = STORAGE_NAMESPACE) -> None:
        self.namespace = namespace

    def tenant_key(self, entity_type: str, owner: User | str | None) -> str:
        tenant_id = owner if isinstance(owner, str) else tenant_id_for(owner)
        return f"{self.namespace}_{entity_type}_{tenant_id or GUEST_TENANT_ID}"

    def global_key(self, name: str) -> str:
        return f"{self.namespace}_global_{name}"

    @property
    def users_key(self) -> str:
        return f"{self.namespace}_users_db"

    def seed_marker_key(self, user_id: str) -> str:
        return f"{self.namespace}_seed_pending_{user_id}"

    def lockout_key(self, email: str) -> str:
        return f"{self.namespace}_lockout_{email.strip().lower()}"


tenant_resolver = TenantResolver()
