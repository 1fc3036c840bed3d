from __future__ import annotations

import logging
from typing import Optional, Tuple

from autofix.schemas.user import BILLABLE_ROLES, User
from autofix.schemas.workshop import Customer, Invoice, JobCard, Quote, Technician
from autofix.services.demo_data import DemoWorkshop, build_demo_workshop
from autofix.services.kv_store import KeyValueStore
from autofix.services.repositories import (
    DEFAULT_CATEGORIES,
    ActivityLog,
    CategoryRepository,
    CollectionRepository,
    InventoryRepository,
)
from autofix.services.tenant_resolver import GUEST_TENANT_ID, TenantResolver, tenant_id_for, tenant_resolver

logger = logging.getLogger(__name__)


class TenantStore:
    """Per-tenant collections of the workshop the active user belongs to.

    ``switch_user`` is the only way the active tenant changes: it rebinds every
    collection to the new tenant's keys and reloads them, or empties them when
    the user logs out.
    """

    def __init__(self, store: KeyValueStore, resolver: TenantResolver = tenant_resolver) -> None:
        self.store = store
        self.resolver = resolver
        self.user: Optional[User] = None
        self.tenant_id = GUEST_TENANT_ID
        self._bind(GUEST_TENANT_ID)

    @classmethod
    def for_user(
        cls, store: KeyValueStore, user: Optional[User], resolver: TenantResolver = tenant_resolver
    ) -> "TenantStore":
        tenant_store = cls(store, resolver)
        tenant_store.switch_user(user)
        return tenant_store

    def _bind(self, tenant_id: str) -> None:
        def key(entity_type: str) -> str:
            return self.resolver.tenant_key(entity_type, tenant_id)

        self.quotes = CollectionRepository(self.store, key("quotes"), Quote)
        self.job_cards = CollectionRepository(self.store, key("jobs"), JobCard)
        self.invoices = CollectionRepository(self.store, key("invoices"), Invoice)
        self.inventory = InventoryRepository(self.store, key("inventory"))
        self.customers = CollectionRepository(self.store, key("customers"), Customer)
        self.technicians = CollectionRepository(self.store, key("technicians"), Technician, prepend=False)
        self.activities = ActivityLog(self.store, key("activities"))
        self.categories = CategoryRepository(self.store, key("categories"))

    @property
    def collections(self) -> Tuple:
        return (
            self.quotes,
            self.job_cards,
            self.invoices,
            self.inventory,
            self.customers,
            self.technicians,
            self.activities,
            self.categories,
        )

    def switch_user(self, user: Optional[User]) -> bool:
        """Rebind to ``user``'s tenant. Returns True when first-login seeding ran."""
        self.user = user
        if user is None:
            self.tenant_id = GUEST_TENANT_ID
            self._bind(GUEST_TENANT_ID)
            for collection in self.collections:
                collection.clear()
            return False

        self.tenant_id = tenant_id_for(user)
        self._bind(self.tenant_id)
        for collection in self.collections:
            collection.load()
        return self._seed_if_pending(user)

    def _seed_if_pending(self, user: User) -> bool:
        marker = self.resolver.seed_marker_key(user.id)
        if not self.store.contains(marker) or user.role not in BILLABLE_ROLES:
            return False
        self.load_demo_data(build_demo_workshop())
        self.store.remove(marker)
        logger.info("Demo workshop seeded", extra={"tenant_id": self.tenant_id, "user_id": user.id})
        return True

    def load_demo_data(self, demo: DemoWorkshop, *, reset_categories: bool = False) -> None:
        self.quotes.replace_all(demo.quotes)
        self.job_cards.replace_all(demo.job_cards)
        self.invoices.replace_all(demo.invoices)
        self.inventory.replace_all(demo.inventory)
        self.customers.replace_all(demo.customers)
        self.technicians.replace_all(demo.technicians)
        self.activities.replace_all(demo.activities)
        if reset_categories:
            self.categories.replace_all(DEFAULT_CATEGORIES)

    def reset_demo_data(self, demo: Optional[DemoWorkshop] = None) -> None:
        self.load_demo_data(demo or build_demo_workshop(), reset_categories=True)
