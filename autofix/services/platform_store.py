from __future__ import annotations

import random
from datetime import datetime
from typing import Any, List, Literal, Optional

from autofix.schemas.platform import (
    AdminBankDetails,
    AdminConfig,
    PaymentVerification,
    PlatformInvoice,
    SubscriptionPlan,
    SupportTicket,
    TicketMessage,
    TicketStatus,
)
from autofix.schemas.user import User
from autofix.services.demo_data import DEFAULT_PLANS, build_demo_tickets
from autofix.services.kv_store import KeyValueStore
from autofix.services.repositories import (
    CollectionRepository,
    DocumentRepository,
    new_id,
    utc_now,
)
from autofix.services.tenant_resolver import TenantResolver, tenant_resolver


class PlanCatalog(CollectionRepository[SubscriptionPlan]):
    def __init__(self, store: KeyValueStore, key: str) -> None:
        super().__init__(store, key, SubscriptionPlan, prepend=False)

    def default_items(self) -> List[SubscriptionPlan]:
        return [plan.model_copy() for plan in DEFAULT_PLANS]

    def active(self) -> List[SubscriptionPlan]:
        return [plan for plan in self._items if plan.status == "Active"]


class PlatformStore:
    """Cross-tenant collections shared by every workshop and the back-office."""

    def __init__(self, store: KeyValueStore, resolver: TenantResolver = tenant_resolver) -> None:
        self.store = store
        key = resolver.global_key
        self.tickets = CollectionRepository(store, key("support_tickets"), SupportTicket)
        self.bank_details = DocumentRepository(store, key("bank_details"), AdminBankDetails)
        self.payment_verifications = CollectionRepository(
            store, key("payment_verifications"), PaymentVerification
        )
        self.plans = PlanCatalog(store, key("subscription_plans"))
        self.platform_invoices = CollectionRepository(store, key("platform_invoices"), PlatformInvoice)
        self.admin_config = DocumentRepository(store, key("admin_config"), AdminConfig)

    def load(self) -> "PlatformStore":
        for repository in (
            self.tickets,
            self.bank_details,
            self.payment_verifications,
            self.plans,
            self.platform_invoices,
            self.admin_config,
        ):
            repository.load()
        return self

    def seed_tickets_if_missing(self, user: User) -> bool:
        if user.role != "Owner" or self.store.contains(self.tickets.key):
            return False
        self.tickets.replace_all(build_demo_tickets(user))
        return True

    # Support tickets

    def add_ticket(self, ticket: SupportTicket) -> SupportTicket:
        return self.tickets.add(ticket)

    def update_ticket(self, ticket: SupportTicket) -> bool:
        return self.tickets.update(ticket)

    def delete_ticket(self, ticket_id: str) -> bool:
        return self.tickets.delete(ticket_id)

    def tickets_for(self, workshop_id: str) -> List[SupportTicket]:
        return [ticket for ticket in self.tickets if ticket.workshop_id == workshop_id]

    def open_ticket(
        self,
        user: User,
        *,
        workshop_id: str,
        subject: str,
        description: str,
        category: str = "Technical",
        priority: Literal["Low", "Medium", "High", "Critical"] = "Medium",
        now: Optional[datetime] = None,
    ) -> SupportTicket:
        timestamp = (now or utc_now()).isoformat()
        ticket = SupportTicket(
            id=f"TR-{random.randint(1000, 9999)}",
            workshop_id=workshop_id,
            workshop_name=user.workshop_name,
            user_name=user.name,
            subject=subject,
            category=category,
            priority=priority,
            status="Open",
            created_at=timestamp,
            updated_at=timestamp,
            description=description,
            messages=[
                TicketMessage(
                    id=new_id(), sender_name=user.name, role="Owner", content=description, timestamp=timestamp
                )
            ],
        )
        return self.add_ticket(ticket)

    def append_ticket_message(
        self,
        ticket_id: str,
        *,
        sender_name: str,
        role: Literal["Owner", "Admin"],
        content: str,
        now: Optional[datetime] = None,
    ) -> Optional[SupportTicket]:
        ticket = self.tickets.get(ticket_id)
        if ticket is None:
            return None
        timestamp = (now or utc_now()).isoformat()
        message = TicketMessage(
            id=new_id(), sender_name=sender_name, role=role, content=content, timestamp=timestamp
        )
        if role == "Admin":
            status = "Pending Response"
        elif ticket.status == "Pending Response":
            status = "Open"
        else:
            status = ticket.status
        updated = ticket.model_copy(
            update={"messages": [*ticket.messages, message], "status": status, "updated_at": timestamp}
        )
        self.update_ticket(updated)
        return updated

    def set_ticket_status(
        self, ticket_id: str, status: TicketStatus, *, now: Optional[datetime] = None
    ) -> Optional[SupportTicket]:
        ticket = self.tickets.get(ticket_id)
        if ticket is None:
            return None
        updated = ticket.model_copy(update={"status": status, "updated_at": (now or utc_now()).isoformat()})
        self.update_ticket(updated)
        return updated

    # Billing

    def invoices_for(self, workshop_id: str) -> List[PlatformInvoice]:
        return [invoice for invoice in self.platform_invoices if invoice.workshop_id == workshop_id]

    def verifications_for(self, workshop_id: str) -> List[PaymentVerification]:
        return [record for record in self.payment_verifications if record.workshop_id == workshop_id]

    def update_plans(self, plans: List[SubscriptionPlan]) -> None:
        self.plans.replace_all(plans)

    def update_bank_details(self, **changes: Any) -> AdminBankDetails:
        return self.bank_details.update(**changes)

    def update_admin_config(self, **changes: Any) -> AdminConfig:
        return self.admin_config.update(**changes)
