from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from autofix.schemas.platform import BillingAlert, PaymentVerification
from autofix.schemas.user import BILLABLE_ROLES, User
from autofix.schemas.workshop import Activity, ActivityType
from autofix.services.kv_store import KeyValueStore
from autofix.services.payment_verification import ApprovalResult, PaymentVerificationWorkflow
from autofix.services.platform_store import PlatformStore
from autofix.services.repositories import ActivityLog, utc_now
from autofix.services.subscription import SubscriptionStatus, billing_alert_for, subscription_status
from autofix.services.tenant_resolver import TenantResolver, tenant_id_for, tenant_resolver
from autofix.services.tenant_store import TenantStore
from autofix.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)


class DataStore:
    """Everything a signed-in user can see: their workshop plus the platform collections.

    One instance per active user. ``switch_user`` rebinds the tenant
    partition; the global collections are shared by every tenant.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        user: Optional[User] = None,
        resolver: TenantResolver = tenant_resolver,
    ) -> None:
        self.kv = kv
        self.resolver = resolver
        self.tenant = TenantStore(kv, resolver)
        self.platform = PlatformStore(kv, resolver)
        self.directory = UserDirectory(kv, resolver)
        self.payments = PaymentVerificationWorkflow(self.platform, self.directory, self.activity_log_for)
        self.switch_user(user)

    @property
    def user(self) -> Optional[User]:
        return self.tenant.user

    @property
    def tenant_id(self) -> str:
        return self.tenant.tenant_id

    def switch_user(self, user: Optional[User]) -> bool:
        seeded = self.tenant.switch_user(user)
        self.platform.load()
        if user is not None:
            self.platform.seed_tickets_if_missing(user)
        return seeded

    def activity_log_for(self, tenant_id: str) -> ActivityLog:
        if self.user is not None and tenant_id == self.tenant_id:
            return self.tenant.activities
        return ActivityLog(self.kv, self.resolver.tenant_key("activities", tenant_id)).load()

    # Billing

    def subscription_status(
        self, target_user: Optional[User] = None, now: Optional[datetime] = None
    ) -> Optional[SubscriptionStatus]:
        user = target_user or self.user
        if user is None:
            return None
        return subscription_status(
            user,
            now or utc_now(),
            self.platform.plans.items,
            self.platform.platform_invoices.items,
        )

    def billing_alert(self, now: Optional[datetime] = None) -> Optional[BillingAlert]:
        if self.user is None or self.user.role not in BILLABLE_ROLES:
            return None
        return billing_alert_for(self.subscription_status(now=now))

    def submit_payment_verification(
        self,
        plan_id: str,
        amount: float,
        reference: str = "",
        pop_image: str = "",
    ) -> PaymentVerification:
        user = self.user
        return self.payments.submit(
            workshop_id=tenant_id_for(user),
            plan_id=plan_id,
            amount=amount,
            workshop_name=user.workshop_name if user else "",
            reference=reference,
            pop_image=pop_image,
        )

    def approve_payment(self, verification_id: str, now: Optional[datetime] = None) -> ApprovalResult:
        result = self.payments.approve(verification_id, now=now)
        if self.user is not None and result.entitlement_granted and result.verification.workshop_id == self.tenant_id:
            # Keep the active session in step with the directory.
            refreshed = self.directory.get(self.user.id)
            if refreshed is not None:
                self.tenant.user = refreshed
        return result

    def reject_payment(self, verification_id: str, notes: Optional[str] = None) -> PaymentVerification:
        return self.payments.reject(verification_id, notes)

    # Workshop

    def record_activity(
        self,
        *,
        type: ActivityType,
        title: str,
        description: str,
        icon: str = "",
        color: str = "",
        link: Optional[str] = None,
    ) -> Activity:
        return self.tenant.activities.record(
            type=type, title=title, description=description, icon=icon, color=color, link=link
        )

    def book_out_inventory(self, item_id: str, qty: float, user_name: str, destination: str) -> bool:
        booked = self.tenant.inventory.book_out(item_id, qty, user_name, destination)
        if not booked:
            logger.info("Book-out skipped, item not found", extra={"tenant_id": self.tenant_id})
        return booked
