from __future__ import annotations

import logging
import random
import string
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from autofix.schemas.platform import PaymentVerification, PlatformInvoice
from autofix.schemas.workshop import Activity
from autofix.services.errors import InvalidTransitionError, VerificationNotFoundError
from autofix.services.platform_store import PlatformStore
from autofix.services.repositories import ActivityLog, utc_now
from autofix.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)

_REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


def new_verification_id() -> str:
    return "PV-" + "".join(random.choices(_REFERENCE_ALPHABET, k=6))


def new_platform_invoice_id() -> str:
    return f"S-INV-{random.randint(10000, 99999)}"


@dataclass
class ApprovalResult:
    verification: PaymentVerification
    entitlement_granted: bool
    platform_invoice: Optional[PlatformInvoice] = None
    activity: Optional[Activity] = None
    warning: Optional[str] = None


class PaymentVerificationWorkflow:
    """Manual EFT proof-of-payment review.

    Records move from ``Pending`` to exactly one of ``Approved`` or
    ``Rejected``. Approval grants the plan to the paying workshop owner,
    ends their trial, issues a platform invoice and logs the activation
    in that workshop's activity feed.
    """

    def __init__(
        self,
        platform: PlatformStore,
        directory: UserDirectory,
        activity_log_for: Callable[[str], ActivityLog],
    ) -> None:
        self.platform = platform
        self.directory = directory
        self.activity_log_for = activity_log_for

    def submit(
        self,
        workshop_id: str,
        plan_id: str,
        amount: float,
        workshop_name: str = "",
        reference: str = "",
        pop_image: str = "",
        *,
        now: Optional[datetime] = None,
    ) -> PaymentVerification:
        record = PaymentVerification(
            id=new_verification_id(),
            workshop_id=workshop_id,
            workshop_name=workshop_name,
            plan_id=plan_id,
            amount=amount,
            reference=reference,
            pop_image=pop_image,
            status="Pending",
            timestamp=(now or utc_now()).isoformat(),
        )
        self.platform.payment_verifications.add(record)
        logger.info("Payment verification submitted", extra={"tenant_id": workshop_id})
        return record

    def _pending(self, verification_id: str) -> PaymentVerification:
        record = self.platform.payment_verifications.get(verification_id)
        if record is None:
            raise VerificationNotFoundError(verification_id)
        if record.status != "Pending":
            raise InvalidTransitionError(f"Verification {verification_id} is already {record.status}")
        return record

    def approve(self, verification_id: str, now: Optional[datetime] = None) -> ApprovalResult:
        record = self._pending(verification_id)
        now = now or utc_now()
        approved = record.model_copy(update={"status": "Approved"})

        if self.directory.get(record.workshop_id) is None:
            self.platform.payment_verifications.update(approved)
            warning = f"No user found for workshop {record.workshop_id}; plan was not applied"
            logger.warning(warning, extra={"tenant_id": record.workshop_id})
            return ApprovalResult(verification=approved, entitlement_granted=False, warning=warning)

        plan = self.platform.plans.get(record.plan_id)
        self.directory.update(record.workshop_id, subscription_plan_id=record.plan_id, trial_start_date=None)

        invoice_id = new_platform_invoice_id()
        invoice = PlatformInvoice(
            id=invoice_id,
            workshop_id=record.workshop_id,
            number=invoice_id,
            date=now.date().isoformat(),
            plan_name=plan.name if plan else "Plan",
            duration=plan.duration if plan else "Monthly",
            amount=record.amount,
            status="Paid",
        )
        self.platform.platform_invoices.add(invoice)

        activity = self.activity_log_for(record.workshop_id).record(
            type="Payment",
            title="Subscription Activated",
            description=f"Plan: {plan.name if plan else record.plan_id} cycle verified. Account access fully restored.",
            icon="verified",
            color="bg-emerald-50 text-emerald-600",
            link="/billing",
            now=now,
        )
        self.platform.payment_verifications.update(approved)
        logger.info("Payment verification approved", extra={"tenant_id": record.workshop_id})
        return ApprovalResult(
            verification=approved,
            entitlement_granted=True,
            platform_invoice=invoice,
            activity=activity,
        )

    def reject(self, verification_id: str, notes: Optional[str] = None) -> PaymentVerification:
        record = self._pending(verification_id)
        rejected = record.model_copy(update={"status": "Rejected", "notes": notes})
        self.platform.payment_verifications.update(rejected)
        logger.info("Payment verification rejected", extra={"tenant_id": record.workshop_id})
        return rejected
