"""Billing status engine.

Status is derived on demand from the user record, the plan catalogue and the
platform invoices; it is never persisted.
"""
from __future__ import annotations

import calendar
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterable, Optional

from autofix.core.config import TRIAL_DAYS
from autofix.schemas.platform import BillingAlert, PlatformInvoice, SubscriptionPlan
from autofix.schemas.user import User
from autofix.services.tenant_resolver import tenant_id_for

logger = logging.getLogger(__name__)


class SubscriptionStatus(str, Enum):
    PAID = "Paid"
    TRIAL = "Trial"
    TRIAL_EXPIRED = "Trial Expired"
    INACTIVE = "Inactive"
    OUTSTANDING = "Outstanding"
    GRACE_PERIOD = "Grace Period"
    SUSPENDED = "Suspended"


_ALERTS = {
    SubscriptionStatus.TRIAL_EXPIRED: (
        "critical",
        True,
        "Your 7-day free trial has come to an end. Please select a subscription plan "
        "to reactivate your workspace.",
    ),
    SubscriptionStatus.SUSPENDED: (
        "critical",
        True,
        "Service Suspended due to non-payment. Please settle the outstanding balance "
        "via manual EFT to regain access.",
    ),
    SubscriptionStatus.OUTSTANDING: (
        "info",
        False,
        "Current monthly cycle is ending. Please complete payment to avoid service suspension.",
    ),
    SubscriptionStatus.GRACE_PERIOD: (
        "warning",
        False,
        "Account is in a 2-day Grace Period. Payment is overdue and access will be "
        "suspended on the 3rd.",
    ),
}


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None


def _align(start: datetime, now: datetime) -> datetime:
    # Naive values are treated as UTC when compared against aware ones.
    if start.tzinfo is None and now.tzinfo is not None:
        return start.replace(tzinfo=timezone.utc)
    if start.tzinfo is not None and now.tzinfo is None:
        return start.astimezone(timezone.utc).replace(tzinfo=None)
    return start


def has_paid_invoice_for_month(
    user: User, now: datetime, platform_invoices: Iterable[PlatformInvoice]
) -> bool:
    workshop_id = tenant_id_for(user)
    month_prefix = f"{now.year:04d}-{now.month:02d}"
    return any(
        invoice.workshop_id == workshop_id
        and invoice.status == "Paid"
        and invoice.date.startswith(month_prefix)
        for invoice in platform_invoices
    )


def monthly_cycle_status(now: datetime) -> SubscriptionStatus:
    day = now.day
    last_day = calendar.monthrange(now.year, now.month)[1]
    if last_day - 2 <= day <= last_day:
        return SubscriptionStatus.OUTSTANDING
    if day in (1, 2):
        return SubscriptionStatus.GRACE_PERIOD
    if 3 <= day < last_day - 2:
        return SubscriptionStatus.SUSPENDED
    return SubscriptionStatus.PAID


def subscription_status(
    user: User,
    now: datetime,
    plans: Iterable[SubscriptionPlan],
    platform_invoices: Iterable[PlatformInvoice],
    *,
    trial_days: int = TRIAL_DAYS,
) -> SubscriptionStatus:
    if has_paid_invoice_for_month(user, now, platform_invoices):
        return SubscriptionStatus.PAID

    if user.trial_start_date:
        start = _parse_timestamp(user.trial_start_date)
        if start is None:
            logger.warning("Unparsable trial start date", extra={"user_id": user.id})
        else:
            if now - _align(start, now) < timedelta(days=trial_days):
                return SubscriptionStatus.TRIAL
            if not user.subscription_plan_id:
                return SubscriptionStatus.TRIAL_EXPIRED

    if not user.subscription_plan_id:
        return SubscriptionStatus.INACTIVE

    plan = next((plan for plan in plans if plan.id == user.subscription_plan_id), None)
    if plan is not None and plan.duration != "Monthly":
        return SubscriptionStatus.PAID

    return monthly_cycle_status(now)


def billing_alert_for(status: SubscriptionStatus | str) -> Optional[BillingAlert]:
    try:
        status = SubscriptionStatus(status)
    except ValueError:
        return None
    alert = _ALERTS.get(status)
    if alert is None:
        return None
    alert_type, is_locked, message = alert
    return BillingAlert(type=alert_type, message=message, status=status.value, is_locked=is_locked)


def is_locked(status: SubscriptionStatus | str) -> bool:
    alert = billing_alert_for(status)
    return bool(alert and alert.is_locked)
