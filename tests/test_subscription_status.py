from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from autofix.schemas.platform import PlatformInvoice
from autofix.schemas.user import User
from autofix.services.demo_data import DEFAULT_PLANS
from autofix.services.subscription import (
    SubscriptionStatus,
    billing_alert_for,
    is_locked,
    monthly_cycle_status,
    subscription_status,
)


def _user(**overrides) -> User:
    data = {"id": "owner-1", "role": "Owner", "subscription_plan_id": "plan-monthly"}
    data.update(overrides)
    return User(**data)


def _status(user: User, now: datetime, invoices=()) -> SubscriptionStatus:
    return subscription_status(user, now, DEFAULT_PLANS, list(invoices))


def _paid_invoice(workshop_id: str, day: str) -> PlatformInvoice:
    return PlatformInvoice(
        id="S-INV-10001",
        workshop_id=workshop_id,
        number="S-INV-10001",
        date=day,
        plan_name="Monthly Plan",
        duration="Monthly",
        amount=450,
        status="Paid",
    )


def test_trial_takes_priority_over_suspension():
    now = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)
    user = _user(trial_start_date=(now - timedelta(days=3)).isoformat())

    assert _status(user, now) is SubscriptionStatus.TRIAL
    assert billing_alert_for(SubscriptionStatus.TRIAL) is None


def test_trial_expired_without_plan_is_locked():
    now = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)
    user = _user(subscription_plan_id=None, trial_start_date=(now - timedelta(days=8)).isoformat())

    status = _status(user, now)
    alert = billing_alert_for(status)

    assert status is SubscriptionStatus.TRIAL_EXPIRED
    assert alert.type == "critical"
    assert alert.is_locked is True
    assert alert.message.startswith("Your 7-day free trial has come to an end.")


def test_elapsed_trial_with_plan_follows_monthly_cycle():
    now = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)
    user = _user(trial_start_date=(now - timedelta(days=10)).isoformat())

    assert _status(user, now) is SubscriptionStatus.SUSPENDED


def test_paid_invoice_this_month_beats_grace_period():
    now = datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)
    user = _user()

    assert _status(user, now) is SubscriptionStatus.GRACE_PERIOD
    assert _status(user, now, [_paid_invoice("owner-1", "2024-06-01")]) is SubscriptionStatus.PAID


def test_paid_invoice_from_other_month_or_tenant_is_ignored():
    now = datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)
    invoices = [_paid_invoice("owner-1", "2024-05-28"), _paid_invoice("owner-2", "2024-06-01")]

    assert _status(_user(), now, invoices) is SubscriptionStatus.GRACE_PERIOD


def test_staff_inherit_owner_paid_invoice():
    now = datetime(2024, 6, 10, tzinfo=timezone.utc)
    staff = _user(id="staff-1", owner_id="owner-1", role="Technician")

    assert _status(staff, now, [_paid_invoice("owner-1", "2024-06-02")]) is SubscriptionStatus.PAID


def test_no_plan_and_no_trial_is_inactive():
    now = datetime(2024, 6, 10, tzinfo=timezone.utc)

    assert _status(_user(subscription_plan_id=None), now) is SubscriptionStatus.INACTIVE


@pytest.mark.parametrize("plan_id", ["plan-yearly", "plan-3year"])
def test_long_term_plans_are_paid(plan_id):
    now = datetime(2024, 6, 10, tzinfo=timezone.utc)

    assert _status(_user(subscription_plan_id=plan_id), now) is SubscriptionStatus.PAID


def test_unknown_plan_falls_through_to_monthly_cycle():
    now = datetime(2024, 6, 10, tzinfo=timezone.utc)

    assert _status(_user(subscription_plan_id="plan-retired"), now) is SubscriptionStatus.SUSPENDED


@pytest.mark.parametrize(
    "day, expected",
    [
        (1, SubscriptionStatus.GRACE_PERIOD),
        (2, SubscriptionStatus.GRACE_PERIOD),
        (3, SubscriptionStatus.SUSPENDED),
        (15, SubscriptionStatus.SUSPENDED),
        (28, SubscriptionStatus.SUSPENDED),
        (29, SubscriptionStatus.OUTSTANDING),
        (31, SubscriptionStatus.OUTSTANDING),
    ],
)
def test_monthly_cycle_in_thirty_one_day_month(day, expected):
    assert monthly_cycle_status(datetime(2024, 5, day)) is expected


@pytest.mark.parametrize(
    "year, month, last_day",
    [(2023, 2, 28), (2024, 2, 29), (2024, 4, 30), (2024, 7, 31)],
)
def test_monthly_cycle_edges_for_each_month_length(year, month, last_day):
    assert monthly_cycle_status(datetime(year, month, last_day)) is SubscriptionStatus.OUTSTANDING
    assert monthly_cycle_status(datetime(year, month, last_day - 2)) is SubscriptionStatus.OUTSTANDING
    assert monthly_cycle_status(datetime(year, month, last_day - 3)) is SubscriptionStatus.SUSPENDED
    assert monthly_cycle_status(datetime(year, month, 3)) is SubscriptionStatus.SUSPENDED


def test_naive_trial_start_compares_with_aware_now():
    now = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)
    user = _user(trial_start_date="2024-05-14T12:00:00")

    assert _status(user, now) is SubscriptionStatus.TRIAL


def test_zulu_trial_start_is_parsed():
    now = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)
    user = _user(subscription_plan_id=None, trial_start_date="2024-05-01T09:00:00.000Z")

    assert _status(user, now) is SubscriptionStatus.TRIAL_EXPIRED


def test_unparsable_trial_start_is_ignored(caplog):
    now = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)
    user = _user(subscription_plan_id=None, trial_start_date="yesterday")

    with caplog.at_level("WARNING"):
        assert _status(user, now) is SubscriptionStatus.INACTIVE
    assert "Unparsable trial start date" in caplog.text


def test_alert_map():
    outstanding = billing_alert_for("Outstanding")
    grace = billing_alert_for(SubscriptionStatus.GRACE_PERIOD)
    suspended = billing_alert_for(SubscriptionStatus.SUSPENDED)

    assert (outstanding.type, outstanding.is_locked) == ("info", False)
    assert (grace.type, grace.is_locked) == ("warning", False)
    assert (suspended.type, suspended.is_locked, suspended.status) == ("critical", True, "Suspended")
    assert billing_alert_for(SubscriptionStatus.PAID) is None
    assert billing_alert_for(SubscriptionStatus.INACTIVE) is None
    assert billing_alert_for("Something Else") is None
    assert is_locked(SubscriptionStatus.TRIAL_EXPIRED) is True
    assert is_locked(SubscriptionStatus.OUTSTANDING) is False
