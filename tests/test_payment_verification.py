from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from autofix.services.data_store import DataStore
from autofix.services.errors import InvalidTransitionError, VerificationNotFoundError
from autofix.services.subscription import SubscriptionStatus
from tests.fixtures_data import PAYMENT_SUBMISSION

NOW = datetime(2024, 6, 14, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def trial_owner(directory, owner):
    return directory.update(
        owner.id,
        subscription_plan_id=None,
        trial_start_date=(NOW - timedelta(days=9)).isoformat(),
    )


def test_submission_is_pending_and_grants_nothing(kv, resolver, directory, trial_owner):
    store = DataStore(kv, trial_owner, resolver)

    record = store.submit_payment_verification(**PAYMENT_SUBMISSION)

    assert record.id.startswith("PV-") and len(record.id) == 9
    assert record.status == "Pending"
    assert record.workshop_id == "owner-1"
    assert record.workshop_name == "Cape Motors"
    assert store.platform.payment_verifications.items[0].id == record.id
    assert directory.get("owner-1").subscription_plan_id is None


def test_approval_applies_plan_invoice_and_activity(kv, resolver, directory, trial_owner):
    store = DataStore(kv, trial_owner, resolver)
    record = store.submit_payment_verification(**PAYMENT_SUBMISSION)
    assert store.subscription_status(now=NOW) is SubscriptionStatus.TRIAL_EXPIRED

    result = DataStore(kv, None, resolver).approve_payment(record.id, now=NOW)

    assert result.entitlement_granted is True
    assert result.verification.status == "Approved"

    refreshed = directory.get("owner-1")
    assert refreshed.subscription_plan_id == "plan-yearly"
    assert refreshed.trial_start_date is None

    invoices = kv.get_json("autofix_global_platform_invoices")
    assert len(invoices) == 1
    invoice = invoices[0]
    assert invoice["id"].startswith("S-INV-") and invoice["number"] == invoice["id"]
    assert (invoice["workshop_id"], invoice["date"], invoice["status"]) == ("owner-1", "2024-06-14", "Paid")
    assert (invoice["plan_name"], invoice["duration"], invoice["amount"]) == ("Annual Precision", "Yearly", 4500.0)

    activities = kv.get_json("autofix_activities_owner-1")
    assert activities[0]["title"] == "Subscription Activated"
    assert activities[0]["type"] == "Payment"
    assert activities[0]["description"] == "Plan: Annual Precision cycle verified. Account access fully restored."
    assert activities[0]["link"] == "/billing"

    owner_view = DataStore(kv, refreshed, resolver)
    assert owner_view.subscription_status(now=NOW) is SubscriptionStatus.PAID


def test_approval_for_active_tenant_updates_in_memory_log(kv, resolver, directory, trial_owner):
    store = DataStore(kv, trial_owner, resolver)
    record = store.submit_payment_verification(**PAYMENT_SUBMISSION)

    store.approve_payment(record.id, now=NOW)

    assert store.tenant.activities.items[0].title == "Subscription Activated"
    assert store.user.subscription_plan_id == "plan-yearly"


def test_double_approval_is_rejected(kv, resolver, directory, trial_owner):
    store = DataStore(kv, trial_owner, resolver)
    record = store.submit_payment_verification(**PAYMENT_SUBMISSION)
    store.approve_payment(record.id, now=NOW)

    with pytest.raises(InvalidTransitionError):
        store.approve_payment(record.id, now=NOW)

    assert len(kv.get_json("autofix_global_platform_invoices")) == 1


def test_unknown_verification_raises(kv, resolver):
    store = DataStore(kv, None, resolver)

    with pytest.raises(VerificationNotFoundError):
        store.approve_payment("PV-NOPE00")
    with pytest.raises(VerificationNotFoundError):
        store.reject_payment("PV-NOPE00")


def test_approval_without_matching_user_reports_no_entitlement(kv, resolver, caplog):
    store = DataStore(kv, None, resolver)
    record = store.payments.submit(workshop_id="ghost-workshop", plan_id="plan-monthly", amount=450)

    with caplog.at_level("WARNING"):
        result = store.approve_payment(record.id, now=NOW)

    assert result.verification.status == "Approved"
    assert result.entitlement_granted is False
    assert result.platform_invoice is None
    assert "ghost-workshop" in result.warning
    assert "ghost-workshop" in caplog.text
    assert kv.get_json("autofix_global_platform_invoices") is None
    assert store.platform.payment_verifications.get(record.id).status == "Approved"


def test_unknown_plan_snapshot_falls_back(kv, resolver, directory, owner):
    store = DataStore(kv, None, resolver)
    record = store.payments.submit(workshop_id=owner.id, plan_id="plan-retired", amount=300)

    result = store.approve_payment(record.id, now=NOW)

    assert (result.platform_invoice.plan_name, result.platform_invoice.duration) == ("Plan", "Monthly")


def test_rejection_keeps_notes_and_entitlement(kv, resolver, directory, trial_owner):
    store = DataStore(kv, trial_owner, resolver)
    record = store.submit_payment_verification(**PAYMENT_SUBMISSION)

    rejected = store.reject_payment(record.id, "insufficient funds")

    assert rejected.status == "Rejected"
    assert rejected.notes == "insufficient funds"
    assert directory.get("owner-1").subscription_plan_id is None
    assert directory.get("owner-1").trial_start_date == trial_owner.trial_start_date
    assert kv.get_json("autofix_global_platform_invoices") is None

    with pytest.raises(InvalidTransitionError):
        store.approve_payment(record.id)
