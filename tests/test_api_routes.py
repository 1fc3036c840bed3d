from __future__ import annotations

import json
import logging
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from autofix import deps
from autofix.core.logging_setup import JsonFormatter
from autofix.main import create_app
from autofix.services.kv_store import InMemoryKeyValueStore
from tests.fixtures_data import INVENTORY_ITEM, PAYMENT_SUBMISSION, QUOTE_PAYLOAD

ADMIN_TOKEN = "platform-admin-token"


@pytest.fixture
def client(kv, directory):
    return TestClient(create_app(kv))


@pytest.fixture
def admin_headers(monkeypatch):
    monkeypatch.setattr(deps, "PLATFORM_ADMIN_TOKEN", ADMIN_TOKEN)
    return {"X-Admin-Token": ADMIN_TOKEN}


def _login(client, email="thandi@capemotors.co.za", password="secret-pass") -> dict:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def test_health_returns_request_id(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    UUID(response.headers["X-Request-ID"])


def test_startup_bootstraps_demo_accounts():
    kv = InMemoryKeyValueStore()

    with TestClient(create_app(kv)) as client:
        headers = _login(client, "owner@demo.com", "demo")
        me = client.get("/api/auth/me", headers=headers)
        customers = client.get("/api/workshop/customers", headers=headers)

    assert me.json()["role"] == "Owner"
    assert len(customers.json()) == 7


def test_login_failure_reports_remaining_attempts(client):
    response = client.post("/api/auth/login", json={"email": "thandi@capemotors.co.za", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials. 2 attempts remaining."


def test_requests_without_session_are_rejected(client):
    assert client.get("/api/workshop/quotes").status_code == 401
    assert client.get("/api/workshop/quotes", headers={"Authorization": "Bearer forged"}).status_code == 401


def test_signup_then_duplicate(client):
    payload = {
        "name": "Lerato M",
        "email": "lerato@fixit.co.za",
        "password": "pass1234",
        "workshop_name": "FixIt Garage",
        "plan_id": "plan-monthly",
    }

    created = client.post("/api/auth/signup", json=payload)
    duplicate = client.post("/api/auth/signup", json=payload)

    assert created.status_code == 201
    assert created.json()["user"]["trial_start_date"]
    assert duplicate.status_code == 409

    headers = {"Authorization": f"Bearer {created.json()['access_token']}"}
    assert len(client.get("/api/workshop/inventory", headers=headers).json()) == 55
    assert client.get("/api/billing/status", headers=headers).json()["status"] == "Trial"


def test_workshop_collection_crud(client):
    headers = _login(client)

    created = client.post("/api/workshop/quotes", json=QUOTE_PAYLOAD, headers=headers)
    assert created.status_code == 201

    updated = client.put("/api/workshop/quotes/q-100", json={**QUOTE_PAYLOAD, "status": "Accepted"}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["status"] == "Accepted"

    missing = client.put("/api/workshop/quotes/q-404", json=QUOTE_PAYLOAD, headers=headers)
    assert missing.status_code == 404

    assert client.delete("/api/workshop/quotes/q-100", headers=headers).status_code == 204
    assert client.delete("/api/workshop/quotes/q-100", headers=headers).status_code == 404
    assert client.get("/api/workshop/quotes", headers=headers).json() == []


def test_invalid_record_and_unknown_collection(client):
    headers = _login(client)

    assert client.post("/api/workshop/quotes", json={"id": "q-1"}, headers=headers).status_code == 422
    assert client.get("/api/workshop/spaceships", headers=headers).status_code == 404


def test_staff_see_owner_records(client):
    owner_headers = _login(client)
    client.post("/api/workshop/quotes", json=QUOTE_PAYLOAD, headers=owner_headers)

    staff_headers = _login(client, "sipho@capemotors.co.za")
    other_headers = _login(client, "pieter@bothaauto.co.za")

    assert [quote["id"] for quote in client.get("/api/workshop/quotes", headers=staff_headers).json()] == ["q-100"]
    assert client.get("/api/workshop/quotes", headers=other_headers).json() == []


def test_book_out_inventory(client):
    headers = _login(client)
    client.post("/api/workshop/inventory", json=INVENTORY_ITEM, headers=headers)

    response = client.post(
        "/api/workshop/inventory/pad-1/book-out",
        json={"qty": 2, "destination": "JOB-8824"},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["stock"] == 1
    assert body["transactions"][0]["user_name"] == "Thandi Owner"
    assert client.post(
        "/api/workshop/inventory/ghost/book-out", json={"qty": 1, "destination": "x"}, headers=headers
    ).status_code == 404
    assert client.post(
        "/api/workshop/inventory/pad-1/book-out", json={"qty": 0, "destination": "x"}, headers=headers
    ).status_code == 422


def test_categories_endpoints(client):
    headers = _login(client)

    assert client.post("/api/workshop/categories", json={"name": "Aircon"}, headers=headers).status_code == 201
    assert client.post("/api/workshop/categories", json={"name": "Aircon"}, headers=headers).status_code == 409
    assert client.delete("/api/workshop/categories/Aircon", headers=headers).status_code == 204
    assert "Aircon" not in client.get("/api/workshop/categories", headers=headers).json()


def test_admin_routes_require_token(client, monkeypatch):
    monkeypatch.setattr(deps, "PLATFORM_ADMIN_TOKEN", ADMIN_TOKEN)

    assert client.get("/api/admin/verifications").status_code == 401
    assert client.get("/api/admin/verifications", headers={"X-Admin-Token": "guess"}).status_code == 401


def test_admin_routes_disabled_without_configured_token(client, monkeypatch):
    monkeypatch.setattr(deps, "PLATFORM_ADMIN_TOKEN", "")

    assert client.get("/api/admin/verifications", headers={"X-Admin-Token": ""}).status_code == 503


def test_payment_submission_and_admin_review(client, admin_headers):
    headers = _login(client)

    submitted = client.post("/api/billing/verifications", json=PAYMENT_SUBMISSION, headers=headers)
    assert submitted.status_code == 201
    verification_id = submitted.json()["id"]

    approved = client.post(f"/api/admin/verifications/{verification_id}/approve", headers=admin_headers)
    assert approved.status_code == 200
    assert approved.json()["entitlement_granted"] is True

    again = client.post(f"/api/admin/verifications/{verification_id}/approve", headers=admin_headers)
    assert again.status_code == 409
    assert client.post("/api/admin/verifications/PV-NONE00/reject", json={}, headers=admin_headers).status_code == 404

    me = client.get("/api/auth/me", headers=headers).json()
    invoices = client.get("/api/billing/invoices", headers=headers).json()
    activities = client.get("/api/workshop/activities", headers=headers).json()
    assert me["subscription_plan_id"] == "plan-yearly"
    assert len(invoices) == 1
    assert activities[0]["title"] == "Subscription Activated"
    assert client.get("/api/billing/status", headers=headers).json() == {"status": "Paid", "is_locked": False}


def test_admin_rejection_keeps_notes(client, admin_headers):
    headers = _login(client)
    verification_id = client.post(
        "/api/billing/verifications", json=PAYMENT_SUBMISSION, headers=headers
    ).json()["id"]

    rejected = client.post(
        f"/api/admin/verifications/{verification_id}/reject",
        json={"notes": "insufficient funds"},
        headers=admin_headers,
    )

    assert rejected.status_code == 200
    assert rejected.json()["notes"] == "insufficient funds"
    assert client.get("/api/billing/verifications", headers=headers).json()[0]["status"] == "Rejected"


def test_support_ticket_conversation(client, admin_headers):
    headers = _login(client)

    created = client.post(
        "/api/support/tickets",
        json={"subject": "Sync issue", "description": "Quotes not saving"},
        headers=headers,
    )
    assert created.status_code == 201
    ticket_id = created.json()["id"]

    reply = client.post(
        f"/api/admin/tickets/{ticket_id}/messages", json={"content": "Fixed on our side"}, headers=admin_headers
    )
    assert reply.json()["status"] == "Pending Response"

    answer = client.post(f"/api/support/tickets/{ticket_id}/messages", json={"content": "Thanks"}, headers=headers)
    assert answer.json()["status"] == "Open"

    other_headers = _login(client, "pieter@bothaauto.co.za")
    assert client.get(f"/api/support/tickets/{ticket_id}", headers=other_headers).status_code == 404


def test_admin_workshop_overview_lists_owners_only(client, admin_headers):
    workshops = client.get("/api/admin/workshops", headers=admin_headers).json()

    assert {workshop["id"] for workshop in workshops} == {"owner-1", "owner-2"}
    assert all(workshop["status"] for workshop in workshops)


class _JsonCapture(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.setFormatter(JsonFormatter("%(message)s"))
        self.lines: list[dict] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.lines.append(json.loads(self.format(record)))


def test_service_log_lines_carry_request_tenant(client):
    headers = _login(client, "sipho@capemotors.co.za")
    capture = _JsonCapture()
    repo_logger = logging.getLogger("autofix.services.repositories")
    previous_level = repo_logger.level
    repo_logger.addHandler(capture)
    repo_logger.setLevel(logging.DEBUG)
    try:
        response = client.post("/api/workshop/quotes", json=QUOTE_PAYLOAD, headers=headers)
    finally:
        repo_logger.removeHandler(capture)
        repo_logger.setLevel(previous_level)

    assert response.status_code == 201
    persisted = [line for line in capture.lines if line["message"] == "Collection persisted"]
    assert persisted
    assert {line["tenant_id"] for line in persisted} == {"owner-1"}
    assert {line["user_id"] for line in persisted} == {"staff-1"}
    assert all(line["request_id"] for line in persisted)
    assert persisted[0]["storage_key"].endswith("_owner-1")


def test_admin_can_delete_ticket(client, admin_headers):
    headers = _login(client)
    ticket_id = client.post(
        "/api/support/tickets", json={"subject": "Duplicate", "description": "Opened twice"}, headers=headers
    ).json()["id"]

    assert client.delete(f"/api/admin/tickets/{ticket_id}", headers=admin_headers).status_code == 204
    assert client.delete(f"/api/admin/tickets/{ticket_id}", headers=admin_headers).status_code == 404
