from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from autofix.deps import get_data_store
from autofix.services.data_store import DataStore

router = APIRouter(prefix="/api/billing", tags=["billing"])


class VerificationPayload(BaseModel):
    plan_id: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    reference: str = ""
    pop_image: str = ""


@router.get("/status")
def get_status(store: DataStore = Depends(get_data_store)):
    status = store.subscription_status()
    alert = store.billing_alert()
    return {
        "status": status.value if status else None,
        "is_locked": bool(alert and alert.is_locked),
    }


@router.get("/alert")
def get_alert(store: DataStore = Depends(get_data_store)):
    alert = store.billing_alert()
    return alert.model_dump() if alert else None


@router.get("/plans")
def list_plans(store: DataStore = Depends(get_data_store)):
    return [plan.model_dump() for plan in store.platform.plans.active()]


@router.get("/bank-details")
def get_bank_details(store: DataStore = Depends(get_data_store)):
    return store.platform.bank_details.value.model_dump()


@router.get("/invoices")
def list_invoices(store: DataStore = Depends(get_data_store)):
    return [invoice.model_dump() for invoice in store.platform.invoices_for(store.tenant_id)]


@router.get("/verifications")
def list_verifications(store: DataStore = Depends(get_data_store)):
    return [record.model_dump() for record in store.platform.verifications_for(store.tenant_id)]


@router.post("/verifications", status_code=201)
def submit_verification(payload: VerificationPayload, store: DataStore = Depends(get_data_store)):
    record = store.submit_payment_verification(
        payload.plan_id,
        payload.amount,
        reference=payload.reference,
        pop_image=payload.pop_image,
    )
    return record.model_dump()


@router.get("/admin-config")
def get_admin_config(store: DataStore = Depends(get_data_store)):
    return store.platform.admin_config.value.model_dump()
