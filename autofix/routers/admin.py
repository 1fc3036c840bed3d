from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from autofix.deps import get_platform_store, require_platform_admin
from autofix.schemas.platform import SubscriptionPlan, TicketStatus
from autofix.services.data_store import DataStore
from autofix.services.errors import InvalidTransitionError, VerificationNotFoundError
from autofix.services.subscription import billing_alert_for

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_platform_admin)])


class RejectPayload(BaseModel):
    notes: Optional[str] = None


class BankDetailsPayload(BaseModel):
    bank_name: Optional[str] = None
    account_name: Optional[str] = None
    account_number: Optional[str] = None
    branch_code: Optional[str] = None
    payment_instructions: Optional[str] = None


class AdminConfigPayload(BaseModel):
    show_pricing_on_landing: Optional[bool] = None
    show_pricing_in_console: Optional[bool] = None


class ReplyPayload(BaseModel):
    content: str = Field(..., min_length=1)
    sender_name: str = "Platform Support"


class TicketStatusPayload(BaseModel):
    status: TicketStatus


@router.get("/verifications")
def list_verifications(store: DataStore = Depends(get_platform_store)):
    return [record.model_dump() for record in store.platform.payment_verifications]


@router.post("/verifications/{verification_id}/approve")
def approve_verification(verification_id: str, store: DataStore = Depends(get_platform_store)):
    try:
        result = store.approve_payment(verification_id)
    except VerificationNotFoundError:
        raise HTTPException(status_code=404, detail="Verification not found")
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return {
        "verification": result.verification.model_dump(),
        "entitlement_granted": result.entitlement_granted,
        "platform_invoice": result.platform_invoice.model_dump() if result.platform_invoice else None,
        "warning": result.warning,
    }


@router.post("/verifications/{verification_id}/reject")
def reject_verification(
    verification_id: str,
    payload: RejectPayload,
    store: DataStore = Depends(get_platform_store),
):
    try:
        record = store.reject_payment(verification_id, payload.notes)
    except VerificationNotFoundError:
        raise HTTPException(status_code=404, detail="Verification not found")
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return record.model_dump()


@router.get("/plans")
def list_plans(store: DataStore = Depends(get_platform_store)):
    return [plan.model_dump() for plan in store.platform.plans]


@router.put("/plans")
def replace_plans(plans: List[SubscriptionPlan], store: DataStore = Depends(get_platform_store)):
    store.platform.update_plans(plans)
    return [plan.model_dump() for plan in store.platform.plans]


@router.patch("/bank-details")
def update_bank_details(payload: BankDetailsPayload, store: DataStore = Depends(get_platform_store)):
    return store.platform.update_bank_details(**payload.model_dump(exclude_none=True)).model_dump()


@router.patch("/config")
def update_admin_config(payload: AdminConfigPayload, store: DataStore = Depends(get_platform_store)):
    return store.platform.update_admin_config(**payload.model_dump(exclude_none=True)).model_dump()


@router.get("/tickets")
def list_tickets(store: DataStore = Depends(get_platform_store)):
    return [ticket.model_dump() for ticket in store.platform.tickets]


@router.post("/tickets/{ticket_id}/messages")
def reply_to_ticket(ticket_id: str, payload: ReplyPayload, store: DataStore = Depends(get_platform_store)):
    ticket = store.platform.append_ticket_message(
        ticket_id, sender_name=payload.sender_name, role="Admin", content=payload.content
    )
    if ticket is None:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket.model_dump()


@router.patch("/tickets/{ticket_id}")
def set_ticket_status(ticket_id: str, payload: TicketStatusPayload, store: DataStore = Depends(get_platform_store)):
    ticket = store.platform.set_ticket_status(ticket_id, payload.status)
    if ticket is None:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket.model_dump()


@router.get("/workshops")
def list_workshops(store: DataStore = Depends(get_platform_store)):
    workshops = []
    for owner in store.directory.all():
        if owner.owner_id or owner.role != "Owner":
            continue
        status = store.subscription_status(target_user=owner)
        alert = billing_alert_for(status)
        workshops.append(
            {
                "id": owner.id,
                "workshop_name": owner.workshop_name,
                "owner_name": owner.name,
                "email": owner.email,
                "subscription_plan_id": owner.subscription_plan_id,
                "status": status.value,
                "is_locked": bool(alert and alert.is_locked),
            }
        )
    return workshops


@router.delete("/tickets/{ticket_id}", status_code=204)
def delete_ticket(ticket_id: str, store: DataStore = Depends(get_platform_store)):
    if not store.platform.delete_ticket(ticket_id):
        raise HTTPException(status_code=404, detail="Ticket not found")
