from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from autofix.deps import get_data_store
from autofix.services.data_store import DataStore

router = APIRouter(prefix="/api/support", tags=["support"])


class TicketPayload(BaseModel):
    subject: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: str = "Technical"
    priority: Literal["Low", "Medium", "High", "Critical"] = "Medium"


class MessagePayload(BaseModel):
    content: str = Field(..., min_length=1)


def _own_ticket(store: DataStore, ticket_id: str):
    ticket = store.platform.tickets.get(ticket_id)
    if ticket is None or ticket.workshop_id != store.tenant_id:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


@router.get("/tickets")
def list_tickets(store: DataStore = Depends(get_data_store)):
    return [ticket.model_dump() for ticket in store.platform.tickets_for(store.tenant_id)]


@router.post("/tickets", status_code=201)
def create_ticket(payload: TicketPayload, store: DataStore = Depends(get_data_store)):
    ticket = store.platform.open_ticket(
        store.user,
        workshop_id=store.tenant_id,
        subject=payload.subject,
        description=payload.description,
        category=payload.category,
        priority=payload.priority,
    )
    return ticket.model_dump()


@router.get("/tickets/{ticket_id}")
def get_ticket(ticket_id: str, store: DataStore = Depends(get_data_store)):
    return _own_ticket(store, ticket_id).model_dump()


@router.post("/tickets/{ticket_id}/messages")
def post_message(ticket_id: str, payload: MessagePayload, store: DataStore = Depends(get_data_store)):
    _own_ticket(store, ticket_id)
    ticket = store.platform.append_ticket_message(
        ticket_id,
        sender_name=store.user.name,
        role="Owner",
        content=payload.content,
    )
    return ticket.model_dump()
