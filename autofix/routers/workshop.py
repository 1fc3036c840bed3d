from __future__ import annotations

from typing import Any, Dict, Optional, Type

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field, ValidationError

from autofix.deps import get_data_store
from autofix.schemas.workshop import ActivityType, Customer, InventoryItem, Invoice, JobCard, Quote, Technician
from autofix.services.data_store import DataStore
from autofix.services.repositories import CollectionRepository

router = APIRouter(prefix="/api/workshop", tags=["workshop"])

# URL segment -> (TenantStore attribute, record model)
COLLECTIONS: Dict[str, tuple[str, Type[BaseModel]]] = {
    "quotes": ("quotes", Quote),
    "job-cards": ("job_cards", JobCard),
    "invoices": ("invoices", Invoice),
    "inventory": ("inventory", InventoryItem),
    "customers": ("customers", Customer),
    "technicians": ("technicians", Technician),
}


class BookOutPayload(BaseModel):
    qty: float = Field(..., gt=0)
    destination: str = Field(..., min_length=1)


class CategoryPayload(BaseModel):
    name: str = Field(..., min_length=1)


class ActivityPayload(BaseModel):
    type: ActivityType
    title: str
    description: str
    icon: str = ""
    color: str = ""
    link: Optional[str] = None


def _collection(store: DataStore, name: str) -> tuple[CollectionRepository, Type[BaseModel]]:
    entry = COLLECTIONS.get(name)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Unknown collection: {name}")
    attribute, model = entry
    return getattr(store.tenant, attribute), model


def _validate(model: Type[BaseModel], payload: Dict[str, Any]) -> BaseModel:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc


@router.post("/inventory/{item_id}/book-out")
def book_out(item_id: str, payload: BookOutPayload, store: DataStore = Depends(get_data_store)):
    user_name = store.user.name if store.user else ""
    if not store.book_out_inventory(item_id, payload.qty, user_name, payload.destination):
        raise HTTPException(status_code=404, detail="Inventory item not found")
    return store.tenant.inventory.get(item_id).model_dump()


@router.get("/categories")
def list_categories(store: DataStore = Depends(get_data_store)):
    return store.tenant.categories.items


@router.post("/categories", status_code=201)
def add_category(payload: CategoryPayload, store: DataStore = Depends(get_data_store)):
    if not store.tenant.categories.add(payload.name):
        raise HTTPException(status_code=409, detail="Category already exists")
    return store.tenant.categories.items


@router.delete("/categories/{name}", status_code=204)
def delete_category(name: str, store: DataStore = Depends(get_data_store)):
    if not store.tenant.categories.delete(name):
        raise HTTPException(status_code=404, detail="Category not found")


@router.get("/activities")
def list_activities(store: DataStore = Depends(get_data_store)):
    return [activity.model_dump() for activity in store.tenant.activities]


@router.post("/activities", status_code=201)
def add_activity(payload: ActivityPayload, store: DataStore = Depends(get_data_store)):
    return store.record_activity(**payload.model_dump()).model_dump()


@router.post("/reset-demo")
def reset_demo(store: DataStore = Depends(get_data_store)):
    store.tenant.reset_demo_data()
    return {"ok": True}


@router.get("/{collection}")
def list_records(collection: str, store: DataStore = Depends(get_data_store)):
    repository, _ = _collection(store, collection)
    return [record.model_dump() for record in repository]


@router.post("/{collection}", status_code=201)
def add_record(
    collection: str,
    payload: Dict[str, Any] = Body(...),
    store: DataStore = Depends(get_data_store),
):
    repository, model = _collection(store, collection)
    return repository.add(_validate(model, payload)).model_dump()


@router.put("/{collection}/{record_id}")
def update_record(
    collection: str,
    record_id: str,
    payload: Dict[str, Any] = Body(...),
    store: DataStore = Depends(get_data_store),
):
    repository, model = _collection(store, collection)
    record = _validate(model, {**payload, "id": record_id})
    if not repository.update(record):
        raise HTTPException(status_code=404, detail="Record not found")
    return record.model_dump()


@router.delete("/{collection}/{record_id}", status_code=204)
def delete_record(collection: str, record_id: str, store: DataStore = Depends(get_data_store)):
    repository, _ = _collection(store, collection)
    if not repository.delete(record_id):
        raise HTTPException(status_code=404, detail="Record not found")
