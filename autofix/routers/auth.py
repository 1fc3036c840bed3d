from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field

from autofix.deps import get_current_user, get_kv_store, require_owner
from autofix.schemas.user import User
from autofix.services.auth_service import AuthService
from autofix.services.kv_store import KeyValueStore
from autofix.services.session import create_session_token

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginPayload(BaseModel):
    email: EmailStr
    password: str


class SignupPayload(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=4)
    workshop_name: str = Field(..., min_length=1)
    plan_id: Optional[str] = None


class StaffPayload(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=4)
    role: Literal["Staff", "Service Advisor", "Technician"] = "Staff"


class ProfilePayload(BaseModel):
    name: Optional[str] = None
    avatar: Optional[str] = None
    workshop_name: Optional[str] = None
    workshop_logo: Optional[str] = None
    workshop_email: Optional[str] = None
    workshop_phone: Optional[str] = None
    workshop_address: Optional[str] = None
    workshop_vat: Optional[str] = None
    workshop_bank_name: Optional[str] = None
    workshop_account_name: Optional[str] = None
    workshop_account_number: Optional[str] = None
    workshop_branch_code: Optional[str] = None
    workshop_brand_color: Optional[str] = None
    theme_preference: Optional[Literal["light", "dark"]] = None


def _session_response(user: User) -> dict:
    return {
        "access_token": create_session_token(user.id),
        "token_type": "bearer",
        "user": user.model_dump(),
    }


@router.post("/login")
def login(payload: LoginPayload, kv: KeyValueStore = Depends(get_kv_store)):
    result = AuthService(kv).login(payload.email, payload.password)
    if not result.success or result.user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=result.error)
    return _session_response(result.user)


@router.post("/signup", status_code=201)
def signup(payload: SignupPayload, kv: KeyValueStore = Depends(get_kv_store)):
    user = AuthService(kv).signup(
        payload.name,
        payload.email,
        payload.password,
        payload.workshop_name,
        payload.plan_id,
    )
    if user is None:
        raise HTTPException(status_code=409, detail="Email already registered")
    return _session_response(user)


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return user.model_dump()


@router.patch("/me")
def update_me(
    payload: ProfilePayload,
    user: User = Depends(get_current_user),
    kv: KeyValueStore = Depends(get_kv_store),
):
    updated = AuthService(kv).update_profile(user, **payload.model_dump(exclude_unset=True))
    if updated is None:
        raise HTTPException(status_code=404, detail="User not found")
    return updated.model_dump()


@router.get("/staff")
def list_staff(owner: User = Depends(require_owner), kv: KeyValueStore = Depends(get_kv_store)):
    return [member.model_dump() for member in AuthService(kv).staff_members(owner)]


@router.post("/staff", status_code=201)
def add_staff(
    payload: StaffPayload,
    owner: User = Depends(require_owner),
    kv: KeyValueStore = Depends(get_kv_store),
):
    member = AuthService(kv).add_staff_member(owner, payload.name, payload.email, payload.password, payload.role)
    if member is None:
        raise HTTPException(status_code=409, detail="Email already registered")
    return member.model_dump()


@router.delete("/staff/{staff_id}", status_code=204)
def delete_staff(
    staff_id: str,
    owner: User = Depends(require_owner),
    kv: KeyValueStore = Depends(get_kv_store),
):
    if not AuthService(kv).delete_staff_member(owner, staff_id):
        raise HTTPException(status_code=404, detail="Staff member not found")
