from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional
from urllib.parse import quote_plus

from autofix.schemas.user import StoredUser, User, UserRole
from autofix.services.kv_store import KeyValueStore
from autofix.services.login_attempts import LoginAttemptTracker
from autofix.services.passwords import hash_password, verify_password
from autofix.services.repositories import new_id, utc_now
from autofix.services.tenant_resolver import TenantResolver, tenant_resolver
from autofix.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)

# Profile fields a staff member inherits from the owner's workshop.
_INHERITED_FIELDS = (
    "workshop_name",
    "workshop_logo",
    "workshop_email",
    "workshop_phone",
    "workshop_address",
    "workshop_vat",
    "workshop_brand_color",
    "theme_preference",
    "workshop_bank_name",
    "workshop_account_name",
    "workshop_account_number",
    "workshop_branch_code",
    "trial_start_date",
    "subscription_plan_id",
)

_PROTECTED_PROFILE_FIELDS = {"id", "owner_id", "role", "password_hash", "trial_start_date", "subscription_plan_id"}


@dataclass
class LoginResult:
    success: bool
    error: Optional[str] = None
    user: Optional[User] = None


def _avatar_url(name: str, background: str) -> str:
    return f"https://ui-avatars.com/api/?name={quote_plus(name)}&background={background}&color=fff"


class AuthService:
    """Credential checks, signup and staff management over the user directory.

    Failures are reported through return values, never exceptions.
    """

    def __init__(
        self,
        store: KeyValueStore,
        resolver: TenantResolver = tenant_resolver,
        *,
        directory: Optional[UserDirectory] = None,
        attempts: Optional[LoginAttemptTracker] = None,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.directory = directory or UserDirectory(store, resolver)
        self.attempts = attempts or LoginAttemptTracker(store, resolver)

    def login(self, email: str, password: str) -> LoginResult:
        locked, remaining = self.attempts.check_login_lock(email)
        if locked:
            return LoginResult(
                success=False,
                error=f"Account locked. Please try again in {remaining} seconds.",
            )

        stored = self.directory.find_by_email(email)
        if stored is not None and verify_password(password, stored.password_hash):
            self.attempts.clear_login_attempts(email)
            logger.info("Login succeeded", extra={"user_id": stored.id})
            return LoginResult(success=True, user=stored.to_user())

        attempt, now_locked = self.attempts.register_failed_login(email)
        logger.warning("Login failed attempts=%s locked=%s", attempt.attempts, now_locked)
        if now_locked:
            minutes = max(1, self.attempts.lock_seconds // 60)
            return LoginResult(
                success=False,
                error=f"Too many failed attempts. You are locked out for {minutes} minutes.",
            )
        remaining_attempts = self.attempts.max_attempts - attempt.attempts
        return LoginResult(
            success=False,
            error=f"Invalid credentials. {remaining_attempts} attempts remaining.",
        )

    def signup(
        self,
        name: str,
        email: str,
        password: str,
        workshop_name: str,
        plan_id: Optional[str],
        *,
        now: Optional[datetime] = None,
    ) -> Optional[User]:
        if self.directory.find_by_email(email) is not None:
            return None

        stored = StoredUser(
            id=new_id(),
            name=name,
            email=email,
            role="Owner",
            avatar=_avatar_url(name, "0d51b0"),
            workshop_name=workshop_name,
            workshop_account_name=workshop_name,
            workshop_brand_color="#0d51b0",
            theme_preference="light",
            trial_start_date=(now or utc_now()).isoformat(),
            subscription_plan_id=plan_id or None,
            password_hash=hash_password(password),
        )
        user = self.directory.add(stored)
        self.store.set(self.resolver.seed_marker_key(user.id), "true")
        logger.info("Workshop owner registered", extra={"user_id": user.id})
        return user

    def add_staff_member(
        self,
        owner: User,
        name: str,
        email: str,
        password: str,
        role: UserRole,
    ) -> Optional[User]:
        if owner.role != "Owner":
            return None
        if self.directory.find_by_email(email) is not None:
            return None

        inherited = {field: getattr(owner, field) for field in _INHERITED_FIELDS}
        stored = StoredUser(
            id=new_id(),
            owner_id=owner.id,
            name=name,
            email=email,
            role=role,
            avatar=_avatar_url(name, "6366f1"),
            password_hash=hash_password(password),
            **inherited,
        )
        return self.directory.add(stored)

    def delete_staff_member(self, owner: User, staff_id: str) -> bool:
        staff = self.directory.get(staff_id)
        if staff is None or staff.owner_id != owner.id:
            return False
        return self.directory.delete(staff_id)

    def staff_members(self, owner: User) -> List[User]:
        if owner.role != "Owner":
            return []
        return self.directory.staff_of(owner.id)

    def update_profile(self, user: User, **changes: Any) -> Optional[User]:
        allowed = {key: value for key, value in changes.items() if key not in _PROTECTED_PROFILE_FIELDS}
        return self.directory.update(user.id, **allowed)
