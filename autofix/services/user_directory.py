from __future__ import annotations

import logging
from typing import Any, List, Optional

from pydantic import ValidationError

from autofix.schemas.user import StoredUser, User
from autofix.services.demo_data import DEMO_ACCOUNTS, DEMO_PASSWORD
from autofix.services.kv_store import KeyValueStore
from autofix.services.passwords import hash_password
from autofix.services.tenant_resolver import TenantResolver, tenant_resolver

logger = logging.getLogger(__name__)


class UserDirectory:
    """Global user records. Always read through to storage so approvals see fresh data."""

    def __init__(self, store: KeyValueStore, resolver: TenantResolver = tenant_resolver) -> None:
        self.store = store
        self.resolver = resolver
        self.key = resolver.users_key

    def _load(self) -> List[StoredUser]:
        raw = self.store.get_json(self.key, default=[])
        if not isinstance(raw, list):
            return []
        users: List[StoredUser] = []
        for entry in raw:
            try:
                users.append(StoredUser.model_validate(entry))
            except ValidationError:
                logger.warning("Skipping malformed user record", extra={"storage_key": self.key})
        return users

    def _save(self, users: List[StoredUser]) -> None:
        self.store.set_json(self.key, [user.model_dump(mode="json") for user in users])

    def all(self) -> List[User]:
        return [user.to_user() for user in self._load()]

    def get(self, user_id: str) -> Optional[User]:
        stored = self.get_stored(user_id)
        return stored.to_user() if stored else None

    def get_stored(self, user_id: str) -> Optional[StoredUser]:
        for user in self._load():
            if user.id == user_id:
                return user
        return None

    def find_by_email(self, email: str) -> Optional[StoredUser]:
        wanted = email.strip().lower()
        for user in self._load():
            if user.email.lower() == wanted:
                return user
        return None

    def add(self, user: StoredUser) -> User:
        users = self._load()
        if any(existing.email.lower() == user.email.lower() for existing in users):
            raise ValueError(f"Email already registered: {user.email}")
        users.append(user)
        self._save(users)
        return user.to_user()

    def update(self, user_id: str, **changes: Any) -> Optional[User]:
        users = self._load()
        for index, user in enumerate(users):
            if user.id != user_id:
                continue
            users[index] = StoredUser.model_validate({**user.model_dump(), **changes})
            self._save(users)
            return users[index].to_user()
        return None

    def delete(self, user_id: str) -> bool:
        users = self._load()
        remaining = [user for user in users if user.id != user_id]
        if len(remaining) == len(users):
            return False
        self._save(remaining)
        return True

    def staff_of(self, owner_id: str) -> List[User]:
        return [user.to_user() for user in self._load() if user.owner_id == owner_id]

    def ensure_demo_accounts(self) -> bool:
        """Create the demo accounts once; the directory key itself is the bootstrap flag."""
        if self.store.contains(self.key):
            return False
        password_hash = hash_password(DEMO_PASSWORD)
        users = [StoredUser(**account, password_hash=password_hash) for account in DEMO_ACCOUNTS]
        self._save(users)
        for user in users:
            self.store.set(self.resolver.seed_marker_key(user.id), "true")
        logger.info("Demo accounts created", extra={"storage_key": self.key})
        return True
