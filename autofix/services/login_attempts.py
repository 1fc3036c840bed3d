from __future__ import annotations

import math
import time
from dataclasses import asdict, dataclass
from typing import Callable, Tuple

from autofix.core.config import LOGIN_LOCK_SECONDS, LOGIN_MAX_ATTEMPTS
from autofix.services.kv_store import KeyValueStore
from autofix.services.tenant_resolver import TenantResolver, tenant_resolver


@dataclass
class LoginAttempt:
    attempts: int = 0
    locked_until: int = 0  # epoch milliseconds, 0 when not locked


class LoginAttemptTracker:
    """Failed-login counter per email address, kept in the key-value store.

    The counter is only reset by a successful login, so a failure after a
    lock expires locks the address again straight away.
    """

    def __init__(
        self,
        store: KeyValueStore,
        resolver: TenantResolver = tenant_resolver,
        *,
        max_attempts: int = LOGIN_MAX_ATTEMPTS,
        lock_seconds: int = LOGIN_LOCK_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.max_attempts = max_attempts
        self.lock_seconds = lock_seconds
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def get_login_attempt(self, email: str) -> LoginAttempt:
        raw = self.store.get_json(self.resolver.lockout_key(email), default=None)
        if not isinstance(raw, dict):
            return LoginAttempt()
        try:
            return LoginAttempt(attempts=int(raw.get("attempts", 0)), locked_until=int(raw.get("locked_until", 0)))
        except (TypeError, ValueError):
            return LoginAttempt()

    def check_login_lock(self, email: str) -> Tuple[bool, int]:
        """Return (locked, seconds remaining)."""
        attempt = self.get_login_attempt(email)
        now = self._now_ms()
        if attempt.locked_until > now:
            return True, math.ceil((attempt.locked_until - now) / 1000)
        return False, 0

    def register_failed_login(self, email: str) -> Tuple[LoginAttempt, bool]:
        attempt = self.get_login_attempt(email)
        attempt.attempts += 1
        locked = attempt.attempts >= self.max_attempts
        attempt.locked_until = self._now_ms() + self.lock_seconds * 1000 if locked else 0
        self.store.set_json(self.resolver.lockout_key(email), asdict(attempt))
        return attempt, locked

    def clear_login_attempts(self, email: str) -> None:
        self.store.set_json(self.resolver.lockout_key(email), asdict(LoginAttempt()))
