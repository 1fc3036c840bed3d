from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from threading import Lock
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from autofix.models.kv_entry import KeyValueEntry
from autofix.services.errors import StorageWriteError

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Durable string store keyed by string, without cross-key transactions."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored text, or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Write the value, replacing any previous one."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete the key; a missing key is not an error."""

    def contains(self, key: str) -> bool:
        return self.get(key) is not None

    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError, json.JSONDecodeError):
            logger.warning("Malformed value ignored", extra={"storage_key": key})
            return default

    def set_json(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise StorageWriteError(f"Value for {key} is not serializable") from exc
        self.set(key, payload)


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class SqlKeyValueStore(KeyValueStore):
    """One row per key in ``kv_entries``; every call runs in its own session."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> str | None:
        db = self._session_factory()
        try:
            entry = db.query(KeyValueEntry).filter(KeyValueEntry.key == key).first()
            return entry.value if entry else None
        finally:
            db.close()

    def set(self, key: str, value: str) -> None:
        db = self._session_factory()
        try:
            entry = db.query(KeyValueEntry).filter(KeyValueEntry.key == key).first()
            if entry is None:
                db.add(KeyValueEntry(key=key, value=value))
            else:
                entry.value = value
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Storage write failed", extra={"storage_key": key})
            raise StorageWriteError(f"Could not write {key}") from exc
        finally:
            db.close()

    def remove(self, key: str) -> None:
        db = self._session_factory()
        try:
            db.query(KeyValueEntry).filter(KeyValueEntry.key == key).delete()
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise StorageWriteError(f"Could not remove {key}") from exc
        finally:
            db.close()
