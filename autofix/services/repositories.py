from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Generic, Iterable, Iterator, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from autofix.core.config import ACTIVITY_LOG_LIMIT
from autofix.schemas.workshop import Activity, ActivityType, InventoryItem, InventoryTransaction
from autofix.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=BaseModel)

DEFAULT_CATEGORIES = [
    "Engine",
    "Filters",
    "Braking",
    "Electrical",
    "Body",
    "Suspension",
    "Fluids",
    "General",
    "Tyres",
]


def new_id(length: int = 9) -> str:
    return uuid.uuid4().hex[:length]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CollectionRepository(Generic[ModelType]):
    """In-memory mirror of one storage key holding an ordered list of records.

    Every mutation rewrites the whole list under ``key``. Records are matched
    by their ``id`` attribute; update and delete of an unknown id leave the
    collection untouched and return ``False``.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        model: Type[ModelType],
        *,
        prepend: bool = True,
        limit: Optional[int] = None,
    ) -> None:
        self.store = store
        self.key = key
        self.model = model
        self.prepend = prepend
        self.limit = limit
        self._items: List[ModelType] = []

    def default_items(self) -> List[ModelType]:
        return []

    def load(self) -> "CollectionRepository[ModelType]":
        raw = self.store.get_json(self.key, default=None)
        self._items = self.default_items() if raw is None else self._parse(raw)
        return self

    def _parse(self, raw: Any) -> List[ModelType]:
        if not isinstance(raw, list):
            logger.warning("Collection is not a list, using defaults", extra={"storage_key": self.key})
            return self.default_items()
        items: List[ModelType] = []
        for entry in raw:
            try:
                items.append(self.model.model_validate(entry))
            except ValidationError:
                logger.warning("Skipping malformed record", extra={"storage_key": self.key})
        return items

    @property
    def items(self) -> List[ModelType]:
        return list(self._items)

    def __iter__(self) -> Iterator[ModelType]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def get(self, entity_id: str) -> Optional[ModelType]:
        for item in self._items:
            if item.id == entity_id:
                return item
        return None

    def add(self, entity: ModelType) -> ModelType:
        if self.prepend:
            self._items = [entity, *self._items]
        else:
            self._items = [*self._items, entity]
        if self.limit is not None:
            self._items = self._items[: self.limit]
        self.persist()
        return entity

    def update(self, entity: ModelType) -> bool:
        for index, item in enumerate(self._items):
            if item.id == entity.id:
                self._items[index] = entity
                self.persist()
                return True
        return False

    def delete(self, entity_id: str) -> bool:
        remaining = [item for item in self._items if item.id != entity_id]
        if len(remaining) == len(self._items):
            return False
        self._items = remaining
        self.persist()
        return True

    def replace_all(self, items: Iterable[ModelType]) -> None:
        self._items = list(items)
        self.persist()

    def clear(self) -> None:
        self._items = []

    def persist(self) -> None:
        self.store.set_json(self.key, [item.model_dump(mode="json") for item in self._items])
        logger.debug("Collection persisted", extra={"storage_key": self.key})


class InventoryRepository(CollectionRepository[InventoryItem]):
    def __init__(self, store: KeyValueStore, key: str) -> None:
        super().__init__(store, key, InventoryItem)

    def book_out(
        self,
        item_id: str,
        qty: float,
        user_name: str,
        destination: str,
        *,
        now: Optional[datetime] = None,
    ) -> bool:
        if qty <= 0:
            raise ValueError("Quantity must be greater than zero")
        for index, item in enumerate(self._items):
            if item.id != item_id:
                continue
            transaction = InventoryTransaction(
                id=new_id(),
                type="Issue",
                qty=qty,
                user_name=user_name,
                destination=destination,
                timestamp=(now or utc_now()).isoformat(),
            )
            self._items[index] = item.model_copy(
                update={
                    "stock": max(0, item.stock - qty),
                    "transactions": [transaction, *item.transactions],
                }
            )
            self.persist()
            return True
        return False

    def low_stock(self) -> List[InventoryItem]:
        return [item for item in self._items if item.stock < item.low_stock_alert]


class ActivityLog(CollectionRepository[Activity]):
    def __init__(self, store: KeyValueStore, key: str, *, limit: int = ACTIVITY_LOG_LIMIT) -> None:
        super().__init__(store, key, Activity, prepend=True, limit=limit)

    def record(
        self,
        *,
        type: ActivityType,
        title: str,
        description: str,
        icon: str = "",
        color: str = "",
        link: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Activity:
        activity = Activity(
            id=new_id(),
            type=type,
            title=title,
            description=description,
            timestamp=(now or utc_now()).isoformat(),
            icon=icon,
            color=color,
            link=link,
        )
        return self.add(activity)


class CategoryRepository:
    """Sorted list of inventory category names for one tenant."""

    def __init__(self, store: KeyValueStore, key: str, defaults: Iterable[str] = DEFAULT_CATEGORIES) -> None:
        self.store = store
        self.key = key
        self.defaults = list(defaults)
        self._items: List[str] = []

    def load(self) -> "CategoryRepository":
        raw = self.store.get_json(self.key, default=None)
        if isinstance(raw, list) and all(isinstance(entry, str) for entry in raw):
            self._items = list(raw)
        else:
            self._items = list(self.defaults)
        return self

    @property
    def items(self) -> List[str]:
        return list(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, category: object) -> bool:
        return category in self._items

    def add(self, category: str) -> bool:
        category = category.strip()
        if not category or category in self._items:
            return False
        self._items = sorted([*self._items, category])
        self.persist()
        return True

    def delete(self, category: str) -> bool:
        if category not in self._items:
            return False
        self._items = [item for item in self._items if item != category]
        self.persist()
        return True

    def replace_all(self, categories: Iterable[str]) -> None:
        self._items = list(categories)
        self.persist()

    def clear(self) -> None:
        self._items = []

    def persist(self) -> None:
        self.store.set_json(self.key, self._items)


class DocumentRepository(Generic[ModelType]):
    """Single record stored under one key, falling back to the model defaults."""

    def __init__(self, store: KeyValueStore, key: str, model: Type[ModelType]) -> None:
        self.store = store
        self.key = key
        self.model = model
        self.value: ModelType = model()

    def load(self) -> "DocumentRepository[ModelType]":
        raw = self.store.get_json(self.key, default=None)
        if raw is None:
            self.value = self.model()
            return self
        try:
            self.value = self.model.model_validate(raw)
        except ValidationError:
            logger.warning("Malformed document, using defaults", extra={"storage_key": self.key})
            self.value = self.model()
        return self

    def replace(self, value: ModelType) -> ModelType:
        self.value = value
        self.persist()
        return value

    def update(self, **changes: Any) -> ModelType:
        merged = {**self.value.model_dump(), **changes}
        return self.replace(self.model.model_validate(merged))

    def persist(self) -> None:
        self.store.set_json(self.key, self.value.model_dump(mode="json"))
