"""
Observable store base class.

A store owns the cached id -> entity mapping for one collection. It keeps
the cache in sync from the collection's snapshot subscription and notifies
its own listeners with the full replacement list on every change.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from lotkeeper.data.collections.base import Collection, Record, Subscription
from lotkeeper.errors import LotkeeperError, RemoteError, SyncError
from lotkeeper.logging.audit_log import AuditLogger

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Listener = Callable[[list[T]], None]


class ObservableStore(ABC, Generic[T]):
    """
    Cached, push-synchronized view of one entity collection.

    Every snapshot from the collection is a complete replacement of the
    cache, never a delta. On a subscription failure the last-known-good
    snapshot is kept and no resubscription is attempted.
    """

    entity_name = "entity"

    def __init__(self, collection: Collection, audit: Optional[AuditLogger] = None):
        """
        Initialize the store.

        Args:
            collection: Backend collection for this entity type
            audit: Optional audit logger for mutations
        """
        self.collection = collection
        self.audit = audit
        self.last_error: Optional[SyncError] = None
        self.loaded = False
        self._items: dict[str, T] = {}
        self._listeners: list[Listener] = []
        self._subscription: Optional[Subscription] = None

    @abstractmethod
    def normalize(self, record: Record) -> T:
        """Convert a raw collection record into the canonical entity."""
        pass

    @property
    def items(self) -> list[T]:
        """Current cached entities, in collection order."""
        return list(self._items.values())

    def get(self, entity_id: str) -> Optional[T]:
        return self._items.get(entity_id)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def is_subscribed(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def start(self) -> None:
        """Subscribe to the collection's snapshot channel."""
        if self.is_subscribed:
            return
        self.last_error = None
        self._subscription = self.collection.subscribe(
            self._apply_snapshot, self._on_sync_error
        )

    def stop(self) -> None:
        """Unsubscribe from the collection. In-flight writes are not affected."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for full snapshot replacements.

        Args:
            listener: Called with the complete entity list after every change

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def refresh(self) -> list[T]:
        """Reload the full collection and replace the cache."""
        records = await self.fetch_records()
        self._apply_snapshot(records)
        return self.items

    async def fetch_records(self, filter: Optional[dict[str, Any]] = None) -> list[Record]:
        """
        List raw records from the collection.

        Raises:
            RemoteError: If the list call fails or reports errors
        """
        result = await self._remote(f"list {self.entity_name}", self.collection.list(filter))
        if result.errors:
            logger.error(f"{self.entity_name} list returned errors: {result.errors}")
            raise RemoteError(
                f"Failed to list {self.entity_name} records", errors=result.errors
            )
        return result.items

    async def _remote(self, action: str, call: Awaitable[R]) -> R:
        """
        Await a collection call, logging and re-raising failures as RemoteError.
        """
        try:
            return await call
        except LotkeeperError:
            raise
        except Exception as e:
            logger.error(f"Failed to {action}: {e}")
            raise RemoteError(f"Failed to {action}: {e}") from e

    def _apply_snapshot(self, records: list[Record]) -> None:
        items: dict[str, T] = {}
        for record in records:
            if record is None:
                continue
            entity = self.normalize(record)
            items[entity.id] = entity
        self._items = items
        self.loaded = True
        self._notify()

    def _on_sync_error(self, error: Exception) -> None:
        self.last_error = SyncError(f"{self.entity_name} subscription error: {error}")
        self._subscription = None
        logger.error(str(self.last_error))

    def _notify(self) -> None:
        snapshot = self.items
        for listener in list(self._listeners):
            listener(snapshot)
