"""
In-memory collection backend.

Keeps records in a dict keyed by id and pushes the full snapshot to every
subscriber after each write. Used directly in tests and as the base for
the JSON file backend.
"""

import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from lotkeeper.data.collections.base import (
    Collection,
    CollectionError,
    ErrorCallback,
    ListResult,
    Record,
    SnapshotCallback,
    Subscription,
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryCollection(Collection):
    """
    Dict-backed collection with snapshot push.

    Records are copied on the way in and out so callers never share
    mutable state with the collection.
    """

    def __init__(self, name: str, records: Optional[list[Record]] = None):
        """
        Initialize the collection.

        Args:
            name: Collection name (e.g. "TickerLot")
            records: Optional initial records; each must carry an ``id``
        """
        self._name = name
        self._records: dict[str, Record] = {}
        self._subscribers: dict[int, tuple[SnapshotCallback, Optional[ErrorCallback]]] = {}
        self._next_token = 0
        for record in records or []:
            self._records[str(record["id"])] = copy.deepcopy(record)

    @property
    def name(self) -> str:
        return self._name

    def snapshot(self) -> list[Record]:
        """Return a copy of every record, in insertion order."""
        return [copy.deepcopy(r) for r in self._records.values()]

    async def list(self, filter: Optional[dict[str, Any]] = None) -> ListResult:
        items = self.snapshot()
        if filter:
            items = [
                item for item in items
                if all(item.get(key) == value for key, value in filter.items())
            ]
        return ListResult(items=items)

    async def create(self, fields: Record) -> Record:
        record = copy.deepcopy(fields)
        record_id = str(record.get("id") or uuid.uuid4())
        if record_id in self._records:
            raise CollectionError(f"{self._name} record already exists: {record_id}")
        timestamp = _now()
        record["id"] = record_id
        record.setdefault("createdAt", timestamp)
        record["updatedAt"] = timestamp
        self._records[record_id] = record
        self._changed()
        return copy.deepcopy(record)

    async def update(self, fields: Record) -> Record:
        if "id" not in fields:
            raise CollectionError(f"{self._name} update requires an id")
        record_id = str(fields["id"])
        if record_id not in self._records:
            raise CollectionError(f"{self._name} record not found: {record_id}")
        record = self._records[record_id]
        record.update(copy.deepcopy(fields))
        record["updatedAt"] = _now()
        self._changed()
        return copy.deepcopy(record)

    async def delete(self, record_id: str) -> Record:
        record_id = str(record_id)
        if record_id not in self._records:
            raise CollectionError(f"{self._name} record not found: {record_id}")
        record = self._records.pop(record_id)
        self._changed()
        return record

    def subscribe(
        self,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        token = self._next_token
        self._next_token += 1
        self._subscribers[token] = (on_snapshot, on_error)
        on_snapshot(self.snapshot())
        return Subscription(lambda: self._subscribers.pop(token, None))

    def fail_subscriptions(self, error: Exception) -> None:
        """
        Terminate every subscription with an error.

        Subscribers receive ``error`` on their error callback and are then
        dropped; they are not resubscribed.
        """
        subscribers = list(self._subscribers.values())
        self._subscribers.clear()
        for _, on_error in subscribers:
            if on_error is not None:
                on_error(error)

    def _changed(self) -> None:
        """Push the full snapshot to every subscriber."""
        for on_snapshot, _ in list(self._subscribers.values()):
            on_snapshot(self.snapshot())
