"""
Abstract base class for entity collections.

Defines the interface the stores require from the persistence layer behind
them, enabling pluggable backends (in-memory, JSON file, remote service).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Optional


Record = dict[str, Any]
SnapshotCallback = Callable[[list[Record]], None]
ErrorCallback = Callable[[Exception], None]


class CollectionError(Exception):
    """Raised when a collection encounters an error."""
    pass


@dataclass
class ListResult:
    """
    Result of a list call.

    Attributes:
        items: Records in the collection (after filtering)
        errors: Errors reported by the backend, if any
    """
    items: list[Record] = field(default_factory=list)
    errors: Optional[list[str]] = None


class Subscription:
    """Handle returned by ``Collection.subscribe``."""

    def __init__(self, cancel: Callable[[], None]):
        self._cancel = cancel
        self.active = True

    def unsubscribe(self) -> None:
        """Stop receiving snapshots. Safe to call more than once."""
        if self.active:
            self.active = False
            self._cancel()


class Collection(ABC):
    """
    Abstract base class for one collection of entity records.

    Implementations must provide:
    - list with optional equality filter
    - create / update / delete of single records
    - a push subscription that redelivers the full collection on change
    """

    @abstractmethod
    async def list(self, filter: Optional[dict[str, Any]] = None) -> ListResult:
        """
        List records, optionally filtered by field equality.

        Args:
            filter: Mapping of field name to required value

        Returns:
            ListResult with matching items and any backend errors
        """
        pass

    @abstractmethod
    async def create(self, fields: Record) -> Record:
        """
        Create a record and assign its identity.

        Args:
            fields: Field values for the new record

        Returns:
            The stored record, including ``id``

        Raises:
            CollectionError: If the write is rejected
        """
        pass

    @abstractmethod
    async def update(self, fields: Record) -> Record:
        """
        Merge fields into an existing record.

        Args:
            fields: Field values, must include ``id``

        Returns:
            The updated record

        Raises:
            CollectionError: If the record does not exist or the write is rejected
        """
        pass

    @abstractmethod
    async def delete(self, record_id: str) -> Record:
        """
        Delete a record by id.

        Returns:
            The deleted record

        Raises:
            CollectionError: If the record does not exist or the delete is rejected
        """
        pass

    @abstractmethod
    def subscribe(
        self,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        """
        Subscribe to full-snapshot updates.

        The callback receives the complete current collection once on
        subscribe and again after every change. A stream failure is
        delivered to ``on_error`` and ends the subscription.
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this collection."""
        pass
