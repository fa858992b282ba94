"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for the object store.
This allows us to:
1. Keep everything in memory for tests and offline use
2. Replicate to Google Sheets for cloud sync
3. Keep aggregation decoupled from storage (it only sees query results)

The interface mirrors what the app needs from an object-persistence
framework: insert, delete, save, query-by-predicate. We're not building
an ORM.

Relationship rules (enforced by every implementation):
- Deleting a Ledger deletes its Records
- Deleting a Tag clears tag_id on the Records that used it
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Optional, TypeVar, Union
from uuid import UUID

from ledgerlight.models.ledger import Ledger, Record, Tag

Entity = Union[Ledger, Tag, Record]
E = TypeVar("E", Ledger, Tag, Record)


class LedgerStoreInterface(ABC):
    """
    Abstract interface for ledger, tag and record persistence.

    Mutations (insert, delete, in-place edits) take effect in the
    working set immediately; save() makes them durable.
    """

    @abstractmethod
    def insert(self, entity: Entity) -> None:
        """
        Add a new entity to the working set.

        Raises:
            DuplicateError: If an entity with the same id exists
            NotFoundError: If a Record references a missing Ledger
        """
        pass

    @abstractmethod
    def delete(self, entity: Entity) -> int:
        """
        Remove an entity, applying the relationship rules.

        Returns:
            Number of dependent records affected (deleted for a
            ledger, untagged for a tag, 0 for a record)

        Raises:
            NotFoundError: If the entity is not in the store
        """
        pass

    @abstractmethod
    def save(self) -> None:
        """
        Persist all pending changes.

        Raises:
            StorageError: If the backend rejects the write
        """
        pass

    @abstractmethod
    def query(
        self,
        entity_type: type[E],
        predicate: Optional[Callable[[E], bool]] = None,
        sort_key: Optional[Callable[[E], Any]] = None,
        reverse: bool = False,
    ) -> list[E]:
        """
        List entities of one type.

        Args:
            entity_type: Ledger, Tag or Record
            predicate: Keep only entities for which this returns True
            sort_key: Sort key; insertion order when None
            reverse: Sort descending

        Returns:
            List of matching entities
        """
        pass

    def get(self, entity_type: type[E], entity_id: UUID) -> Optional[E]:
        """Look up one entity by id."""
        matches = self.query(entity_type, lambda entity: entity.id == entity_id)
        return matches[0] if matches else None

    def count(self, entity_type: type[E]) -> int:
        return len(self.query(entity_type))

    def mark_dirty(self) -> None:
        """Record that an entity was edited in place. No-op by default."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
