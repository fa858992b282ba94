"""
In-Memory Store

The default working set. Used directly for offline use and tests,
and as the cache underneath the Google Sheets replica.
"""

from collections.abc import Callable
from typing import Any, Optional

from ledgerlight.models.ledger import Ledger, Record, Tag
from ledgerlight.services.storage.interface import (
    DuplicateError,
    E,
    Entity,
    LedgerStoreInterface,
    NotFoundError,
)


class InMemoryLedgerStore(LedgerStoreInterface):
    """
    Dict-backed store keyed by entity id.

    Query results keep insertion order unless a sort key is given.
    save() has nothing to flush; it only clears the dirty flag.
    """

    def __init__(self) -> None:
        self._tables: dict[type, dict] = {
            Ledger: {},
            Tag: {},
            Record: {},
        }
        self._dirty = False

    def _table(self, entity_type: type) -> dict:
        try:
            return self._tables[entity_type]
        except KeyError:
            raise TypeError(f"Unsupported entity type: {entity_type.__name__}")

    @property
    def has_unsaved_changes(self) -> bool:
        return self._dirty

    def mark_dirty(self) -> None:
        """Flag in-place edits (renames, default changes) for the next save."""
        self._dirty = True

    def insert(self, entity: Entity) -> None:
        table = self._table(type(entity))
        if entity.id in table:
            raise DuplicateError(f"{type(entity).__name__} already exists: {entity.id}")
        if isinstance(entity, Record) and entity.ledger_id not in self._tables[Ledger]:
            raise NotFoundError(f"Ledger not found: {entity.ledger_id}")
        table[entity.id] = entity
        self._dirty = True

    def delete(self, entity: Entity) -> int:
        table = self._table(type(entity))
        if entity.id not in table:
            raise NotFoundError(f"{type(entity).__name__} not found: {entity.id}")
        del table[entity.id]

        affected = 0
        records = self._tables[Record]
        if isinstance(entity, Ledger):
            owned = [rid for rid, record in records.items() if record.ledger_id == entity.id]
            for rid in owned:
                del records[rid]
            affected = len(owned)
        elif isinstance(entity, Tag):
            for record in records.values():
                if record.tag_id == entity.id:
                    record.tag_id = None
                    affected += 1

        self._dirty = True
        return affected

    def save(self) -> None:
        self._dirty = False

    def query(
        self,
        entity_type: type[E],
        predicate: Optional[Callable[[E], bool]] = None,
        sort_key: Optional[Callable[[E], Any]] = None,
        reverse: bool = False,
    ) -> list[E]:
        entities = list(self._table(entity_type).values())
        if predicate is not None:
            entities = [entity for entity in entities if predicate(entity)]
        if sort_key is not None:
            entities.sort(key=sort_key, reverse=reverse)
        elif reverse:
            entities.reverse()
        return entities

    def replace_all(
        self,
        ledgers: list[Ledger],
        tags: list[Tag],
        records: list[Record],
    ) -> None:
        """Swap the whole working set (used when pulling a replica)."""
        self._tables = {
            Ledger: {ledger.id: ledger for ledger in ledgers},
            Tag: {tag.id: tag for tag in tags},
            Record: {record.id: record for record in records},
        }
        self._dirty = False
