"""
Result collections.

``SthCollection`` is what a mapper returns: a lazy, forward-only stream of
entities, fetched one at a time from the underlying cursor.  It cannot be
indexed and it cannot be restarted -- once consumed, iterating it again yields
nothing.  Re-running the query is the only way to read the rows again.

``EntityCollection`` is the materialized form: an indexable, re-iterable
sequence holding every entity in memory.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import Any, overload

from src.orm.entity import Entity


class SthCollection(Iterator[Entity]):
    """Lazy single-pass stream of entities."""

    def __init__(self, entity_type: str, source: Iterable[Entity]):
        self.entity_type = entity_type
        self._iterator = iter(source)

    def __iter__(self) -> SthCollection:
        return self

    def __next__(self) -> Entity:
        return next(self._iterator)


class EntityCollection(Sequence[Entity]):
    """Materialized, indexable collection of entities."""

    def __init__(self, entity_type: str, entities: Iterable[Entity] = ()):
        self.entity_type = entity_type
        self._entities: list[Entity] = list(entities)

    @overload
    def __getitem__(self, index: int) -> Entity: ...

    @overload
    def __getitem__(self, index: slice) -> EntityCollection: ...

    def __getitem__(self, index: int | slice) -> Entity | EntityCollection:
        if isinstance(index, slice):
            return EntityCollection(self.entity_type, self._entities[index])
        return self._entities[index]

    def __len__(self) -> int:
        return len(self._entities)

    def __repr__(self) -> str:
        return f"EntityCollection({self.entity_type!r}, size={len(self)})"

    def to_list(self) -> list[dict[str, Any]]:
        """Return every entity as a plain dict of values."""
        return [e.to_dict() for e in self._entities]


class CollectionFactory:
    def create(self, entity_type: str, entities: Iterable[Entity] = ()) -> EntityCollection:
        return EntityCollection(entity_type, entities)

    def create_from_sth_collection(self, collection: SthCollection) -> EntityCollection:
        """Drain *collection* into a materialized ``EntityCollection``."""
        return EntityCollection(collection.entity_type, collection)
