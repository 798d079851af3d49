"""
Collaborator contracts consumed by the query layer.

A ``Mapper`` runs a finalized ``Select`` against storage.  A ``QueryComposer``
turns a ``Select`` into an executable statement.  Both are structural
protocols; any object with matching methods qualifies.
"""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from src.orm.collection import SthCollection
from src.orm.query.select import Select


@runtime_checkable
class Mapper(Protocol):
    def select(self, query: Select) -> SthCollection: ...

    def count(self, query: Select) -> int: ...

    def max(self, query: Select, attribute: str) -> Any: ...

    def min(self, query: Select, attribute: str) -> Any: ...

    def sum(self, query: Select, attribute: str) -> Any: ...


@runtime_checkable
class QueryComposer(Protocol):
    def compose(self, query: Select) -> Any: ...
