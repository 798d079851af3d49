"""
Repository for one entity type.

Every fluent or terminal shortcut opens a fresh ``RepositoryQuery``, so
``repo.where(...)`` and ``repo.order(...)`` never share state.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from src.orm.collection import EntityCollection, SthCollection
from src.orm.entity import Entity
from src.orm.query.select import ORDER_ASC, Select
from src.orm.repository.query import RepositoryQuery

if TYPE_CHECKING:
    from src.orm.entity_manager import EntityManager


class Repository:
    def __init__(self, entity_type: str, entity_manager: EntityManager):
        self._entity_type = entity_type
        self._entity_manager = entity_manager

    @property
    def entity_type(self) -> str:
        return self._entity_type

    def select_builder(self) -> RepositoryQuery:
        """A new, empty query for this entity type."""
        return RepositoryQuery(self._entity_manager, self._entity_type)

    def clone(self, query: Select) -> RepositoryQuery:
        """A new query seeded from *query*; its source type must match."""
        return RepositoryQuery(self._entity_manager, self._entity_type, query)

    def get_by_id(self, id: Any) -> Entity | None:
        return self.select_builder().where("id", id).find_one()

    # ── Terminal shortcuts ───────────────────────────────

    def find(self, params: Mapping[str, Any] | None = None) -> EntityCollection | SthCollection:
        return self.select_builder().find(params)

    def find_one(self, params: Mapping[str, Any] | None = None) -> Entity | None:
        return self.select_builder().find_one(params)

    def count(self, params: Mapping[str, Any] | None = None) -> int:
        return self.select_builder().count(params)

    def max(self, attribute: str) -> Any:
        return self.select_builder().max(attribute)

    def min(self, attribute: str) -> Any:
        return self.select_builder().min(attribute)

    def sum(self, attribute: str) -> Any:
        return self.select_builder().sum(attribute)

    # ── Fluent shortcuts ─────────────────────────────────

    def join(self, relation_name: str, alias: str | None = None, conditions: Any = None) -> RepositoryQuery:
        return self.select_builder().join(relation_name, alias, conditions)

    def left_join(self, relation_name: str, alias: str | None = None, conditions: Any = None) -> RepositoryQuery:
        return self.select_builder().left_join(relation_name, alias, conditions)

    def distinct(self) -> RepositoryQuery:
        return self.select_builder().distinct()

    def for_update(self) -> RepositoryQuery:
        return self.select_builder().for_update()

    def sth(self) -> RepositoryQuery:
        return self.select_builder().sth()

    def where(self, clause: Any, value: Any = None) -> RepositoryQuery:
        return self.select_builder().where(clause, value)

    def having(self, clause: Any, value: Any = None) -> RepositoryQuery:
        return self.select_builder().having(clause, value)

    def order(self, order_by: Any = None, direction: Any = ORDER_ASC) -> RepositoryQuery:
        return self.select_builder().order(order_by, direction)

    def limit(self, offset: int | None = None, limit: int | None = None) -> RepositoryQuery:
        return self.select_builder().limit(offset, limit)

    def select(self, select: Any, alias: str | None = None) -> RepositoryQuery:
        return self.select_builder().select(select, alias)

    def group_by(self, group_by: Any) -> RepositoryQuery:
        return self.select_builder().group_by(group_by)
