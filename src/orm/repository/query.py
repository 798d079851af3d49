"""
RepositoryQuery -- the fluent select API bound to one entity type.

Callers chain fluent mutators and finish with a terminal operation:

    accounts = (
        em.get_repository("Account")
        .where("type", "Customer")
        .left_join("teams")
        .order("name")
        .limit(0, 20)
        .find()
    )

Every terminal call re-derives the ``Select`` from the accumulated
builder state.  Terminal operations still accept the deprecated legacy
parameter bag, which is reconciled by ``merge_legacy_params``.
"""
from __future__ import annotations

import warnings
from typing import TYPE_CHECKING, Any, Mapping

from src.core.logging import get_logger
from src.orm.collection import EntityCollection, SthCollection
from src.orm.entity import Entity
from src.orm.mapper.base import Mapper
from src.orm.query.builder import SelectBuilder
from src.orm.query.merge import merge_legacy_params
from src.orm.query.select import ORDER_ASC, Select

if TYPE_CHECKING:
    from src.orm.entity_manager import EntityManager

logger = get_logger(__name__)


class EntityTypeMismatchError(RuntimeError):
    """A seed query targets a different entity type than the query."""


def _warn_legacy_params() -> None:
    warnings.warn(
        "Passing a parameter bag to terminal operations is deprecated; "
        "use the fluent methods instead.",
        DeprecationWarning,
        stacklevel=4,
    )


class RepositoryQuery:
    """Select builder bound to an entity type, with find / count methods."""

    def __init__(self, entity_manager: EntityManager, entity_type: str, query: Select | None = None):
        self._entity_manager = entity_manager
        self._entity_type = entity_type
        self._repository = entity_manager.get_repository(entity_type)
        self._return_sth_collection = False

        if query is not None and query.from_ != entity_type:
            raise EntityTypeMismatchError(
                f"Passed query targets '{query.from_}', expected '{entity_type}'."
            )

        self._builder = SelectBuilder(entity_manager.get_query_composer())
        if query is not None:
            self._builder.clone(query)
        else:
            self._builder.from_(entity_type)

    @property
    def entity_type(self) -> str:
        return self._entity_type

    def _get_mapper(self) -> Mapper:
        return self._entity_manager.get_mapper()

    # ── Terminal operations ──────────────────────────────

    def find(self, params: Mapping[str, Any] | None = None) -> EntityCollection | SthCollection:
        """Run the select.

        *params* is deprecated; omit it.
        """
        query = self._get_merged_params(params)
        logger.debug("find %s sth=%s legacy_params=%s",
                     self._entity_type, self._return_sth_collection, bool(params))
        collection = self._get_mapper().select(query)
        return self._handle_return_collection(collection)

    def find_one(self, params: Mapping[str, Any] | None = None) -> Entity | None:
        """Return the first matching entity, or ``None``.

        *params* is deprecated; omit it.  When given, the merged query runs on
        a fresh clone so this instance's accumulated state is left untouched.
        """
        target = self
        if params is not None:
            query = self._get_merged_params(params)
            target = self._repository.clone(query)

        collection = target.sth().limit(0, 1).find()
        return next(iter(collection), None)

    def count(self, params: Mapping[str, Any] | None = None) -> int:
        """Number of matching records.  *params* is deprecated."""
        if params:
            query = self._get_merged_params(params)
            return self._get_mapper().count(query)

        return self._get_mapper().count(self._builder.build())

    def max(self, attribute: str) -> Any:
        return self._get_mapper().max(self._builder.build(), attribute)

    def min(self, attribute: str) -> Any:
        return self._get_mapper().min(self._builder.build(), attribute)

    def sum(self, attribute: str) -> Any:
        return self._get_mapper().sum(self._builder.build(), attribute)

    def build(self) -> Select:
        """Snapshot of the query accumulated so far."""
        return self._builder.build()

    # ── Fluent methods ───────────────────────────────────

    def join(self, relation_name: str, alias: str | None = None, conditions: Any = None) -> RepositoryQuery:
        """Add a JOIN.

        *relation_name* is a relation name (camelCase) or a table (CamelCase);
        *conditions* is a ``WhereItem``, mapping or list.
        """
        self._entity_manager.check_join_target(self._entity_type, relation_name)
        self._builder.join(relation_name, alias, conditions)
        return self

    def left_join(self, relation_name: str, alias: str | None = None, conditions: Any = None) -> RepositoryQuery:
        self._entity_manager.check_join_target(self._entity_type, relation_name)
        self._builder.left_join(relation_name, alias, conditions)
        return self

    def distinct(self) -> RepositoryQuery:
        self._builder.distinct()
        return self

    def for_update(self) -> RepositoryQuery:
        """Lock selected rows.  To be used within a transaction."""
        self._builder.for_update()
        return self

    def sth(self) -> RepositoryQuery:
        """Return a lazy ``SthCollection`` from ``find()``.

        Recommended for fetching a large number of records.
        """
        self._return_sth_collection = True
        return self

    def where(self, clause: Any, value: Any = None) -> RepositoryQuery:
        """Add a WHERE clause.

        Usage:
          * ``where(Cond.equal("status", "Active"))``
          * ``where({"status": "Active", "amount>": 100})``
          * ``where("status", "Active")`` / ``where("status", ["A", "B"])``
        """
        self._builder.where(clause, value)
        return self

    def having(self, clause: Any, value: Any = None) -> RepositoryQuery:
        """Add a HAVING clause; same call shapes as ``where()``."""
        self._builder.having(clause, value)
        return self

    def order(self, order_by: Any = None, direction: Any = ORDER_ASC) -> RepositoryQuery:
        """Apply ORDER BY.  Passing a list resets a previously set order.

        *direction* is ``"ASC"`` or ``"DESC"``; ``True`` means DESC.
        """
        self._builder.order(order_by, direction)
        return self

    def limit(self, offset: int | None = None, limit: int | None = None) -> RepositoryQuery:
        self._builder.limit(offset, limit)
        return self

    def select(self, select: Any, alias: str | None = None) -> RepositoryQuery:
        """Columns and expressions to select; all attributes when never called.

        A list resets previously set items, a string appends one.
        """
        self._builder.select(select, alias)
        return self

    def group_by(self, group_by: Any) -> RepositoryQuery:
        """GROUP BY.  A list resets previously set items, a string appends one."""
        self._builder.group_by(group_by)
        return self

    # ── Internals ────────────────────────────────────────

    def _handle_return_collection(self, collection: SthCollection) -> EntityCollection | SthCollection:
        if self._return_sth_collection:
            return collection

        return self._entity_manager.get_collection_factory().create_from_sth_collection(collection)

    def _get_merged_params(self, params: Mapping[str, Any] | None) -> Select:
        if params:
            _warn_legacy_params()
        return merge_legacy_params(self._builder.build(), params)
