"""
SelectBuilder -- mutable accumulator that produces ``Select`` snapshots.

Field contracts:
  - WHERE / HAVING / JOIN / LEFT JOIN are append-only: every call adds.
  - SELECT / ORDER BY / GROUP BY append on a scalar argument and replace the
    whole list when given a list.

``build()`` returns an independent immutable snapshot and leaves the
accumulated state in place.
"""
from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Callable

from src.core.config import get_settings
from src.core.logging import get_logger
from src.orm.query.select import (
    ORDER_ASC,
    Join,
    Select,
    to_order_item,
    to_select_item,
)
from src.orm.query.where import to_where_node

if TYPE_CHECKING:
    from src.orm.mapper.base import QueryComposer

logger = get_logger(__name__)


# ── Field contracts ──────────────────────────────────────


class AppendOnlyList:
    """List field that only ever grows."""

    def __init__(self, items: list[Any] | None = None):
        self._items: list[Any] = copy.deepcopy(list(items or []))

    def add(self, item: Any) -> None:
        self._items.append(item)

    def items(self) -> list[Any]:
        return copy.deepcopy(self._items)

    def __len__(self) -> int:
        return len(self._items)


class AppendOrReplaceList(AppendOnlyList):
    """List field where a scalar appends and a list replaces everything."""

    def replace(self, items: list[Any]) -> None:
        self._items = list(items)

    def apply(self, value: Any, convert: Callable[[Any], Any]) -> None:
        if isinstance(value, list):
            self.replace([convert(item) for item in value])
        else:
            self.add(convert(value))


# ── Builder ──────────────────────────────────────────────


class SelectBuilder:
    """Fluent builder for :class:`Select`.  Mutators return ``self``."""

    def __init__(self, composer: QueryComposer | None = None):
        self._composer = composer
        self._from: str | None = None
        self._select = AppendOrReplaceList()
        self._joins = AppendOnlyList()
        self._left_joins = AppendOnlyList()
        self._where = AppendOnlyList()
        self._having = AppendOnlyList()
        self._group_by = AppendOrReplaceList()
        self._order_by = AppendOrReplaceList()
        self._offset: int | None = None
        self._limit: int | None = None
        self._distinct = False
        self._for_update = False

    def from_(self, entity_type: str) -> SelectBuilder:
        self._from = entity_type
        return self

    def clone(self, query: Select) -> SelectBuilder:
        """Seed every field from an existing ``Select``."""
        self._from = query.from_
        self._select = AppendOrReplaceList(query.select)
        self._joins = AppendOnlyList(query.joins)
        self._left_joins = AppendOnlyList(query.left_joins)
        self._where = AppendOnlyList(query.where_clause)
        self._having = AppendOnlyList(query.having_clause)
        self._group_by = AppendOrReplaceList(query.group_by)
        self._order_by = AppendOrReplaceList(query.order_by)
        self._offset = query.offset
        self._limit = query.limit
        self._distinct = query.distinct
        self._for_update = query.for_update
        return self

    # ── Joins ────────────────────────────────────────────

    def join(self, relation_name: str, alias: str | None = None, conditions: Any = None) -> SelectBuilder:
        """Add a JOIN.  *relation_name* is a relation (camelCase) or a table (CamelCase)."""
        self._joins.add(Join(target=relation_name, alias=alias, conditions=conditions))
        return self

    def left_join(self, relation_name: str, alias: str | None = None, conditions: Any = None) -> SelectBuilder:
        self._left_joins.add(Join(target=relation_name, alias=alias, conditions=conditions))
        return self

    # ── Flags ────────────────────────────────────────────

    def distinct(self) -> SelectBuilder:
        self._distinct = True
        return self

    def for_update(self) -> SelectBuilder:
        """Request a row lock; only meaningful inside a transaction."""
        self._for_update = True
        return self

    # ── Filters ──────────────────────────────────────────

    def where(self, clause: Any, value: Any = None) -> SelectBuilder:
        """Add a WHERE predicate: ``WhereItem``, mapping, list, or ``(key, value)``."""
        self._where.add(to_where_node(clause, value))
        return self

    def having(self, clause: Any, value: Any = None) -> SelectBuilder:
        self._having.add(to_where_node(clause, value))
        return self

    # ── Shape ────────────────────────────────────────────

    def order(self, order_by: Any = None, direction: Any = ORDER_ASC) -> SelectBuilder:
        """Apply ORDER BY.

        * ``order("name", "DESC")`` / ``order(2, True)`` append one item
          (an int is a 1-based select position, ``True`` means DESC).
        * ``order([["name", "DESC"], ["id", "ASC"]])`` replaces the order.
        * ``order(["name", "id"], "DESC")`` replaces, sharing one direction.
        """
        if order_by is None:
            order_by = get_settings().default_order_by
        self._order_by.apply(order_by, lambda item: to_order_item(item, direction))
        return self

    def limit(self, offset: int | None = None, limit: int | None = None) -> SelectBuilder:
        self._offset = offset
        self._limit = limit
        return self

    def select(self, select: Any, alias: str | None = None) -> SelectBuilder:
        """Append one select item, or replace all of them when given a list.

        A tuple is one ``(expression, alias)`` item.
        """
        if isinstance(select, list):
            self._select.replace([to_select_item(item) for item in select])
        elif isinstance(select, tuple):
            self._select.add(to_select_item(select))
        else:
            self._select.add((select, alias))
        return self

    def group_by(self, group_by: Any) -> SelectBuilder:
        if isinstance(group_by, tuple):
            raise TypeError("group_by() takes one expression or a list of expressions, not a tuple.")
        self._group_by.apply(group_by, lambda item: item)
        return self

    # ── Output ───────────────────────────────────────────

    def build(self) -> Select:
        if not self._from:
            raise ValueError("SelectBuilder: entity type is not set; call from_() first.")
        query = Select(
            from_=self._from,
            select=self._select.items(),
            joins=self._joins.items(),
            left_joins=self._left_joins.items(),
            where_clause=self._where.items(),
            having_clause=self._having.items(),
            group_by=self._group_by.items(),
            order_by=self._order_by.items(),
            offset=self._offset,
            limit=self._limit,
            distinct=self._distinct,
            for_update=self._for_update,
        )
        logger.debug(
            "Built select from=%s where=%d having=%d joins=%d left_joins=%d",
            self._from, len(self._where), len(self._having),
            len(self._joins), len(self._left_joins),
        )
        return query

    def compose(self) -> Any:
        """Hand the current snapshot to the configured query composer."""
        if self._composer is None:
            raise RuntimeError("SelectBuilder: no query composer configured.")
        return self._composer.compose(self.build())
