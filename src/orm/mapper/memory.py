"""
In-memory mapper.

Keeps plain dict rows per entity type and evaluates a ``Select`` against them:

  - WHERE trees: equality, list values as IN, operator suffixes
    (``!=`` ``>`` ``>=`` ``<`` ``<=`` ``*`` LIKE ``!*`` NOT LIKE),
    ``AND`` / ``OR`` / ``NOT`` groups and nested list groups
  - ORDER BY on attributes or 1-based select positions (NULLs first on ASC)
  - SELECT projection with aliases, DISTINCT, OFFSET / LIMIT
  - COUNT / MAX / MIN / SUM

Joins, GROUP BY, HAVING and row locks have no in-memory meaning here; they
are logged and skipped.  Comparisons against NULL follow SQL: only ``=`` /
``!=`` with ``None`` match missing values.
"""
from __future__ import annotations

import copy
import re
from collections.abc import Iterator, Mapping
from typing import Any

from src.core.logging import get_logger
from src.orm.collection import SthCollection
from src.orm.entity import Entity
from src.orm.query.select import ORDER_DESC, Select
from src.orm.query.where import LOGICAL_KEYS, split_key, to_where_tree

logger = get_logger(__name__)


# ── Filter evaluation ────────────────────────────────────


def _like_to_regex(pattern: str) -> re.Pattern[str]:
    parts = []
    for ch in pattern:
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def _compare(actual: Any, operator: str, expected: Any) -> bool:
    if operator == "=":
        if isinstance(expected, list):
            return actual in expected
        return actual == expected
    if operator == "!=":
        if isinstance(expected, list):
            return actual is not None and actual not in expected
        if expected is None:
            return actual is not None
        return actual is not None and actual != expected

    if actual is None or expected is None:
        return False
    if operator == ">":
        return actual > expected
    if operator == ">=":
        return actual >= expected
    if operator == "<":
        return actual < expected
    if operator == "<=":
        return actual <= expected
    if operator == "*":
        return bool(_like_to_regex(str(expected)).fullmatch(str(actual)))
    if operator == "!*":
        return not _like_to_regex(str(expected)).fullmatch(str(actual))
    raise ValueError(f"Unsupported operator '{operator}'")


def matches(row: Mapping[str, Any], tree: list[Any]) -> bool:
    """True when *row* satisfies every node of the filter *tree*."""
    return all(_match_node(row, node) for node in tree)


def _match_node(row: Mapping[str, Any], node: Any) -> bool:
    if isinstance(node, list):
        return matches(row, node)
    if isinstance(node, Mapping):
        return all(_match_key(row, key, value) for key, value in node.items())
    raise TypeError(f"Malformed filter node {node!r}")


def _match_key(row: Mapping[str, Any], key: str, value: Any) -> bool:
    logical = key.upper()
    if logical in LOGICAL_KEYS:
        results = [_match_node(row, node) for node in to_where_tree(value)]
        if logical == "OR":
            return any(results)
        if logical == "NOT":
            return not all(results)
        return all(results)

    attribute, operator = split_key(key)
    return _compare(row.get(attribute), operator, value)


# ── Mapper ───────────────────────────────────────────────


class MemoryMapper:
    """Mapper backed by in-process lists of dict rows."""

    def __init__(self, data: Mapping[str, list[dict[str, Any]]] | None = None):
        self._rows: dict[str, list[dict[str, Any]]] = {}
        for entity_type, rows in (data or {}).items():
            for row in rows:
                self.insert(entity_type, row)

    def insert(self, entity_type: str, values: Mapping[str, Any]) -> Entity:
        """Store a row; a missing ``id`` gets the next sequential integer."""
        rows = self._rows.setdefault(entity_type, [])
        row = copy.deepcopy(dict(values))
        row.setdefault("id", len(rows) + 1)
        rows.append(row)
        return Entity(entity_type, copy.deepcopy(row))

    # ── Mapper contract ──────────────────────────────────

    def select(self, query: Select) -> SthCollection:
        logger.info("Select from=%s where=%d order=%d offset=%s limit=%s",
                    query.from_, len(query.where_clause), len(query.order_by),
                    query.offset, query.limit)
        return SthCollection(query.from_, self._iterate(query))

    def count(self, query: Select) -> int:
        total = len(self._projected(query))
        logger.info("Count from=%s -> %d", query.from_, total)
        return total

    def max(self, query: Select, attribute: str) -> Any:
        values = self._attribute_values(query, attribute)
        return max(values) if values else None

    def min(self, query: Select, attribute: str) -> Any:
        values = self._attribute_values(query, attribute)
        return min(values) if values else None

    def sum(self, query: Select, attribute: str) -> Any:
        return sum(self._attribute_values(query, attribute))

    # ── Internals ────────────────────────────────────────

    def _iterate(self, query: Select) -> Iterator[Entity]:
        rows = self._projected(query)
        start = query.offset or 0
        stop = start + query.limit if query.limit is not None else None
        for values in rows[start:stop]:
            yield Entity(query.from_, values)

    def _filtered(self, query: Select) -> list[dict[str, Any]]:
        self._log_ignored(query)
        rows = self._rows.get(query.from_, [])
        return [row for row in rows if matches(row, query.where_clause)]

    def _projected(self, query: Select) -> list[dict[str, Any]]:
        rows = self._sorted(self._filtered(query), query)
        projected = [self._project(row, query) for row in rows]
        if not query.distinct:
            return projected
        unique: list[dict[str, Any]] = []
        for values in projected:
            if values not in unique:
                unique.append(values)
        return unique

    def _attribute_values(self, query: Select, attribute: str) -> list[Any]:
        return [row[attribute] for row in self._filtered(query) if row.get(attribute) is not None]

    @staticmethod
    def _project(row: dict[str, Any], query: Select) -> dict[str, Any]:
        if not query.select:
            return copy.deepcopy(row)
        return {alias or expr: copy.deepcopy(row.get(expr)) for expr, alias in query.select}

    @staticmethod
    def _sorted(rows: list[dict[str, Any]], query: Select) -> list[dict[str, Any]]:
        ordered = list(rows)
        # Stable sorts applied last-key-first give a multi-key ordering
        for expression, direction in reversed(query.order_by):
            if isinstance(expression, int):
                if not 1 <= expression <= len(query.select):
                    raise ValueError(f"Order position {expression} is outside the select list")
                expression = query.select[expression - 1][0]
            ordered.sort(
                key=lambda row, attr=expression: (row.get(attr) is not None, row.get(attr)),
                reverse=direction == ORDER_DESC,
            )
        return ordered

    @staticmethod
    def _log_ignored(query: Select) -> None:
        ignored = [
            name for name, present in (
                ("joins", query.joins),
                ("left joins", query.left_joins),
                ("group by", query.group_by),
                ("having", query.having_clause),
            ) if present
        ]
        if ignored:
            logger.warning("MemoryMapper does not evaluate %s on %s", ", ".join(ignored), query.from_)
        if query.for_update:
            logger.debug("Row lock requested on %s; no-op in memory", query.from_)
