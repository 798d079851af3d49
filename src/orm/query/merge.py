"""
Legacy parameter reconciliation.

Older call sites pass a whole loosely-typed parameter bag (filters, joins,
pagination ...) straight to ``find()`` / ``count()``.  ``merge_legacy_params``
folds that bag into the query accumulated by fluent calls so that
neither side's predicates are lost and no join is duplicated:

  1. An empty bag returns the built query unchanged.
  2. WHERE / HAVING: when the bag has a non-empty tree, the built tree is
     dropped from the base and, if non-empty, appended to the bag's tree as
     ONE nested AND group.  An empty bag tree is removed so it cannot
     clobber the built one.
  3. JOINS / LEFT JOINS: when both sides are non-empty the built joins are
     appended to the bag's list, in order, without deduplication.  The bag's
     list then carries every join, so the built list leaves the base.  An
     empty bag list is removed so the built joins survive.
  4. Everything else: ``deep_merge(built, bag)`` with the bag winning.
"""
from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from src.core.logging import get_logger
from src.orm.query.select import Join, Select
from src.orm.query.where import to_where_tree

logger = get_logger(__name__)

_FILTER_KEYS = ("whereClause", "havingClause")
_JOIN_KEYS = ("leftJoins", "joins")


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _merge_value(current: Any, value: Any) -> Any:
    if isinstance(current, Mapping) and isinstance(value, Mapping):
        return deep_merge(current, value)
    if _is_sequence(current) and _is_sequence(value):
        return _merge_sequence(current, value)
    return copy.deepcopy(value)


def _merge_sequence(base: Any, overlay: Any) -> list[Any]:
    # Position i of the overlay replaces (or merges into) position i of the base
    merged = [copy.deepcopy(item) for item in base]
    for index, value in enumerate(overlay):
        if index < len(merged):
            merged[index] = _merge_value(merged[index], value)
        else:
            merged.append(copy.deepcopy(value))
    return merged


def deep_merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge *overlay* onto *base* without mutating either.

    mapping x mapping    -> merged per key
    sequence x sequence  -> merged index by index; base items past the end
                            of the overlay are kept, so an empty overlay
                            leaves the base untouched
    key on one side      -> kept as is
    anything else        -> overlay value wins
    """
    merged: dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in overlay.items():
        if key in merged:
            merged[key] = _merge_value(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def normalize_legacy_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """Bring a legacy bag into the raw camelCase shape of ``Select.to_raw()``.

    * snake_case field names (``where_clause``) become raw keys (``whereClause``)
    * a mapping filter tree becomes a list of single-key nodes
    * the pre-fluent ``orderBy: "name"`` + ``order: "DESC"`` pair becomes
      ``orderBy: [["name", "DESC"]]``
    """
    normalized: dict[str, Any] = {}
    for key, value in params.items():
        normalized[Select.raw_key(key)] = copy.deepcopy(value)

    # The source entity type of a query never changes
    normalized.pop("from", None)

    for key in _FILTER_KEYS:
        if normalized.get(key) is not None:
            normalized[key] = to_where_tree(normalized[key])

    for key in _JOIN_KEYS:
        joins = normalized.get(key)
        if isinstance(joins, (str, Mapping, Join)):
            normalized[key] = [joins]
        elif isinstance(joins, tuple):
            normalized[key] = list(joins)

    direction = normalized.pop("order", None)
    order_by = normalized.get("orderBy")
    if isinstance(order_by, (str, int)) and not isinstance(order_by, bool):
        normalized["orderBy"] = [[order_by, direction if direction is not None else "ASC"]]

    return normalized


def merge_legacy_params(query: Select, params: Mapping[str, Any] | None) -> Select:
    """Reconcile *query* with a legacy parameter bag; returns a new ``Select``."""
    if not params:
        return query

    params = normalize_legacy_params(params)
    built = query.to_raw()

    for key in _FILTER_KEYS:
        built_tree = built.get(key) or []
        if params.get(key):
            built.pop(key, None)
            if built_tree:
                params[key].append(list(built_tree))
        if not params.get(key):
            params.pop(key, None)

    for key in _JOIN_KEYS:
        if params.get(key):
            params[key].extend(built.pop(key, None) or [])
        else:
            params.pop(key, None)

    logger.debug(
        "Merging legacy params into select from=%s keys=%s",
        query.from_, sorted(params),
    )
    return Select.from_raw(deep_merge(built, params))
