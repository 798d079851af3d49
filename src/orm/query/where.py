"""
Filter-tree nodes for WHERE / HAVING clauses.

A filter tree is a plain list whose elements are ANDed together.  Each element
is either a predicate mapping or a nested list (another AND group):

    [
        {"status": "Active"},                     # equality
        {"amount>=": 100},                        # operator suffix
        {"type": ["Customer", "Partner"]},        # list value -> IN
        {"OR": [{"name*": "Acme%"}, {"name": None}]},
        [{"stage!=": "Closed Lost"}],             # nested AND group
    ]

Keys carry the comparison operator as a suffix of the attribute name;
``AND`` / ``OR`` / ``NOT`` keys hold a list of sub-nodes.
"""
from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

LOGICAL_KEYS = ("AND", "OR", "NOT")

# Longest suffixes first so "amount>=" is not read as "amount>" + "="
OPERATOR_SUFFIXES = ("!=", ">=", "<=", "!*", ">", "<", "=", "*")


@dataclass(frozen=True)
class WhereItem:
    """One prebuilt predicate node."""

    clause: dict[str, Any] = field(default_factory=dict)

    def raw(self) -> dict[str, Any]:
        return copy.deepcopy(self.clause)


def _raw_value(value: Any) -> Any:
    if isinstance(value, WhereItem):
        return value.raw()
    if isinstance(value, Mapping):
        return {k: _raw_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_raw_value(v) for v in value]
    return copy.deepcopy(value)


class Cond:
    """Factory for :class:`WhereItem` predicates."""

    @staticmethod
    def equal(attribute: str, value: Any) -> WhereItem:
        return WhereItem({attribute: _raw_value(value)})

    @staticmethod
    def not_equal(attribute: str, value: Any) -> WhereItem:
        return WhereItem({f"{attribute}!=": _raw_value(value)})

    @staticmethod
    def greater(attribute: str, value: Any) -> WhereItem:
        return WhereItem({f"{attribute}>": value})

    @staticmethod
    def greater_or_equal(attribute: str, value: Any) -> WhereItem:
        return WhereItem({f"{attribute}>=": value})

    @staticmethod
    def less(attribute: str, value: Any) -> WhereItem:
        return WhereItem({f"{attribute}<": value})

    @staticmethod
    def less_or_equal(attribute: str, value: Any) -> WhereItem:
        return WhereItem({f"{attribute}<=": value})

    @staticmethod
    def in_(attribute: str, values: list[Any]) -> WhereItem:
        return WhereItem({attribute: _raw_value(list(values))})

    @staticmethod
    def not_in(attribute: str, values: list[Any]) -> WhereItem:
        return WhereItem({f"{attribute}!=": _raw_value(list(values))})

    @staticmethod
    def like(attribute: str, pattern: str) -> WhereItem:
        """SQL LIKE: ``%`` matches any run of characters, ``_`` one character."""
        return WhereItem({f"{attribute}*": pattern})

    @staticmethod
    def not_like(attribute: str, pattern: str) -> WhereItem:
        return WhereItem({f"{attribute}!*": pattern})

    @staticmethod
    def and_(*items: WhereItem | Mapping[str, Any]) -> WhereItem:
        return WhereItem({"AND": [_raw_value(i) for i in items]})

    @staticmethod
    def or_(*items: WhereItem | Mapping[str, Any]) -> WhereItem:
        return WhereItem({"OR": [_raw_value(i) for i in items]})

    @staticmethod
    def not_(item: WhereItem | Mapping[str, Any]) -> WhereItem:
        return WhereItem({"NOT": [_raw_value(item)]})


def split_key(key: str) -> tuple[str, str]:
    """Split ``"amount>="`` into ``("amount", ">=")``; bare keys get ``"="``."""
    for suffix in OPERATOR_SUFFIXES:
        if key.endswith(suffix) and len(key) > len(suffix):
            return key[: -len(suffix)], suffix
    return key, "="


def to_where_node(clause: Any, value: Any = None) -> dict[str, Any] | list[Any]:
    """Resolve the three ``where()`` / ``having()`` call shapes into one node.

    * ``WhereItem``        -> its raw mapping
    * mapping              -> a copy of the mapping (a sub-tree)
    * list / tuple         -> a nested AND group
    * ``(key, value)``     -> ``{key: value}``; a list value means IN
    """
    if isinstance(clause, WhereItem):
        return clause.raw()
    if isinstance(clause, Mapping):
        return _raw_value(clause)
    if isinstance(clause, (list, tuple)):
        return _raw_value(clause)
    if isinstance(clause, str):
        return {clause: _raw_value(value)}
    raise TypeError(
        f"Unsupported where clause of type {type(clause).__name__}; "
        "expected WhereItem, mapping, list or attribute name."
    )


def to_where_tree(tree: Any) -> list[Any]:
    """Coerce a loosely-typed clause value into a filter-tree list.

    A mapping such as ``{"status": "Active", "OR": [...]}`` is split into one
    single-key node per entry, preserving order.
    """
    if tree is None:
        return []
    if isinstance(tree, WhereItem):
        return [tree.raw()]
    if isinstance(tree, Mapping):
        return [{k: _raw_value(v)} for k, v in tree.items()]
    if isinstance(tree, (list, tuple)):
        return [_raw_value(node) for node in tree]
    raise TypeError(f"Filter tree must be a list or mapping, got {type(tree).__name__}")
