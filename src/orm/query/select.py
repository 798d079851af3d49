"""
Select -- the immutable description of a select operation.

A ``Select`` is the single source of truth for "what to run": source entity
type, select items, joins, WHERE / HAVING filter trees, GROUP BY, ORDER BY,
pagination and the DISTINCT / FOR UPDATE flags.  It is produced by
``SelectBuilder.build()`` or reconstructed from its generic raw form with
``Select.from_raw()``.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.orm.query.where import to_where_tree

ORDER_ASC = "ASC"
ORDER_DESC = "DESC"

Direction = Literal["ASC", "DESC"]
SelectItem = tuple[str, Optional[str]]
OrderItem = tuple[Union[str, int], Direction]


def normalize_direction(direction: Any) -> str:
    """Map ``"asc"`` / ``"DESC"`` / ``True`` / ``False`` to ``ASC`` or ``DESC``.

    ``True`` stands for descending.
    """
    if isinstance(direction, bool):
        return ORDER_DESC if direction else ORDER_ASC
    if isinstance(direction, str) and direction.upper() in (ORDER_ASC, ORDER_DESC):
        return direction.upper()
    raise ValueError(f"Invalid order direction {direction!r}; expected 'ASC', 'DESC' or a bool.")


def to_order_item(item: Any, direction: Any = ORDER_ASC) -> OrderItem:
    """``[expr, dir]`` -> ``(expr, DIR)``; a bare expression takes *direction*."""
    if isinstance(item, (list, tuple)):
        if len(item) == 1:
            return (item[0], normalize_direction(direction))
        if len(item) == 2:
            return (item[0], normalize_direction(item[1]))
        raise ValueError(f"Order item must be [expression, direction], got {item!r}")
    return (item, normalize_direction(direction))


def to_select_item(item: Any) -> SelectItem:
    """``"name"`` -> ``("name", None)``; ``["name", "alias"]`` -> pair."""
    if isinstance(item, (list, tuple)):
        if len(item) == 1:
            return (item[0], None)
        if len(item) == 2:
            return (item[0], item[1])
        raise ValueError(f"Select item must be [expression, alias], got {item!r}")
    return (item, None)


class Join(BaseModel):
    """JOIN / LEFT JOIN descriptor: relation name or table, alias, conditions."""

    model_config = ConfigDict(frozen=True)

    target: str = Field(..., min_length=1, description="Relation name (camelCase) or table (CamelCase)")
    alias: str | None = None
    conditions: tuple[Any, ...] | None = None

    @field_validator("conditions", mode="before")
    @classmethod
    def _raw_conditions(cls, value: Any) -> Any:
        if value is None:
            return None
        return tuple(to_where_tree(value))

    @classmethod
    def coerce(cls, value: Any) -> "Join":
        """Accept the loose join shapes found in legacy parameter bags."""
        if isinstance(value, Join):
            return value
        if isinstance(value, str):
            return cls(target=value)
        if isinstance(value, Mapping):
            return cls.model_validate(dict(value))
        if isinstance(value, (list, tuple)) and 1 <= len(value) <= 3:
            target, alias, conditions = (list(value) + [None, None])[:3]
            return cls(target=target, alias=alias, conditions=conditions)
        raise ValueError(f"Cannot interpret join entry {value!r}")


class Select(BaseModel):
    """Immutable select query.

    The raw form (``to_raw()``) uses camelCase keys -- ``from``, ``leftJoins``,
    ``whereClause``, ``havingClause``, ``groupBy``, ``orderBy``,
    ``forUpdate`` -- which is also the shape of legacy parameter bags.
    Collection fields are tuples, so a snapshot cannot be edited in place.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: str = Field(..., alias="from", min_length=1, description="Source entity type")
    select: tuple[SelectItem, ...] = Field((), description="Empty = all attributes")
    joins: tuple[Join, ...] = ()
    left_joins: tuple[Join, ...] = Field((), alias="leftJoins")
    where_clause: tuple[Any, ...] = Field((), alias="whereClause")
    having_clause: tuple[Any, ...] = Field((), alias="havingClause")
    group_by: tuple[str, ...] = Field((), alias="groupBy")
    order_by: tuple[OrderItem, ...] = Field((), alias="orderBy")
    offset: int | None = Field(None, ge=0)
    limit: int | None = Field(None, ge=0)
    distinct: bool = False
    for_update: bool = Field(False, alias="forUpdate")

    # ── Coercion of loose inputs ─────────────────────────

    @field_validator("select", mode="before")
    @classmethod
    def _select_items(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        return tuple(to_select_item(item) for item in value)

    @field_validator("joins", "left_joins", mode="before")
    @classmethod
    def _join_items(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, (str, Join, Mapping)):
            value = [value]
        return tuple(Join.coerce(item) for item in value)

    @field_validator("where_clause", "having_clause", mode="before")
    @classmethod
    def _filter_tree(cls, value: Any) -> Any:
        return tuple(to_where_tree(value))

    @field_validator("group_by", mode="before")
    @classmethod
    def _group_items(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        return tuple(value)

    @field_validator("order_by", mode="before")
    @classmethod
    def _order_items(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, (str, int)):
            value = [value]
        return tuple(to_order_item(item) for item in value)

    # ── Raw form ─────────────────────────────────────────

    def to_raw(self) -> dict[str, Any]:
        """Generic key/value form with camelCase keys."""
        return self.model_dump(by_alias=True, mode="python")

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "Select":
        """Rebuild a ``Select`` from a raw mapping (camelCase or snake_case keys)."""
        return cls.model_validate(dict(raw))

    @classmethod
    def raw_key(cls, name: str) -> str:
        """Translate a field name to its raw key; raw keys pass through."""
        info = cls.model_fields.get(name)
        if info is None:
            return name
        return info.alias or name

    @property
    def entity_type(self) -> str:
        return self.from_
