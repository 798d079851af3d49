"""
Entity -- one record of a named entity type.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Entity:
    entity_type: str
    values: dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> Any:
        return self.values.get("id")

    def get(self, attribute: str, default: Any = None) -> Any:
        return self.values.get(attribute, default)

    def has(self, attribute: str) -> bool:
        return attribute in self.values

    def to_dict(self) -> dict[str, Any]:
        return dict(self.values)
