"""
Loads and caches entity definitions from YAML into typed objects.

The definitions file lists every entity type the entity manager may resolve,
with the relations usable as JOIN targets:

    entities:
      - name: Account
        relations:
          - name: contacts
            entity: Contact
            type: hasMany
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from src.core.config import get_settings
from src.core.logging import get_logger

logger = get_logger(__name__)


# ── Typed domain objects ─────────────────────────────────

@dataclass(frozen=True)
class Relation:
    name: str
    entity: str
    type: str = "belongsTo"  # belongsTo | hasMany | manyMany


@dataclass(frozen=True)
class EntityDef:
    name: str
    relations: dict[str, Relation] = field(default_factory=dict)


@dataclass
class EntityDefs:
    """All entity definitions, keyed by entity type."""

    version: int
    entities: dict[str, EntityDef]

    def entity(self, name: str) -> EntityDef | None:
        return self.entities.get(name)

    def has_entity(self, name: str) -> bool:
        return name in self.entities

    def get_entity_types(self) -> list[str]:
        return list(self.entities.keys())

    def relation(self, entity_type: str, relation_name: str) -> Relation | None:
        entity = self.entity(entity_type)
        if entity is None:
            return None
        return entity.relations.get(relation_name)


# ── Parsing ──────────────────────────────────────────────

def _parse_relation(raw: dict[str, Any]) -> Relation:
    return Relation(
        name=raw["name"],
        entity=raw["entity"],
        type=raw.get("type", "belongsTo"),
    )


def _parse_entity(raw: dict[str, Any]) -> EntityDef:
    relations = [_parse_relation(r) for r in raw.get("relations") or []]
    return EntityDef(
        name=raw["name"],
        relations={r.name: r for r in relations},
    )


def parse_entity_defs(raw_yaml: dict[str, Any]) -> EntityDefs:
    entities = {e["name"]: _parse_entity(e) for e in raw_yaml.get("entities") or []}
    return EntityDefs(version=raw_yaml.get("version", 1), entities=entities)


# ── Public API ───────────────────────────────────────────

@lru_cache
def load_entity_defs(path: Path | None = None) -> EntityDefs:
    """Load and cache entity definitions (defaults to the configured path)."""
    path = Path(path) if path is not None else get_settings().entity_defs_path
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    defs = parse_entity_defs(raw)
    logger.info("Loaded %d entity definitions from %s", len(defs.entities), path)
    return defs
