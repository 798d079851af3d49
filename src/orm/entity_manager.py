"""
EntityManager -- resolves entity types to repositories and hands out the
shared collaborators (mapper, collection factory, query composer).
"""
from __future__ import annotations

from src.core.config import get_settings
from src.core.logging import get_logger
from src.orm.collection import CollectionFactory
from src.orm.mapper.base import Mapper, QueryComposer
from src.orm.metadata import EntityDefs
from src.orm.repository.rdb import Repository

logger = get_logger(__name__)


class EntityManager:
    """Registry of repositories, one per entity type.

    Parameters
    ----------
    mapper : Mapper
        Executes select / count / aggregate operations.
    collection_factory : CollectionFactory, optional
        Materializes streamed results; a default factory is used if omitted.
    entity_defs : EntityDefs, optional
        Known entity types and their relations.  When given (and
        ``strict_entity_types`` is on), resolving an undefined type or joining
        an unknown target raises ``ValueError``.
    query_composer : QueryComposer, optional
        Passed to every select builder for ``compose()``.
    """

    def __init__(
        self,
        mapper: Mapper,
        collection_factory: CollectionFactory | None = None,
        entity_defs: EntityDefs | None = None,
        query_composer: QueryComposer | None = None,
    ):
        self._mapper = mapper
        self._collection_factory = collection_factory or CollectionFactory()
        self._entity_defs = entity_defs
        self._query_composer = query_composer
        self._repositories: dict[str, Repository] = {}

    def get_repository(self, entity_type: str) -> Repository:
        repository = self._repositories.get(entity_type)
        if repository is None:
            self._check_entity_type(entity_type)
            repository = Repository(entity_type, self)
            self._repositories[entity_type] = repository
            logger.debug("Repository created for %s", entity_type)
        return repository

    def get_mapper(self) -> Mapper:
        return self._mapper

    def get_collection_factory(self) -> CollectionFactory:
        return self._collection_factory

    def get_query_composer(self) -> QueryComposer | None:
        return self._query_composer

    def get_entity_defs(self) -> EntityDefs | None:
        return self._entity_defs

    def _check_entity_type(self, entity_type: str) -> None:
        if self._entity_defs is None or not get_settings().strict_entity_types:
            return
        if not self._entity_defs.has_entity(entity_type):
            raise ValueError(
                f"Unknown entity type '{entity_type}'. "
                f"Allowed: {', '.join(self._entity_defs.get_entity_types())}"
            )

    def check_join_target(self, entity_type: str, target: str) -> None:
        """Reject a JOIN target that is neither a relation of *entity_type* nor a known entity type."""
        if self._entity_defs is None or not get_settings().strict_entity_types:
            return
        if self._entity_defs.relation(entity_type, target) is not None:
            return
        if self._entity_defs.has_entity(target):
            return
        entity = self._entity_defs.entity(entity_type)
        relations = sorted(entity.relations) if entity is not None else []
        raise ValueError(
            f"Unknown join target '{target}' for {entity_type}. "
            f"Relations: {', '.join(relations) or '(none)'}"
        )
