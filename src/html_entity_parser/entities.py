"""Named collection of entity definitions."""

from __future__ import annotations

from typing import Iterator

from html_entity_parser.builders import Entity
from html_entity_parser.exceptions import ConfigurationError
from html_entity_parser.models import EntityModel


class EntityList:
    """Entities in declaration order; `configure_entity` creates or returns one."""

    def __init__(self):
        self._entities: dict[str, Entity] = {}

    def configure_entity(self, name: str) -> Entity:
        entity = self._entities.get(name)
        if entity is None:
            entity = Entity(name)
            self._entities[entity.name] = entity
        return entity

    def entity(self, name: str) -> Entity:
        try:
            return self._entities[name]
        except KeyError:
            raise ConfigurationError(f"Unknown entity '{name}'", {"known": list(self._entities)}) from None

    @property
    def names(self) -> list[str]:
        return list(self._entities)

    def __contains__(self, name: object) -> bool:
        return name in self._entities

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)

    def build(self) -> list[EntityModel]:
        return [entity.build() for entity in self._entities.values()]
