"""Immutable entity models produced by the builders and consumed by the matcher and assembler."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from html_entity_parser.matching.path import Path


class FieldRole(str, Enum):
    NORMAL = "normal"
    PERSISTENT = "persistent"
    SILENT = "silent"
    SILENT_PERSISTENT = "silent_persistent"
    CONSTANT = "constant"

    @property
    def persistent(self) -> bool:
        return self in (FieldRole.PERSISTENT, FieldRole.SILENT_PERSISTENT)

    @property
    def silent(self) -> bool:
        return self in (FieldRole.SILENT, FieldRole.SILENT_PERSISTENT)


@dataclass(frozen=True)
class GroupModel:
    """A start/end-bounded scope; `end` is None for groups that stay open to the end of the document."""

    name: str
    start: Path
    end: Optional[Path] = None
    end_on_closing: bool = False


@dataclass(frozen=True)
class FieldModel:
    name: str
    role: FieldRole
    paths: tuple[Path, ...] = ()
    constant: Any = None
    group: Optional[str] = None


@dataclass(frozen=True)
class TriggerModel:
    path: Path
    group: Optional[str] = None


@dataclass(frozen=True)
class EntityModel:
    """Everything needed to extract one entity: fields in declaration order, groups and triggers."""

    name: str
    fields: tuple[FieldModel, ...] = ()
    groups: tuple[GroupModel, ...] = ()
    triggers: tuple[TriggerModel, ...] = ()

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def field(self, name: str) -> FieldModel:
        for candidate in self.fields:
            if candidate.name == name:
                return candidate
        raise KeyError(name)

    def group(self, name: str) -> GroupModel:
        for candidate in self.groups:
            if candidate.name == name:
                return candidate
        raise KeyError(name)
