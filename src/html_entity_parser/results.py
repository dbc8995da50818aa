"""Extraction results per entity."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional


@dataclass
class EntityResult:
    """Rows of one entity; `linked` maps a row index to results parsed from the pages its links point to."""

    entity_name: str
    headers: list[str]
    rows: list[list[Any]] = field(default_factory=list)
    linked: dict[int, "ParserResults"] = field(default_factory=dict)
    error: Optional[str] = None

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[list[Any]]:
        return iter(self.rows)

    def as_dicts(self) -> list[dict[str, Any]]:
        return [dict(zip(self.headers, row)) for row in self.rows]

    def linked_results(self, row_index: int) -> Optional["ParserResults"]:
        return self.linked.get(row_index)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "entity": self.entity_name,
            "headers": list(self.headers),
            "rows": [list(row) for row in self.rows],
        }
        if self.linked:
            data["linked"] = {str(index): results.to_dict() for index, results in sorted(self.linked.items())}
        if self.error:
            data["error"] = self.error
        return data


class ParserResults(dict):
    """Entity name -> :class:`EntityResult`, in entity declaration order."""

    def to_dict(self) -> dict[str, Any]:
        return {name: result.to_dict() for name, result in self.items()}

    @property
    def total_rows(self) -> int:
        return sum(len(result) for result in self.values())
