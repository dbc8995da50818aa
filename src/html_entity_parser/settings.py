"""Runtime options of :class:`~html_entity_parser.parser.HtmlParser`."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Optional

from html_entity_parser.exceptions import ConfigurationError, RowProcessingError

if TYPE_CHECKING:
    from html_entity_parser.listener import HtmlParserListener
    from html_entity_parser.processors import RowProcessor


def default_thread_count() -> int:
    return os.cpu_count() or 1


@dataclass
class ParserSettings:
    """
    Options applied to every entity of a run.

    `selected_fields` / `excluded_fields` map an entity name to column names.
    With `column_reordering_enabled`, rows only carry the selected columns in
    selection order; otherwise rows keep every column and unselected ones
    hold `null_value`.
    """

    null_value: Any = None
    empty_value: Any = ""
    trim_values: bool = True
    thread_count: int = field(default_factory=default_thread_count)
    entities_to_read: list[str] = field(default_factory=list)
    entities_to_skip: list[str] = field(default_factory=list)
    selected_fields: dict[str, list[str]] = field(default_factory=dict)
    excluded_fields: dict[str, list[str]] = field(default_factory=dict)
    column_reordering_enabled: bool = True
    download_directory: Optional[Path] = None
    download_handler: Optional[Callable[[str], Any]] = None
    request_timeout: float = 60.0
    error_handler: Optional[Callable[[RowProcessingError], None]] = None
    listener: Optional["HtmlParserListener"] = None
    processors: dict[str, "RowProcessor"] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.thread_count, int) or self.thread_count < 1:
            raise ConfigurationError(f"thread_count must be a positive integer, got {self.thread_count!r}")

    def select_fields(self, entity_name: str, *field_names: str) -> None:
        self.excluded_fields.pop(entity_name, None)
        self.selected_fields[entity_name] = list(field_names)

    def exclude_fields(self, entity_name: str, *field_names: str) -> None:
        self.selected_fields.pop(entity_name, None)
        self.excluded_fields[entity_name] = list(field_names)

    def set_processor(self, entity_name: str, processor: "RowProcessor") -> None:
        self.processors[entity_name] = processor

    def should_read(self, entity_name: str) -> bool:
        if self.entities_to_read and entity_name not in self.entities_to_read:
            return False
        return entity_name not in self.entities_to_skip
