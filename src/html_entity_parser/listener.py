"""Callbacks notified while entities are being extracted."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from html_entity_parser.matching.path import Path
    from html_entity_parser.tree import HtmlElement


@dataclass(frozen=True)
class ParsingContext:
    """Where a listener notification comes from."""

    entity_name: str
    field_name: Optional[str] = None
    path: Optional["Path"] = None


class HtmlParserListener:
    """
    Base listener with no-op callbacks; subclass and override what you need.

    Entities are extracted on worker threads, so the callbacks of one
    listener can be invoked concurrently for different entities.
    """

    def parsing_started(self, entity_name: str) -> None:
        pass

    def element_visited(self, element: "HtmlElement", context: ParsingContext) -> None:
        pass

    def element_matched(self, element: "HtmlElement", context: ParsingContext) -> None:
        pass

    def parsing_ended(self, entity_name: str) -> None:
        pass
