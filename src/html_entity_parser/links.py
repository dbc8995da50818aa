"""Following links found in field values and parsing the linked pages."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Optional

from html_entity_parser.entities import EntityList

if TYPE_CHECKING:
    from html_entity_parser.results import ParserResults
    from html_entity_parser.settings import ParserSettings


class LinkFollower(EntityList):
    """
    Entities to extract from the page a link points to.

    Returned by `follow_link()`; configure entities on it like on any
    :class:`EntityList`. Linked pages are parsed with the settings of the
    parent run unless `settings` is set here.
    """

    def __init__(self, settings: Optional["ParserSettings"] = None):
        super().__init__()
        self.settings = settings

    def follow(self, url: str, parent_settings: "ParserSettings") -> "ParserResults":
        from html_entity_parser.parser import HtmlParser

        if self.settings is not None:
            settings = self.settings
        else:
            # processors and entity filters of the parent run do not apply to linked pages
            settings = dataclasses.replace(
                parent_settings,
                entities_to_read=[],
                entities_to_skip=[],
                selected_fields={},
                excluded_fields={},
                processors={},
            )
        return HtmlParser(self, settings).parse_url(url)
