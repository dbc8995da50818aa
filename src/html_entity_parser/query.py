"""Ad-hoc path queries over an element's subtree, outside of any entity."""

from __future__ import annotations

from typing import Any, Callable, Optional

from html_entity_parser.builders import ContentReaders, ElementFilters, ElementMatches, PathBuilder
from html_entity_parser.content import ContentRule
from html_entity_parser.exceptions import ConfigurationError
from html_entity_parser.matching.path import Path, PathEvaluator
from html_entity_parser.tree import HtmlElement


class ElementQuery(ElementMatches, ElementFilters, ContentReaders):
    """
    A path evaluated on demand, e.g.
    ``element.query().match("p").with_text("a*").get_text().get_values()``.
    """

    def __init__(self, root: HtmlElement):
        self._root = root
        self._path = PathBuilder()

    def _read(self, rule: ContentRule) -> "QueryContent":
        return QueryContent(self, rule)

    def get_elements(self) -> list[HtmlElement]:
        """Matched elements of the subtree, in document order."""
        match_steps = self._path.build()
        if not match_steps:
            raise ConfigurationError("Query has no match step")
        path = Path(match_steps)
        evaluator = PathEvaluator()
        return [e for e in self._root.iter_descendants() if evaluator.matches(path, e)]

    def get_element(self, transformation: Optional[Callable[[HtmlElement], Any]] = None) -> Any:
        """First matched element (or its transformation), None when nothing matches."""
        if transformation is not None:
            return ContentReaders.get_element(self, transformation).get_value()
        elements = self.get_elements()
        return elements[0] if elements else None


class QueryContent:
    def __init__(self, query: ElementQuery, rule: ContentRule):
        self._query = query
        self._rule = rule
        self._transforms: list[Callable[[Any], Any]] = []

    def transform(self, function: Callable[[Any], Any]) -> "QueryContent":
        self._transforms.append(function)
        return self

    def get_values(self) -> list[Any]:
        values = []
        for element in self._query.get_elements():
            value = self._rule.read(element)
            if value is None:
                continue
            for function in self._transforms:
                value = function(value)
            values.append(value)
        return values

    def get_value(self) -> Any:
        values = self.get_values()
        return values[0] if values else None
