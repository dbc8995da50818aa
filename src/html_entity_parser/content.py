"""Content rules: what a matched element contributes as a field value."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from html_entity_parser.matching.tables import TablePosition, cell_at
from html_entity_parser.text_utils import join_texts, text_matches
from html_entity_parser.tree import HtmlElement

ElementTransformation = Callable[[HtmlElement], Any]


def _node_text(node: HtmlElement) -> str:
    if node.is_text() or node.is_element:
        return node.text()
    return ""


@dataclass(frozen=True)
class ContentRule:
    """
    How to read a value from the element matched by a path.

    `read()` returns None when the rule cannot resolve (no enclosing table,
    missing attribute, no row above); the matcher then reports no match.
    """

    kind: str = "text"
    count: int = 0
    name: Optional[str] = None
    texts: tuple[str, ...] = ()
    transformation: Optional[ElementTransformation] = None

    def read(self, element: HtmlElement) -> Any:
        return _READERS[self.kind](self, element)


def _text(rule: ContentRule, element: HtmlElement) -> Optional[str]:
    if rule.count <= 0:
        return element.text()
    siblings = element.following_elements()[: rule.count]
    return join_texts([element.text()] + [s.text() for s in siblings])


def _own_text(rule: ContentRule, element: HtmlElement) -> Optional[str]:
    return element.own_text()


def _preceding_text(rule: ContentRule, element: HtmlElement) -> Optional[str]:
    nodes = [n for n in element.preceding_nodes() if n.is_element or n.is_text()][: max(rule.count, 1)]
    return join_texts(_node_text(n) for n in reversed(nodes))


def _following_text(rule: ContentRule, element: HtmlElement) -> Optional[str]:
    nodes = [n for n in element.following_nodes() if n.is_element or n.is_text()][: max(rule.count, 1)]
    return join_texts(_node_text(n) for n in nodes)


def _attribute(rule: ContentRule, element: HtmlElement) -> Optional[str]:
    return element.attribute(rule.name or "")


def _heading_text(rule: ContentRule, element: HtmlElement) -> Optional[str]:
    position = TablePosition.locate(element)
    if position is None:
        return None
    if rule.count > 0:
        cell = position.cell_in_row(rule.count)
    else:
        cell = next(position.header_cells(), None)
    return cell.text() if cell is not None else None


def _text_above(rule: ContentRule, element: HtmlElement) -> Optional[str]:
    position = TablePosition.locate(element)
    if position is None:
        return None
    target = position.row_index - max(rule.count, 1)
    if target < 0:
        return None
    cell = cell_at(position.rows[target], position.column)
    return cell.text() if cell is not None else None


def _text_above_matching(rule: ContentRule, element: HtmlElement) -> Optional[str]:
    position = TablePosition.locate(element)
    if position is None:
        return None
    for cell in position.cells_above():
        if text_matches(cell.text(), rule.texts):
            return cell.text()
    return None


def _element(rule: ContentRule, element: HtmlElement) -> Any:
    return rule.transformation(element)


_READERS: dict[str, Callable[[ContentRule, HtmlElement], Any]] = {
    "text": _text,
    "own_text": _own_text,
    "preceding_text": _preceding_text,
    "following_text": _following_text,
    "attribute": _attribute,
    "heading_text": _heading_text,
    "text_above": _text_above,
    "text_above_matching": _text_above_matching,
    "element": _element,
}

CONTENT_KINDS = tuple(_READERS)

DEFAULT_CONTENT = ContentRule()
