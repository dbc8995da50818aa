"""Predicate steps: atomic tests that filter or relocate the current anchor element."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Optional

from html_entity_parser.matching.tables import TablePosition
from html_entity_parser.text_utils import text_matches
from html_entity_parser.tree import HtmlElement

ElementMatcher = Callable[[Optional[HtmlElement], HtmlElement], bool]


class StepCategory(str, Enum):
    NEIGHBOUR = "neighbour"
    PARENTS = "parents"
    INSIDE = "inside"
    TABLE = "table"
    WITH_TEXT = "with_text"
    ATTRIBUTE = "attribute"


@dataclass(frozen=True)
class Step:
    """
    One predicate of a path.

    `name` is the element name a relocating step looks for; `texts` holds the
    text patterns of WITH_TEXT and *_by_text steps; `names` the element names
    of the non-relocating `containing(a, b, ...)` form.
    """

    category: StepCategory
    kind: str
    name: Optional[str] = None
    distance: Optional[int] = None
    depth_limit: Optional[int] = None
    texts: tuple[str, ...] = ()
    exact: bool = False
    match_case: bool = False
    names: tuple[str, ...] = ()
    attribute_name: Optional[str] = None
    attribute_value: Optional[str] = None
    matcher: Optional[ElementMatcher] = None
    negated: bool = False

    @property
    def relocates(self) -> bool:
        return self.kind in _RELOCATING and not self.negated

    def candidates(
        self,
        anchor: HtmlElement,
        last_matched: Optional[HtmlElement] = None,
    ) -> Iterator[HtmlElement]:
        """Elements the following steps are evaluated against, nearest first."""
        found = _EVALUATORS[self.kind](self, anchor, last_matched)
        if self.negated:
            if next(iter(found), None) is None:
                yield anchor
            return
        yield from found

    def describe(self) -> str:
        prefix = "not " if self.negated else ""
        argument = self.name or ", ".join(self.texts or self.names) or self.attribute_name or ""
        return f"{prefix}{self.kind}({argument})"


def _named(element: HtmlElement, name: str) -> bool:
    return name == "*" or element.tag_name == name


def _yield_if(condition: bool, anchor: HtmlElement) -> Iterator[HtmlElement]:
    if condition:
        yield anchor


# --- ATTRIBUTE ---

def _classes(step: Step, anchor: HtmlElement, _last) -> Iterator[HtmlElement]:
    wanted = {c.lower() for c in step.names}
    present = {c.lower() for c in anchor.classes}
    return _yield_if(wanted <= present, anchor)


def _attribute(step: Step, anchor: HtmlElement, _last) -> Iterator[HtmlElement]:
    return _yield_if(anchor.attribute(step.attribute_name or "") == step.attribute_value, anchor)


def _filter(step: Step, anchor: HtmlElement, last: Optional[HtmlElement]) -> Iterator[HtmlElement]:
    return _yield_if(bool(step.matcher(last, anchor)), anchor)


# --- WITH_TEXT ---

def _with_text(step: Step, anchor: HtmlElement, _last) -> Iterator[HtmlElement]:
    return _yield_if(
        text_matches(anchor.text(), step.texts, exact=step.exact, match_case=step.match_case),
        anchor,
    )


# --- NEIGHBOUR ---

def _siblings(step: Step, siblings: list[HtmlElement]) -> Iterator[HtmlElement]:
    if step.distance is not None:
        if step.distance <= len(siblings) and _named(siblings[step.distance - 1], step.name):
            yield siblings[step.distance - 1]
        return
    for sibling in siblings:
        if _named(sibling, step.name):
            yield sibling


def _followed_by(step: Step, anchor: HtmlElement, _last) -> Iterator[HtmlElement]:
    return _siblings(step, anchor.following_elements())


def _preceded_by(step: Step, anchor: HtmlElement, _last) -> Iterator[HtmlElement]:
    return _siblings(step, anchor.preceding_elements())


def _followed_by_text(step: Step, anchor: HtmlElement, _last) -> Iterator[HtmlElement]:
    sibling = anchor.next_element_sibling()
    return _yield_if(sibling is not None and text_matches(sibling.text(), step.texts), anchor)


def _preceded_by_text(step: Step, anchor: HtmlElement, _last) -> Iterator[HtmlElement]:
    sibling = anchor.previous_element_sibling()
    return _yield_if(sibling is not None and text_matches(sibling.text(), step.texts), anchor)


# --- PARENTS ---

def _child_of(step: Step, anchor: HtmlElement, _last) -> Iterator[HtmlElement]:
    parent = anchor.parent
    return _yield_if(parent is not None and parent.is_element and _named(parent, step.name), parent)


def _contained_by(step: Step, anchor: HtmlElement, _last) -> Iterator[HtmlElement]:
    for level, ancestor in enumerate(anchor.ancestors(), start=1):
        if step.depth_limit is not None and level > step.depth_limit:
            return
        if _named(ancestor, step.name):
            yield ancestor


# --- INSIDE ---

def _parent_of(step: Step, anchor: HtmlElement, _last) -> Iterator[HtmlElement]:
    for child in anchor.elements:
        if _named(child, step.name):
            yield child


def _containing(step: Step, anchor: HtmlElement, _last) -> Iterator[HtmlElement]:
    for descendant in anchor.iter_descendants(step.depth_limit):
        if _named(descendant, step.name):
            yield descendant


def _containing_all(step: Step, anchor: HtmlElement, _last) -> Iterator[HtmlElement]:
    pending = set(step.names)
    for descendant in anchor.iter_descendants(step.depth_limit):
        pending.discard(descendant.tag_name)
        if not pending:
            break
    return _yield_if(not pending, anchor)


# --- TABLE ---

def _in_cell(step: Step, cells: Iterator[HtmlElement]) -> Iterator[HtmlElement]:
    for cell in cells:
        if _named(cell, step.name):
            yield cell
        else:
            for descendant in cell.iter_descendants():
                if _named(descendant, step.name):
                    yield descendant
                    break


def _table_walk(direction: str) -> Callable[[Step, HtmlElement, Optional[HtmlElement]], Iterator[HtmlElement]]:
    def evaluate(step: Step, anchor: HtmlElement, _last) -> Iterator[HtmlElement]:
        position = TablePosition.locate(anchor)
        if position is None:
            return iter(())
        return _in_cell(step, getattr(position, direction)())

    return evaluate


_EVALUATORS = {
    "classes": _classes,
    "attribute": _attribute,
    "id": _attribute,
    "filter": _filter,
    "with_text": _with_text,
    "followed_by": _followed_by,
    "preceded_by": _preceded_by,
    "followed_by_text": _followed_by_text,
    "preceded_by_text": _preceded_by_text,
    "child_of": _child_of,
    "contained_by": _contained_by,
    "parent_of": _parent_of,
    "containing": _containing,
    "containing_all": _containing_all,
    "under_header": _table_walk("header_cells"),
    "under": _table_walk("cells_above"),
    "up_to": _table_walk("cells_above"),
    "up_to_header": _table_walk("header_cells"),
    "down_to": _table_walk("cells_below"),
    "down_to_footer": _table_walk("footer_cells"),
}

_RELOCATING = {
    "followed_by",
    "preceded_by",
    "child_of",
    "contained_by",
    "parent_of",
    "containing",
    "under_header",
    "under",
    "up_to",
    "up_to_header",
    "down_to",
    "down_to_footer",
}

STEP_CATEGORIES = {
    "classes": StepCategory.ATTRIBUTE,
    "attribute": StepCategory.ATTRIBUTE,
    "id": StepCategory.ATTRIBUTE,
    "filter": StepCategory.ATTRIBUTE,
    "with_text": StepCategory.WITH_TEXT,
    "followed_by": StepCategory.NEIGHBOUR,
    "preceded_by": StepCategory.NEIGHBOUR,
    "followed_by_text": StepCategory.NEIGHBOUR,
    "preceded_by_text": StepCategory.NEIGHBOUR,
    "child_of": StepCategory.PARENTS,
    "contained_by": StepCategory.PARENTS,
    "parent_of": StepCategory.INSIDE,
    "containing": StepCategory.INSIDE,
    "containing_all": StepCategory.INSIDE,
    "under_header": StepCategory.TABLE,
    "under": StepCategory.TABLE,
    "up_to": StepCategory.TABLE,
    "up_to_header": StepCategory.TABLE,
    "down_to": StepCategory.TABLE,
    "down_to_footer": StepCategory.TABLE,
}


def make_step(kind: str, **params) -> Step:
    """Build a step of the given kind with its category filled in."""
    return Step(category=STEP_CATEGORIES[kind], kind=kind, **params)
