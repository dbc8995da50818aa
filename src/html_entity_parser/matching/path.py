"""Paths: chains of match steps, each refined by predicate steps."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from soupsieve import SoupSieve

from html_entity_parser.content import DEFAULT_CONTENT, ContentRule
from html_entity_parser.matching.steps import ElementMatcher, Step
from html_entity_parser.tree import HtmlElement

FIRST = "first"
LAST = "last"


@dataclass(frozen=True)
class MatchStep:
    """
    Selects an element by name, CSS query or custom matcher.

    `occurrence` is a 1-indexed position among same-named element siblings,
    or one of ``"first"`` / ``"last"``.
    """

    tag: str = "*"
    css: Optional[SoupSieve] = None
    matcher: Optional[ElementMatcher] = None
    occurrence: Optional[int | str] = None
    steps: tuple[Step, ...] = ()

    @property
    def index_key(self) -> str:
        """Tag used to index paths ending in this step; ``"*"`` for the catch-all bucket."""
        if self.css is not None or self.matcher is not None:
            return "*"
        return self.tag

    def accepts(self, element: HtmlElement, last_matched: Optional[HtmlElement]) -> bool:
        if not element.is_element:
            return False
        if self.css is not None:
            if not self.css.match(element.node):
                return False
        elif self.matcher is not None:
            if not self.matcher(last_matched, element):
                return False
        elif self.tag != "*" and element.tag_name != self.tag:
            return False
        if self.occurrence is not None:
            siblings = element.same_named_siblings()
            if self.occurrence == FIRST:
                return siblings[0] is element
            if self.occurrence == LAST:
                return siblings[-1] is element
            return len(siblings) >= self.occurrence and siblings[self.occurrence - 1] is element
        return True

    def filters_pass(self, element: HtmlElement, last_matched: Optional[HtmlElement]) -> bool:
        """Run the predicate steps from `element`, backtracking over relocation candidates."""
        return _steps_pass(self.steps, 0, element, last_matched)

    def describe(self) -> str:
        if self.css is not None:
            head = f"select({self.css.pattern!r})"
        elif self.matcher is not None:
            head = "match(<custom>)"
        else:
            head = f"match({self.tag!r})"
        return ".".join([head] + [step.describe() for step in self.steps])


def _steps_pass(steps: tuple[Step, ...], position: int, anchor: HtmlElement, last: Optional[HtmlElement]) -> bool:
    if position == len(steps):
        return True
    for candidate in steps[position].candidates(anchor, last):
        if _steps_pass(steps, position + 1, candidate, last):
            return True
    return False


@dataclass(frozen=True)
class Path:
    """A chain of match steps plus how to read and post-process the matched value."""

    match_steps: tuple[MatchStep, ...]
    content: ContentRule = DEFAULT_CONTENT
    transforms: tuple[Callable[[Any], Any], ...] = ()
    download: bool = False
    download_handler: Optional[Callable[[str], Any]] = None
    link_follower: Any = None

    @property
    def index_key(self) -> str:
        return self.match_steps[-1].index_key if self.match_steps else "*"

    @property
    def has_custom_matchers(self) -> bool:
        return any(
            step.matcher is not None or any(s.matcher is not None for s in step.steps)
            for step in self.match_steps
        )

    def describe(self) -> str:
        return ".".join(step.describe() for step in self.match_steps)


@dataclass
class PathState:
    """Per-traversal memory for one path: memoized step results and the last matched element."""

    last_matched: Optional[HtmlElement] = None
    memo: dict[tuple[int, int], bool] = field(default_factory=dict)


class PathEvaluator:
    """
    Decides whether an element is matched by a path.

    For chained match steps, the element matched by step *i* needs a
    predecessor matched by step *i-1* among its ancestors or its preceding
    element siblings; candidates are tried nearest first. One evaluator
    lives for one traversal.
    """

    def __init__(self):
        self._states: dict[int, PathState] = {}

    def state(self, path: Path) -> PathState:
        key = id(path)
        state = self._states.get(key)
        if state is None:
            state = PathState()
            self._states[key] = state
        return state

    def matches(self, path: Path, element: HtmlElement) -> bool:
        if not path.match_steps:
            return False
        state = self.state(path)
        matched = self._step_matches(path, state, len(path.match_steps) - 1, element)
        if matched:
            state.last_matched = element
        return matched

    def _step_matches(self, path: Path, state: PathState, position: int, element: HtmlElement) -> bool:
        cacheable = not path.has_custom_matchers
        key = (position, id(element))
        if cacheable and key in state.memo:
            return state.memo[key]

        step = path.match_steps[position]
        result = step.accepts(element, state.last_matched) and step.filters_pass(element, state.last_matched)
        if result and position > 0:
            result = any(
                self._step_matches(path, state, position - 1, predecessor)
                for predecessor in _predecessors(element)
            )

        if cacheable:
            state.memo[key] = result
        return result


def _predecessors(element: HtmlElement):
    yield from element.ancestors()
    yield from element.preceding_elements()
