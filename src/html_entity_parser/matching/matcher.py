"""Single-pass traversal that turns an element tree into an ordered stream of match events."""

from __future__ import annotations

import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Union

from html_entity_parser.exceptions import TraversalError
from html_entity_parser.listener import HtmlParserListener, ParsingContext
from html_entity_parser.logger import get_module_logger
from html_entity_parser.matching.path import Path, PathEvaluator
from html_entity_parser.matching.scope import GroupScope
from html_entity_parser.models import EntityModel, FieldModel, FieldRole, GroupModel, TriggerModel
from html_entity_parser.tree import HtmlElement

logger = get_module_logger("matcher")


@dataclass(frozen=True)
class ScopeOpened:
    group: GroupModel
    element: HtmlElement


@dataclass(frozen=True)
class ScopeClosed:
    group: GroupModel
    element: Optional[HtmlElement]


@dataclass(frozen=True)
class TriggerMatched:
    trigger: TriggerModel
    element: HtmlElement


@dataclass(frozen=True)
class FieldMatched:
    field: FieldModel
    path: Path
    element: HtmlElement
    value: Any


MatchEvent = Union[ScopeOpened, ScopeClosed, TriggerMatched, FieldMatched]


class PathMatcher:
    """
    Evaluates every path of one entity against a document in one depth-first pass.

    Per element: group transitions first, then record triggers, then fields
    in declaration order. For each field the first declared path that
    matches and resolves a value wins.
    """

    def __init__(
        self,
        entity: EntityModel,
        stop_event: Optional[threading.Event] = None,
        listener: Optional[HtmlParserListener] = None,
    ):
        self.entity = entity
        self.stop_event = stop_event
        self.listener = listener
        self._fields_by_tag: dict[str, list[tuple[FieldModel, list[Path]]]] = {}
        self._paths_by_tag: dict[str, set[int]] = defaultdict(set)
        for field in entity.fields:
            if field.role is FieldRole.CONSTANT:
                continue
            for path in field.paths:
                self._paths_by_tag[path.index_key].add(id(path))

    def _fields_for(self, tag: str) -> list[tuple[FieldModel, list[Path]]]:
        cached = self._fields_by_tag.get(tag)
        if cached is None:
            wanted = self._paths_by_tag.get(tag, set()) | self._paths_by_tag.get("*", set())
            cached = []
            for field in self.entity.fields:
                if field.role is FieldRole.CONSTANT:
                    continue
                paths = [p for p in field.paths if id(p) in wanted]
                if paths:
                    cached.append((field, paths))
            self._fields_by_tag[tag] = cached
        return cached

    def events(self, root: HtmlElement) -> Iterator[MatchEvent]:
        evaluator = PathEvaluator()
        scope = GroupScope(self.entity.groups, evaluator.matches)
        visited: set[int] = set()
        stack: list[tuple[HtmlElement, bool]] = [(child, False) for child in reversed(root.elements)]
        count = 0

        while stack:
            element, leaving = stack.pop()
            if leaving:
                for _, group in scope.exit(element):
                    yield ScopeClosed(group, element)
                continue

            if self.stop_event is not None and self.stop_event.is_set():
                logger.info("Stop requested for entity %s after %d elements", self.entity.name, count)
                break

            key = id(element)
            if key in visited:
                raise TraversalError(
                    f"Element <{element.tag_name}> reached twice while traversing the document",
                    {"entity": self.entity.name, "depth": element.depth},
                )
            visited.add(key)
            count += 1

            if self.listener is not None:
                self.listener.element_visited(element, ParsingContext(self.entity.name))

            yield from self._enter(element, scope, evaluator)

            stack.append((element, True))
            stack.extend((child, False) for child in reversed(element.elements))

        for _, group in scope.close_all():
            yield ScopeClosed(group, None)
        logger.debug("Traversed %d elements for entity %s", count, self.entity.name)

    def _enter(self, element: HtmlElement, scope: GroupScope, evaluator: PathEvaluator) -> Iterator[MatchEvent]:
        for opened, group in scope.enter(element):
            yield ScopeOpened(group, element) if opened else ScopeClosed(group, element)

        for trigger in self.entity.triggers:
            if trigger.group is not None and not scope.is_open(trigger.group):
                continue
            if evaluator.matches(trigger.path, element):
                yield TriggerMatched(trigger, element)

        for field, paths in self._fields_for(element.tag_name):
            if field.group is not None and not scope.is_open(field.group):
                continue
            for path in paths:
                if not evaluator.matches(path, element):
                    continue
                value = path.content.read(element)
                if value is None:
                    continue
                if self.listener is not None:
                    self.listener.element_matched(element, ParsingContext(self.entity.name, field.name, path))
                yield FieldMatched(field, path, element, value)
                break
