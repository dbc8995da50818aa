"""Group scope tracking: which group occurrences are open at the current element."""

from __future__ import annotations

from typing import Callable

from html_entity_parser.matching.path import Path
from html_entity_parser.models import GroupModel
from html_entity_parser.tree import HtmlElement

PathTest = Callable[[Path, HtmlElement], bool]


class GroupScope:
    """
    Opens and closes group occurrences as the traversal enters and exits elements.

    `enter()` and `exit()` return the transitions as ``(opened, group)``
    tuples in the order they happen. `end_at` closes an occurrence before
    the matching element is processed; `end_at_closing` closes it after the
    matching element's subtree has been visited, including an end element
    that encloses the start element.
    """

    def __init__(self, groups: tuple[GroupModel, ...], matches: PathTest):
        self._groups = groups
        self._matches = matches
        self._open: list[GroupModel] = []
        self._closing_at: dict[str, set[int]] = {}

    def is_open(self, group_name: str) -> bool:
        return any(group.name == group_name for group in self._open)

    @property
    def open_groups(self) -> list[GroupModel]:
        return list(self._open)

    def enter(self, element: HtmlElement) -> list[tuple[bool, GroupModel]]:
        transitions: list[tuple[bool, GroupModel]] = []

        for group in self._groups:
            if (
                group.end is not None
                and not group.end_on_closing
                and self.is_open(group.name)
                and self._matches(group.end, element)
            ):
                transitions.append(self._close(group))

        for group in self._groups:
            if self._matches(group.start, element):
                if self.is_open(group.name):
                    transitions.append(self._close(group))
                transitions.append(self._open_group(group, element))

        for group in self._groups:
            if group.end is not None and group.end_on_closing and self.is_open(group.name):
                if self._matches(group.end, element):
                    self._closing_at[group.name].add(id(element))

        return transitions

    def exit(self, element: HtmlElement) -> list[tuple[bool, GroupModel]]:
        transitions: list[tuple[bool, GroupModel]] = []
        for group in reversed(self._open):
            if id(element) in self._closing_at.get(group.name, ()):
                transitions.append((False, group))
        for _, group in transitions:
            self._close(group)
        return transitions

    def close_all(self) -> list[tuple[bool, GroupModel]]:
        """Close every open occurrence, innermost first."""
        return [self._close(group) for group in reversed(list(self._open))]

    def _open_group(self, group: GroupModel, element: HtmlElement) -> tuple[bool, GroupModel]:
        self._open.append(group)
        self._closing_at[group.name] = set()
        if group.end is not None and group.end_on_closing:
            # the occurrence also ends with the nearest enclosing end element
            for candidate in (element, *element.ancestors()):
                if self._matches(group.end, candidate):
                    self._closing_at[group.name].add(id(candidate))
                    break
        return True, group

    def _close(self, group: GroupModel) -> tuple[bool, GroupModel]:
        self._open = [g for g in self._open if g.name != group.name]
        self._closing_at.pop(group.name, None)
        return False, group
