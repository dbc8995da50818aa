"""Fluent builders for entity definitions: fields, reusable paths, groups and record triggers."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional, Union

import soupsieve
from soupsieve import SelectorSyntaxError

from html_entity_parser.content import ContentRule, ElementTransformation
from html_entity_parser.exceptions import ConfigurationError
from html_entity_parser.matching.path import FIRST, LAST, MatchStep, Path
from html_entity_parser.matching.steps import ElementMatcher, Step, make_step
from html_entity_parser.models import EntityModel, FieldModel, FieldRole, GroupModel, TriggerModel

if TYPE_CHECKING:
    from html_entity_parser.links import LinkFollower


def _positive(value: Optional[int], what: str) -> Optional[int]:
    if value is not None and (not isinstance(value, int) or value <= 0):
        raise ConfigurationError(f"{what} must be a positive integer, got {value!r}")
    return value


def _element_name(name: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError(f"Element name must be a non-empty string, got {name!r}")
    return name.strip().lower()


@dataclass
class _MatchDraft:
    tag: str = "*"
    css: Optional[soupsieve.SoupSieve] = None
    matcher: Optional[ElementMatcher] = None
    occurrence: Optional[Union[int, str]] = None
    steps: list[Step] = field(default_factory=list)

    def freeze(self) -> MatchStep:
        return MatchStep(
            tag=self.tag,
            css=self.css,
            matcher=self.matcher,
            occurrence=self.occurrence,
            steps=tuple(self.steps),
        )


class PathBuilder:
    """Accumulates match steps and their predicate steps; one per path under construction."""

    def __init__(self):
        self._drafts: list[_MatchDraft] = []
        self._negate_next = False

    def copy(self) -> "PathBuilder":
        duplicate = PathBuilder()
        duplicate._drafts = [copy.copy(d) for d in self._drafts]
        for draft in duplicate._drafts:
            draft.steps = list(draft.steps)
        duplicate._negate_next = self._negate_next
        return duplicate

    def __len__(self) -> int:
        return len(self._drafts)

    def match(
        self,
        tag: str = "*",
        *,
        css: Optional[soupsieve.SoupSieve] = None,
        matcher: Optional[ElementMatcher] = None,
        occurrence: Optional[Union[int, str]] = None,
    ) -> None:
        if self._negate_next:
            raise ConfigurationError("not_() must be followed by a filter, not by a match step")
        self._drafts.append(_MatchDraft(tag=tag, css=css, matcher=matcher, occurrence=occurrence))

    def negate_next(self) -> None:
        if not self._drafts:
            raise ConfigurationError("not_() must follow a match step")
        if self._negate_next:
            raise ConfigurationError("not_() cannot be applied twice in a row")
        self._negate_next = True

    def add_step(self, kind: str, **params: Any) -> None:
        if not self._drafts:
            raise ConfigurationError(f"'{kind}' must follow a match step")
        step = make_step(kind, negated=self._negate_next, **params)
        self._negate_next = False
        self._drafts[-1].steps.append(step)

    def build(self, prefix: tuple[MatchStep, ...] = ()) -> tuple[MatchStep, ...]:
        if self._negate_next:
            raise ConfigurationError("Dangling not_(): no filter follows it")
        return prefix + tuple(d.freeze() for d in self._drafts)


class ElementFilters:
    """Predicate steps applied to the element matched by the latest match step."""

    _path: PathBuilder

    def _add(self, kind: str, **params: Any):
        self._path.add_step(kind, **params)
        return self

    def not_(self):
        """Negate the next filter."""
        self._path.negate_next()
        return self

    # --- attributes ---

    def classes(self, css_class: str, *other_classes: str):
        return self._add("classes", names=(css_class,) + other_classes)

    def attribute(self, name: str, value: str):
        return self._add("attribute", attribute_name=name.lower(), attribute_value=value)

    def id(self, value: str):
        return self._add("id", attribute_name="id", attribute_value=value)

    def filter(self, matcher: ElementMatcher):
        if not callable(matcher):
            raise ConfigurationError(f"filter() expects a callable, got {matcher!r}")
        return self._add("filter", matcher=matcher)

    # --- text ---

    def with_text(self, text: str, *alternatives: str):
        return self._add("with_text", texts=(text,) + alternatives)

    def with_text_match_case(self, text: str, *alternatives: str):
        return self._add("with_text", texts=(text,) + alternatives, match_case=True)

    def with_exact_text(self, text: str, *alternatives: str):
        return self._add("with_text", texts=(text,) + alternatives, exact=True)

    def with_exact_text_match_case(self, text: str, *alternatives: str):
        return self._add("with_text", texts=(text,) + alternatives, exact=True, match_case=True)

    # --- neighbours ---

    def followed_by(self, element_name: str, distance: Optional[int] = None):
        return self._add("followed_by", name=_element_name(element_name), distance=_positive(distance, "distance"))

    def followed_immediately_by(self, element_name: str):
        return self.followed_by(element_name, 1)

    def preceded_by(self, element_name: str, distance: Optional[int] = None):
        return self._add("preceded_by", name=_element_name(element_name), distance=_positive(distance, "distance"))

    def preceded_immediately_by(self, element_name: str):
        return self.preceded_by(element_name, 1)

    def followed_by_text(self, text: str):
        return self._add("followed_by_text", texts=(text,))

    def preceded_by_text(self, text: str):
        return self._add("preceded_by_text", texts=(text,))

    # --- parents and descendants ---

    def child_of(self, element_name: str):
        return self._add("child_of", name=_element_name(element_name))

    def contained_by(self, element_name: str, depth_limit: Optional[int] = None):
        return self._add(
            "contained_by",
            name=_element_name(element_name),
            depth_limit=_positive(depth_limit, "depth_limit"),
        )

    def parent_of(self, element_name: str):
        return self._add("parent_of", name=_element_name(element_name))

    def containing(self, *element_names: str, depth_limit: Optional[int] = None):
        """
        With one name, move to a descendant with that name (optionally within
        `depth_limit` levels). With several names, only require that each of
        them exists somewhere below the current element.
        """
        if not element_names:
            raise ConfigurationError("containing() needs at least one element name")
        names = tuple(_element_name(n) for n in element_names)
        depth_limit = _positive(depth_limit, "depth_limit")
        if len(names) == 1:
            return self._add("containing", name=names[0], depth_limit=depth_limit)
        return self._add("containing_all", names=names, depth_limit=depth_limit)

    # --- tables ---

    def under_header(self, element_name: str):
        return self._add("under_header", name=_element_name(element_name))

    def under(self, element_name: str):
        return self._add("under", name=_element_name(element_name))

    def up_to(self, element_name: str):
        return self._add("up_to", name=_element_name(element_name))

    def up_to_header(self, element_name: str):
        return self._add("up_to_header", name=_element_name(element_name))

    def down_to(self, element_name: str):
        return self._add("down_to", name=_element_name(element_name))

    def down_to_footer(self, element_name: str):
        return self._add("down_to_footer", name=_element_name(element_name))


class ElementMatches:
    """Match steps: each starts a new element selection chained after the previous one."""

    _path: PathBuilder

    def match(self, element: Union[str, ElementMatcher], occurrence: Optional[int] = None):
        """Match an element by name (``"*"`` for any) or by a ``matcher(last_matched, element)`` callable."""
        occurrence = _positive(occurrence, "occurrence")
        if callable(element):
            self._path.match(matcher=element, occurrence=occurrence)
        else:
            self._path.match(_element_name(element), occurrence=occurrence)
        return self

    def match_first(self, element_name: str):
        self._path.match(_element_name(element_name), occurrence=FIRST)
        return self

    def match_last(self, element_name: str):
        self._path.match(_element_name(element_name), occurrence=LAST)
        return self

    def select(self, css_query: str):
        try:
            compiled = soupsieve.compile(css_query)
        except (SelectorSyntaxError, TypeError) as e:
            raise ConfigurationError(f"Invalid CSS query {css_query!r}: {e}") from e
        self._path.match(css=compiled)
        return self


class FieldContent:
    """Post-processing options of a field path once its content reader is chosen."""

    def __init__(self, field_path: "FieldPath"):
        self._field_path = field_path

    def transform(self, function: Callable[[Any], Any]) -> "FieldContent":
        """Apply `function` to the value; transforms run in the order they are added."""
        if not callable(function):
            raise ConfigurationError(f"transform() expects a callable, got {function!r}")
        self._field_path._transforms.append(function)
        return self

    def download(self, handler: Optional[Callable[[str], Any]] = None) -> "FieldContent":
        """Treat the value as a resource URL and replace it with what the download handler returns."""
        self._field_path._download = True
        self._field_path._download_handler = handler
        return self

    def follow_link(self) -> "LinkFollower":
        """Treat the value as a link; the returned follower configures the entities read from the linked page."""
        from html_entity_parser.links import LinkFollower

        follower = LinkFollower()
        self._field_path._link_follower = follower
        return follower


class ContentReaders:
    """Content readers ending a path; each one decides what the matched element contributes."""

    def _read(self, rule: ContentRule):
        raise NotImplementedError

    def get_text(self, siblings: int = 0):
        """Text of the element, plus the text of up to `siblings` following element siblings."""
        return self._read(ContentRule("text", count=max(siblings, 0)))

    def get_own_text(self):
        return self._read(ContentRule("own_text"))

    def get_preceding_text(self, siblings: int = 1):
        return self._read(ContentRule("preceding_text", count=siblings))

    def get_following_text(self, siblings: int = 1):
        return self._read(ContentRule("following_text", count=siblings))

    def get_attribute(self, name: str):
        return self._read(ContentRule("attribute", name=name.lower()))

    def get_heading_text(self, row: Optional[int] = None):
        """Header text of the element's column, or the text of the 1-indexed table `row` in that column."""
        return self._read(ContentRule("heading_text", count=_positive(row, "row") or 0))

    def get_text_above(self, rows: int = 1):
        return self._read(ContentRule("text_above", count=_positive(rows, "rows")))

    def get_text_above_matching(self, text: str, *alternatives: str):
        """Nearest cell above in the same column whose text matches one of the alternatives."""
        return self._read(ContentRule("text_above_matching", texts=(text,) + alternatives))

    def get_element(self, transformation: ElementTransformation):
        if not callable(transformation):
            raise ConfigurationError(f"get_element() expects a callable, got {transformation!r}")
        return self._read(ContentRule("element", transformation=transformation))


class FieldPath(ElementMatches, ElementFilters, ContentReaders):
    """The path of one field, ended by a content reader."""

    def __init__(self, field_name: str, prefix: Optional[PathBuilder] = None):
        self.field_name = field_name
        self._prefix = prefix.build() if prefix is not None else ()
        self._path = PathBuilder()
        self._content: Optional[ContentRule] = None
        self._transforms: list[Callable[[Any], Any]] = []
        self._download = False
        self._download_handler: Optional[Callable[[str], Any]] = None
        self._link_follower: Optional["LinkFollower"] = None

    def _read(self, rule: ContentRule) -> FieldContent:
        if self._content is not None:
            raise ConfigurationError(f"Field '{self.field_name}' already has a content reader")
        self._content = rule
        return FieldContent(self)

    def to_path(self) -> Path:
        match_steps = self._path.build(self._prefix)
        if not match_steps:
            raise ConfigurationError(f"Field '{self.field_name}' has no match step")
        return Path(
            match_steps=match_steps,
            content=self._content or ContentRule(),
            transforms=tuple(self._transforms),
            download=self._download,
            download_handler=self._download_handler,
            link_follower=self._link_follower,
        )


class RecordTrigger(ElementMatches, ElementFilters):
    """Path whose match forces the pending row to be emitted."""

    def __init__(self, prefix: Optional[PathBuilder] = None, group: Optional[str] = None):
        self._prefix = prefix.build() if prefix is not None else ()
        self._path = PathBuilder()
        self.group = group

    def to_model(self) -> TriggerModel:
        match_steps = self._path.build(self._prefix)
        if not match_steps:
            raise ConfigurationError("Record trigger has no match step")
        return TriggerModel(Path(match_steps), self.group)


class FieldAdder:
    """Declares fields (and record triggers) relative to a path prefix or a group."""

    _entity: "Entity"

    def _prefix(self) -> Optional[PathBuilder]:
        return None

    def _group_name(self) -> Optional[str]:
        return None

    def _new_field(self, name: str, role: FieldRole) -> FieldPath:
        return self._entity._register(name, role, FieldPath(name, self._prefix()), self._group_name())

    def add_field(self, name: str) -> FieldPath:
        return self._new_field(name, FieldRole.NORMAL)

    def add_persistent_field(self, name: str) -> FieldPath:
        return self._new_field(name, FieldRole.PERSISTENT)

    def add_silent_field(self, name: str) -> FieldPath:
        return self._new_field(name, FieldRole.SILENT)

    def add_silent_persistent_field(self, name: str) -> FieldPath:
        return self._new_field(name, FieldRole.SILENT_PERSISTENT)

    def add_record_trigger(self) -> RecordTrigger:
        trigger = RecordTrigger(self._prefix(), self._group_name())
        self._entity._triggers.append(trigger)
        return trigger


class PartialPath(ElementMatches, ElementFilters, FieldAdder):
    """
    A reusable path prefix. Fields added from it copy the prefix as it is at
    that moment; use `copy_path()` to branch without affecting later fields.
    """

    def __init__(self, entity: "Entity", path: Optional[PathBuilder] = None):
        self._entity = entity
        self._path = path or PathBuilder()

    def _prefix(self) -> Optional[PathBuilder]:
        if not len(self._path):
            raise ConfigurationError("Add a match step to the path before adding fields to it")
        return self._path

    def copy_path(self) -> "PartialPath":
        return PartialPath(self._entity, self._path.copy())


@dataclass
class _GroupDraft:
    name: str
    start: PathBuilder
    end: Optional[PathBuilder] = None
    end_on_closing: bool = False

    def to_model(self) -> GroupModel:
        start = self.start.build()
        end = self.end.build() if self.end is not None else None
        return GroupModel(
            name=self.name,
            start=Path(start),
            end=Path(end) if end is not None else None,
            end_on_closing=self.end_on_closing,
        )


class GroupStart:
    def __init__(self, entity: "Entity", name: str):
        self._entity = entity
        self._name = name

    def start_at(self, element_name: str) -> "PartialGroup":
        start = PathBuilder()
        start.match(_element_name(element_name))
        draft = _GroupDraft(self._name, start)
        self._entity._groups.append(draft)
        return PartialGroup(self._entity, draft)


class _GroupFields(FieldAdder):
    _draft: _GroupDraft

    def _group_name(self) -> Optional[str]:
        return self._draft.name

    @property
    def name(self) -> str:
        return self._draft.name


class PartialGroup(ElementFilters, _GroupFields):
    """A group with its start defined; filters refine the start element."""

    def __init__(self, entity: "Entity", draft: _GroupDraft):
        self._entity = entity
        self._draft = draft
        self._path = draft.start

    def end_at(self, element_name: str) -> "Group":
        """Close the group before the matching element is processed."""
        return self._end(element_name, closing=False)

    def end_at_closing(self, element_name: str) -> "Group":
        """Close the group once the matching element and its content have been processed."""
        return self._end(element_name, closing=True)

    def _end(self, element_name: str, closing: bool) -> "Group":
        if self._draft.end is not None:
            raise ConfigurationError(f"Group '{self._draft.name}' already has an end")
        end = PathBuilder()
        end.match(_element_name(element_name))
        self._draft.end = end
        self._draft.end_on_closing = closing
        return Group(self._entity, self._draft)


class Group(ElementFilters, _GroupFields):
    """A fully bounded group; filters refine the end element."""

    def __init__(self, entity: "Entity", draft: _GroupDraft):
        self._entity = entity
        self._draft = draft
        self._path = draft.end


@dataclass
class _FieldSpec:
    role: FieldRole
    group: Optional[str] = None
    paths: list[FieldPath] = field(default_factory=list)
    constant: Any = None


class Entity(FieldAdder):
    """Definition of one entity: its fields, groups and record triggers."""

    def __init__(self, name: str):
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError(f"Entity name must be a non-empty string, got {name!r}")
        self.name = name.strip()
        self._entity = self
        self._fields: dict[str, _FieldSpec] = {}
        self._groups: list[_GroupDraft] = []
        self._triggers: list[RecordTrigger] = []
        self._group_count = 0

    def __repr__(self) -> str:
        return f"Entity({self.name!r}, fields={self.field_names})"

    @property
    def field_names(self) -> list[str]:
        return list(self._fields)

    def _register(self, name: str, role: FieldRole, path: FieldPath, group: Optional[str]) -> FieldPath:
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError(f"Field name must be a non-empty string, got {name!r}")
        spec = self._fields.get(name)
        if spec is None:
            spec = _FieldSpec(role, group)
            self._fields[name] = spec
        elif spec.role is not role or spec.group != group:
            raise ConfigurationError(
                f"Field '{name}' of entity '{self.name}' is already declared as {spec.role.value}"
                + (f" in group '{spec.group}'" if spec.group else ""),
                {"entity": self.name, "field": name},
            )
        spec.paths.append(path)
        return path

    def add_constant_field(self, name: str, value: Any) -> None:
        if name in self._fields:
            raise ConfigurationError(f"Field '{name}' of entity '{self.name}' is already declared")
        self._fields[name] = _FieldSpec(FieldRole.CONSTANT, constant=value)

    def remove_field(self, name: str) -> None:
        if name not in self._fields:
            raise ConfigurationError(f"Entity '{self.name}' has no field '{name}'")
        del self._fields[name]

    def new_path(self) -> PartialPath:
        return PartialPath(self)

    def new_group(self) -> GroupStart:
        self._group_count += 1
        return GroupStart(self, f"{self.name}#group{self._group_count}")

    def build(self) -> EntityModel:
        """Freeze the current definition into an immutable :class:`EntityModel`."""
        fields = tuple(
            FieldModel(
                name=name,
                role=spec.role,
                paths=tuple(p.to_path() for p in spec.paths),
                constant=spec.constant,
                group=spec.group,
            )
            for name, spec in self._fields.items()
        )
        return EntityModel(
            name=self.name,
            fields=fields,
            groups=tuple(draft.to_model() for draft in self._groups),
            triggers=tuple(trigger.to_model() for trigger in self._triggers),
        )
