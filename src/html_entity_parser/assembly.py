"""Record assembly: turns match events into rows according to field roles, triggers and groups."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from html_entity_parser.exceptions import DownloadError, RowProcessingError
from html_entity_parser.logger import get_module_logger
from html_entity_parser.matching.matcher import FieldMatched, MatchEvent, ScopeClosed, ScopeOpened, TriggerMatched
from html_entity_parser.matching.path import Path
from html_entity_parser.models import EntityModel, FieldModel, FieldRole, GroupModel

logger = get_module_logger("assembly")

ErrorHandler = Callable[[RowProcessingError], None]
Downloader = Callable[[str], Any]


@dataclass
class LinkRequest:
    """A value of a `follow_link()` path waiting to be fetched once its row is emitted."""

    field_name: str
    url: str
    follower: Any


@dataclass
class AssembledRow:
    values: list[Any]
    links: list[LinkRequest] = field(default_factory=list)


@dataclass
class _PendingRow:
    group: Optional[str]
    values: dict[str, Any] = field(default_factory=dict)
    touched: set[str] = field(default_factory=set)
    # persistent values kept from an emitted row or seeded from the enclosing row
    carried: set[str] = field(default_factory=set)
    errors: list[RowProcessingError] = field(default_factory=list)
    links: list[LinkRequest] = field(default_factory=list)


class RecordAssembler:
    """
    Accumulates field values into pending rows and emits them.

    A normal or persistent field written twice emits the pending row before
    taking the new value. So does a persistent field rewritten after its
    value was carried over, when the row already has other fields touched.
    Silent fields overwrite in place. Persistent values survive emission.
    Each open group occurrence has its own pending row, seeded with the
    persistent values of the enclosing one.
    """

    def __init__(
        self,
        entity: EntityModel,
        *,
        null_value: Any = None,
        empty_value: Any = "",
        trim_values: bool = True,
        downloader: Optional[Downloader] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.entity = entity
        self.null_value = null_value
        self.empty_value = empty_value
        self.trim_values = trim_values
        self.downloader = downloader
        self.error_handler = error_handler
        self.rows: list[AssembledRow] = []
        self._fields = {f.name: f for f in entity.fields}
        self._root = _PendingRow(None)
        self._open: list[_PendingRow] = []

    # --- event dispatch ---

    def handle(self, event: MatchEvent) -> None:
        if isinstance(event, FieldMatched):
            self.write(event.field, event.path, event.value)
        elif isinstance(event, TriggerMatched):
            self.trigger(event.trigger.group)
        elif isinstance(event, ScopeOpened):
            self.open_group(event.group)
        elif isinstance(event, ScopeClosed):
            self.close_group(event.group)

    def finish(self) -> list[AssembledRow]:
        """Flush open group occurrences (innermost first), then the entity-level pending row."""
        for pending in reversed(list(self._open)):
            self.close_group(self.entity.group(pending.group))
        self._emit(self._root)
        return self.rows

    # --- operations ---

    def open_group(self, group: GroupModel) -> None:
        enclosing = self._open[-1] if self._open else self._root
        seeded = {
            name: value
            for name, value in enclosing.values.items()
            if self._fields[name].role.persistent
        }
        self._open.append(_PendingRow(group.name, values=seeded, carried=set(seeded)))

    def close_group(self, group: GroupModel) -> None:
        for position in range(len(self._open) - 1, -1, -1):
            pending = self._open[position]
            if pending.group != group.name:
                continue
            self._emit(pending)
            del self._open[position]
            enclosing = self._open[position - 1] if position > 0 else self._root
            for name, value in pending.values.items():
                owner = self._fields[name]
                if owner.group is None and owner.role.persistent:
                    enclosing.values[name] = value
                    if name not in enclosing.touched:
                        enclosing.carried.add(name)
            return

    def trigger(self, group_name: Optional[str] = None) -> None:
        pending = self._target(group_name)
        if pending is not None:
            self._emit(pending)

    def write(self, field_model: FieldModel, path: Path, raw: Any) -> None:
        pending = self._target(field_model.group)
        if pending is None:
            logger.debug("Dropping value of %s: group %s is not open", field_model.name, field_model.group)
            return
        value, errors = self._prepare(field_model, path, raw)
        if not field_model.role.silent and (
            field_model.name in pending.touched or (field_model.name in pending.carried and pending.touched)
        ):
            self._emit(pending)
        pending.carried.discard(field_model.name)
        pending.values[field_model.name] = value
        pending.touched.add(field_model.name)
        pending.errors.extend(errors)
        if path.link_follower is not None and isinstance(value, str) and value:
            pending.links = [link for link in pending.links if link.field_name != field_model.name]
            pending.links.append(LinkRequest(field_model.name, value, path.link_follower))

    # --- internals ---

    def _target(self, group_name: Optional[str]) -> Optional[_PendingRow]:
        if group_name is None:
            return self._open[-1] if self._open else self._root
        for pending in reversed(self._open):
            if pending.group == group_name:
                return pending
        return None

    def _prepare(self, field_model: FieldModel, path: Path, value: Any) -> tuple[Any, list[RowProcessingError]]:
        errors: list[RowProcessingError] = []
        if isinstance(value, str):
            if self.trim_values:
                value = value.strip()
            if value == "":
                value = self.empty_value

        for transform in path.transforms:
            try:
                value = transform(value)
            except Exception as e:
                errors.append(
                    RowProcessingError(
                        f"Transformation of field '{field_model.name}' failed: {e}",
                        entity_name=self.entity.name,
                        field_name=field_model.name,
                        cause=e,
                        details={"value": value, "path": path.describe()},
                    )
                )
                return self.null_value, errors

        if path.download and isinstance(value, str) and value:
            handler = path.download_handler or self.downloader
            if handler is not None:
                try:
                    value = handler(value)
                except Exception as e:
                    errors.append(
                        DownloadError(
                            f"Download of '{value}' for field '{field_model.name}' failed: {e}",
                            entity_name=self.entity.name,
                            field_name=field_model.name,
                            cause=e,
                            details={"url": value},
                        )
                    )
        return value, errors

    def _row_values(self, pending: _PendingRow) -> list[Any]:
        values = []
        for field_model in self.entity.fields:
            if field_model.role is FieldRole.CONSTANT:
                values.append(field_model.constant)
            else:
                values.append(pending.values.get(field_model.name, self.null_value))
        return values

    def _emit(self, pending: _PendingRow) -> None:
        if not pending.touched:
            return
        row = AssembledRow(self._row_values(pending), pending.links)
        self.rows.append(row)
        errors = pending.errors

        pending.values = {
            name: value for name, value in pending.values.items() if self._fields[name].role.persistent
        }
        pending.carried = set(pending.values)
        pending.touched = set()
        pending.errors = []
        pending.links = []

        for error in errors:
            error.row = row.values
            self.report(error)

    def report(self, error: RowProcessingError) -> None:
        if self.error_handler is not None:
            self.error_handler(error)
        else:
            logger.warning("%s (entity=%s, row=%s)", error.message, error.entity_name, error.row)
