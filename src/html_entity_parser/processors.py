"""Row processors: receive each emitted row of an entity as it is produced."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ProcessingContext:
    entity_name: str
    headers: tuple[str, ...]
    row_index: int = -1
    source: Optional[str] = None


class RowProcessor:
    """Base processor with no-op callbacks."""

    def process_started(self, context: ProcessingContext) -> None:
        pass

    def row_processed(self, row: list[Any], context: ProcessingContext) -> None:
        pass

    def process_ended(self, context: ProcessingContext) -> None:
        pass


class RowListProcessor(RowProcessor):
    """Collects rows and headers."""

    def __init__(self):
        self.headers: list[str] = []
        self.rows: list[list[Any]] = []

    def process_started(self, context: ProcessingContext) -> None:
        self.headers = list(context.headers)
        self.rows = []

    def row_processed(self, row: list[Any], context: ProcessingContext) -> None:
        self.rows.append(list(row))


class ColumnProcessor(RowProcessor):
    """Collects values column by column."""

    def __init__(self):
        self.headers: list[str] = []
        self.columns: dict[str, list[Any]] = {}

    def process_started(self, context: ProcessingContext) -> None:
        self.headers = list(context.headers)
        self.columns = {header: [] for header in self.headers}

    def row_processed(self, row: list[Any], context: ProcessingContext) -> None:
        for header, value in zip(self.headers, row):
            self.columns[header].append(value)

    def column(self, name: str) -> list[Any]:
        return self.columns[name]


def column_field(column: str, *, convert: Optional[Callable[[Any], Any]] = None, default: Any = None) -> Any:
    """Dataclass field bound to a row column, with an optional value conversion."""
    metadata: dict[str, Any] = {"column": column}
    if convert is not None:
        metadata["convert"] = convert
    return dataclasses.field(default=default, metadata=metadata)


class BeanListProcessor(RowProcessor, Generic[T]):
    """
    Converts rows into instances of a dataclass.

    A dataclass field reads the column named by its ``column`` metadata (see
    :func:`column_field`) or, without it, the column with the field's own
    name. Columns the row lacks leave the field at its default.
    """

    def __init__(self, bean_type: type[T]):
        if not dataclasses.is_dataclass(bean_type):
            raise TypeError(f"{bean_type!r} is not a dataclass")
        self.bean_type = bean_type
        self.beans: list[T] = []
        self._bindings: list[tuple[str, int, Optional[Callable[[Any], Any]]]] = []

    def process_started(self, context: ProcessingContext) -> None:
        self.beans = []
        self._bindings = []
        positions = {header: index for index, header in enumerate(context.headers)}
        for bean_field in dataclasses.fields(self.bean_type):
            column = bean_field.metadata.get("column", bean_field.name)
            if column in positions:
                self._bindings.append((bean_field.name, positions[column], bean_field.metadata.get("convert")))

    def row_processed(self, row: list[Any], context: ProcessingContext) -> None:
        values = {}
        for name, index, convert in self._bindings:
            value = row[index]
            if convert is not None and value is not None:
                value = convert(value)
            values[name] = value
        self.beans.append(self.bean_type(**values))
