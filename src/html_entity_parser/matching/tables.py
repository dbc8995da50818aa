"""Column-aligned table navigation over the element tree."""

from __future__ import annotations

from typing import Iterator, Optional

from html_entity_parser.tree import HtmlElement

CELL_TAGS = {"td", "th"}
SECTION_TAGS = {"thead", "tbody", "tfoot"}


def enclosing_cell(element: HtmlElement) -> Optional[HtmlElement]:
    """The element itself when it is a cell, otherwise its nearest `td`/`th` ancestor."""
    if element.tag_name in CELL_TAGS:
        return element
    for ancestor in element.ancestors():
        if ancestor.tag_name in CELL_TAGS:
            return ancestor
        if ancestor.tag_name == "table":
            return None
    return None


def table_of(cell: HtmlElement) -> Optional[HtmlElement]:
    for ancestor in cell.ancestors():
        if ancestor.tag_name == "table":
            return ancestor
    return None


def table_rows(table: HtmlElement) -> list[HtmlElement]:
    """Rows of a table in document order, without rows of nested tables."""
    rows: list[HtmlElement] = []
    for child in table.elements:
        if child.tag_name == "tr":
            rows.append(child)
        elif child.tag_name in SECTION_TAGS:
            rows.extend(row for row in child.elements if row.tag_name == "tr")
    return rows


def _span(cell: HtmlElement) -> int:
    try:
        return max(1, int(cell.attribute("colspan") or 1))
    except ValueError:
        return 1


def column_of(cell: HtmlElement) -> int:
    """Zero-based column index of a cell, honouring `colspan` of earlier cells."""
    column = 0
    for previous in cell.preceding_elements():
        if previous.tag_name in CELL_TAGS:
            column += _span(previous)
    return column


def cell_at(row: HtmlElement, column: int) -> Optional[HtmlElement]:
    """The cell of `row` covering `column`, if any."""
    position = 0
    for cell in row.elements:
        if cell.tag_name not in CELL_TAGS:
            continue
        span = _span(cell)
        if position <= column < position + span:
            return cell
        position += span
    return None


def is_header_row(row: HtmlElement) -> bool:
    if row.parent is not None and row.parent.tag_name == "thead":
        return True
    cells = [c for c in row.elements if c.tag_name in CELL_TAGS]
    return bool(cells) and all(c.tag_name == "th" for c in cells)


def is_footer_row(row: HtmlElement) -> bool:
    if row.parent is not None and row.parent.tag_name == "tfoot":
        return True
    cells = [c for c in row.elements if c.tag_name in CELL_TAGS]
    return bool(cells) and all(c.tag_name == "th" for c in cells)


class TablePosition:
    """Where a cell sits inside its table: the rows, its row index and column."""

    __slots__ = ("cell", "table", "rows", "row_index", "column")

    def __init__(self, cell: HtmlElement, table: HtmlElement, rows: list[HtmlElement], row_index: int):
        self.cell = cell
        self.table = table
        self.rows = rows
        self.row_index = row_index
        self.column = column_of(cell)

    @classmethod
    def locate(cls, element: HtmlElement) -> Optional["TablePosition"]:
        cell = enclosing_cell(element)
        if cell is None or cell.parent is None or cell.parent.tag_name != "tr":
            return None
        table = table_of(cell)
        if table is None:
            return None
        rows = table_rows(table)
        for index, row in enumerate(rows):
            if row is cell.parent:
                return cls(cell, table, rows, index)
        return None

    def cells_above(self) -> Iterator[HtmlElement]:
        """Cells in the same column of the rows above, nearest first."""
        for row in reversed(self.rows[: self.row_index]):
            cell = cell_at(row, self.column)
            if cell is not None:
                yield cell

    def cells_below(self) -> Iterator[HtmlElement]:
        for row in self.rows[self.row_index + 1:]:
            cell = cell_at(row, self.column)
            if cell is not None:
                yield cell

    def header_cells(self) -> Iterator[HtmlElement]:
        """Cells in the same column of the header rows above this cell, nearest first."""
        above = self.rows[: self.row_index]
        headers = [row for row in above if is_header_row(row)]
        if not headers and above:
            headers = above[:1]
        for row in reversed(headers):
            cell = cell_at(row, self.column)
            if cell is not None:
                yield cell

    def footer_cells(self) -> Iterator[HtmlElement]:
        for row in self.rows[self.row_index + 1:]:
            if not is_footer_row(row):
                continue
            cell = cell_at(row, self.column)
            if cell is not None:
                yield cell

    def cell_in_row(self, row_number: int) -> Optional[HtmlElement]:
        """Cell of the same column in the 1-indexed row `row_number` of the table."""
        if row_number < 1 or row_number > len(self.rows):
            return None
        return cell_at(self.rows[row_number - 1], self.column)
