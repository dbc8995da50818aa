"""Tests for column-aligned table navigation."""

from __future__ import annotations

from html_entity_parser.matching.tables import TablePosition, cell_at, column_of, is_header_row, table_rows
from html_entity_parser.tree import parse_tree

HTML = """
<table>
  <thead>
    <tr><th colspan="2">Person</th><th>Score</th></tr>
  </thead>
  <tbody>
    <tr><td>Ann</td><td><span>Smith</span></td><td>10</td></tr>
    <tr><td>Bob</td><td>Jones</td><td>20</td></tr>
  </tbody>
  <tfoot>
    <tr><td>Total</td><td></td><td>30</td></tr>
  </tfoot>
</table>
"""


def _table():
    root = parse_tree(HTML)
    return root, root.select("table")[0]


def test_rows_include_all_sections_in_order() -> None:
    _, table = _table()
    rows = table_rows(table)
    assert len(rows) == 4
    assert is_header_row(rows[0]) is True
    assert is_header_row(rows[1]) is False


def test_columns_honour_colspan() -> None:
    _, table = _table()
    header, first, _, _ = table_rows(table)
    score_header = header.elements[1]
    assert column_of(score_header) == 2
    assert cell_at(header, 0) is header.elements[0]
    assert cell_at(header, 1) is header.elements[0]
    assert cell_at(first, 2).text() == "10"


def test_locate_from_element_inside_a_cell() -> None:
    root, _ = _table()
    span = root.select("span")[0]
    position = TablePosition.locate(span)
    assert position is not None
    assert position.cell.tag_name == "td"
    assert position.row_index == 1
    assert position.column == 1


def test_cells_above_and_below_nearest_first() -> None:
    root, _ = _table()
    bob_score = root.select("tbody tr")[1].elements[2]
    position = TablePosition.locate(bob_score)
    assert [c.text() for c in position.cells_above()] == ["10", "Score"]
    assert [c.text() for c in position.cells_below()] == ["30"]


def test_header_and_footer_cells() -> None:
    root, _ = _table()
    jones = root.select("tbody tr")[1].elements[1]
    position = TablePosition.locate(jones)
    assert [c.text() for c in position.header_cells()] == ["Person"]
    assert [c.text() for c in position.footer_cells()] == [""]
    assert position.cell_in_row(2).text() == "Smith"
    assert position.cell_in_row(9) is None


def test_first_row_is_header_when_table_has_no_header_rows() -> None:
    root = parse_tree("<table><tr><td>a</td></tr><tr><td>b</td></tr><tr><td>c</td></tr></table>")
    last = root.select("td")[2]
    assert [c.text() for c in TablePosition.locate(last).header_cells()] == ["a"]


def test_nested_tables_are_not_mixed() -> None:
    root = parse_tree(
        "<table><tr><td>outer</td></tr><tr><td><table><tr><td>inner</td></tr></table></td></tr></table>"
    )
    inner = root.select("td")[2]
    assert inner.text() == "inner"
    position = TablePosition.locate(inner)
    assert list(position.cells_above()) == []


def test_locate_outside_table_is_none() -> None:
    root = parse_tree("<div><p>x</p></div>")
    assert TablePosition.locate(root.select("p")[0]) is None
