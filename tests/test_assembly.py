"""Tests for row assembly: field roles, record triggers and value preparation."""

from __future__ import annotations

import logging

import pytest

from html_entity_parser import EntityList, HtmlParser, ParserSettings, RowProcessingError
from html_entity_parser.assembly import RecordAssembler
from html_entity_parser.builders import Entity


def _assembler(first_role: str = "add_field", **options):
    entity = Entity("e")
    getattr(entity, first_role)("a").match("p").get_text()
    entity.add_field("b").match("span").get_text()
    model = entity.build()
    a, b = model.fields
    return RecordAssembler(model, **options), a, b


def _values(assembler: RecordAssembler) -> list[list]:
    return [row.values for row in assembler.finish()]


def test_normal_field_written_twice_emits_pending_row() -> None:
    assembler, a, b = _assembler()
    assembler.write(a, a.paths[0], "1")
    assembler.write(b, b.paths[0], "x")
    assembler.write(a, a.paths[0], "2")

    assert _values(assembler) == [["1", "x"], ["2", None]]


def test_persistent_value_is_carried_into_next_rows() -> None:
    assembler, a, b = _assembler("add_persistent_field")
    assembler.write(a, a.paths[0], "1")
    assembler.write(b, b.paths[0], "x")
    assembler.write(b, b.paths[0], "y")

    assert _values(assembler) == [["1", "x"], ["1", "y"]]


def test_persistent_field_rewritten_after_emission_emits_first() -> None:
    assembler, a, b = _assembler("add_persistent_field")
    assembler.write(a, a.paths[0], "A")
    assembler.write(b, b.paths[0], "x")
    assembler.write(b, b.paths[0], "y")
    assembler.write(a, a.paths[0], "B")
    assembler.write(b, b.paths[0], "z")

    assert _values(assembler) == [["A", "x"], ["A", "y"], ["B", "z"]]


def test_carried_persistent_value_alone_is_not_a_row() -> None:
    assembler, a, b = _assembler("add_persistent_field")
    assembler.write(a, a.paths[0], "A")
    assembler.write(b, b.paths[0], "x")
    assembler.trigger()
    assembler.trigger()
    assembler.write(a, a.paths[0], "B")

    assert _values(assembler) == [["A", "x"], ["B", None]]


def test_section_headers_stay_with_their_items() -> None:
    entities = EntityList()
    entity = entities.configure_entity("e")
    entity.add_persistent_field("section").match("h2").get_text()
    entity.add_field("item").match("p").get_text()

    html = "<h2>A</h2><p>x</p><p>y</p><h2>B</h2><p>z</p>"
    rows = HtmlParser(entities, ParserSettings(thread_count=1)).parse(html)["e"].rows

    assert rows == [["A", "x"], ["A", "y"], ["B", "z"]]


def test_silent_field_overwrites_without_emitting() -> None:
    assembler, a, b = _assembler("add_silent_field")
    assembler.write(a, a.paths[0], "1")
    assembler.write(b, b.paths[0], "x")
    assembler.write(a, a.paths[0], "2")

    assert _values(assembler) == [["2", "x"]]


def test_silent_write_alone_still_produces_a_row() -> None:
    assembler, a, _ = _assembler("add_silent_field")
    assembler.write(a, a.paths[0], "1")

    assert _values(assembler) == [["1", None]]


def test_trigger_without_touched_fields_is_a_no_op() -> None:
    assembler, a, _ = _assembler()
    assembler.trigger()
    assembler.write(a, a.paths[0], "1")
    assembler.trigger()
    assembler.trigger()

    assert _values(assembler) == [["1", None]]


def test_values_are_trimmed_and_empty_values_replaced() -> None:
    assembler, a, b = _assembler(empty_value="<empty>", null_value="-")
    assembler.write(a, a.paths[0], "  1 ")
    assembler.write(b, b.paths[0], "   ")

    assert _values(assembler) == [["1", "<empty>"]]

    assembler, a, _ = _assembler(trim_values=False, null_value="-")
    assembler.write(a, a.paths[0], " 1 ")

    assert _values(assembler) == [[" 1 ", "-"]]


def _number_entities() -> EntityList:
    entities = EntityList()
    entities.configure_entity("numbers").add_field("n").match("p").get_text().transform(int)
    return entities


def test_transform_error_is_reported_with_its_row() -> None:
    errors: list[RowProcessingError] = []
    settings = ParserSettings(thread_count=1, error_handler=errors.append)

    results = HtmlParser(_number_entities(), settings).parse("<p>abc</p><p>2</p>")

    assert results["numbers"].rows == [[None], [2]]
    assert len(errors) == 1
    assert errors[0].entity_name == "numbers"
    assert errors[0].field_name == "n"
    assert errors[0].row == [None]
    assert isinstance(errors[0].cause, ValueError)


def test_transform_error_is_logged_without_handler(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="html_entity_parser"):
        results = HtmlParser(_number_entities(), ParserSettings(thread_count=1)).parse("<p>abc</p>")

    assert results["numbers"].rows == [[None]]
    assert "Transformation of field 'n' failed" in caplog.text


def test_error_handler_can_stop_the_run() -> None:
    def fail(error: RowProcessingError) -> None:
        raise error

    settings = ParserSettings(thread_count=1, error_handler=fail)

    with pytest.raises(RowProcessingError):
        HtmlParser(_number_entities(), settings).parse("<p>abc</p><p>2</p>")


def test_unmatched_fields_use_null_value() -> None:
    entities = EntityList()
    entity = entities.configure_entity("e")
    entity.add_field("a").match("p").get_text()
    entity.add_field("b").match("span").get_text()

    results = HtmlParser(entities, ParserSettings(thread_count=1, null_value="-")).parse("<p>1</p>")

    assert results["e"].rows == [["1", "-"]]
