"""Tests for group boundaries and per-occurrence rows."""

from __future__ import annotations

from html_entity_parser import EntityList, HtmlParser, ParserSettings
from html_entity_parser.matching.path import PathEvaluator
from html_entity_parser.matching.scope import GroupScope
from html_entity_parser.tree import parse_tree


def _rows(entities: EntityList, html: str) -> list[list]:
    return HtmlParser(entities, ParserSettings(thread_count=1)).parse(html)["e"].rows


def test_end_at_excludes_the_end_element() -> None:
    entities = EntityList()
    group = entities.configure_entity("e").new_group().start_at("section").end_at("footer")
    group.add_field("v").match("footer").get_text()

    assert _rows(entities, "<section>a</section><footer>f</footer>") == []


def test_end_at_closing_includes_the_end_element() -> None:
    entities = EntityList()
    group = entities.configure_entity("e").new_group().start_at("section").end_at_closing("footer")
    group.add_field("v").match("footer").get_text()

    assert _rows(entities, "<section>a</section><footer>f</footer>") == [["f"]]


def test_fields_outside_an_open_group_are_ignored() -> None:
    entities = EntityList()
    group = entities.configure_entity("e").new_group().start_at("h2").end_at("hr")
    group.add_field("v").match("p").get_text()

    html = "<p>zero</p><h2>S</h2><p>one</p><hr><p>two</p>"

    assert _rows(entities, html) == [["one"]]


def test_new_start_reopens_and_group_without_end_runs_to_document_end() -> None:
    entities = EntityList()
    group = entities.configure_entity("e").new_group().start_at("h2")
    group.add_field("title").match("h2").get_text()
    group.add_field("v").match("p").get_text()

    html = "<h2>A</h2><p>1</p><h2>B</h2><p>2</p>"

    assert _rows(entities, html) == [["A", "1"], ["B", "2"]]


def test_end_at_closing_on_an_enclosing_element() -> None:
    entities = EntityList()
    group = entities.configure_entity("e").new_group().start_at("h1").end_at_closing("div")
    group.add_field("v").match("p").get_text()

    html = "<div><h1>t</h1><p>inside</p></div><p>outside</p>"

    assert _rows(entities, html) == [["inside"]]


def test_enclosing_section_closes_each_heading_group() -> None:
    entities = EntityList()
    group = entities.configure_entity("e").new_group().start_at("h2").end_at_closing("section")
    group.add_field("title").match("h2").get_text()
    group.add_field("v").match("p").get_text()

    html = "<section><h2>A</h2><p>1</p></section><p>loose</p><section><h2>B</h2><p>2</p></section>"

    assert _rows(entities, html) == [["A", "1"], ["B", "2"]]


def test_start_filters_refine_the_start_element() -> None:
    entities = EntityList()
    group = entities.configure_entity("e").new_group().start_at("div").classes("item").end_at_closing("div")
    group.add_field("v").match("p").get_text()

    html = '<div><p>skip</p></div><div class="item"><p>keep</p></div>'

    assert _rows(entities, html) == [["keep"]]


def test_persistent_values_flow_back_and_seed_the_next_occurrence() -> None:
    entities = EntityList()
    entity = entities.configure_entity("e")
    entity.add_persistent_field("section").match("h1").get_text()
    group = entity.new_group().start_at("article").end_at_closing("article")
    group.add_field("title").match("h2").get_text()

    html = "<article><h1>Top</h1><h2>x</h2></article><article><h2>y</h2></article>"

    assert _rows(entities, html) == [["Top", "x"], ["Top", "y"]]


def test_group_trigger_emits_the_occurrence_row() -> None:
    entities = EntityList()
    group = entities.configure_entity("e").new_group().start_at("div").end_at_closing("div")
    group.add_field("v").match("p").get_text()
    group.add_field("w").match("b").get_text()
    group.add_record_trigger().match("p")

    html = "<div><p>1</p><b>x</b><p>2</p></div>"

    assert _rows(entities, html) == [["1", "x"], ["2", None]]


def test_group_names_are_unique_per_entity() -> None:
    entities = EntityList()
    entity = entities.configure_entity("e")
    first = entity.new_group().start_at("a")
    second = entity.new_group().start_at("b")

    assert first.name != second.name
    assert [g.name for g in entity.build().groups] == [first.name, second.name]


def test_scope_reports_transitions_in_order() -> None:
    entities = EntityList()
    entity = entities.configure_entity("e")
    entity.new_group().start_at("section").end_at("hr")
    model = entity.build()
    root = parse_tree("<section>s</section><hr><section>t</section>")
    first, hr, second = root.select("body")[0].elements
    scope = GroupScope(model.groups, PathEvaluator().matches)

    assert scope.enter(first) == [(True, model.groups[0])]
    assert scope.is_open(model.groups[0].name)
    assert scope.enter(hr) == [(False, model.groups[0])]
    assert scope.enter(second) == [(True, model.groups[0])]
    assert scope.close_all() == [(False, model.groups[0])]
    assert scope.open_groups == []
