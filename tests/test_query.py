"""Tests for ad-hoc queries on a parsed element tree."""

from __future__ import annotations

import pytest

from html_entity_parser import ConfigurationError, parse_tree

HTML = """
<div id="list">
  <h2>Fruit</h2>
  <p class="item">apple</p>
  <p class="item">avocado</p>
  <p>banana</p>
</div>
<p>outside</p>
"""


def test_get_values_from_subtree_only() -> None:
    root = parse_tree(HTML)
    div = root.select("#list")[0]

    assert div.query().match("p").get_text().get_values() == ["apple", "avocado", "banana"]
    assert root.query().match("p").with_text("a").get_text().get_values() == ["apple", "avocado"]


def test_get_value_and_transform() -> None:
    root = parse_tree(HTML)

    assert root.query().match("p").classes("item").get_text().transform(str.upper).get_value() == "APPLE"
    assert root.query().match("table").get_text().get_value() is None


def test_chained_query_and_elements() -> None:
    root = parse_tree(HTML)

    elements = root.query().match("h2").match("p").get_elements()

    assert [e.text() for e in elements] == ["apple", "avocado", "banana"]
    assert root.query().match_last("p").get_text().get_values() == ["banana", "outside"]
    assert root.query().match_first("p").get_element().text() == "apple"
    assert root.query().match("p").get_element(lambda e: e.attribute("class")) == "item"


def test_query_without_match_step_fails() -> None:
    with pytest.raises(ConfigurationError):
        parse_tree(HTML).query().get_elements()
