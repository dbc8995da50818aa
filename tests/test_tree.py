"""Tests for the read-only element tree built over BeautifulSoup."""

from __future__ import annotations

from html_entity_parser.tree import COMMENT, DATA, TEXT, parse_tree


HTML = """
<!DOCTYPE html>
<html><body>
  <div id="main" class="box wide">
    <h1>Title</h1>
    <p>Hello <b>big</b> world</p>
    <!-- note -->
    <script>var a = 1;</script>
    <p>Second</p>
  </div>
</body></html>
"""


def _div():
    root = parse_tree(HTML)
    return root, root.select("div#main")[0]


def test_doctype_and_whitespace_nodes_are_not_kept() -> None:
    root, div = _div()
    assert [child.tag_name for child in root.children] == ["html"]
    assert all(child.tag_name != TEXT for child in div.children)


def test_attributes_and_classes() -> None:
    _, div = _div()
    assert div.id == "main"
    assert div.classes == {"box", "wide"}
    assert div.attribute("CLASS") == "box wide"
    assert div.attribute("missing") is None


def test_text_excludes_script_and_comment_content() -> None:
    _, div = _div()
    assert div.text() == "Title Hello big world Second"
    paragraph = div.elements[1]
    assert paragraph.text() == "Hello big world"
    assert paragraph.own_text() == "Hello world"


def test_data_and_comment_nodes() -> None:
    _, div = _div()
    kinds = [child.tag_name for child in div.children if not child.is_element]
    assert COMMENT in kinds
    script = div.select("script")[0]
    assert script.children[0].tag_name == DATA
    assert script.data() == "var a = 1;"


def test_sibling_navigation_is_nearest_first() -> None:
    _, div = _div()
    h1, first_p, script, second_p = (e for e in div.elements if e.tag_name in ("h1", "p", "script"))
    assert first_p.next_element_sibling() is script
    assert second_p.previous_element_sibling() is script
    assert [e.tag_name for e in second_p.preceding_elements()] == ["script", "p", "h1"]
    assert [e.tag_name for e in h1.following_elements()] == ["p", "script", "p"]
    assert second_p.same_named_siblings() == [first_p, second_p]


def test_ancestors_and_descendants() -> None:
    root, div = _div()
    bold = div.select("b")[0]
    assert [a.tag_name for a in bold.ancestors()] == ["p", "div", "body", "html"]
    assert div.contains(bold)
    assert not bold.contains(div)
    assert [e.tag_name for e in div.iter_descendants(depth_limit=1)] == ["h1", "p", "script", "p"]
    assert "b" in [e.tag_name for e in div.iter_descendants()]
    assert bold.root is root


def test_select_maps_back_to_wrapped_elements() -> None:
    root, div = _div()
    paragraphs = root.select("p")
    assert [p.text() for p in paragraphs] == ["Hello big world", "Second"]
    assert all(p.parent is div for p in paragraphs)


def test_text_siblings_are_visible_as_nodes() -> None:
    root = parse_tree("<div>before<span>hello</span>after</div>")
    span = root.select("span")[0]
    assert span.previous_sibling().text() == "before"
    assert span.next_sibling().text() == "after"
    assert span.next_element_sibling() is None
