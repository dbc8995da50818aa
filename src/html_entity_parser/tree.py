"""Read-only element tree built once from a BeautifulSoup document."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, Optional, Union

from bs4 import BeautifulSoup
from bs4.element import CData, Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

from html_entity_parser.text_utils import join_texts, normalize_text

if TYPE_CHECKING:
    from html_entity_parser.query import ElementQuery

TEXT = "#text"
DATA = "#data"
COMMENT = "#comment"
DOCUMENT = "#document"

DATA_PARENTS = {"script", "style", "noscript", "template"}
_SKIPPED_STRINGS = (Doctype, Declaration, ProcessingInstruction)


class HtmlElement:
    """
    One node of a parsed HTML document.

    Element nodes carry a lower-case `tag_name`; text, data (script/style
    payload) and comment nodes use `#text`, `#data` and `#comment`.
    Instances are created by :func:`build_tree` and never mutated afterwards.
    """

    __slots__ = (
        "_node",
        "_root",
        "_node_map",
        "_text",
        "_own_text",
        "tag_name",
        "parent",
        "children",
        "elements",
        "attributes",
        "index",
        "element_index",
        "depth",
    )

    def __init__(
        self,
        node: Union[Tag, NavigableString],
        tag_name: str,
        parent: Optional["HtmlElement"],
        index: int,
        depth: int,
    ):
        self._node = node
        self._root: HtmlElement = parent._root if parent is not None else self
        self._node_map: dict[int, HtmlElement] = {} if parent is None else parent._root._node_map
        self._text: Optional[str] = None
        self._own_text: Optional[str] = None
        self.tag_name = tag_name
        self.parent = parent
        self.children: list[HtmlElement] = []
        self.elements: list[HtmlElement] = []
        self.attributes: dict[str, str] = {}
        self.index = index
        self.element_index = -1
        self.depth = depth

    def __repr__(self) -> str:
        if self.is_element:
            return f"<HtmlElement {self.tag_name} depth={self.depth}>"
        return f"<HtmlElement {self.tag_name} {normalize_text(self.data() or self.text())[:30]!r}>"

    # --- node kind ---

    @property
    def is_element(self) -> bool:
        return not self.tag_name.startswith("#")

    @property
    def is_document(self) -> bool:
        return self.tag_name == DOCUMENT

    def is_text(self) -> bool:
        return self.tag_name == TEXT

    def is_data(self) -> bool:
        return self.tag_name in (DATA, COMMENT)

    def is_comment(self) -> bool:
        return self.tag_name == COMMENT

    # --- attributes ---

    def attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name.lower())

    @property
    def id(self) -> Optional[str]:
        return self.attributes.get("id")

    @property
    def classes(self) -> set[str]:
        return set(self.attributes.get("class", "").split())

    # --- content ---

    def text(self) -> str:
        """Whitespace-collapsed text of this node and its descendants."""
        if self._text is None:
            if self.tag_name == TEXT:
                self._text = normalize_text(str(self._node))
            elif not self.is_element and not self.is_document:
                self._text = ""
            else:
                self._text = join_texts(node.text() for node in self._iter_text_nodes())
        return self._text

    def own_text(self) -> str:
        """Text of the direct text children only."""
        if self._own_text is None:
            if self.tag_name == TEXT:
                self._own_text = self.text()
            else:
                self._own_text = join_texts(c.text() for c in self.children if c.tag_name == TEXT)
        return self._own_text

    def data(self) -> str:
        """Payload of script/style/comment content."""
        if self.tag_name in (DATA, COMMENT):
            return str(self._node)
        return "".join(str(c._node) for c in self.children if c.tag_name in (DATA, COMMENT))

    def _iter_text_nodes(self) -> Iterator["HtmlElement"]:
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            if node.tag_name == TEXT:
                yield node
            elif node.is_element:
                stack.extend(reversed(node.children))

    # --- navigation ---

    def next_sibling(self) -> Optional["HtmlElement"]:
        if self.parent is None or self.index + 1 >= len(self.parent.children):
            return None
        return self.parent.children[self.index + 1]

    def previous_sibling(self) -> Optional["HtmlElement"]:
        if self.parent is None or self.index == 0:
            return None
        return self.parent.children[self.index - 1]

    def next_element_sibling(self) -> Optional["HtmlElement"]:
        following = self.following_elements()
        return following[0] if following else None

    def previous_element_sibling(self) -> Optional["HtmlElement"]:
        preceding = self.preceding_elements()
        return preceding[0] if preceding else None

    def following_elements(self) -> list["HtmlElement"]:
        """Element siblings after this node, nearest first."""
        if self.parent is None:
            return []
        if self.element_index >= 0:
            return self.parent.elements[self.element_index + 1:]
        return [c for c in self.parent.children[self.index + 1:] if c.is_element]

    def preceding_elements(self) -> list["HtmlElement"]:
        """Element siblings before this node, nearest first."""
        if self.parent is None:
            return []
        if self.element_index >= 0:
            return self.parent.elements[: self.element_index][::-1]
        return [c for c in self.parent.children[: self.index][::-1] if c.is_element]

    def following_nodes(self) -> list["HtmlElement"]:
        if self.parent is None:
            return []
        return self.parent.children[self.index + 1:]

    def preceding_nodes(self) -> list["HtmlElement"]:
        if self.parent is None:
            return []
        return self.parent.children[: self.index][::-1]

    def ancestors(self) -> Iterator["HtmlElement"]:
        """Enclosing elements, nearest first (the document node excluded)."""
        node = self.parent
        while node is not None and not node.is_document:
            yield node
            node = node.parent

    def iter_descendants(self, depth_limit: Optional[int] = None) -> Iterator["HtmlElement"]:
        """Descendant elements in document order, optionally limited in depth (1 = children)."""
        stack = [(child, 1) for child in reversed(self.elements)]
        while stack:
            node, level = stack.pop()
            yield node
            if depth_limit is None or level < depth_limit:
                stack.extend((child, level + 1) for child in reversed(node.elements))

    def contains(self, element: "HtmlElement") -> bool:
        return any(ancestor is self for ancestor in element.ancestors())

    def same_named_siblings(self) -> list["HtmlElement"]:
        if self.parent is None:
            return [self]
        return [e for e in self.parent.elements if e.tag_name == self.tag_name]

    # --- queries ---

    def select(self, css_query: str) -> list["HtmlElement"]:
        """Elements of this subtree matching a CSS selector, in document order."""
        if not isinstance(self._node, Tag):
            return []
        found = []
        for node in self._node.select(css_query):
            element = self._node_map.get(id(node))
            if element is not None:
                found.append(element)
        return found

    def query(self) -> "ElementQuery":
        """Start an ad-hoc path evaluated over this element's subtree."""
        from html_entity_parser.query import ElementQuery

        return ElementQuery(self)

    @property
    def root(self) -> "HtmlElement":
        return self._root

    @property
    def node(self) -> Union[Tag, NavigableString]:
        """The underlying BeautifulSoup node."""
        return self._node


def _attributes_of(tag: Tag) -> dict[str, str]:
    attributes: dict[str, str] = {}
    for name, value in tag.attrs.items():
        if isinstance(value, (list, tuple)):
            value = " ".join(value)
        attributes[name.lower()] = "" if value is None else str(value)
    return attributes


def _kind_of(node: NavigableString, parent_name: str) -> Optional[str]:
    if isinstance(node, _SKIPPED_STRINGS):
        return None
    if isinstance(node, Comment):
        return COMMENT
    if isinstance(node, CData) or parent_name in DATA_PARENTS:
        return DATA
    if not str(node).strip():
        return None
    return TEXT


def build_tree(soup: Union[BeautifulSoup, Tag]) -> HtmlElement:
    """Wrap a BeautifulSoup document (or tag) into an :class:`HtmlElement` tree."""
    root_name = DOCUMENT if isinstance(soup, BeautifulSoup) else soup.name.lower()
    root = HtmlElement(soup, root_name, None, 0, 0)
    root._node_map[id(soup)] = root

    stack = [root]
    while stack:
        parent = stack.pop()
        node = parent._node
        if not isinstance(node, Tag):
            continue
        for child in node.children:
            if isinstance(child, Tag):
                element = HtmlElement(child, child.name.lower(), parent, len(parent.children), parent.depth + 1)
                element.attributes = _attributes_of(child)
                element.element_index = len(parent.elements)
                parent.elements.append(element)
                root._node_map[id(child)] = element
                stack.append(element)
            else:
                kind = _kind_of(child, parent.tag_name)
                if kind is None:
                    continue
                element = HtmlElement(child, kind, parent, len(parent.children), parent.depth + 1)
            parent.children.append(element)
    return root


def parse_tree(html: str, features: str = "lxml") -> HtmlElement:
    """Parse HTML with BeautifulSoup and return the wrapped document root."""
    return build_tree(BeautifulSoup(html or "", features))
