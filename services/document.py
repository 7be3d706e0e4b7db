"""Parsed HTML document used by the field extractors.

Extraction code only needs three capabilities from a parsed page: find nodes
by CSS selector, read an attribute and read text. ``RawDocument`` and ``Node``
expose exactly that (plus a few tree-walking helpers) on top of BeautifulSoup,
so the extractors never touch the parser API directly.
"""

from __future__ import annotations

import re
from typing import List, Optional, Pattern, Sequence

from bs4 import BeautifulSoup, NavigableString, Tag

from utils.text import clean_text


class Node:
    """A single element of a parsed document."""

    __slots__ = ("_tag",)

    def __init__(self, tag: Tag):
        self._tag = tag

    def __repr__(self) -> str:
        return f"Node(<{self.name}>)"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Node) and other._tag is self._tag

    def __hash__(self) -> int:
        return id(self._tag)

    @property
    def name(self) -> str:
        return self._tag.name or ""

    def select(self, selector: str) -> List["Node"]:
        return [Node(tag) for tag in self._tag.select(selector)]

    def select_one(self, selector: str) -> Optional["Node"]:
        tag = self._tag.select_one(selector)
        return Node(tag) if tag is not None else None

    def attr(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def text(self) -> str:
        """All descendant text, whitespace-collapsed."""
        return clean_text(self._tag.get_text(" "))

    def own_text(self) -> str:
        """Only the text nodes that are direct children of this element."""
        parts = [str(child) for child in self._tag.children if isinstance(child, NavigableString)]
        return clean_text(" ".join(parts))

    def parent(self) -> Optional["Node"]:
        parent = self._tag.parent
        if parent is None or not isinstance(parent, Tag) or parent.name == "[document]":
            return None
        return Node(parent)

    def closest(self, name: str) -> Optional["Node"]:
        parent = self._tag.find_parent(name)
        return Node(parent) if parent is not None else None

    def children(self) -> List["Node"]:
        return [Node(child) for child in self._tag.children if isinstance(child, Tag)]

    def next_element_sibling(self) -> Optional["Node"]:
        sibling = self._tag.find_next_sibling()
        return Node(sibling) if sibling is not None else None

    def following_sibling_texts(self) -> List[str]:
        """Non-empty texts of every following sibling, text nodes included."""
        texts: List[str] = []
        for sibling in self._tag.next_siblings:
            if isinstance(sibling, Tag):
                text = clean_text(sibling.get_text(" "))
            elif isinstance(sibling, NavigableString):
                text = clean_text(str(sibling))
            else:
                continue
            if text:
                texts.append(text)
        return texts


class RawDocument(Node):
    """An immutable, queryable view over fetched HTML."""

    __slots__ = ()

    def __init__(self, html: str):
        super().__init__(BeautifulSoup(html or "", "lxml"))

    def meta_content(self, key: str) -> str:
        """Return the ``content`` of ``<meta property=key>`` or ``<meta name=key>``."""
        for attribute in ("property", "name"):
            node = self.select_one(f'meta[{attribute}="{key}"]')
            if node is None:
                continue
            content = clean_text(node.attr("content") or "")
            if content:
                return content
        return ""

    def title_text(self) -> str:
        node = self.select_one("title")
        return node.text() if node is not None else ""

    def find_labels(self, tag_names: Sequence[str], pattern: Pattern[str]) -> List[Node]:
        """Find label elements whose own text matches ``pattern``.

        Matching on the element's own text keeps ancestors that merely contain
        the label out of the result.
        """
        selector = ", ".join(tag_names)
        return [node for node in self.select(selector) if pattern.search(node.own_text())]


def compile_label(text: str) -> Pattern[str]:
    """Case-insensitive pattern for a label such as ``"Genres:"``."""
    return re.compile(rf"^\s*{text}\s*:?\s*$", re.IGNORECASE)
