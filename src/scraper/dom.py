"""
Read-only document view used by the extractor.

The extractor never talks to a browser. It needs four capabilities from a
rendered page, expressed here as protocols:

- enumerate every element in document order
- classify an element (tag name, heading level)
- read an element's trimmed text content
- run CSS predicates: matches / closest ancestor / first match in subtree

`SoupDocument` implements them over a BeautifulSoup tree, so the same code runs
against a live snapshot (`page.content()`) or against markup held in memory.
"""

from __future__ import annotations

import re
from typing import Iterator, Optional, Protocol

from bs4 import BeautifulSoup
from bs4.element import CData, NavigableString, Script, Stylesheet, Tag

_HEADING_RE = re.compile(r"^h([1-6])$")

# String types DOM textContent includes; comments and doctypes are skipped.
_TEXT_TYPES = (NavigableString, CData, Script, Stylesheet)


class Element(Protocol):
    @property
    def tag(self) -> str: ...

    @property
    def heading_level(self) -> Optional[int]: ...

    def text(self) -> str: ...

    def matches(self, selector: str) -> bool: ...

    def closest(self, selector: str) -> Optional["Element"]: ...

    def enclosing(self, selector: str) -> Optional["Element"]: ...

    def select_one(self, selector: str) -> Optional["Element"]: ...


class Document(Protocol):
    def elements(self) -> Iterator[Element]: ...


class SoupElement:
    """`Element` backed by a `bs4.element.Tag`."""

    __slots__ = ("_tag",)

    def __init__(self, tag: Tag) -> None:
        self._tag = tag

    def __repr__(self) -> str:
        return f"<SoupElement {self._tag.name}>"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SoupElement) and other._tag is self._tag

    def __hash__(self) -> int:
        return id(self._tag)

    @property
    def tag(self) -> str:
        return (self._tag.name or "").lower()

    @property
    def heading_level(self) -> Optional[int]:
        match = _HEADING_RE.match(self.tag)
        return int(match.group(1)) if match else None

    def text(self) -> str:
        # Mirrors DOM textContent: descendant strings concatenated, then trimmed.
        return self._tag.get_text(types=_TEXT_TYPES).strip()

    def matches(self, selector: str) -> bool:
        return bool(self._tag.css.match(selector))

    def closest(self, selector: str) -> Optional[SoupElement]:
        """Nearest element matching `selector`, starting with this one."""
        found = self._tag.css.closest(selector)
        return SoupElement(found) if found is not None else None

    def enclosing(self, selector: str) -> Optional[SoupElement]:
        """Nearest strict ancestor matching `selector`."""
        parent = self._tag.parent
        if not isinstance(parent, Tag) or isinstance(parent, BeautifulSoup):
            return None
        found = parent.css.closest(selector)
        return SoupElement(found) if found is not None else None

    def select_one(self, selector: str) -> Optional[SoupElement]:
        """First descendant matching `selector`; never this element itself."""
        found = self._tag.select_one(selector)
        return SoupElement(found) if found is not None else None


class SoupDocument:
    """`Document` backed by a parsed HTML snapshot."""

    def __init__(self, soup: BeautifulSoup) -> None:
        self._soup = soup

    @classmethod
    def from_html(cls, html: str) -> SoupDocument:
        return cls(BeautifulSoup(html or "", "html.parser"))

    def elements(self) -> Iterator[SoupElement]:
        """
        Every element under `<body>` in document order (pre-order walk).

        Fragments without a `<body>` are walked from the root.
        """
        root = self._soup.body or self._soup
        for tag in root.find_all(True):
            yield SoupElement(tag)
