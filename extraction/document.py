"""
The narrow DOM capability the extraction layer needs, and its
BeautifulSoup implementation.
"""
from __future__ import annotations

import re
from typing import Optional, Protocol

from bs4 import BeautifulSoup, Comment

_SKIP_TEXT_PARENTS = {"script", "style", "noscript", "template"}


class DocumentQuery(Protocol):
    def count(self, selector: str) -> int: ...

    def exists(self, selector: str) -> bool: ...

    def attribute(self, selector: str, name: str) -> Optional[str]:
        """Attribute of the first matching element."""
        ...

    def attributes(self, selector: str, name: str) -> list[Optional[str]]:
        """One entry per matching element, None where the attribute is absent."""
        ...

    def text(self, selector: str) -> str: ...

    def texts(self, selector: str) -> list[str]: ...

    def visible_text(self) -> str: ...


class SoupDocument:
    """DocumentQuery over a parsed HTML string (CSS selectors via soupsieve)."""

    def __init__(self, html: str):
        try:
            self._soup = BeautifulSoup(html or "", "lxml")
        except Exception:
            self._soup = BeautifulSoup(html or "", "html.parser")

    def count(self, selector: str) -> int:
        return len(self._soup.select(selector))

    def exists(self, selector: str) -> bool:
        return self._soup.select_one(selector) is not None

    def attribute(self, selector: str, name: str) -> Optional[str]:
        el = self._soup.select_one(selector)
        if el is None:
            return None
        return _attr(el, name)

    def attributes(self, selector: str, name: str) -> list[Optional[str]]:
        return [_attr(el, name) for el in self._soup.select(selector)]

    def text(self, selector: str) -> str:
        el = self._soup.select_one(selector)
        return _text(el) if el is not None else ""

    def texts(self, selector: str) -> list[str]:
        return [_text(el) for el in self._soup.select(selector)]

    def visible_text(self) -> str:
        root = self._soup.body or self._soup
        parts = []
        for s in root.find_all(string=True):
            if isinstance(s, Comment) or s.parent is None or s.parent.name in _SKIP_TEXT_PARENTS:
                continue
            parts.append(str(s))
        # Normalize whitespace
        return re.sub(r"\s+", " ", " ".join(parts)).strip()


def _attr(el, name: str) -> Optional[str]:
    value = el.get(name)
    if value is None:
        return None
    # multi-valued attributes (class, rel) come back as lists
    if isinstance(value, list):
        return " ".join(value)
    return str(value)


def _text(el) -> str:
    if el.name in _SKIP_TEXT_PARENTS:
        # raw payload, e.g. a JSON-LD block
        return (el.string or "").strip()
    return el.get_text(" ", strip=True)
