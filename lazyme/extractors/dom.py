"""Read-only DOM access shared by the headless and in-page extractors.

``PageDom`` reads a live Playwright page; ``SoupDom`` reads an HTML
snapshot through BeautifulSoup. Both return trimmed ``textContent`` and
empty values instead of raising when nothing matches.
"""
from __future__ import annotations

from typing import Protocol

from bs4 import BeautifulSoup
from playwright.sync_api import Error as PlaywrightError

from lazyme.log import get_logger

log = get_logger(__name__)


class Dom(Protocol):
    url: str

    def text(self, selector: str) -> str: ...

    def attr(self, selector: str, name: str) -> str | None: ...

    def all_attrs(self, selector: str, name: str) -> list[str]: ...

    def all_texts(self, selector: str) -> list[str]: ...


class SoupDom:
    def __init__(self, html: str, url: str = "") -> None:
        self.soup = BeautifulSoup(html or "", "html.parser")
        self.url = url

    def text(self, selector: str) -> str:
        el = self.soup.select_one(selector)
        return el.get_text().strip() if el else ""

    def attr(self, selector: str, name: str) -> str | None:
        el = self.soup.select_one(selector)
        if el is None:
            return None
        value = el.get(name)
        if isinstance(value, list):
            value = " ".join(value)
        return value

    def all_attrs(self, selector: str, name: str) -> list[str]:
        out: list[str] = []
        for el in self.soup.select(selector):
            value = el.get(name)
            if isinstance(value, list):
                value = " ".join(value)
            if value:
                out.append(value)
        return out

    def all_texts(self, selector: str) -> list[str]:
        # Script bodies are only reachable through .string.
        return [el.string if el.string is not None else el.get_text() for el in self.soup.select(selector)]


_TEXT_JS = """(sel) => {
  const el = document.querySelector(sel);
  return el ? (el.textContent || '').trim() : '';
}"""

_ATTR_JS = """([sel, name]) => {
  const el = document.querySelector(sel);
  return el ? el.getAttribute(name) : null;
}"""

_ALL_ATTRS_JS = """([sel, name]) => Array.from(document.querySelectorAll(sel))
  .map((el) => el.getAttribute(name))
  .filter(Boolean)"""

_ALL_TEXTS_JS = """(sel) => Array.from(document.querySelectorAll(sel))
  .map((el) => el.textContent || '')"""


class PageDom:
    """DOM reads against a Playwright page; evaluation errors read as empty."""

    def __init__(self, page) -> None:
        self.page = page

    @property
    def url(self) -> str:
        return self.page.url

    def _eval(self, script: str, arg, empty):
        try:
            result = self.page.evaluate(script, arg)
        except PlaywrightError as exc:
            log.debug("DOM read failed (%s): %s", arg, str(exc)[:120])
            return empty
        return empty if result is None else result

    def text(self, selector: str) -> str:
        return self._eval(_TEXT_JS, selector, "")

    def attr(self, selector: str, name: str) -> str | None:
        return self._eval(_ATTR_JS, [selector, name], None)

    def all_attrs(self, selector: str, name: str) -> list[str]:
        return list(self._eval(_ALL_ATTRS_JS, [selector, name], []))

    def all_texts(self, selector: str) -> list[str]:
        return list(self._eval(_ALL_TEXTS_JS, selector, []))
