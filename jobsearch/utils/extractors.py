"""
CSS-selector helpers shared by the static-HTML and dynamic-page adapters.

Every field is extracted from an ordered list of fallback selectors: the first
selector yielding a non-empty value wins. Both adapter kinds parse with
BeautifulSoup (the dynamic kind feeds it the rendered page source).
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from bs4 import BeautifulSoup as BS
from bs4.element import Tag

from jobsearch.utils.transforms import clean_text

INTERSTITIAL_KEYWORDS = ("captcha", "cloudflare", "access denied")
INTERSTITIAL_TITLE_KEYWORDS = INTERSTITIAL_KEYWORDS + ("security check", "please verify")


def make_soup(html: str) -> BS:
    return BS(html or "", "lxml")


def select_cards(root: Tag, selectors: Sequence[str]) -> List[Tag]:
    """Return the matches of the first selector that matches anything."""
    for sel in selectors:
        found = root.select(sel)
        if found:
            return list(found)
    return []


def first_text(node: Tag, selectors: Iterable[str]) -> str:
    for sel in selectors:
        el = node.select_one(sel)
        if el is None:
            continue
        txt = clean_text(el.get_text(" ", strip=True))
        if txt:
            return txt
    return ""


def first_attr(node: Tag, selectors: Iterable[str], attr: str = "href") -> str:
    for sel in selectors:
        for el in node.select(sel):
            val = (el.get(attr) or "").strip()
            if val:
                return val
    return ""


def first_node(node: Tag, selectors: Iterable[str]) -> Optional[Tag]:
    for sel in selectors:
        el = node.select_one(sel)
        if el is not None:
            return el
    return None


def page_title(soup: BS) -> str:
    return clean_text(soup.title.get_text(" ", strip=True)) if soup.title else ""


def body_text(soup: BS) -> str:
    body = soup.body or soup
    return clean_text(body.get_text(" ", strip=True))


def is_interstitial(title: str, body: str) -> bool:
    """
    Heuristic anti-bot page detection on the page title and body text.
    """
    t = (title or "").lower()
    b = (body or "").lower()
    if any(k in t for k in INTERSTITIAL_TITLE_KEYWORDS):
        return True
    return any(k in b for k in INTERSTITIAL_KEYWORDS)
