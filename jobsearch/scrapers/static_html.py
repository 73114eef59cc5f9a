"""
Static-HTML source variant.

One GET with browser-like headers, an anti-bot interstitial check, then card
discovery and per-field extraction through ordered fallback selectors. Most
sources only declare selectors; sources with an unusual page shape override
`parse_card` or `iter_postings`.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup as BS
from bs4.element import Tag

from jobsearch.errors import ProtocolFailure
from jobsearch.models import FilterSpec, Posting
from jobsearch.scrapers.base import SourceAdapter
from jobsearch.utils.cancel import CancelToken
from jobsearch.utils.extractors import (
    body_text,
    first_attr,
    first_text,
    is_interstitial,
    make_soup,
    page_title,
    select_cards,
)
from jobsearch.utils.http import BROWSER_HEADERS
from jobsearch.utils.transforms import absolute_url


class StaticHtmlAdapter(SourceAdapter):
    HEADERS = dict(BROWSER_HEADERS)

    SEARCH_URL = ""
    BASE_URL = ""

    CARD_SELECTORS: Sequence[str] = ()
    TITLE_SELECTORS: Sequence[str] = ()
    COMPANY_SELECTORS: Sequence[str] = ()
    LOCATION_SELECTORS: Sequence[str] = ()
    LINK_SELECTORS: Sequence[str] = ("a[href]",)
    SALARY_SELECTORS: Sequence[str] = ()

    DEFAULT_LOCATION: Optional[str] = None

    def build_url(self, filters: FilterSpec) -> Tuple[str, Dict[str, Any]]:
        """Return (url, query params) for this search."""
        return self.SEARCH_URL, {}

    def fetch_soup(
        self,
        url: str,
        token: CancelToken,
        params: Optional[Dict[str, Any]] = None,
    ) -> BS:
        """
        GET a page and parse it, rejecting anti-bot interstitials.

        Raises:
            TransportFailure: Network-level failure.
            ProtocolFailure: Non-2xx status or an interstitial page.
        """
        resp = self.get(url, token=token, params=params)
        soup = make_soup(resp.text)
        if is_interstitial(page_title(soup), body_text(soup)):
            self.log("interstitial:detected", level="warning", url=url)
            raise ProtocolFailure(f"anti-bot interstitial at {url}")
        return soup

    def find_cards(self, soup: BS) -> List[Tag]:
        return select_cards(soup, self.CARD_SELECTORS)

    def parse_card(self, card: Tag, fetched_on: date) -> Optional[Posting]:
        title = first_text(card, self.TITLE_SELECTORS)
        url = absolute_url(self.BASE_URL, first_attr(card, self.LINK_SELECTORS))
        if not title or not url:
            return None
        return self.make_posting(
            title=title,
            url=url,
            company=first_text(card, self.COMPANY_SELECTORS) or None,
            location=first_text(card, self.LOCATION_SELECTORS) or self.DEFAULT_LOCATION,
            salary=first_text(card, self.SALARY_SELECTORS) or None,
            posted_date=fetched_on,
        )

    def iter_postings(
        self, filters: FilterSpec, token: CancelToken
    ) -> Iterator[Optional[Posting]]:
        url, params = self.build_url(filters)
        soup = self.fetch_soup(url, token, params=params)
        cards = self.find_cards(soup)
        self.log("list:fetched", n=len(cards))
        fetched_on = date.today()
        for card in cards:
            if token.cancelled:
                return
            yield self.parse_card(card, fetched_on)
