"""
Dynamic-page source variant.

Drives the shared browser session: navigate to the encoded search URL, check
for an interstitial, wait for scripts to settle, scroll to trigger lazy
loading, then parse the rendered page source with the same fallback-selector
helpers the static sources use.
"""

from __future__ import annotations

from datetime import date
from typing import Iterator, List, Optional, Sequence
from urllib.parse import quote, urlencode

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
from jobsearch.utils.transforms import absolute_url, parse_date

DIAGNOSTIC_SAMPLE = 500


def encode_params(params: dict) -> str:
    """Query string with spaces as %20 (the sites reject '+')."""
    return urlencode(params, quote_via=quote, safe=",")


class DynamicPageAdapter(SourceAdapter):
    SEARCH_URL = ""
    BASE_URL = ""
    DEFAULT_URL: Optional[str] = None

    CARD_SELECTORS: Sequence[str] = ()
    TITLE_SELECTORS: Sequence[str] = ()
    COMPANY_SELECTORS: Sequence[str] = ()
    LOCATION_SELECTORS: Sequence[str] = ()
    LINK_SELECTORS: Sequence[str] = ("a[href]",)
    DATE_SELECTORS: Sequence[str] = ()

    def build_url(self, filters: FilterSpec) -> str:
        raise NotImplementedError

    def find_cards(self, soup: BS) -> List[Tag]:
        return select_cards(soup, self.CARD_SELECTORS)

    def parse_card(self, card: Tag, fetched_on: date) -> Optional[Posting]:
        title = first_text(card, self.TITLE_SELECTORS)
        if not title:
            return None
        url = absolute_url(self.BASE_URL, first_attr(card, self.LINK_SELECTORS))
        url = url or self.DEFAULT_URL
        if not url:
            return None
        posted = first_attr(card, self.DATE_SELECTORS, attr="datetime")
        return self.make_posting(
            title=title,
            url=url,
            company=first_text(card, self.COMPANY_SELECTORS) or None,
            location=first_text(card, self.LOCATION_SELECTORS) or None,
            posted_date=parse_date(posted, fetched_on),
        )

    def check_interstitial(self, url: str) -> BS:
        """Parse the current page, raising if it is an anti-bot challenge."""
        soup = make_soup(self.browser.page_source())
        if is_interstitial(self.browser.title or page_title(soup), body_text(soup)):
            self.log("interstitial:detected", level="warning", url=url)
            raise ProtocolFailure(f"anti-bot interstitial at {url}")
        return soup

    def render(self, url: str, token: CancelToken) -> Optional[BS]:
        """
        Load and settle the page under the session lock.

        Returns:
            The parsed rendered page, or None if cancelled while settling.

        Raises:
            ProtocolFailure: The page is an anti-bot interstitial.
        """
        browser = self.browser
        with browser.lock:
            self.log("fetch:start", url=url)
            browser.navigate(url, token)
            self.check_interstitial(url)

            if token.wait(self.config.settle_seconds):
                return None
            browser.scroll_to_middle()
            if self.config.scroll_pause_seconds and token.wait(
                self.config.scroll_pause_seconds
            ):
                return None
            # Some challenges only appear once scripts have run.
            return self.check_interstitial(url)

    def iter_postings(
        self, filters: FilterSpec, token: CancelToken
    ) -> Iterator[Optional[Posting]]:
        if self.browser is None or not self.browser.active:
            self.log("browser:inactive", level="warning")
            return
        soup = self.render(self.build_url(filters), token)
        if soup is None:
            return

        cards = self.find_cards(soup)
        self.log("list:fetched", n=len(cards))
        if not cards:
            sample = body_text(soup)[:DIAGNOSTIC_SAMPLE]
            self.log("list:empty", level="warning", sample=repr(sample))
            return

        fetched_on = date.today()
        for card in cards:
            if token.cancelled:
                return
            yield self.parse_card(card, fetched_on)
