"""
Dice.com search (rendered in the shared browser).

Dice renders results late and reshuffles its markup often, so card discovery
falls back all the way to the parents of job-detail links.
"""

from __future__ import annotations

from typing import Any, Dict, List

from bs4 import BeautifulSoup as BS
from bs4.element import Tag

from jobsearch.models import FilterSpec, WorkModel
from jobsearch.scrapers.dynamic_page import DynamicPageAdapter, encode_params
from jobsearch.utils.extractors import select_cards

RADIUS_MILES = 50
PAGE_SIZE = 25
DETAIL_LINK = "a[href*='/job-detail/']"


class DiceAdapter(DynamicPageAdapter):
    SEARCH_URL = "https://www.dice.com/jobs"
    BASE_URL = "https://www.dice.com"

    CARD_SELECTORS = ("div[id^='card-']", "div.card", "div[class*='job']")
    TITLE_SELECTORS = ("a[id^='jobTitle']", "a.card-title-link", DETAIL_LINK)
    LINK_SELECTORS = TITLE_SELECTORS
    COMPANY_SELECTORS = ("span.company", "div.company", "a.company")
    LOCATION_SELECTORS = ("span.location", "div.location")

    def build_url(self, filters: FilterSpec) -> str:
        params: Dict[str, Any] = {"q": filters.query}
        if filters.has_location_filter:
            params["location"] = filters.location_string
            params["radius"] = RADIUS_MILES
        if filters.work_model is WorkModel.Remote:
            params["filters.workplaceTypes"] = "Remote"
        params["filters.postedDate"] = "ONE"
        params["pageSize"] = PAGE_SIZE
        return f"{self.SEARCH_URL}?{encode_params(params)}"

    def find_cards(self, soup: BS) -> List[Tag]:
        cards = select_cards(soup, self.CARD_SELECTORS)
        if cards:
            return cards
        parents: List[Tag] = []
        for link in soup.select(DETAIL_LINK):
            parent = link.parent
            if parent is not None and not any(parent is p for p in parents):
                parents.append(parent)
        return parents
