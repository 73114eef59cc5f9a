"""
We Work Remotely programming category.

The site's search endpoint answers 403 to scripted clients, so the whole
category page is read and the query-term rule is applied client-side.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from bs4 import BeautifulSoup as BS
from bs4.element import Tag

from jobsearch.models import Posting
from jobsearch.scrapers.static_html import StaticHtmlAdapter
from jobsearch.utils.extractors import first_node, first_text
from jobsearch.utils.transforms import absolute_url, clean_text

JOB_LINK = "a[href*='/remote-jobs/']"


class WeWorkRemotelyAdapter(StaticHtmlAdapter):
    SEARCH_URL = "https://weworkremotely.com/categories/remote-programming-jobs"
    BASE_URL = "https://weworkremotely.com"

    TITLE_SELECTORS = ("span.title",)
    COMPANY_SELECTORS = ("span.company",)
    DEFAULT_LOCATION = "Remote"

    def find_cards(self, soup: BS) -> List[Tag]:
        return [li for li in soup.select("li") if li.select_one(JOB_LINK) is not None]

    def parse_card(self, card: Tag, fetched_on: date) -> Optional[Posting]:
        link = first_node(card, (JOB_LINK,))
        if link is None:
            return None

        title = first_text(card, self.TITLE_SELECTORS) or clean_text(
            link.get_text(" ", strip=True)
        )
        if not title:
            return None

        company = first_text(card, self.COMPANY_SELECTORS)
        if not company and "|" in title:
            # Link text reads "Company | Title" when no company node exists.
            head, _, rest = title.partition("|")
            if rest.strip():
                company, title = head.strip(), rest.strip()

        url = absolute_url(self.BASE_URL, link.get("href"))
        if not url:
            return None

        return self.make_posting(
            title=title,
            url=url,
            company=company or None,
            location=self.DEFAULT_LOCATION,
            posted_date=fetched_on,
            description=clean_text(card.get_text(" ", strip=True)) or None,
        )
