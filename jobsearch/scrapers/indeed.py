"""
Indeed search results page.

Indeed serves anti-bot interstitials often; those surface as an empty result.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

from jobsearch.models import FilterSpec, WorkModel
from jobsearch.scrapers.static_html import StaticHtmlAdapter


class IndeedAdapter(StaticHtmlAdapter):
    SEARCH_URL = "https://www.indeed.com/jobs"
    BASE_URL = "https://www.indeed.com"

    CARD_SELECTORS = ("div.job_seen_beacon", "div.jobsearch-SerpJobCard")
    TITLE_SELECTORS = ("h2.jobTitle a", "h2.jobTitle span", "h2.title a")
    COMPANY_SELECTORS = ("span.companyName", "[data-testid='company-name']", "span.company")
    LOCATION_SELECTORS = (
        "div.companyLocation",
        "[data-testid='text-location']",
        "div.location",
    )
    LINK_SELECTORS = ("h2.jobTitle a[href]", "a[href]")
    SALARY_SELECTORS = ("div.salary-snippet", "div.salary-snippet-container")

    def build_url(self, filters: FilterSpec) -> Tuple[str, Dict[str, Any]]:
        params: Dict[str, Any] = {"q": filters.query}
        if filters.has_location_filter:
            params["l"] = filters.location_string
        if filters.work_model is WorkModel.Remote:
            params["remotejob"] = 1
        params["fromage"] = 1  # last 24 hours
        return self.SEARCH_URL, params
