"""
LinkedIn guest job search (rendered in the shared browser).
"""

from __future__ import annotations

from typing import Any, Dict

from jobsearch.models import ExperienceLevel, FilterSpec, WorkModel
from jobsearch.scrapers.dynamic_page import DynamicPageAdapter, encode_params

RADIUS_MILES = 50
PAST_24_HOURS = "r86400"

# LinkedIn's f_E codes: 1 internship, 2 entry, 3 associate, 4 mid-senior, 5 director, 6 executive
EXPERIENCE_CODES = {
    ExperienceLevel.Junior: "1,2",
    ExperienceLevel.Mid: "3",
    ExperienceLevel.Senior: "4,5,6",
}
WORK_MODEL_CODES = {
    WorkModel.OnSite: "1",
    WorkModel.Remote: "2",
    WorkModel.Hybrid: "3",
}


class LinkedInAdapter(DynamicPageAdapter):
    SEARCH_URL = "https://www.linkedin.com/jobs/search/"
    BASE_URL = "https://www.linkedin.com"
    DEFAULT_URL = "https://www.linkedin.com/jobs/"

    CARD_SELECTORS = ("div.base-card", "div.job-search-card")
    TITLE_SELECTORS = ("h3.base-search-card__title", "span.sr-only")
    COMPANY_SELECTORS = ("h4.base-search-card__subtitle", "a.hidden-nested-link")
    LOCATION_SELECTORS = ("span.job-search-card__location",)
    LINK_SELECTORS = ("a.base-card__full-link", "a[href*='/jobs/view/']")
    DATE_SELECTORS = ("time[datetime]",)

    def build_url(self, filters: FilterSpec) -> str:
        params: Dict[str, Any] = {"keywords": filters.query}
        if filters.has_location_filter:
            params["location"] = filters.location_string
            params["distance"] = RADIUS_MILES
        else:
            params["location"] = ""
        if filters.experience_level in EXPERIENCE_CODES:
            params["f_E"] = EXPERIENCE_CODES[filters.experience_level]
        if filters.work_model in WORK_MODEL_CODES:
            params["f_WT"] = WORK_MODEL_CODES[filters.work_model]
        params["f_TPR"] = PAST_24_HOURS
        return f"{self.SEARCH_URL}?{encode_params(params)}"
