"""
Adzuna job search API.

Docs: https://developer.adzuna.com/docs/search
Requires ADZUNA_APP_ID / ADZUNA_APP_KEY; the aggregator skips this source when
they are absent.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Tuple

from jobsearch.errors import ParseFailure
from jobsearch.models import FilterSpec, Posting
from jobsearch.scrapers.json_api import JsonApiAdapter
from jobsearch.utils.transforms import clean_text, format_salary_range, parse_date

API_URL = "https://api.adzuna.com/v1/api/jobs/us/search/1"
RESULTS_PER_PAGE = 50
RADIUS_MILES = 50


class AdzunaAdapter(JsonApiAdapter):
    RECORDS_KEY = "results"

    def build_request(self, filters: FilterSpec) -> Tuple[str, Dict[str, Any]]:
        params: Dict[str, Any] = {
            "app_id": self.settings.adzuna_app_id,
            "app_key": self.settings.adzuna_app_key,
            "results_per_page": RESULTS_PER_PAGE,
            "what": filters.query,
        }
        # Work model is never sent upstream; adding "remote" over-restricts results.
        if filters.has_location_filter:
            params["where"] = filters.location_string
            params["distance"] = RADIUS_MILES
        return API_URL, params

    def map_record(self, rec: Dict[str, Any], fetched_on: date) -> Optional[Posting]:
        title = clean_text(rec.get("title"))
        url = (rec.get("redirect_url") or "").strip()
        if not title or not url:
            raise ParseFailure("record without title or redirect_url")

        company = rec.get("company") if isinstance(rec.get("company"), dict) else {}
        location = rec.get("location") if isinstance(rec.get("location"), dict) else {}

        return self.make_posting(
            title=title,
            url=url,
            company=clean_text(company.get("display_name")) or None,
            location=clean_text(location.get("display_name")) or None,
            salary=format_salary_range(rec.get("salary_min"), rec.get("salary_max")),
            posted_date=parse_date(rec.get("created"), fetched_on),
            description=clean_text(rec.get("description")) or None,
        )
