"""
Remotive remote-jobs API.

The endpoint cannot search by free text, so the whole software-dev category is
fetched and the query-term rule is applied client-side.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Tuple

from jobsearch.errors import ParseFailure
from jobsearch.models import FilterSpec, Posting
from jobsearch.scrapers.json_api import JsonApiAdapter
from jobsearch.utils.http import DESKTOP_USER_AGENT
from jobsearch.utils.transforms import clean_text, parse_date, sanitize_description

API_URL = "https://remotive.com/api/remote-jobs"
CATEGORY = "software-dev"
LIMIT = 50


class RemotiveAdapter(JsonApiAdapter):
    RECORDS_KEY = "jobs"
    HEADERS = {
        "User-Agent": DESKTOP_USER_AGENT,
        "Accept": "application/json",
        "Accept-Language": "en-US,en;q=0.9",
        "Referer": "https://remotive.com/",
    }

    def build_request(self, filters: FilterSpec) -> Tuple[str, Dict[str, Any]]:
        return API_URL, {"category": CATEGORY, "limit": LIMIT}

    def map_record(self, rec: Dict[str, Any], fetched_on: date) -> Optional[Posting]:
        title = clean_text(rec.get("title"))
        raw_description = rec.get("description")
        if not title or not raw_description:
            # Records without both fields cannot be matched against the query.
            return None
        url = (rec.get("url") or "").strip()
        if not url:
            raise ParseFailure(f"record without url: {title!r}")

        return self.make_posting(
            title=title,
            url=url,
            company=clean_text(rec.get("company_name")) or None,
            location="Remote",
            salary=clean_text(rec.get("salary")) or None,
            posted_date=parse_date(rec.get("publication_date"), fetched_on),
            description=sanitize_description(raw_description) or None,
        )
