"""
Hacker News monthly "Who is hiring?" thread.

Two page loads: the whoishiring account's submissions (to find the latest
hiring thread), then the thread itself, whose top-level comments are one job
each. A polite pause separates the two requests.
"""

from __future__ import annotations

from datetime import date
from typing import Iterator, Optional

from bs4.element import Tag

from jobsearch.models import FilterSpec, Posting
from jobsearch.scrapers.static_html import StaticHtmlAdapter
from jobsearch.utils.cancel import CancelToken
from jobsearch.utils.extractors import first_node
from jobsearch.utils.transforms import absolute_url, clean_text, truncate

BASE_URL = "https://news.ycombinator.com/"
SUBMISSIONS_URL = BASE_URL + "submitted?id=whoishiring"
THREAD_TITLE = "Who is hiring?"
POLITE_PAUSE_SECONDS = 1.0

COMPANY_MAX = 50
TITLE_MAX = 100
DESCRIPTION_MAX = 500


def location_from_text(text: str) -> str:
    low = text.lower()
    if "remote" in low:
        return "Remote"
    if "on-site" in low or "onsite" in low:
        return "On-site"
    if "hybrid" in low:
        return "Hybrid"
    return "See posting"


class HackerNewsAdapter(StaticHtmlAdapter):
    BASE_URL = BASE_URL
    SEARCH_URL = SUBMISSIONS_URL

    COMMENT_SELECTORS = ("div.commtext", "div.comment")

    def find_thread_url(self, token: CancelToken) -> Optional[str]:
        soup = self.fetch_soup(SUBMISSIONS_URL, token)
        for row in soup.select("tr.athing"):
            link = row.select_one("span.titleline a")
            if link is not None and THREAD_TITLE in link.get_text():
                item_id = (row.get("id") or "").strip()
                if item_id:
                    return f"{BASE_URL}item?id={item_id}"
        return None

    def is_top_level(self, row: Tag) -> bool:
        ind = row.select_one("td.ind")
        if ind is None or ind.get("indent") is None:
            return True
        return str(ind.get("indent")).strip() == "0"

    def parse_comment(self, row: Tag, thread_url: str, fetched_on: date) -> Optional[Posting]:
        node = first_node(row, self.COMMENT_SELECTORS)
        if node is None:
            return None
        # Keep line structure: the first line of a hiring comment is its headline.
        for br in node.find_all("br"):
            br.replace_with("\n")
        for p in node.find_all("p"):
            p.insert_before("\n")
        lines = [clean_text(s) for s in node.get_text().split("\n")]
        lines = [s for s in lines if s]
        if not lines:
            return None
        text = " ".join(lines)

        company = truncate(text.split("|", 1)[0].strip(), COMPANY_MAX) or None
        title = truncate(lines[0], TITLE_MAX)
        permalink = row.select_one("span.age a")
        url = absolute_url(BASE_URL, permalink.get("href")) if permalink is not None else ""

        return self.make_posting(
            title=title,
            url=url or thread_url,
            company=company,
            location=location_from_text(text),
            posted_date=fetched_on,
            description=truncate(text, DESCRIPTION_MAX),
        )

    def iter_postings(
        self, filters: FilterSpec, token: CancelToken
    ) -> Iterator[Optional[Posting]]:
        thread_url = self.find_thread_url(token)
        if not thread_url:
            self.log("thread:missing", level="warning")
            return
        self.log("thread:found", url=thread_url)

        if token.wait(POLITE_PAUSE_SECONDS):
            return

        soup = self.fetch_soup(thread_url, token)
        rows = [r for r in soup.select("tr.comtr") if self.is_top_level(r)]
        self.log("list:fetched", n=len(rows))
        fetched_on = date.today()
        for row in rows:
            if token.cancelled:
                return
            yield self.parse_comment(row, thread_url, fetched_on)
