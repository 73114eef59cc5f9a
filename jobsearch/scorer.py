"""
Relevance scoring: a pure, deterministic integer in [0, 10] per posting.

    1. Full query found in the title                -> 10
    2. Otherwise floor(10 * matched_terms / terms), +2 per term found in the
       title (capped at 10)
    3. For "software"/"engineer" queries, +1 per related term present in
       title+description (capped at 10)
"""

from __future__ import annotations

from typing import Iterable, List

from jobsearch.models import SCORE_MAX, Posting

RELATED_TRIGGERS = ("software", "engineer")
RELATED_TERMS = ("developer", "programmer", "coding", "programming", "tech", "it", "dev")


def score(posting: Posting, query: str) -> int:
    q = (query or "").strip().lower()
    title = (posting.title or "").lower()
    description = (posting.description or "").lower()
    combined = f"{title} {description}"

    terms = q.split()
    if not terms:
        return 0

    if q in title:
        result = SCORE_MAX
    else:
        matched = sum(1 for t in terms if t in combined)
        result = (SCORE_MAX * matched) // len(terms)
        for t in terms:
            if t in title:
                result = min(result + 2, SCORE_MAX)

    if any(trigger in q for trigger in RELATED_TRIGGERS):
        for related in RELATED_TERMS:
            if related in combined:
                result = min(result + 1, SCORE_MAX)

    return max(0, min(SCORE_MAX, result))


def score_postings(postings: Iterable[Posting], query: str) -> List[Posting]:
    """Return copies of `postings` with `relevance` set, preserving order."""
    return [p.with_relevance(score(p, query)) for p in postings]
