"""
Post-fetch filtering applied by every adapter.

Upstream query parameters are unreliable, so adapters over-request and then
reject postings here. Rules run in order (experience level, work model, query
terms) and a posting is kept only if it passes every active rule. The location
filter is forwarded upstream only and never rejects client-side.
"""

from __future__ import annotations

from typing import Optional

from jobsearch.models import ExperienceLevel, FilterSpec, Posting, WorkModel

JUNIOR_KEYWORDS = ("junior", "entry", "associate", "jr")
MID_BLOCKLIST = ("senior", "lead", "principal", "junior", "entry")
SENIOR_KEYWORDS = ("senior", "lead", "principal", "staff", "sr")

# Query terms this short are too noisy for the "any term" fallback.
MIN_TERM_LENGTH = 3


def _any_keyword(text: str, keywords) -> bool:
    return any(k in text for k in keywords)


def passes_experience(posting: Posting, level: ExperienceLevel) -> bool:
    """
    Experience rule, checked against the title with the description as fallback.

    Junior/Senior pass when the title or, failing that, the description carries
    one of their keywords. Mid inspects the title only, unless the title is blank.
    """
    if level is ExperienceLevel.NoPreference:
        return True
    title = (posting.title or "").lower()
    description = (posting.description or "").lower()
    if level is ExperienceLevel.Junior:
        return _any_keyword(title, JUNIOR_KEYWORDS) or _any_keyword(
            description, JUNIOR_KEYWORDS
        )
    if level is ExperienceLevel.Senior:
        return _any_keyword(title, SENIOR_KEYWORDS) or _any_keyword(
            description, SENIOR_KEYWORDS
        )
    if level is ExperienceLevel.Mid:
        text = title if title.strip() else description
        return not _any_keyword(text, MID_BLOCKLIST)
    return True


def passes_work_model(posting: Posting, model: WorkModel) -> bool:
    if model is WorkModel.NoPreference:
        return True
    text = f"{posting.location or ''} {posting.description or ''}".lower()
    if model is WorkModel.Remote:
        return "remote" in text
    if model is WorkModel.Hybrid:
        return "hybrid" in text
    if model is WorkModel.OnSite:
        return "remote" not in text and "hybrid" not in text
    return True


def matches_query(posting: Posting, query: str) -> bool:
    """
    Whole query, or any query term longer than two characters, in title+description.
    """
    q = (query or "").strip().lower()
    if not q:
        return True
    text = f"{posting.title or ''} {posting.description or ''}".lower()
    if q in text:
        return True
    return any(len(t) >= MIN_TERM_LENGTH and t in text for t in q.split())


def rejection_reason(
    posting: Posting, filters: FilterSpec, require_query_match: bool = False
) -> Optional[str]:
    """
    Name of the first rule the posting fails, or None when it is kept.
    """
    if not passes_experience(posting, filters.experience_level):
        return "experience"
    if not passes_work_model(posting, filters.work_model):
        return "work_model"
    if require_query_match and not matches_query(posting, filters.query):
        return "query"
    return None


def passes_filters(
    posting: Posting, filters: FilterSpec, require_query_match: bool = False
) -> bool:
    return rejection_reason(posting, filters, require_query_match) is None
