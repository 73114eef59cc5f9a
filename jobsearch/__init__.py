"""
Multi-source job search.

    from jobsearch import FilterSpec, search

    results = search(FilterSpec.create("software engineer", work_model="remote"))
    for posting in results:
        print(posting.composite, posting.title, posting.url)
"""

from __future__ import annotations

from jobsearch.aggregator import Aggregator, search
from jobsearch.errors import InvalidInput, JobSearchError
from jobsearch.models import ExperienceLevel, FilterSpec, Posting, WorkModel

__all__ = [
    "Aggregator",
    "ExperienceLevel",
    "FilterSpec",
    "InvalidInput",
    "JobSearchError",
    "Posting",
    "WorkModel",
    "search",
]
