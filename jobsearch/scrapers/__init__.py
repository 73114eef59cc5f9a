"""
Source adapter registry.

Maps the `source_id` of each SOURCE_TABLE row to the adapter class that
serves it. The aggregator instantiates one adapter per row per search.
"""

from __future__ import annotations

from typing import Dict, Type

from .adzuna import AdzunaAdapter
from .base import SourceAdapter
from .dice import DiceAdapter
from .hackernews import HackerNewsAdapter
from .indeed import IndeedAdapter
from .linkedin import LinkedInAdapter
from .remotive import RemotiveAdapter
from .weworkremotely import WeWorkRemotelyAdapter

#: Mapping from source id (e.g., "remotive") to the adapter class.
ADAPTERS: Dict[str, Type[SourceAdapter]] = {
    "adzuna": AdzunaAdapter,
    "remotive": RemotiveAdapter,
    "hackernews": HackerNewsAdapter,
    "weworkremotely": WeWorkRemotelyAdapter,
    "indeed": IndeedAdapter,
    "linkedin": LinkedInAdapter,
    "dice": DiceAdapter,
}

__all__ = ["ADAPTERS", "SourceAdapter"]
