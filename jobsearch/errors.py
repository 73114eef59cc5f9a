"""
Error kinds raised inside the search engine.

Only `InvalidInput` ever reaches the caller of `Aggregator.search`; every other
kind is raised inside an adapter and converted there into an empty result plus
a log line.
"""

from __future__ import annotations


class JobSearchError(Exception):
    """Base class for all errors raised by this package."""


class InvalidInput(JobSearchError, ValueError):
    """The caller supplied an unusable FilterSpec (e.g. an empty query)."""


class TransportFailure(JobSearchError):
    """DNS, TCP, TLS or timeout failure talking to a remote source."""


class ProtocolFailure(JobSearchError):
    """
    The source answered, but not with what we expected.

    Covers non-2xx statuses, HTML where JSON was expected, a missing records
    field, undecodable payloads and anti-bot interstitial pages.
    """


class ParseFailure(JobSearchError):
    """A single record could not be mapped; the record is skipped."""


class ResourceUnavailable(JobSearchError):
    """The headless browser could not be started."""
