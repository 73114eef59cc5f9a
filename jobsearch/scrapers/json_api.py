"""
JSON-API source variant.

One GET against a documented endpoint, a records array pulled from the decoded
body, and a per-record mapper. Subclasses provide `build_request`,
`RECORDS_KEY` and `map_record`.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterator, Optional, Tuple

from jobsearch.errors import ParseFailure, ProtocolFailure
from jobsearch.models import FilterSpec, Posting
from jobsearch.scrapers.base import SourceAdapter
from jobsearch.utils.cancel import CancelToken
from jobsearch.utils.http import JSON_HEADERS


class JsonApiAdapter(SourceAdapter):
    HEADERS = dict(JSON_HEADERS)
    RECORDS_KEY = "results"

    def build_request(self, filters: FilterSpec) -> Tuple[str, Dict[str, Any]]:
        """Return (url, query params) for this search."""
        raise NotImplementedError

    def map_record(self, rec: Dict[str, Any], fetched_on: date) -> Optional[Posting]:
        """
        Map one decoded record to a Posting.

        Return None to skip a record silently; raise ParseFailure when the
        record is malformed.
        """
        raise NotImplementedError

    def fetch_records(self, filters: FilterSpec, token: CancelToken) -> list:
        """
        Fetch and decode the records array.

        Raises:
            TransportFailure: Network-level failure.
            ProtocolFailure: Non-2xx status, HTML body, bad JSON or a missing
                records field.
        """
        url, params = self.build_request(filters)
        resp = self.get(url, token=token, params=params)
        body = (resp.text or "").lstrip()
        if body.startswith("<"):
            raise ProtocolFailure("received HTML instead of JSON")
        try:
            payload = resp.json()
        except ValueError as e:
            raise ProtocolFailure(f"undecodable JSON: {e}") from e
        if not isinstance(payload, dict):
            raise ProtocolFailure("JSON payload is not an object")
        records = payload.get(self.RECORDS_KEY)
        if not isinstance(records, list):
            raise ProtocolFailure(f"missing '{self.RECORDS_KEY}' array")
        self.log("list:fetched", n=len(records))
        return records

    def iter_postings(
        self, filters: FilterSpec, token: CancelToken
    ) -> Iterator[Optional[Posting]]:
        records = self.fetch_records(filters, token)
        fetched_on = date.today()
        for rec in records:
            if token.cancelled:
                return
            if not isinstance(rec, dict):
                yield None
                continue
            try:
                yield self.map_record(rec, fetched_on)
            except ParseFailure as e:
                self.log("parse:skip", level="debug", err=e)
                yield None
