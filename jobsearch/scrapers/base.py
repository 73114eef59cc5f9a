"""
Base source adapter and common utilities.

`SourceAdapter` defines the standard lifecycle of one source search
(fetch -> parse -> filter -> cap) and shared helpers for logging and HTTP.
Subclasses override `iter_postings`, yielding one `Posting` (or None for a
record that could not be parsed) at a time.

Typical usage (the aggregator does this for every row of SOURCE_TABLE):
    adapter = ADAPTERS["remotive"](config, settings)
    postings = adapter.search(filters, token)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Optional

import requests

from jobsearch import filters as post_filters
from jobsearch.config import Settings
from jobsearch.errors import JobSearchError, ProtocolFailure, TransportFailure
from jobsearch.models import FilterSpec, Posting, SourceConfig
from jobsearch.utils.cancel import CancelToken
from jobsearch.utils.http import build_session_with_retries, request_timeout


class SourceAdapter:
    """
    Abstract base class for all job sources.

    Subclasses must implement `iter_postings`. `search()` drives it, applies
    the post-fetch filter and the per-source cap, and converts every failure
    into an empty result so one broken source never affects its siblings.

    Attributes:
        config: The SourceConfig row this adapter serves.
        settings: Process-wide settings (timeouts, caps, credentials).
        session: requests.Session used for every HTTP call of this adapter.
        browser: Shared browser session; only dynamic adapters use it.
        logger: LoggerAdapter that injects a `source` field for uniform logs.
    """

    #: Default headers installed on the session built by `make_session()`.
    HEADERS: Dict[str, str] = {}

    def __init__(
        self,
        config: SourceConfig,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
        browser: Any = None,
    ) -> None:
        self.config = config
        self.settings = settings or Settings()
        self.session = session if session is not None else self.make_session()
        self.browser = browser

        # Standardized logger with a 'source' token for consistent formatting.
        self.logger = logging.LoggerAdapter(
            logging.getLogger(f"jobsearch.{config.source_id}"),
            {"source": config.source_id},
        )

    @property
    def source_id(self) -> str:
        return self.config.source_id

    def make_posting(self, **fields: Any) -> Posting:
        """Build a Posting stamped with this source's name and reputability."""
        fields = {k: v for k, v in fields.items() if v is not None}
        return Posting(
            source=self.config.name, reputability=self.config.reputability, **fields
        )

    def make_session(self) -> requests.Session:
        return build_session_with_retries(
            total=self.settings.http_max_retries, headers=dict(self.HEADERS)
        )

    def fmt_pairs(self, **kv: Any) -> str:
        """
        Render key/value pairs as a single space-prefixed string.

        Args:
            **kv: Arbitrary key/value pairs to serialize.

        Returns:
            Concatenated `key=value` pairs with a leading space, or an empty
            string if no pairs are provided.
        """
        if not kv:
            return ""
        parts = [f"{k}={v}" for k, v in kv.items()]
        return " " + " ".join(parts)

    def log(self, event: str, level: str = "info", **kv: Any) -> None:
        """
        Emit a standardized log line as: `event key=value ...`.

        Args:
            event: Short event token (e.g., 'fetch:start', 'filter:reject').
            level: Logging level name (e.g., 'info', 'warning', 'error').
            **kv: Structured context fields to include alongside the event.
        """
        msg = f"{event}{self.fmt_pairs(**kv)}"
        getattr(self.logger, level)(msg)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------
    def get(
        self,
        url: str,
        token: Optional[CancelToken] = None,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """
        GET with the source's per-call timeout clipped to the search deadline.

        Raises:
            TransportFailure: On DNS, connection, TLS or timeout errors.
            ProtocolFailure: On a non-2xx status.
        """
        timeout = request_timeout(
            min(self.settings.http_connect_timeout, self.config.timeout),
            min(self.settings.http_read_timeout, self.config.timeout),
            token,
        )
        self.log("fetch:start", url=url)
        try:
            resp = self.session.get(url, headers=headers, params=params, timeout=timeout)
        except requests.RequestException as e:
            raise TransportFailure(f"{type(e).__name__}: {e}") from e
        if not 200 <= resp.status_code < 300:
            raise ProtocolFailure(f"HTTP {resp.status_code} from {url}")
        return resp

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def search(
        self, filters: FilterSpec, token: Optional[CancelToken] = None
    ) -> List[Posting]:
        """
        Run one search against this source.

        Never raises: transport, protocol and unexpected errors are logged and
        reported as an empty list. On cancellation the postings gathered so
        far are returned.

        Args:
            filters: Validated search constraints.
            token: Cancellation token carrying the global deadline.

        Returns:
            Postings in extraction order, filtered and capped.
        """
        token = token or CancelToken()
        cap = self.settings.cap_for(self.config)
        require_query_match = not self.config.upstream_query
        out: List[Posting] = []
        skipped = 0
        try:
            for posting in self.iter_postings(filters, token):
                if posting is None:
                    skipped += 1
                    continue
                reason = post_filters.rejection_reason(
                    posting, filters, require_query_match=require_query_match
                )
                if reason:
                    self.log("filter:reject", level="debug", reason=reason, title=posting.title)
                    continue
                out.append(posting)
                if len(out) >= cap:
                    break
                if token.cancelled:
                    self.log("fetch:cancelled", level="warning", n=len(out))
                    break
        except TransportFailure as e:
            self.log("fetch:error", level="warning", kind="transport", err=e)
            return []
        except JobSearchError as e:
            self.log("fetch:error", level="warning", kind=type(e).__name__, err=e)
            return []
        except Exception:
            self.logger.exception("fetch:error kind=unexpected")
            return []

        self.log("fetch:done", n=len(out), skipped=skipped)
        return out

    # -----------------------------
    # Methods to override in subclasses
    # -----------------------------
    def iter_postings(
        self, filters: FilterSpec, token: CancelToken
    ) -> Iterator[Optional[Posting]]:
        """
        Yield normalized postings in extraction order.

        A record that cannot be mapped should be yielded as None (it is counted
        and dropped). Implementations check `token.cancelled` at each
        suspension point and simply stop yielding when it is set.

        Raises:
            NotImplementedError: Subclasses must implement this method.
        """
        raise NotImplementedError
