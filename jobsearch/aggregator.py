"""
Search orchestrator.

`Aggregator.search()` fans one FilterSpec out to every configured source in
parallel, waits up to the global deadline, and merges whatever arrived:

    validate -> dispatch -> gather (until all done or deadline) -> release
    browser -> merge in table order -> score -> stable sort -> return

Each source writes only to its own `ResultSlot`. Dynamic-page sources share a
single browser and therefore run one after another inside one task, which
also starts that browser so a slow launch never holds up the HTTP sources.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from time import monotonic
from typing import Any, Callable, Dict, List, Optional, Sequence, Type

from jobsearch.browser import BrowserLease, BrowserSession, open_browser_session
from jobsearch.config import SOURCE_TABLE, Settings
from jobsearch.models import FilterSpec, Posting, SourceConfig
from jobsearch.scorer import score_postings
from jobsearch.scrapers import ADAPTERS
from jobsearch.scrapers.base import SourceAdapter
from jobsearch.utils.cancel import CancelToken
from jobsearch.utils.metrics import Metrics


class ResultSlot:
    """
    Write-once result holder for one source.

    Once sealed (at the deadline) late writes are refused, so the merge only
    ever sees results that arrived in time.
    """

    def __init__(self, source_id: str) -> None:
        self.source_id = source_id
        self._lock = threading.Lock()
        self._postings: List[Posting] = []
        self.filled = False
        self.sealed = False

    def put(self, postings: Sequence[Posting]) -> bool:
        with self._lock:
            if self.sealed or self.filled:
                return False
            self._postings = list(postings)
            self.filled = True
            return True

    def seal(self) -> None:
        with self._lock:
            self.sealed = True

    def read(self) -> List[Posting]:
        with self._lock:
            return list(self._postings)


class Aggregator:
    """
    Runs every configured source for one search and merges the results.

    Attributes:
        settings: Timeouts, caps, deadline and credentials.
        sources: SourceConfig rows in tie-break order.
        registry: source id -> adapter class.
        browser_factory: Called as `factory(settings, enabled=True)` from the
            dynamic-source task, at most once per search; must return a
            BrowserSession (possibly inactive).
        metrics: Per-source counts/timings of the searches run so far.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        sources: Sequence[SourceConfig] = SOURCE_TABLE,
        registry: Optional[Dict[str, Type[SourceAdapter]]] = None,
        browser_factory: Callable[..., BrowserSession] = open_browser_session,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.sources = tuple(sources)
        self.registry = dict(ADAPTERS if registry is None else registry)
        self.browser_factory = browser_factory
        self.metrics = Metrics()
        self.logger = logging.LoggerAdapter(
            logging.getLogger(__name__), {"source": "aggregator"}
        )

    def log(self, event: str, level: str = "info", **kv: Any) -> None:
        pairs = "".join(f" {k}={v}" for k, v in kv.items())
        getattr(self.logger, level)(f"{event}{pairs}")

    # ------------------------------------------------------------------
    # Source selection
    # ------------------------------------------------------------------
    def active_sources(self) -> List[SourceConfig]:
        """Configured sources with an adapter and any required credentials."""
        out: List[SourceConfig] = []
        for cfg in self.sources:
            if cfg.source_id not in self.registry:
                self.log("source:skip", level="warning", source=cfg.source_id, reason="no_adapter")
                continue
            if not self.settings.has_credentials_for(cfg):
                self.log("source:skip", source=cfg.source_id, reason="no_credentials")
                continue
            out.append(cfg)
        return out

    # ------------------------------------------------------------------
    # Per-source wrapper
    # ------------------------------------------------------------------
    def run_source(
        self,
        cfg: SourceConfig,
        filters: FilterSpec,
        token: CancelToken,
        slot: ResultSlot,
        browser: Optional[BrowserSession] = None,
    ) -> None:
        """
        Pace, run and record one source. Never raises.
        """
        start = monotonic()
        postings: List[Posting] = []
        try:
            if cfg.start_delay and token.wait(cfg.start_delay):
                self.log("source:cancelled", level="warning", source=cfg.source_id, stage="delay")
            else:
                adapter = self.registry[cfg.source_id](cfg, self.settings, browser=browser)
                postings = adapter.search(filters, token)
        except Exception:
            self.metrics.inc("source.errors")
            self.logger.exception(f"source:error source={cfg.source_id}")
            postings = []

        elapsed = monotonic() - start
        if not slot.put(postings):
            self.metrics.inc("source.late")
            self.log("source:late", level="warning", source=cfg.source_id, n=len(postings))
            return
        self.metrics.observe(f"source.{cfg.source_id}.seconds", elapsed)
        self.metrics.set_gauge(f"source.{cfg.source_id}.count", len(postings))
        self.log("source:done", source=cfg.source_id, n=len(postings), seconds=f"{elapsed:.2f}")

    def run_browser_group(
        self,
        configs: Sequence[SourceConfig],
        filters: FilterSpec,
        token: CancelToken,
        slots: Dict[str, ResultSlot],
        lease: BrowserLease,
    ) -> None:
        """Start the shared browser, then run the dynamic sources back to back."""
        try:
            browser = lease.acquire()
        except Exception as e:
            self.metrics.inc("source.errors")
            self.logger.exception("browser:error")
            browser = BrowserSession(settings=self.settings, error=e)
        for cfg in configs:
            if token.cancelled:
                break
            self.run_source(cfg, filters, token, slots[cfg.source_id], browser=browser)

    # ------------------------------------------------------------------
    # Public operation
    # ------------------------------------------------------------------
    def search(self, filters: FilterSpec) -> List[Posting]:
        """
        Run one search across all sources.

        Args:
            filters: The caller's constraints; the query must be non-empty.

        Returns:
            Postings sorted by relevance + reputability, highest first. Ties
            keep source-table order, then each source's extraction order.
            Possibly empty; never None.

        Raises:
            InvalidInput: If the query is empty. No source is contacted.
        """
        filters.validate()
        started = monotonic()
        token = CancelToken(self.settings.global_deadline_seconds)

        configs = self.active_sources()
        slots = {cfg.source_id: ResultSlot(cfg.source_id) for cfg in configs}
        http_configs = [c for c in configs if c.capability != "browser"]
        browser_configs = [c for c in configs if c.capability == "browser"]

        self.log(
            "search:start",
            query=repr(filters.query),
            work_model=filters.work_model.value,
            experience=filters.experience_level.value,
            location=repr(filters.location_string),
            sources=len(configs),
        )

        lease = BrowserLease(self.browser_factory, self.settings)
        workers = max(1, len(http_configs) + (1 if browser_configs else 0))
        ex = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="jobsearch")
        futures: Dict[Future, List[str]] = {}
        try:
            for cfg in http_configs:
                fut = ex.submit(self.run_source, cfg, filters, token, slots[cfg.source_id])
                futures[fut] = [cfg.source_id]
            if browser_configs:
                fut = ex.submit(
                    self.run_browser_group, browser_configs, filters, token, slots, lease
                )
                futures[fut] = [c.source_id for c in browser_configs]

            _, pending = wait(list(futures), timeout=token.remaining())
            if pending:
                late = [sid for f in pending for sid in futures[f] if not slots[sid].filled]
                self.log("search:deadline", level="warning", pending=",".join(late))
        finally:
            for slot in slots.values():
                slot.seal()
            token.cancel()
            ex.shutdown(wait=False, cancel_futures=True)
            lease.release()

        results = self.merge(configs, slots, filters)
        self.metrics.observe("search.seconds", monotonic() - started)
        self.metrics.set_gauge("search.results", len(results))
        breakdown = {}
        for p in results:
            breakdown[p.source] = breakdown.get(p.source, 0) + 1
        self.log("search:breakdown", **breakdown)
        self.log("search:done", n=len(results), seconds=f"{monotonic() - started:.2f}")
        return results

    def merge(
        self,
        configs: Sequence[SourceConfig],
        slots: Dict[str, ResultSlot],
        filters: FilterSpec,
    ) -> List[Posting]:
        """Concatenate in table order, drop incomplete records, score and sort."""
        merged: List[Posting] = []
        dropped = 0
        for cfg in configs:
            for posting in slots[cfg.source_id].read():
                if posting.is_complete():
                    merged.append(posting)
                else:
                    dropped += 1
        if dropped:
            self.log("merge:dropped", level="warning", n=dropped)
        scored = score_postings(merged, filters.query)
        # sorted() is stable: equal composites keep concatenation order.
        return sorted(scored, key=lambda p: -p.composite)


def search(filters: FilterSpec, settings: Optional[Settings] = None) -> List[Posting]:
    """Convenience wrapper: one search with the default source table."""
    return Aggregator(settings=settings).search(filters)
