import threading
import time
from dataclasses import replace

import pytest

from jobsearch.aggregator import Aggregator, ResultSlot
from jobsearch.browser import BrowserSession, open_browser_session
from jobsearch.config import SOURCE_TABLE
from jobsearch.errors import InvalidInput
from jobsearch.models import FilterSpec, Posting, SourceConfig, SourceKind
from jobsearch.scrapers.base import SourceAdapter
from jobsearch.scrapers.linkedin import LinkedInAdapter

ALPHA = SourceConfig("alpha", SourceKind.JsonApi, reputability=9, display_name="Alpha")
BETA = SourceConfig("beta", SourceKind.StaticHtml, reputability=8, display_name="Beta")
GAMMA = SourceConfig("gamma", SourceKind.StaticHtml, reputability=8, display_name="Gamma")


def returning(*records):
    """Adapter class that yields one posting per (title, location) record."""

    class _Fixed(SourceAdapter):
        def iter_postings(self, filters, token):
            for title, location in records:
                yield self.make_posting(
                    title=title,
                    url=f"https://example.com/{self.source_id}/{title.replace(' ', '-')}",
                    location=location,
                )

    return _Fixed


class Exploding(SourceAdapter):
    def search(self, filters, token=None):
        raise RuntimeError("source exploded")


class NoTitle(SourceAdapter):
    def search(self, filters, token=None):
        return [
            Posting(title="", url="https://example.com/x", source=self.config.name),
            Posting(title="Kept", url="https://example.com/y", source=self.config.name),
        ]


def inactive_browser(settings, enabled=True):
    return BrowserSession(settings=settings)


def make(settings, sources, registry, browser_factory=inactive_browser):
    return Aggregator(
        settings=settings, sources=sources, registry=registry, browser_factory=browser_factory
    )


def test_s1_merges_scores_and_sorts(settings):
    agg = make(
        settings,
        [ALPHA, BETA],
        {
            "alpha": returning(("Senior Software Engineer", "Remote"), ("Cook", "Austin, TX")),
            "beta": returning(("Backend Developer", "Remote"), ("Software Engineer", "NYC")),
        },
    )
    out = agg.search(FilterSpec.create("software engineer"))

    assert [p.title for p in out] == [
        "Senior Software Engineer",
        "Software Engineer",
        "Backend Developer",
        "Cook",
    ]
    top = out[0]
    assert (top.relevance, top.reputability, top.composite) == (10, 9, 19)
    assert [p.composite for p in out] == [19, 18, 10, 9]
    snap = agg.metrics.snapshot()
    assert snap["gauges"]["source.alpha.count"] == 2
    assert snap["gauges"]["search.results"] == 4


def test_results_satisfy_invariants(settings):
    agg = make(
        settings,
        [ALPHA, BETA],
        {
            "alpha": returning(("Data Engineer", "Remote"), ("Baker", "Remote")),
            "beta": returning(("Data Analyst", "Remote"), ("Data", "Remote")),
        },
    )
    out = agg.search(FilterSpec.create("data engineer"))
    for p in out:
        assert p.title and p.url and p.source
        assert 0 <= p.relevance <= 10 and 0 <= p.reputability <= 10
    composites = [p.composite for p in out]
    assert composites == sorted(composites, reverse=True)


def test_ties_keep_table_order_then_extraction_order(settings):
    agg = make(
        settings,
        [BETA, GAMMA],
        {
            "beta": returning(("Baker", "X"), ("Chef", "X")),
            "gamma": returning(("Barista", "X")),
        },
    )
    out = agg.search(FilterSpec.create("astronaut"))
    assert [(p.source, p.title) for p in out] == [
        ("Beta", "Baker"),
        ("Beta", "Chef"),
        ("Gamma", "Barista"),
    ]


def test_empty_query_raises_before_dispatch(settings):
    started = []

    class Recording(SourceAdapter):
        def __init__(self, *a, **kw):
            started.append(True)
            super().__init__(*a, **kw)

    def factory(settings, enabled=True):
        started.append("browser")
        return BrowserSession(settings=settings)

    agg = make(settings, [ALPHA], {"alpha": Recording}, browser_factory=factory)
    with pytest.raises(InvalidInput):
        agg.search(FilterSpec(query="   "))
    assert started == []


def test_all_sources_failing_returns_empty_list(settings):
    agg = make(settings, [ALPHA, BETA], {"alpha": Exploding, "beta": Exploding})
    assert agg.search(FilterSpec.create("anything")) == []
    assert agg.metrics.counter("source.errors") == 2


def test_one_failure_does_not_change_other_results(settings):
    good = returning(("Data Engineer", "Remote"), ("Data Scientist", "Remote"))
    f = FilterSpec.create("data")
    healthy = make(settings, [ALPHA, BETA], {"alpha": good, "beta": returning(("Data Analyst", "NYC"))})
    broken = make(settings, [ALPHA, BETA], {"alpha": good, "beta": Exploding})

    alpha_ok = [p for p in healthy.search(f) if p.source == "Alpha"]
    alpha_broken = [p for p in broken.search(f) if p.source == "Alpha"]
    assert alpha_ok == alpha_broken
    assert len(alpha_ok) == 2


def test_repeated_search_is_identical(settings):
    agg = make(
        settings,
        [ALPHA, BETA],
        {
            "alpha": returning(("Data Engineer", "Remote"), ("Baker", "Remote")),
            "beta": returning(("Data Analyst", "Remote")),
        },
    )
    f = FilterSpec.create("data engineer")
    assert agg.search(f) == agg.search(f)


def test_records_without_title_are_never_returned(settings):
    agg = make(settings, [ALPHA], {"alpha": NoTitle})
    out = agg.search(FilterSpec.create("kept"))
    assert [p.title for p in out] == ["Kept"]


def test_sources_without_credentials_are_skipped(settings):
    settings.adzuna_app_id = None
    adzuna = next(c for c in SOURCE_TABLE if c.source_id == "adzuna")
    calls = []

    class Recording(SourceAdapter):
        def search(self, filters, token=None):
            calls.append(self.source_id)
            return []

    agg = make(settings, [adzuna, BETA], {"adzuna": Recording, "beta": Recording})
    agg.search(FilterSpec.create("data"))
    assert calls == ["beta"]


def test_placeholder_credentials_count_as_missing(settings):
    settings.adzuna_app_id = "YOUR_APP_ID_HERE"
    assert not settings.has_adzuna_credentials()


def test_s3_browser_failure_only_empties_dynamic_sources(settings):
    linkedin = replace(
        next(c for c in SOURCE_TABLE if c.source_id == "linkedin"), settle_seconds=0.0
    )

    def failing_browser(settings, enabled=True):
        def boom(_settings):
            raise OSError("chrome binary missing")

        return open_browser_session(settings, enabled=enabled, driver_factory=boom)

    agg = make(
        settings,
        [ALPHA, linkedin],
        {"alpha": returning(("Data Engineer", "Remote"), ("Data Clerk", "Boston")), "linkedin": LinkedInAdapter},
        browser_factory=failing_browser,
    )
    out = agg.search(FilterSpec.create("data", work_model="Remote"))
    assert [p.title for p in out] == ["Data Engineer"]
    assert all("remote" in f"{p.location} {p.description or ''}".lower() for p in out)


def test_s4_deadline_bounds_latency(settings):
    settings.global_deadline_seconds = 1.0
    release = threading.Event()

    class Slow(SourceAdapter):
        def search(self, filters, token=None):
            release.wait(5.0)
            return [Posting(title="Late", url="https://example.com/late", source="Beta")]

    agg = make(settings, [ALPHA, BETA], {"alpha": returning(("Backend Engineer", "Remote")), "beta": Slow})
    try:
        t0 = time.monotonic()
        out = agg.search(FilterSpec.create("backend"))
        elapsed = time.monotonic() - t0
    finally:
        release.set()

    assert elapsed <= 1.5
    assert [p.title for p in out] == ["Backend Engineer"]

    # the slow source finishes after the merge; its write is refused
    for _ in range(100):
        if agg.metrics.counter("source.late"):
            break
        time.sleep(0.02)
    assert agg.metrics.counter("source.late") == 1


def test_start_delay_counts_against_deadline(settings):
    settings.global_deadline_seconds = 0.5
    delayed = replace(BETA, start_delay=5.0)
    agg = make(settings, [ALPHA, delayed], {"alpha": returning(("Chef", "X")), "beta": returning(("Baker", "X"))})
    t0 = time.monotonic()
    out = agg.search(FilterSpec.create("kitchen"))
    assert time.monotonic() - t0 <= 1.0
    assert [p.title for p in out] == ["Chef"]


def test_dynamic_sources_share_browser_sequentially(settings, fake_driver):
    driver = fake_driver()
    session = BrowserSession(driver=driver, settings=settings)
    seen = []
    busy = threading.Lock()

    class UsesBrowser(SourceAdapter):
        def search(self, filters, token=None):
            assert busy.acquire(blocking=False), "browser used concurrently"
            try:
                seen.append((self.source_id, self.browser is session))
                time.sleep(0.05)
            finally:
                busy.release()
            return []

    d1 = SourceConfig("d1", SourceKind.DynamicPage, reputability=5)
    d2 = SourceConfig("d2", SourceKind.DynamicPage, reputability=5)
    agg = make(
        settings,
        [d1, d2],
        {"d1": UsesBrowser, "d2": UsesBrowser},
        browser_factory=lambda s, enabled=True: session,
    )
    agg.search(FilterSpec.create("x"))
    assert seen == [("d1", True), ("d2", True)]
    assert driver.quit_calls == 1


def test_browser_not_started_without_dynamic_sources(settings):
    flags = []

    def factory(settings, enabled=True):
        flags.append(enabled)
        return BrowserSession(settings=settings)

    make(settings, [ALPHA], {"alpha": returning(("X", "Y"))}, browser_factory=factory).search(
        FilterSpec.create("x")
    )
    assert flags == []


def test_result_slot_refuses_writes_after_seal():
    slot = ResultSlot("alpha")
    slot.seal()
    assert slot.put([Posting(title="T", url="u", source="s")]) is False
    assert slot.read() == []


def test_result_slot_is_write_once():
    slot = ResultSlot("alpha")
    first = [Posting(title="A", url="u", source="s")]
    assert slot.put(first)
    assert not slot.put([])
    assert slot.read() == first


def test_slow_browser_start_does_not_hold_up_http_sources(settings, fake_driver):
    settings.global_deadline_seconds = 1.0
    linkedin = next(c for c in SOURCE_TABLE if c.source_id == "linkedin")
    driver = fake_driver()

    def slow_browser(settings, enabled=True):
        time.sleep(2.0)
        return BrowserSession(driver=driver, settings=settings)

    agg = make(
        settings,
        [ALPHA, linkedin],
        {"alpha": returning(("Backend Engineer", "Remote")), "linkedin": LinkedInAdapter},
        browser_factory=slow_browser,
    )
    t0 = time.monotonic()
    out = agg.search(FilterSpec.create("backend"))
    elapsed = time.monotonic() - t0

    assert elapsed <= 1.5
    assert [p.title for p in out] == ["Backend Engineer"]

    # the browser that finished starting after the search is quit, not leaked
    for _ in range(150):
        if driver.quit_calls:
            break
        time.sleep(0.02)
    assert driver.quit_calls == 1
    assert driver.visited == []


def test_browser_released_when_search_ends(settings, fake_driver):
    driver = fake_driver()
    d1 = SourceConfig("d1", SourceKind.DynamicPage, reputability=5)
    agg = make(
        settings,
        [ALPHA, d1],
        {"alpha": returning(("X", "Y")), "d1": returning(("Z", "Remote"))},
        browser_factory=lambda s, enabled=True: BrowserSession(driver=driver, settings=s),
    )
    agg.search(FilterSpec.create("x"))
    assert driver.quit_calls == 1


def test_filterspec_built_without_create_is_searchable(settings):
    agg = make(settings, [ALPHA], {"alpha": returning(("Data Engineer", "Remote"), ("Data Clerk", "Boston"))})
    out = agg.search(FilterSpec(query="data", work_model="Remote"))
    assert [p.title for p in out] == ["Data Engineer"]
