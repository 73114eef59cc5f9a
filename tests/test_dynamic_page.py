from dataclasses import replace
from datetime import date
from urllib.parse import parse_qs, urlparse

import pytest

from jobsearch.browser import BrowserSession
from jobsearch.config import SOURCE_TABLE
from jobsearch.models import FilterSpec
from jobsearch.scrapers.dice import DiceAdapter
from jobsearch.scrapers.linkedin import LinkedInAdapter

# Settle/scroll pauses are zeroed so tests do not sleep.
CONFIGS = {
    c.source_id: replace(c, settle_seconds=0.0, scroll_pause_seconds=0.0)
    for c in SOURCE_TABLE
}


@pytest.fixture
def linkedin(settings, fake_driver, browser_session, fx):
    driver = fake_driver(fx.text("linkedin_search.html"), title="Software Engineer jobs | LinkedIn")
    adapter = LinkedInAdapter(CONFIGS["linkedin"], settings, browser=browser_session(driver))
    return adapter, driver


def test_linkedin_parses_rendered_cards(linkedin):
    adapter, driver = linkedin
    out = adapter.search(FilterSpec.create("software engineer"))

    assert [p.title for p in out] == ["Staff Software Engineer", "Platform Engineer"]
    staff, platform = out
    assert staff.source == "LinkedIn"
    assert staff.reputability == 10
    assert staff.company == "Soylent"
    assert staff.location == "Remote"
    assert staff.url == "https://www.linkedin.com/jobs/view/staff-engineer-111"
    assert staff.posted_date == date(2025, 11, 4)
    assert platform.url == "https://www.linkedin.com/jobs/"
    assert platform.location == "Not specified"
    assert driver.scripts == ["window.scrollTo(0, document.body.scrollHeight/2);"]


def test_linkedin_url_encodes_filters(linkedin):
    adapter, _ = linkedin
    f = FilterSpec.create(
        "data engineer", work_model="Hybrid", city="San Jose", state="CA", experience_level="Senior"
    )
    url = adapter.build_url(f)
    assert url.startswith("https://www.linkedin.com/jobs/search/?keywords=data%20engineer")
    q = parse_qs(urlparse(url).query)
    assert q["location"] == ["San Jose, CA"]
    assert q["distance"] == ["50"]
    assert q["f_E"] == ["4,5,6"]
    assert q["f_WT"] == ["3"]
    assert q["f_TPR"] == ["r86400"]


def test_linkedin_url_without_optional_filters(linkedin):
    adapter, _ = linkedin
    q = parse_qs(urlparse(adapter.build_url(FilterSpec.create("qa"))).query, keep_blank_values=True)
    assert q["location"] == [""]
    assert "f_E" not in q and "f_WT" not in q and "distance" not in q


def test_linkedin_experience_post_filter(linkedin):
    adapter, _ = linkedin
    out = adapter.search(FilterSpec.create("engineer", experience_level="Senior"))
    assert [p.title for p in out] == ["Staff Software Engineer"]


def test_inactive_browser_returns_empty_immediately(settings, fake_driver):
    adapter = LinkedInAdapter(CONFIGS["linkedin"], settings, browser=BrowserSession(settings=settings))
    assert adapter.search(FilterSpec.create("software engineer")) == []


def test_missing_browser_returns_empty(settings):
    adapter = DiceAdapter(CONFIGS["dice"], settings, browser=None)
    assert adapter.search(FilterSpec.create("data")) == []


def test_interstitial_page_yields_empty(settings, fake_driver, browser_session, fx):
    driver = fake_driver(fx.text("interstitial.html"), title="Security Check")
    adapter = DiceAdapter(CONFIGS["dice"], settings, browser=browser_session(driver))
    assert adapter.search(FilterSpec.create("data")) == []
    assert driver.scripts == []


def test_challenge_appearing_after_scroll_yields_empty(settings, fake_driver, browser_session, fx, caplog):
    driver = fake_driver(fx.text("dice_search.html"), title="Jobs | Dice.com")
    challenge = fx.text("interstitial.html")

    def scroll(script):
        driver.scripts.append(script)
        driver.html = challenge
        driver.title = "Security Check"

    driver.execute_script = scroll
    adapter = DiceAdapter(CONFIGS["dice"], settings, browser=browser_session(driver))
    with caplog.at_level("WARNING"):
        assert adapter.search(FilterSpec.create("data")) == []
    assert len(driver.scripts) == 1
    assert "interstitial:detected" in caplog.text
    assert "list:empty" not in caplog.text


def test_dice_falls_back_to_detail_link_parents(settings, fake_driver, browser_session, fx):
    driver = fake_driver(fx.text("dice_search.html"), title="Jobs | Dice.com")
    adapter = DiceAdapter(CONFIGS["dice"], settings, browser=browser_session(driver))
    out = adapter.search(FilterSpec.create("data"))

    assert [p.title for p in out] == ["Data Engineer", "Data Analyst"]
    assert out[0].url == "https://www.dice.com/job-detail/abc-123"
    assert out[0].company == "See posting"
    assert out[1].company == "Tyrell"
    assert out[1].location == "Remote"
    assert out[1].source == "Dice"
    assert out[1].reputability == 8


def test_dice_url(settings):
    adapter = DiceAdapter(CONFIGS["dice"], settings)
    url = adapter.build_url(FilterSpec.create("data engineer", work_model="Remote", city="Austin", state="TX"))
    q = parse_qs(urlparse(url).query)
    assert q["q"] == ["data engineer"]
    assert q["location"] == ["Austin, TX"]
    assert q["radius"] == ["50"]
    assert q["filters.workplaceTypes"] == ["Remote"]
    assert q["filters.postedDate"] == ["ONE"]
    assert q["pageSize"] == ["25"]


def test_empty_page_logs_body_sample(settings, fake_driver, browser_session, fx, caplog):
    driver = fake_driver(fx.text("dice_empty.html"), title="Jobs | Dice.com")
    adapter = DiceAdapter(CONFIGS["dice"], settings, browser=browser_session(driver))
    with caplog.at_level("WARNING"):
        assert adapter.search(FilterSpec.create("data")) == []
    assert "list:empty" in caplog.text
    assert "still loading" in caplog.text


def test_navigation_is_bounded_by_deadline(linkedin):
    from jobsearch.utils.cancel import CancelToken

    adapter, driver = linkedin
    adapter.search(FilterSpec.create("software engineer"), CancelToken(3.0))
    assert driver.page_load_timeouts and driver.page_load_timeouts[-1] <= 3.0
