import json
import sys
from pathlib import Path

import pytest

# ---------- Resolve project root ----------
HERE = Path(__file__).resolve()
PROJECT_ROOT = HERE.parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from jobsearch.browser import BrowserSession  # noqa: E402
from jobsearch.config import Settings  # noqa: E402


# ---------- Test fixtures ----------
@pytest.fixture
def fx(request):
    base = Path(request.config.rootpath) / "tests" / "data"

    class _Fx:
        def text(self, name):
            return (base / name).read_text(encoding="utf-8")

        def json(self, name):
            return json.loads((base / name).read_text(encoding="utf-8"))

    return _Fx()


@pytest.fixture
def settings():
    """Offline settings: dummy credentials, short deadline, no retries."""
    return Settings(
        adzuna_app_id="test-id",
        adzuna_app_key="test-key",
        http_max_retries=0,
        global_deadline_seconds=5.0,
    )


# ---------- Fake HTTP ----------
class FakeResponse:
    def __init__(self, text="", status_code=200):
        self.text = text
        self.status_code = status_code

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """
    Stand-in for requests.Session: routes GETs by URL prefix.

    `routes` maps a URL prefix to a FakeResponse or an exception instance
    to raise. Every call is recorded on `.calls`.
    """

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def get(self, url, headers=None, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        for prefix, resp in self.routes.items():
            if url.startswith(prefix):
                if isinstance(resp, Exception):
                    raise resp
                return resp
        return FakeResponse("not found", status_code=404)


@pytest.fixture
def fake_session():
    def make(routes):
        return FakeSession(routes)

    return make


@pytest.fixture
def response():
    def make(text="", status_code=200):
        return FakeResponse(text, status_code)

    return make


# ---------- Fake browser ----------
class FakeDriver:
    """Minimal WebDriver double serving fixed page HTML."""

    def __init__(self, html, title=""):
        self.html = html
        self.title = title
        self.visited = []
        self.scripts = []
        self.page_load_timeouts = []
        self.quit_calls = 0

    def set_page_load_timeout(self, seconds):
        self.page_load_timeouts.append(seconds)

    def get(self, url):
        self.visited.append(url)

    @property
    def page_source(self):
        return self.html

    def execute_script(self, script):
        self.scripts.append(script)

    def quit(self):
        self.quit_calls += 1


@pytest.fixture
def fake_driver():
    def make(html="<html><body></body></html>", title=""):
        return FakeDriver(html, title)

    return make


@pytest.fixture
def browser_session(settings):
    def make(driver):
        return BrowserSession(driver=driver, settings=settings)

    return make
