"""
Scoped headless-browser session shared by the dynamic-page sources.

`open_browser_session()` returns a `BrowserSession` usable as a context
manager; the driver is quit on every exit path. When Chrome cannot be started
the session comes back inactive (with the failure on `.error`) and dynamic
sources return nothing instead of failing the search.

A driver is not safe for parallel page loads: callers hold `session.lock`
around each navigate/read sequence.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

import undetected_chromedriver as uc
from selenium.common.exceptions import TimeoutException, WebDriverException

from jobsearch.config import Settings
from jobsearch.errors import ResourceUnavailable, TransportFailure
from jobsearch.utils.cancel import CancelToken
from jobsearch.utils.http import MIN_TIMEOUT

logger = logging.LoggerAdapter(logging.getLogger(__name__), {"source": "browser"})

WINDOW_SIZE = "1920,1080"
CLOSE_LOCK_WAIT = 0.5


def build_chrome_options(settings: Settings):
    """
    Chrome options for an automation-quiet headless session.

    Headless mode itself is passed to `uc.Chrome(headless=...)`.
    """
    options = uc.ChromeOptions()
    options.add_argument("--disable-gpu")
    options.add_argument("--no-sandbox")
    options.add_argument("--disable-dev-shm-usage")
    options.add_argument("--disable-blink-features=AutomationControlled")
    options.add_argument("--disable-extensions")
    options.add_argument("--disable-popup-blocking")
    options.add_argument(f"--window-size={WINDOW_SIZE}")
    options.add_argument(f"--user-agent={settings.browser_user_agent}")
    return options


def chrome_driver_factory(settings: Settings):
    """Start undetected-chromedriver with the session timeouts applied."""
    driver = uc.Chrome(
        options=build_chrome_options(settings),
        headless=settings.browser_headless,
        use_subprocess=True,
    )
    driver.implicitly_wait(settings.browser_implicit_wait)
    driver.set_page_load_timeout(settings.browser_page_load_timeout)
    driver.set_script_timeout(settings.browser_page_load_timeout)
    return driver


class BrowserSession:
    """
    One browser process for the duration of a single search.

    Attributes:
        driver: The selenium WebDriver, or None when inactive.
        error: Why the session is inactive, if it is.
        lock: Serializes page loads across dynamic sources.
    """

    def __init__(
        self,
        driver: Any = None,
        settings: Optional[Settings] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.driver = driver
        self.settings = settings or Settings()
        self.error = error
        self.lock = threading.Lock()
        self._closed = False

    @property
    def active(self) -> bool:
        return self.driver is not None and not self._closed

    def navigate(self, url: str, token: Optional[CancelToken] = None) -> None:
        """
        Load `url`, bounding the page load by the search deadline.

        A page-load timeout is not fatal: whatever rendered so far is kept.

        Raises:
            ResourceUnavailable: The session is inactive.
            TransportFailure: The driver failed to navigate.
        """
        if not self.active:
            raise ResourceUnavailable("browser session is not active")
        budget = self.settings.browser_page_load_timeout
        if token is not None:
            budget = max(MIN_TIMEOUT, token.remaining(budget) or 0.0)
        try:
            self.driver.set_page_load_timeout(budget)
            self.driver.get(url)
        except TimeoutException:
            logger.warning(f"browser:timeout url={url} seconds={budget:.1f}")
        except WebDriverException as e:
            raise TransportFailure(f"navigation failed: {e.msg or e}") from e

    @property
    def title(self) -> str:
        return (self.driver.title or "") if self.active else ""

    def page_source(self) -> str:
        return (self.driver.page_source or "") if self.active else ""

    def scroll_to_middle(self) -> None:
        """Scroll halfway down to trigger lazy-loaded results."""
        if self.active:
            self.driver.execute_script(
                "window.scrollTo(0, document.body.scrollHeight/2);"
            )

    def close(self) -> None:
        if self.driver is None or self._closed:
            return
        self._closed = True
        # A dynamic source may still be mid page load at the deadline. Give it
        # a moment to let go of the driver; quitting underneath it surfaces
        # there as a TransportFailure.
        held = self.lock.acquire(timeout=CLOSE_LOCK_WAIT)
        try:
            self.driver.quit()
            logger.info("browser:closed")
        except Exception as e:
            logger.warning(f"browser:close:error err={e}")
        finally:
            if held:
                self.lock.release()

    def __enter__(self) -> "BrowserSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def open_browser_session(
    settings: Optional[Settings] = None,
    enabled: bool = True,
    driver_factory: Optional[Callable[[Settings], Any]] = None,
) -> BrowserSession:
    """
    Start a browser session, or return an inactive one.

    Args:
        settings: Timeouts, headless flag and user agent.
        enabled: False when no dynamic source is configured; no process starts.
        driver_factory: Builds the WebDriver; defaults to undetected-chromedriver.

    Returns:
        A BrowserSession; check `.active` before driving it.
    """
    settings = settings or Settings()
    if not enabled:
        return BrowserSession(settings=settings)
    factory = driver_factory or chrome_driver_factory
    logger.info("browser:start")
    try:
        driver = factory(settings)
    except Exception as e:
        logger.error(f"browser:unavailable err={type(e).__name__}: {e}")
        return BrowserSession(
            settings=settings, error=ResourceUnavailable(f"browser init failed: {e}")
        )
    return BrowserSession(driver=driver, settings=settings)


class BrowserLease:
    """
    The browser for one search, started on first use.

    The dynamic-source task calls `acquire()`, so a slow Chrome start holds up
    only that task and never the HTTP sources. The aggregator calls
    `release()` on every exit path. A session that finishes starting after the
    release is closed at once and the caller gets an inactive one instead.
    """

    def __init__(
        self,
        factory: Callable[..., BrowserSession] = open_browser_session,
        settings: Optional[Settings] = None,
    ) -> None:
        self.factory = factory
        self.settings = settings or Settings()
        self._lock = threading.Lock()
        self._session: Optional[BrowserSession] = None
        self._released = False

    def acquire(self) -> BrowserSession:
        session = self.factory(self.settings, enabled=True)
        with self._lock:
            if not self._released:
                self._session = session
                return session
        logger.info("browser:discard reason=search_finished")
        session.close()
        return BrowserSession(
            settings=self.settings,
            error=ResourceUnavailable("search finished before the browser started"),
        )

    def release(self) -> None:
        with self._lock:
            self._released = True
            session, self._session = self._session, None
        if session is not None:
            session.close()
