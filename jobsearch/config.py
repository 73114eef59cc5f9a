"""
Environment-based settings and the static source table.

Settings are read once per process via `Settings.from_env()` (a `.env` file in
the working directory is honored). `SOURCE_TABLE` is declared in tie-break
order: when two postings share a composite score, the one from the source
listed first wins.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

from jobsearch.models import SourceConfig, SourceKind
from jobsearch.utils.http import DESKTOP_USER_AGENT

load_dotenv()

_CREDENTIAL_PLACEHOLDERS = {"", "your_app_id_here", "your_app_key_here", "changeme"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw not in {"0", "false", "no", "off"}


@dataclass
class Settings:
    adzuna_app_id: Optional[str] = None
    adzuna_app_key: Optional[str] = None
    http_connect_timeout: float = 30.0
    http_read_timeout: float = 30.0
    http_max_retries: int = 2
    global_deadline_seconds: float = 75.0
    per_adapter_cap: int = 25
    comment_thread_cap: int = 40
    browser_headless: bool = True
    browser_user_agent: str = DESKTOP_USER_AGENT
    browser_implicit_wait: float = 10.0
    browser_page_load_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            adzuna_app_id=os.getenv("ADZUNA_APP_ID") or None,
            adzuna_app_key=os.getenv("ADZUNA_APP_KEY") or None,
            http_connect_timeout=_env_float("HTTP_CONNECT_TIMEOUT", 30.0),
            http_read_timeout=_env_float("HTTP_READ_TIMEOUT", 30.0),
            http_max_retries=_env_int("HTTP_MAX_RETRIES", 2),
            global_deadline_seconds=_env_float("GLOBAL_DEADLINE_SECONDS", 75.0),
            per_adapter_cap=_env_int("PER_ADAPTER_CAP", 25),
            comment_thread_cap=_env_int("COMMENT_THREAD_CAP", 40),
            browser_headless=_env_bool("BROWSER_HEADLESS", True),
            browser_user_agent=os.getenv("BROWSER_USER_AGENT") or DESKTOP_USER_AGENT,
            browser_implicit_wait=_env_float("BROWSER_IMPLICIT_WAIT", 10.0),
            browser_page_load_timeout=_env_float("BROWSER_PAGE_LOAD_TIMEOUT", 30.0),
        )

    def has_adzuna_credentials(self) -> bool:
        app_id = (self.adzuna_app_id or "").strip()
        app_key = (self.adzuna_app_key or "").strip()
        return (
            app_id.lower() not in _CREDENTIAL_PLACEHOLDERS
            and app_key.lower() not in _CREDENTIAL_PLACEHOLDERS
        )

    def has_credentials_for(self, cfg: SourceConfig) -> bool:
        if not cfg.requires_credentials:
            return True
        if cfg.source_id == "adzuna":
            return self.has_adzuna_credentials()
        return False

    def cap_for(self, cfg: SourceConfig) -> int:
        if cfg.cap is not None:
            return int(cfg.cap)
        if cfg.comment_thread:
            return int(self.comment_thread_cap)
        return int(self.per_adapter_cap)


SOURCE_TABLE: Tuple[SourceConfig, ...] = (
    SourceConfig(
        source_id="adzuna",
        display_name="Adzuna",
        kind=SourceKind.JsonApi,
        reputability=9,
        cap=50,
        requires_credentials=True,
    ),
    SourceConfig(
        source_id="remotive",
        display_name="Remotive",
        kind=SourceKind.JsonApi,
        reputability=8,
        start_delay=0.5,
        upstream_query=False,
    ),
    SourceConfig(
        source_id="hackernews",
        display_name="HackerNews",
        kind=SourceKind.StaticHtml,
        reputability=8,
        comment_thread=True,
        start_delay=1.0,
        timeout=20.0,
        upstream_query=False,
    ),
    SourceConfig(
        source_id="weworkremotely",
        display_name="WeWorkRemotely",
        kind=SourceKind.StaticHtml,
        reputability=9,
        start_delay=0.5,
        timeout=15.0,
        upstream_query=False,
    ),
    SourceConfig(
        source_id="indeed",
        display_name="Indeed",
        kind=SourceKind.StaticHtml,
        reputability=9,
        start_delay=1.0,
        timeout=15.0,
    ),
    SourceConfig(
        source_id="linkedin",
        display_name="LinkedIn",
        kind=SourceKind.DynamicPage,
        reputability=10,
        settle_seconds=5.0,
    ),
    SourceConfig(
        source_id="dice",
        display_name="Dice",
        kind=SourceKind.DynamicPage,
        reputability=8,
        settle_seconds=8.0,
        scroll_pause_seconds=2.0,
    ),
)
