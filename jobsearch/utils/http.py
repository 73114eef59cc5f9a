from __future__ import annotations

from typing import Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from jobsearch.utils.cancel import CancelToken

DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
POLITE_USER_AGENT = "jobsearch-aggregator/0.1 (+https://pypi.org/project/jobsearch-aggregator/)"

JSON_HEADERS = {
    "Accept": "application/json",
    "User-Agent": POLITE_USER_AGENT,
}

BROWSER_HEADERS = {
    "User-Agent": DESKTOP_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Cache-Control": "max-age=0",
    "Referer": "https://www.google.com/",
}

# Never let a request timeout collapse to zero; requests treats 0 as "no wait".
MIN_TIMEOUT = 0.5


def build_session_with_retries(
    total: int = 2,
    backoff_factor: float = 0.5,
    status_forcelist: tuple[int, ...] = (429, 500, 502, 503, 504),
    headers: Optional[dict] = None,
) -> requests.Session:
    """
    Create a `requests.Session` with retry/backoff mounted for http and https.

    Only GET is retried. `Retry-After` is honored and a final error status is
    returned to the caller rather than raised, so adapters can log the status.

    Args:
        total: Maximum retries per error category (connect/read/status).
        backoff_factor: Exponential backoff multiplier between retries.
        status_forcelist: Status codes that trigger a retry.
        headers: Default headers installed on the session.

    Returns:
        A ready-to-use session.
    """
    s = requests.Session()
    s.headers.update(headers or {})
    retry = Retry(
        total=total,
        connect=total,
        read=total,
        status=total,
        backoff_factor=backoff_factor,
        status_forcelist=status_forcelist,
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
        respect_retry_after_header=True,
    )
    adapter = HTTPAdapter(max_retries=retry)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    return s


def request_timeout(
    connect: float, read: float, token: Optional[CancelToken] = None
) -> Tuple[float, float]:
    """
    (connect, read) timeout pair, each clipped to the token's remaining time.
    """
    if token is None:
        return float(connect), float(read)
    c = token.remaining(connect)
    r = token.remaining(read)
    return max(MIN_TIMEOUT, c or 0.0), max(MIN_TIMEOUT, r or 0.0)
