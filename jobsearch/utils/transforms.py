from __future__ import annotations

import re

from bs4 import BeautifulSoup as BS
from datetime import date, datetime, timedelta
from typing import Any, Optional
from urllib.parse import urljoin, urlparse


def clean_text(value: Any) -> str:
    """Collapse all whitespace runs to single spaces and trim."""
    return re.sub(r"\s+", " ", str(value or "")).strip()


def truncate(value: str, limit: int) -> str:
    value = value or ""
    return value[:limit].strip() if len(value) > limit else value


def absolute_url(base: str, href: Optional[str]) -> str:
    """
    Resolve `href` against `base`; return "" for empty or non-http results.
    """
    href = (href or "").strip()
    if not href or href.startswith(("javascript:", "mailto:", "#")):
        return ""
    u = urljoin(base, href)
    p = urlparse(u)
    if p.scheme in ("http", "https") and p.netloc:
        return u
    return ""


def parse_date(s: Optional[str], fallback: Optional[date] = None) -> date:
    """
    Parse a loose date string into a `date`.

    Accepts ISO-8601 timestamps (only the date part is used), Y-M-D / Y/M/D,
    "N days ago", "today" and "yesterday". Anything else yields `fallback`
    (the fetch date by default).
    """
    anchor = fallback or date.today()
    if not s:
        return anchor
    s = str(s).strip()
    try:
        return datetime.fromisoformat(s[:10]).date()
    except ValueError:
        pass
    m = re.match(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})", s)
    if m:
        y, mo, da = (int(x) for x in m.groups())
        try:
            return date(y, mo, da)
        except ValueError:
            return anchor
    m = re.match(r"^(\d+)\s*(day|days|d)\s*ago$", s, re.I)
    if m:
        return anchor - timedelta(days=int(m.group(1)))
    low = s.lower()
    if low == "yesterday":
        return anchor - timedelta(days=1)
    if low in {"today", "just posted", "just now"}:
        return anchor
    return anchor


def format_salary_range(min_v: Any, max_v: Any) -> Optional[str]:
    """
    "$95,000 - $120,000" when both bounds are positive numbers, else None.
    """
    try:
        lo = float(min_v)
        hi = float(max_v)
    except (TypeError, ValueError):
        return None
    if lo <= 0 or hi <= 0:
        return None
    return f"${lo:,.0f} - ${hi:,.0f}"


def sanitize_description(raw: Optional[str]) -> str:
    if not raw:
        return ""
    s = str(raw)
    # normalize common line-break variants early
    s = (
        s.replace("</br>", "<br>")
        .replace("<br/>", "<br>")
        .replace("<BR/>", "<br>")
        .replace("<BR>", "<br>")
    )
    if "<" not in s:
        return clean_text(s)
    soup = BS(s, "html.parser")
    for tag in soup.find_all(["script", "style"]):
        tag.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for li in soup.find_all("li"):
        text = li.get_text(" ", strip=True)
        li.clear()
        li.append(text + "\n")
    txt = soup.get_text("\n", strip=True)
    txt = re.sub(r"[ \t]+", " ", txt)
    txt = re.sub(r"\n{3,}", "\n\n", txt)
    return txt.replace("\xa0", " ").strip()
