"""Turn raw Google Jobs results into JobPosting records."""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable
from urllib.parse import quote

from jobmatch.config import Settings
from jobmatch.log import get_logger
from jobmatch.models import JobPosting

log = get_logger(__name__)

MAX_DESCRIPTION_CHARS = 2000

# Checked in order; whole words only, so "three weeks" is not read as "hr".
_RELATIVE_UNITS: list[tuple[re.Pattern[str], timedelta]] = [
    (re.compile(r"\b(?:hours?|hrs?)\b"), timedelta(hours=1)),
    (re.compile(r"\bdays?\b"), timedelta(days=1)),
    (re.compile(r"\bweeks?\b"), timedelta(weeks=1)),
    (re.compile(r"\bmonths?\b"), timedelta(days=30)),
]

_ABSOLUTE_FORMATS = ("%b %d, %Y", "%B %d, %Y", "%d %b %Y", "%d %B %Y", "%Y-%m-%d", "%m/%d/%Y")

RECENCY_WINDOWS: dict[str, timedelta] = {
    "24h": timedelta(days=1),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}

_SALARY_RE = re.compile(r"(?:Rs\.?|LKR|USD)\s*[\d,]+(?:\s*-\s*[\d,]+)?", re.IGNORECASE)
_INT_RE = re.compile(r"\d+")
_WHITESPACE_RE = re.compile(r"\s+")


def _first_link(options: Any) -> str:
    if isinstance(options, list) and options and isinstance(options[0], dict):
        return options[0].get("link") or ""
    return ""


def resolve_apply_link(hit: dict) -> str:
    """Best link for applying, falling back to a Google search URL."""
    link = (
        hit.get("apply_link")
        or _first_link(hit.get("apply_options"))
        or hit.get("share_url")
        or _first_link(hit.get("related_links"))
    )
    if link and link != "#":
        return link

    title = hit.get("title") or ""
    company = hit.get("company_name") or ""
    job_id = hit.get("job_id")
    if job_id:
        return (
            "https://www.google.com/search?q="
            f"{quote(title + ' ' + company, safe='')}"
            "&ibp=htl;jobs#fpstate=tldetail&htivrt=jobs"
            f"&htiq={quote(title, safe='')}&htidocid={job_id}"
        )
    return f"https://www.google.com/search?q={quote(title + ' at ' + company, safe='')}"


def parse_posting_date(value: str | None, now: datetime | None = None) -> datetime | None:
    """Parse "3 days ago" style or absolute dates; None when unknown.

    A month is treated as 30 days; calendar boundaries are ignored.
    """
    if not value:
        return None
    now = now or datetime.now(timezone.utc)
    low = value.lower()

    for pattern, unit in _RELATIVE_UNITS:
        if pattern.search(low):
            m = _INT_RE.search(low)
            quantity = int(m.group(0)) if m else 1
            return now - quantity * unit

    text = value.strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
        for fmt in _ABSOLUTE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def clean_description(description: str) -> str:
    if not description:
        return ""
    cleaned = _WHITESPACE_RE.sub(" ", description).strip()
    if len(cleaned) > MAX_DESCRIPTION_CHARS:
        cleaned = cleaned[:MAX_DESCRIPTION_CHARS] + "..."
    return cleaned


def extract_salary(hit: dict) -> str | None:
    extensions = hit.get("detected_extensions") or {}
    if extensions.get("salary"):
        return extensions["salary"]
    m = _SALARY_RE.search(hit.get("description") or "")
    return m.group(0) if m else None


def normalize_jobs(raw_jobs: Any, settings: Settings | None = None) -> list[JobPosting]:
    if not isinstance(raw_jobs, list):
        return []
    default_location = (settings or Settings()).default_location

    jobs: list[JobPosting] = []
    for index, hit in enumerate(raw_jobs):
        if not isinstance(hit, dict):
            log.debug("Skipping non-dict job record at index %d", index)
            continue
        extensions = hit.get("detected_extensions") or {}
        posted_raw = extensions.get("posted_at")
        location = (hit.get("location") or "").strip()
        jobs.append(
            JobPosting(
                id=hit.get("job_id") or f"job_{index}",
                title=hit.get("title") or "Untitled Position",
                company=hit.get("company_name") or "Unknown Company",
                location=location or default_location,
                description=clean_description(hit.get("description") or ""),
                apply_link=resolve_apply_link(hit),
                provider=hit.get("via") or "Unknown",
                posted_at=parse_posting_date(posted_raw),
                posted_at_raw=posted_raw,
                schedule=extensions.get("schedule_type"),
                salary=extract_salary(hit),
                thumbnail=hit.get("thumbnail"),
                raw=hit,
            )
        )
    log.debug("Normalized %d of %d raw jobs", len(jobs), len(raw_jobs))
    return jobs


def deduplicate(jobs: Iterable[JobPosting]) -> list[JobPosting]:
    """Keep the first posting per (title, company), case-insensitive."""
    seen: set[tuple[str, str]] = set()
    out: list[JobPosting] = []
    for job in jobs:
        key = (job.title.lower(), job.company.lower())
        if key in seen:
            continue
        seen.add(key)
        out.append(job)
    return out


def filter_by_recency(
    jobs: list[JobPosting], time_filter: str | None = "all", now: datetime | None = None
) -> list[JobPosting]:
    """Drop postings older than the window; undated postings are kept."""
    window = RECENCY_WINDOWS.get(time_filter or "all")
    if window is None:
        return jobs
    cutoff = (now or datetime.now(timezone.utc)) - window
    return [j for j in jobs if j.posted_at is None or j.posted_at >= cutoff]


def filter_by_keywords(jobs: list[JobPosting], keywords: list[str] | None) -> list[JobPosting]:
    if not keywords:
        return jobs
    lowered = [k.lower() for k in keywords]
    out: list[JobPosting] = []
    for job in jobs:
        haystack = f"{job.title} {job.description} {job.company}".lower()
        if any(k in haystack for k in lowered):
            out.append(job)
    return out
