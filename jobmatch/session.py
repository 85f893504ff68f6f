"""Per-session state: the current CV and the last search result.

The caller owns the Session (Streamlit keeps one in ``st.session_state``,
the CLI builds one per run). JSON snapshots under ``data/`` are written on a
best-effort basis and are never read back as the source of truth.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jobmatch.config import DATA_DIR, Settings
from jobmatch.log import get_logger
from jobmatch.models import JobPosting, ResumeDocument

log = get_logger(__name__)

CV_SNAPSHOT = "cv_store.json"
JOBS_SNAPSHOT = "jobs.json"


@dataclass
class SearchSnapshot:
    query: str
    location: str
    time_filter: str
    jobs: list[JobPosting]
    total_jobs: int = 0
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    keywords: list[str] = field(default_factory=list)

    @property
    def summary(self) -> str:
        """Total jobs found and, when filters ran, how many are left."""
        applied = []
        if self.time_filter and self.time_filter != "all":
            applied.append(f"posted: {self.time_filter}")
        if self.keywords:
            applied.append("keywords: " + ", ".join(self.keywords))
        text = f"Found {self.total_jobs} jobs"
        if applied:
            text += f" ({len(self.jobs)} after {'; '.join(applied)})"
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "location": self.location,
            "timeFilter": self.time_filter,
            "keywords": list(self.keywords),
            "fetchedAt": self.fetched_at.isoformat(),
            "totalJobs": self.total_jobs,
            "count": len(self.jobs),
            "jobs": [j.to_dict() for j in self.jobs],
        }


@dataclass
class Session:
    resume: ResumeDocument | None = None
    last_search: SearchSnapshot | None = None
    snapshot_dir: Path | None = DATA_DIR

    @classmethod
    def from_settings(cls, settings: Settings) -> "Session":
        return cls(snapshot_dir=DATA_DIR if settings.snapshot else None)

    @property
    def cached_jobs(self) -> list[JobPosting]:
        return list(self.last_search.jobs) if self.last_search else []

    def set_resume(self, resume: ResumeDocument) -> None:
        self.resume = resume
        self._write(CV_SNAPSHOT, resume.to_dict())

    def clear_resume(self) -> None:
        self.resume = None
        self._remove(CV_SNAPSHOT)

    def set_search(self, snapshot: SearchSnapshot) -> None:
        self.last_search = snapshot
        self._write(JOBS_SNAPSHOT, snapshot.to_dict())

    def _write(self, name: str, payload: dict[str, Any]) -> None:
        if self.snapshot_dir is None:
            return
        try:
            self.snapshot_dir.mkdir(parents=True, exist_ok=True)
            (self.snapshot_dir / name).write_text(
                json.dumps(payload, indent=2, default=str), encoding="utf-8"
            )
        except OSError as exc:
            log.warning("Could not save %s: %s", name, exc)

    def _remove(self, name: str) -> None:
        if self.snapshot_dir is None:
            return
        try:
            (self.snapshot_dir / name).unlink(missing_ok=True)
        except OSError as exc:
            log.warning("Could not remove %s: %s", name, exc)
