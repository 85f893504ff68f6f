"""Data models for CVs, job postings and match results."""
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round with halves going up (0.125 -> 0.13), unlike built-in round()."""
    scale = 10 ** ndigits
    return math.floor(value * scale + 0.5) / scale


@dataclass
class ResumeDocument:
    text: str
    skills: list[str] = field(default_factory=list)
    experience_years: int | None = None
    file_name: str = "pasted_text"
    uploaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "skills": list(self.skills),
            "experienceYears": self.experience_years,
            "fileName": self.file_name,
            "uploadedAt": _iso(self.uploaded_at),
        }


@dataclass
class JobPosting:
    id: str
    title: str
    company: str
    location: str
    description: str
    apply_link: str
    provider: str = "Unknown"
    posted_at: datetime | None = None
    posted_at_raw: str | None = None
    schedule: str | None = None
    salary: str | None = None
    thumbnail: str | None = None
    raw: dict = field(default_factory=dict)

    def to_dict(self, include_raw: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "description": self.description,
            "applyLink": self.apply_link,
            "provider": self.provider,
            "postedAt": _iso(self.posted_at),
            "postedAtRaw": self.posted_at_raw,
            "schedule": self.schedule,
            "salary": self.salary,
            "thumbnail": self.thumbnail,
        }
        if include_raw:
            data["raw"] = self.raw
        return data


@dataclass
class Suggestion:
    type: str  # skills | keywords | experience
    title: str
    description: str
    items: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "items": list(self.items),
        }


@dataclass
class SuggestionReport:
    suggestions: list[Suggestion]
    match_score: float = 0.0

    @property
    def has_improvements(self) -> bool:
        return len(self.suggestions) > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "suggestions": [s.to_dict() for s in self.suggestions],
            "matchScore": self.match_score,
            "hasImprovements": self.has_improvements,
        }


@dataclass
class MatchResult:
    job: JobPosting
    match_score: float
    strategy: str = "keyword"
    cv_suggestions: SuggestionReport | None = None

    @property
    def match_percentage(self) -> int:
        return int(round_half_up(self.match_score * 100))

    def with_suggestions(self, report: SuggestionReport) -> "MatchResult":
        return replace(self, cv_suggestions=report)

    def to_dict(self) -> dict[str, Any]:
        data = self.job.to_dict()
        data["matchScore"] = self.match_score
        data["matchPercentage"] = self.match_percentage
        data["matchStrategy"] = self.strategy
        if self.cv_suggestions is not None:
            data["cvSuggestions"] = self.cv_suggestions.to_dict()
        return data


@dataclass
class MatchInsights:
    matched_keywords: list[str]
    total_keywords: int
    match_rate: float
