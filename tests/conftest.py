"""Shared fixtures. Nothing here touches the network."""
from __future__ import annotations

import os

os.environ.setdefault("JOBMATCH_LOG_FILE", "false")

import pytest  # noqa: E402

from jobmatch.config import Settings  # noqa: E402
from jobmatch.errors import ProviderError  # noqa: E402
from jobmatch.models import JobPosting  # noqa: E402

RESUME_TEXT = (
    "5 years experience with JavaScript, React, Node.js, MongoDB and Express "
    "building REST APIs for web applications."
)


class FakeEmbeddingProvider:
    """Deterministic vectors; raises for any text containing a marker."""

    def __init__(self, fail_marker: str | None = None, fail_all: bool = False) -> None:
        self.fail_marker = fail_marker
        self.fail_all = fail_all
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_all or (self.fail_marker and self.fail_marker in text):
            raise ProviderError("Failed to generate embedding")
        return [1.0, float(len(text) % 7 + 1), float(text.count("e") + 1)]


def make_job(
    id: str = "job_0",
    title: str = "React Developer",
    company: str = "Acme",
    description: str = "Looking for a React developer with Node.js and AWS experience",
    **kwargs,
) -> JobPosting:
    return JobPosting(
        id=id,
        title=title,
        company=company,
        location=kwargs.pop("location", "Colombo"),
        description=description,
        apply_link=kwargs.pop("apply_link", f"https://example.com/{id}"),
        **kwargs,
    )


@pytest.fixture
def resume_text() -> str:
    return RESUME_TEXT


@pytest.fixture
def settings() -> Settings:
    return Settings(
        serpapi_key="test-serp-key",
        openai_api_key="",
        use_simple_matching=True,
        max_workers=4,
    )


@pytest.fixture
def raw_jobs() -> list[dict]:
    return [
        {
            "job_id": "abc123",
            "title": "Senior Laravel Developer",
            "company_name": "Pearson Lanka",
            "location": "  Colombo  ",
            "via": "LinkedIn",
            "description": "We need   a Laravel\n\ndeveloper. Salary Rs. 150,000 - 200,000 per month.",
            "detected_extensions": {"posted_at": "3 days ago", "schedule_type": "Full-time"},
            "apply_options": [{"title": "LinkedIn", "link": "https://linkedin.com/jobs/1"}],
        },
        {
            "title": "PHP Engineer",
            "company_name": "CodeGen",
            "description": "PHP, MySQL and Docker.",
            "detected_extensions": {"posted_at": "2 months ago", "salary": "LKR 100K a month"},
            "related_links": [{"link": "https://codegen.lk/careers"}],
        },
        {
            "job_id": "dup-1",
            "title": "senior laravel developer",
            "company_name": "PEARSON LANKA",
            "description": "Duplicate posting",
        },
        {},
    ]
