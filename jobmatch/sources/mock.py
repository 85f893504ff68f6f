"""Offline job source returning sample Google Jobs records."""
from __future__ import annotations

from jobmatch.log import get_logger
from jobmatch.sources.base import JobSource

log = get_logger(__name__)

_SAMPLE_JOBS: list[dict] = [
    {
        "job_id": "mock-1",
        "title": "Senior React Developer",
        "company_name": "TechCorp Lanka",
        "location": "Colombo",
        "via": "LinkedIn",
        "description": (
            "Looking for a React developer with Node.js and AWS experience. "
            "5+ years building TypeScript front ends, REST API integration and CI/CD."
        ),
        "detected_extensions": {"posted_at": "2 days ago", "schedule_type": "Full-time"},
        "apply_options": [{"title": "LinkedIn", "link": "https://example.com/jobs/mock-1"}],
    },
    {
        "job_id": "mock-2",
        "title": "Laravel Backend Engineer",
        "company_name": "CloudScale",
        "location": "Kandy",
        "via": "Indeed",
        "description": (
            "PHP and Laravel engineer to maintain MySQL-backed services. "
            "Docker, Git and agile teamwork required. Salary LKR 250,000 - 350,000."
        ),
        "detected_extensions": {"posted_at": "1 week ago", "schedule_type": "Full-time"},
        "share_url": "https://example.com/jobs/mock-2",
    },
    {
        "job_id": "mock-3",
        "title": "Data Scientist",
        "company_name": "Insight Analytics",
        "via": "Company site",
        "description": (
            "Python, machine learning and SQL. Build data science pipelines "
            "on GCP and communicate findings to stakeholders."
        ),
        "detected_extensions": {"posted_at": "3 weeks ago"},
    },
]


class MockSource(JobSource):
    def fetch(self, query: str, location: str) -> list[dict]:
        log.info("MockSource returning %d sample jobs for %r", len(_SAMPLE_JOBS), query)
        return [dict(job) for job in _SAMPLE_JOBS]
