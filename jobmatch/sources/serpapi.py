"""SerpAPI Google Jobs search."""
from __future__ import annotations

import requests

from jobmatch.config import Settings
from jobmatch.errors import RateLimited, SourceUnavailable, UpstreamError
from jobmatch.log import get_logger
from jobmatch.retry import retry
from jobmatch.sources.base import JobSource

log = get_logger(__name__)

SERPAPI_URL = "https://serpapi.com/search"


class SerpApiSource(JobSource):
    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        self.settings = settings
        self.api_key: str = settings.serpapi_key
        self.session = session or requests.Session()

    def _require_key(self) -> None:
        if not self.settings.has_serpapi_key:
            raise SourceUnavailable(
                "SERPAPI_KEY not configured. Copy .env.example to .env, "
                "add your key from https://serpapi.com and restart."
            )

    @retry(
        max_attempts=3,
        base_delay=2.0,
        retryable=(requests.ConnectionError, requests.Timeout),
    )
    def _get(self, params: dict) -> dict:
        r = self.session.get(
            SERPAPI_URL,
            params={**params, "api_key": self.api_key},
            timeout=self.settings.request_timeout,
        )
        if r.status_code in (401, 403):
            raise SourceUnavailable("Invalid SerpAPI key. Please check your API key in .env file")
        if r.status_code == 429:
            raise RateLimited("SerpAPI rate limit exceeded. Please wait or upgrade your plan")
        try:
            r.raise_for_status()
            data = r.json()
        except (requests.HTTPError, ValueError) as exc:
            raise UpstreamError(f"Failed to fetch jobs: {exc}") from exc
        if data.get("error"):
            raise UpstreamError(f"Failed to fetch jobs: {data['error']}")
        return data

    def _request(self, params: dict) -> dict:
        try:
            return self._get(params)
        except requests.RequestException as exc:
            raise UpstreamError(f"Failed to fetch jobs: {exc}") from exc

    def fetch(self, query: str, location: str) -> list[dict]:
        self._require_key()
        location = location or self.settings.default_location
        log.info("Fetching jobs for %r in %s", query, location)
        data = self._request(
            {
                "engine": "google_jobs",
                "q": query,
                "location": location,
                "hl": "en",
                "gl": self.settings.country_code,
            }
        )
        jobs = data.get("jobs_results") or []
        log.info("SerpAPI returned %d jobs", len(jobs))
        return jobs

    def fetch_job_details(self, job_id: str) -> dict:
        self._require_key()
        log.debug("Fetching job details for %s", job_id)
        return self._request({"engine": "google_jobs_listing", "q": job_id})
