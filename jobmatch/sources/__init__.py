from jobmatch.config import Settings
from jobmatch.log import get_logger

from .base import JobSource
from .mock import MockSource
from .serpapi import SerpApiSource

log = get_logger(__name__)

__all__ = ["JobSource", "MockSource", "SerpApiSource", "get_source"]


def get_source(settings: Settings) -> JobSource:
    if settings.has_serpapi_key:
        log.debug("Using source: SerpAPI (Google Jobs)")
        return SerpApiSource(settings)

    if settings.allow_mock:
        log.info("No SERPAPI_KEY — using MockSource")
        return MockSource()

    # Surfaces SourceUnavailable on first fetch.
    return SerpApiSource(settings)
