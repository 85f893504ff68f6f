"""Exception types raised across the matching pipeline."""
from __future__ import annotations


class JobMatchError(Exception):
    """Base class for every error raised by jobmatch."""


class ValidationError(JobMatchError):
    """User input (CV text, query, job list) is missing or malformed."""


class SourceError(JobMatchError):
    """The external job source could not serve the request."""


class SourceUnavailable(SourceError):
    """Job source credentials are missing or rejected."""


class RateLimited(SourceError):
    """Job source refused the request because of quota or rate limits."""


class UpstreamError(SourceError):
    """Any other job source failure (network, HTTP, error payload)."""


class ProviderError(JobMatchError):
    """Embedding or text generation provider failed."""


class DimensionMismatch(JobMatchError, ValueError):
    """Two vectors compared by cosine similarity differ in length."""
