"""Similarity between CV text and job descriptions.

Two strategies share one interface:

  * ``EmbeddingStrategy``: OpenAI embeddings compared by cosine similarity.
  * ``KeywordStrategy``: Jaccard overlap of lower-case word sets.

A ``SimilarityEngine`` holds them as an ordered fallback chain. Binding the
engine to a CV evaluates each strategy's CV-side work once; strategies that
fail there are dropped for the whole batch. Scoring a job walks the
remaining chain and stops at the first strategy that succeeds, so one bad
job only degrades that job.
"""
from __future__ import annotations

import hashlib
import re
import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Callable, Sequence

import numpy as np
import openai

from jobmatch.config import Settings
from jobmatch.errors import DimensionMismatch, ProviderError
from jobmatch.log import get_logger
from jobmatch.retry import retry

log = get_logger(__name__)

PREFIX_KEY_CHARS = 100
_WORD_RE = re.compile(r"\b\w+\b")

Vector = Sequence[float]
Scorer = Callable[[str], float]


# ── Vector and token maths ───────────────────────────────────────────────


def cosine_similarity(a: Vector, b: Vector) -> float:
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    if va.shape != vb.shape:
        raise DimensionMismatch(f"Vectors must have the same length ({va.size} != {vb.size})")

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    sim = float(np.dot(va, vb) / (norm_a * norm_b))
    return max(-1.0, min(1.0, sim))


def tokenize(text: str) -> set[str]:
    return set(_WORD_RE.findall((text or "").lower()))


def keyword_similarity(a: str, b: str) -> float:
    """Jaccard index of the two texts' word sets; 0 when both are empty."""
    words_a = tokenize(a)
    words_b = tokenize(b)
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


# ── Embedding cache ──────────────────────────────────────────────────────


class EmbeddingCache:
    """Thread-safe text → vector cache with optional LRU bound and TTL.

    ``key_mode="content"`` keys on a SHA-256 of the whole text.
    ``key_mode="prefix"`` keys on the first 100 characters, so two texts
    sharing that prefix share a vector. Keys are scoped by model name, since
    vectors from different models differ in length.
    """

    def __init__(
        self,
        max_size: int | None = None,
        ttl_seconds: float | None = None,
        key_mode: str = "content",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if key_mode not in ("content", "prefix"):
            raise ValueError(f"Unknown cache key mode: {key_mode}")
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.key_mode = key_mode
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: OrderedDict[str, tuple[float, list[float]]] = OrderedDict()

    def key_for(self, text: str, model: str = "") -> str:
        if self.key_mode == "prefix":
            return f"{model}:{text[:PREFIX_KEY_CHARS]}"
        return f"{model}:{hashlib.sha256(text.encode('utf-8')).hexdigest()}"

    def get(self, text: str, model: str = "") -> list[float] | None:
        key = self.key_for(text, model)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, vector = entry
            if self.ttl_seconds is not None and self._clock() - stored_at > self.ttl_seconds:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return vector

    def put(self, text: str, vector: list[float], model: str = "") -> None:
        key = self.key_for(text, model)
        with self._lock:
            if key in self._entries:
                return
            self._entries[key] = (self._clock(), vector)
            if self.max_size is not None:
                while len(self._entries) > self.max_size:
                    self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_default_cache: EmbeddingCache | None = None
_default_cache_lock = threading.Lock()


def get_default_cache(settings: Settings | None = None) -> EmbeddingCache:
    """Process-wide cache, created on first use from *settings*."""
    global _default_cache
    with _default_cache_lock:
        if _default_cache is None:
            settings = settings or Settings()
            _default_cache = EmbeddingCache(
                max_size=settings.cache_max_size,
                ttl_seconds=settings.cache_ttl_seconds,
                key_mode=settings.cache_key_mode,
            )
        return _default_cache


def clear_cache() -> None:
    if _default_cache is not None:
        _default_cache.clear()


# ── Embedding provider ───────────────────────────────────────────────────


class EmbeddingProvider:
    """OpenAI embeddings with input truncation and caching."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        max_chars: int = 8000,
        cache: EmbeddingCache | None = None,
        client=None,
    ) -> None:
        self.model = model
        self.max_chars = max_chars
        self.cache = cache if cache is not None else get_default_cache()
        if client is None:
            client = openai.OpenAI(api_key=api_key)
        self.client = client

    def embed(self, text: str) -> list[float]:
        text = (text or "")[: self.max_chars]
        cached = self.cache.get(text, self.model)
        if cached is not None:
            return cached

        try:
            vector = self._create(text)
        except Exception as exc:
            log.error("Error generating embedding: %s", exc)
            raise ProviderError("Failed to generate embedding") from exc

        self.cache.put(text, vector, self.model)
        return vector

    @retry(max_attempts=2, base_delay=1.0, retryable=(openai.APIConnectionError,))
    def _create(self, text: str) -> list[float]:
        response = self.client.embeddings.create(model=self.model, input=text)
        return list(response.data[0].embedding)


# ── Strategies ───────────────────────────────────────────────────────────


class SimilarityStrategy(ABC):
    name: str = "base"

    @abstractmethod
    def bind(self, resume_text: str) -> Scorer:
        """Do the CV-side work once and return a per-job scorer.

        Raises ProviderError when the strategy cannot serve this CV.
        """


class KeywordStrategy(SimilarityStrategy):
    name = "keyword"

    def bind(self, resume_text: str) -> Scorer:
        return lambda job_text: keyword_similarity(resume_text, job_text)


class EmbeddingStrategy(SimilarityStrategy):
    name = "embedding"

    def __init__(self, provider: EmbeddingProvider) -> None:
        self.provider = provider

    def bind(self, resume_text: str) -> Scorer:
        resume_vector = self.provider.embed(resume_text)

        def score(job_text: str) -> float:
            return cosine_similarity(resume_vector, self.provider.embed(job_text))

        return score


class BoundSimilarity:
    """A similarity chain bound to one CV."""

    def __init__(self, scorers: list[tuple[str, Scorer]]) -> None:
        if not scorers:
            raise ProviderError("No similarity strategy available")
        self.scorers = scorers

    @property
    def primary(self) -> str:
        return self.scorers[0][0]

    def score(self, job_text: str, label: str = "") -> tuple[float, str]:
        """Return (similarity, strategy name) from the first strategy that works."""
        last_exc: ProviderError | None = None
        for name, scorer in self.scorers:
            try:
                return scorer(job_text), name
            except ProviderError as exc:
                log.warning("%s similarity failed for %s, trying next strategy: %s", name, label or "job", exc)
                last_exc = exc
        raise ProviderError("All similarity strategies failed") from last_exc


class SimilarityEngine:
    def __init__(self, strategies: list[SimilarityStrategy]) -> None:
        self.strategies = strategies

    @classmethod
    def from_settings(
        cls, settings: Settings, provider: EmbeddingProvider | None = None
    ) -> "SimilarityEngine":
        strategies: list[SimilarityStrategy] = []
        if not settings.use_simple_matching:
            if provider is None and settings.has_openai_key:
                provider = EmbeddingProvider(
                    api_key=settings.openai_api_key,
                    model=settings.embedding_model,
                    max_chars=settings.embedding_max_chars,
                    cache=get_default_cache(settings),
                )
            if provider is not None:
                strategies.append(EmbeddingStrategy(provider))
            else:
                log.info("No OPENAI_API_KEY — using keyword matching")
        strategies.append(KeywordStrategy())
        return cls(strategies)

    @classmethod
    def keyword_only(cls) -> "SimilarityEngine":
        return cls([KeywordStrategy()])

    def bind(self, resume_text: str) -> BoundSimilarity:
        scorers: list[tuple[str, Scorer]] = []
        for strategy in self.strategies:
            try:
                scorers.append((strategy.name, strategy.bind(resume_text)))
            except ProviderError as exc:
                log.warning(
                    "Failed to prepare %s similarity for CV, falling back: %s",
                    strategy.name, exc,
                )
        return BoundSimilarity(scorers)
