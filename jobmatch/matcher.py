"""Score, rank and annotate job postings against a CV."""
from __future__ import annotations

import re
from collections import Counter
from concurrent.futures import ThreadPoolExecutor

from jobmatch.log import get_logger
from jobmatch.models import (
    JobPosting,
    MatchInsights,
    MatchResult,
    Suggestion,
    SuggestionReport,
    round_half_up,
)
from jobmatch.resume import SUGGESTION_VOCABULARY
from jobmatch.similarity import BoundSimilarity, SimilarityEngine, tokenize

log = get_logger(__name__)

MAX_TITLE_BOOST = 0.2
DEFAULT_MIN_SCORE = 0.3

_MAX_SKILL_ITEMS = 5
_MAX_KEYWORD_ITEMS = 5
_KEYWORD_STOPWORDS = frozenset({"about", "their", "which", "where", "would", "should", "could"})
_LONG_WORD_RE = re.compile(r"\b\w{5,}\b")
_WORD_RE = re.compile(r"\b\w+\b")
_YEARS_RE = re.compile(r"(\d+)\+?\s*years?", re.IGNORECASE)


def title_boost(resume_text: str, title: str) -> float:
    """Up to +0.2 for title words (longer than 3 chars) found in the CV."""
    words = (title or "").lower().split()
    if not words:
        return 0.0
    cv_lower = (resume_text or "").lower()
    matched = [w for w in words if len(w) > 3 and w in cv_lower]
    return min(MAX_TITLE_BOOST, MAX_TITLE_BOOST * len(matched) / len(words))


def _score_job(bound: BoundSimilarity, resume_text: str, job: JobPosting) -> MatchResult:
    base, strategy = bound.score(job.description, label=job.id)
    score = min(1.0, max(0.0, base + title_boost(resume_text, job.title)))
    return MatchResult(job=job, match_score=round_half_up(score, 2), strategy=strategy)


def match_all(
    resume_text: str,
    jobs: list[JobPosting],
    engine: SimilarityEngine | None = None,
    max_workers: int = 8,
) -> list[MatchResult]:
    """Score every job against the CV and sort best-first.

    Jobs are scored in parallel; ``sorted`` is stable so equal scores keep
    their input order.
    """
    if not resume_text or not jobs:
        return []

    engine = engine or SimilarityEngine.keyword_only()
    bound = engine.bind(resume_text)
    log.info("Matching %d jobs with CV using %s similarity", len(jobs), bound.primary)

    workers = max(1, min(max_workers, len(jobs)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(lambda job: _score_job(bound, resume_text, job), jobs))

    ranked = sorted(results, key=lambda r: -r.match_score)
    fallbacks = sum(1 for r in ranked if r.strategy != bound.primary)
    if fallbacks:
        log.warning("%d of %d jobs scored with fallback similarity", fallbacks, len(ranked))
    log.info("Matching complete. Top score: %.2f", ranked[0].match_score)
    return ranked


def filter_by_min_score(results: list[MatchResult], threshold: float = DEFAULT_MIN_SCORE) -> list[MatchResult]:
    return [r for r in results if r.match_score >= threshold]


def _missing_keywords(cv_lower: str, description_lower: str) -> list[str]:
    freq: Counter[str] = Counter()
    for word in _LONG_WORD_RE.findall(description_lower):
        if word not in _KEYWORD_STOPWORDS:
            freq[word] += 1
    # Counter keeps insertion order, so most_common breaks ties by first sighting.
    missing = Counter({w: n for w, n in freq.items() if w not in cv_lower})
    return [w for w, _ in missing.most_common(_MAX_KEYWORD_ITEMS)]


def generate_suggestions(resume_text: str, job: JobPosting, match_score: float = 0.0) -> SuggestionReport:
    """Rule-based hints for closing the gap between a CV and one job."""
    cv_lower = (resume_text or "").lower()
    description = (job.description or "").lower()
    title = (job.title or "").lower()

    suggestions: list[Suggestion] = []

    missing_skills = [
        s for s in SUGGESTION_VOCABULARY
        if (s in description or s in title) and s not in cv_lower
    ]
    if missing_skills:
        suggestions.append(
            Suggestion(
                type="skills",
                title="Add Missing Skills",
                description="These skills are mentioned in the job description but not in your CV",
                items=missing_skills[:_MAX_SKILL_ITEMS],
            )
        )

    missing_keywords = _missing_keywords(cv_lower, description)
    if missing_keywords:
        suggestions.append(
            Suggestion(
                type="keywords",
                title="Include Relevant Keywords",
                description="Adding these keywords can improve your match score",
                items=missing_keywords,
            )
        )

    years = _YEARS_RE.search(description)
    if years and "year" not in cv_lower:
        suggestions.append(
            Suggestion(
                type="experience",
                title="Highlight Experience",
                description="The job requires specific years of experience",
                items=[f"Mention your {years.group(1)}+ years of experience"],
            )
        )

    return SuggestionReport(suggestions=suggestions, match_score=match_score)


def attach_suggestions(resume_text: str, results: list[MatchResult]) -> list[MatchResult]:
    return [
        r.with_suggestions(generate_suggestions(resume_text, r.job, r.match_score))
        for r in results
    ]


def match_insights(resume_text: str, job: JobPosting) -> MatchInsights:
    cv_words = tokenize(resume_text)
    job_words = _WORD_RE.findall((job.description or "").lower())
    matched = [w for w in job_words if len(w) > 4 and w in cv_words]
    return MatchInsights(
        matched_keywords=list(dict.fromkeys(matched))[:10],
        total_keywords=len(set(job_words)),
        match_rate=len(matched) / len(job_words) if job_words else 0.0,
    )
