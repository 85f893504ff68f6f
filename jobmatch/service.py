"""
Request-level operations used by the UI and the CLI.

upload CV → search (fetch → normalize → dedupe → recency) → match → suggestions → cover letter.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from jobmatch.config import Settings, load_settings
from jobmatch.cover_letter import generate_cover_letter, matched_skills_for, save_cover_letter
from jobmatch.errors import ValidationError
from jobmatch.log import get_logger
from jobmatch.matcher import attach_suggestions, filter_by_min_score, match_all, match_insights
from jobmatch.models import JobPosting, MatchInsights, MatchResult, ResumeDocument
from jobmatch.normalizer import deduplicate, filter_by_keywords, filter_by_recency, normalize_jobs
from jobmatch.resume import build_resume, extract_text_from_bytes
from jobmatch.session import SearchSnapshot, Session
from jobmatch.similarity import SimilarityEngine
from jobmatch.sources import JobSource, SerpApiSource, get_source

log = get_logger(__name__)


@dataclass
class MatchReport:
    total_jobs: int
    min_score: float
    results: list[MatchResult]
    query: str | None = None
    location: str | None = None

    @property
    def matched_jobs(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "totalJobs": self.total_jobs,
            "matchedJobs": self.matched_jobs,
            "minScore": self.min_score,
            "jobs": [r.to_dict() for r in self.results],
        }
        if self.query is not None:
            data["query"] = self.query
            data["location"] = self.location
        return data


# ── CV ───────────────────────────────────────────────────────────────────


def upload_resume(
    session: Session,
    text: str | None = None,
    *,
    file_bytes: bytes | None = None,
    file_name: str | None = None,
    settings: Settings | None = None,
) -> ResumeDocument:
    """Store a CV from pasted text or an uploaded PDF/TXT file."""
    settings = settings or load_settings()
    source_name = "pasted_text"

    if file_bytes is not None:
        if len(file_bytes) > settings.max_upload_bytes:
            raise ValidationError(
                f"File too large (limit {settings.max_upload_bytes // (1024 * 1024)} MB)"
            )
        source_name = file_name or "upload.txt"
        log.info("Processing uploaded file: %s", source_name)
        text = extract_text_from_bytes(file_bytes, source_name)

    if not text:
        raise ValidationError("CV text is required. Please paste your CV or upload a PDF/TXT file.")

    resume = build_resume(text, file_name=source_name)
    session.set_resume(resume)
    return resume


def resume_info(session: Session) -> dict[str, Any]:
    if session.resume is None:
        raise ValidationError("No CV uploaded yet")
    resume = session.resume
    return {
        "skills": list(resume.skills),
        "length": len(resume.text),
        "experienceYears": resume.experience_years,
        "uploadedAt": resume.uploaded_at.isoformat(),
        "fileName": resume.file_name,
        "preview": resume.text[:200] + "...",
    }


def clear_resume(session: Session) -> None:
    session.clear_resume()
    log.info("CV cleared")


def _resume_text(session: Session, resume_text: str | None) -> str:
    if resume_text:
        return resume_text
    if session.resume is None:
        raise ValidationError("Please upload a CV first")
    return session.resume.text


# ── Search and match ─────────────────────────────────────────────────────


def search_jobs(
    session: Session,
    query: str,
    location: str | None = None,
    time_filter: str = "all",
    *,
    settings: Settings | None = None,
    source: JobSource | None = None,
    keywords: list[str] | None = None,
) -> SearchSnapshot:
    """Fetch, normalize and dedupe jobs, then apply the date and keyword filters."""
    if not query or not query.strip():
        raise ValidationError("Search query is required")
    settings = settings or load_settings()
    location = location or settings.default_location
    source = source or get_source(settings)

    log.info("Searching for %r in %s (filter: %s)", query, location, time_filter)
    jobs = deduplicate(normalize_jobs(source.fetch(query, location), settings))
    filtered = filter_by_keywords(filter_by_recency(jobs, time_filter), keywords)

    snapshot = SearchSnapshot(
        query=query,
        location=location,
        time_filter=time_filter,
        jobs=filtered,
        total_jobs=len(jobs),
        keywords=list(keywords or []),
    )
    session.set_search(snapshot)
    log.info("Search complete — %s", snapshot.summary)
    return snapshot


def match_jobs(
    session: Session,
    jobs: list[JobPosting] | None = None,
    *,
    resume_text: str | None = None,
    min_score: float | None = None,
    settings: Settings | None = None,
    engine: SimilarityEngine | None = None,
) -> MatchReport:
    """Rank *jobs* (default: the last search) against the session CV.

    *min_score* defaults to ``settings.min_score``.
    """
    if jobs is None:
        jobs = session.cached_jobs
    if not isinstance(jobs, list) or not all(isinstance(j, JobPosting) for j in jobs):
        raise ValidationError("Jobs array is required")
    text = _resume_text(session, resume_text)
    settings = settings or load_settings()
    engine = engine or SimilarityEngine.from_settings(settings)
    if min_score is None:
        min_score = settings.min_score

    ranked = match_all(text, jobs, engine=engine, max_workers=settings.max_workers)
    kept = attach_suggestions(text, filter_by_min_score(ranked, min_score))
    return MatchReport(total_jobs=len(jobs), min_score=min_score, results=kept)


def search_and_match(
    session: Session,
    query: str,
    location: str | None = None,
    *,
    resume_text: str | None = None,
    time_filter: str = "all",
    min_score: float | None = None,
    settings: Settings | None = None,
    source: JobSource | None = None,
    engine: SimilarityEngine | None = None,
    keywords: list[str] | None = None,
) -> MatchReport:
    settings = settings or load_settings()
    text = _resume_text(session, resume_text)
    snapshot = search_jobs(
        session,
        query,
        location,
        time_filter,
        settings=settings,
        source=source,
        keywords=keywords,
    )
    threshold = settings.search_min_score if min_score is None else min_score
    report = match_jobs(
        session,
        snapshot.jobs,
        resume_text=text,
        min_score=threshold,
        settings=settings,
        engine=engine,
    )
    report.query = snapshot.query
    report.location = snapshot.location
    return report


def job_insights(
    session: Session, job: JobPosting, *, resume_text: str | None = None
) -> MatchInsights:
    return match_insights(_resume_text(session, resume_text), job)


def job_details(
    job_id: str,
    *,
    settings: Settings | None = None,
    source: SerpApiSource | None = None,
) -> dict[str, Any]:
    """Full Google Jobs listing (all apply options) for one job id."""
    if not job_id:
        raise ValidationError("Job ID is required")
    source = source or SerpApiSource(settings or load_settings())
    return source.fetch_job_details(job_id)


# ── Cover letters ────────────────────────────────────────────────────────


def cover_letter_for(
    session: Session,
    job: JobPosting,
    *,
    resume_text: str | None = None,
    user_name: str = "the applicant",
    match_score: float | None = None,
    settings: Settings | None = None,
    save: bool = False,
) -> str:
    text = _resume_text(session, resume_text)
    letter = generate_cover_letter(
        text,
        job,
        settings=settings or load_settings(),
        user_name=user_name,
        matched_skills=matched_skills_for(text, job),
        match_score=match_score,
    )
    if save:
        path = save_cover_letter(job, letter, session.snapshot_dir)
        log.info("Cover letter saved to %s", path)
    return letter
