"""Generate tailored cover letters using OpenAI (or fallback template)."""
from __future__ import annotations

from datetime import date
from pathlib import Path

import openai

from jobmatch.config import DATA_DIR, Settings
from jobmatch.errors import ProviderError
from jobmatch.log import get_logger
from jobmatch.models import JobPosting
from jobmatch.resume import extract_skills
from jobmatch.retry import retry

log = get_logger(__name__)

_SYSTEM_PROMPT = (
    "You are an expert career coach who writes compelling, personalized "
    "cover letters that help candidates stand out."
)

_PROMPT = """You are a professional career coach. Write a compelling cover letter for a job application.

Job Details:
- Position: {title}
- Company: {company}
- Location: {location}
- Match Score: {match_score}
- Key Matched Skills: {skills}

Candidate name: {user_name}

Candidate's CV Summary:
{cv_excerpt}

Instructions:
1. Write a professional, engaging cover letter (250-350 words)
2. Address it to "Hiring Manager" (don't make up names)
3. Highlight the candidate's relevant experience and skills that match this specific role
4. Show enthusiasm for the company and position
5. Include a strong opening and closing
6. Use a professional but warm tone
7. Don't use overly generic phrases
8. Format with proper paragraphs

Generate the cover letter now:"""


def matched_skills_for(resume_text: str, job: JobPosting) -> list[str]:
    """Vocabulary skills present in both the CV and the job."""
    job_skills = set(extract_skills(f"{job.title} {job.description}"))
    return [s for s in extract_skills(resume_text) if s in job_skills]


def _signature(user_name: str) -> str | None:
    return None if user_name == "the applicant" else user_name


def _is_quota_error(exc: Exception) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    if getattr(exc, "status_code", None) == 429:
        return True
    if getattr(exc, "code", None) == "insufficient_quota":
        return True
    return "quota" in str(exc).lower()


@retry(max_attempts=2, base_delay=2.0, retryable=(openai.APIConnectionError,))
def _call_openai(client, model: str, prompt: str) -> str:
    r = client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": _SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        temperature=0.7,
        max_tokens=800,
    )
    return (r.choices[0].message.content or "").strip()


def generate_cover_letter(
    resume_text: str,
    job: JobPosting,
    *,
    settings: Settings | None = None,
    user_name: str = "the applicant",
    matched_skills: list[str] | None = None,
    match_score: float | None = None,
    client=None,
) -> str:
    """Cover letter for *job*; template text when OpenAI has no key or quota.

    Raises ProviderError for any other OpenAI failure.
    """
    settings = settings or Settings()
    skills = matched_skills if matched_skills is not None else matched_skills_for(resume_text, job)

    if client is None:
        if not settings.has_openai_key:
            log.debug("No OPENAI_API_KEY — using template cover letter")
            return fallback_letter(job, skills, _signature(user_name))
        client = openai.OpenAI(api_key=settings.openai_api_key)

    prompt = _PROMPT.format(
        title=job.title,
        company=job.company,
        location=job.location or "Not specified",
        match_score=f"{round(match_score * 100)}%" if match_score else "high",
        skills=", ".join(skills) or "relevant skills",
        user_name=user_name,
        cv_excerpt=resume_text[:1500],
    )

    log.info("Generating cover letter for %s at %s", job.title, job.company)
    try:
        letter = _call_openai(client, settings.chat_model, prompt)
    except Exception as exc:
        if _is_quota_error(exc):
            log.warning("OpenAI quota exceeded (%s), using template", exc)
            return fallback_letter(job, skills, _signature(user_name))
        log.error("Cover letter generation failed: %s", exc)
        raise ProviderError(f"Failed to generate cover letter: {exc}") from exc

    log.info("Cover letter generated for %s @ %s", job.title, job.company)
    return letter


def fallback_letter(
    job: JobPosting,
    matched_skills: list[str],
    user_name: str | None = None,
    today: date | None = None,
) -> str:
    skills = ", ".join(matched_skills) or "relevant technical skills"
    today_str = (today or date.today()).strftime("%B %d, %Y").replace(" 0", " ")
    return f"""{today_str}

Dear Hiring Manager,

I am writing to express my strong interest in the {job.title} position at {job.company}. With my background in software development and proven expertise in {skills}, I am confident that I would be a valuable addition to your team.

Throughout my career, I have developed a strong foundation in modern technologies and best practices. My experience aligns well with the requirements outlined in your job posting, particularly in areas such as {skills}. I am passionate about creating efficient, scalable solutions and staying current with emerging technologies.

What excites me most about this opportunity at {job.company} is the chance to contribute to innovative projects while continuing to grow professionally.

I am eager to bring my technical skills, problem-solving abilities, and enthusiasm to your team. I would welcome the opportunity to discuss how my background and skills would benefit {job.company}.

Thank you for considering my application.

Sincerely,
{user_name or "[Your Name]"}

---
Note: This is a template cover letter. Add OpenAI API credits for personalized AI-generated letters."""


def save_cover_letter(job: JobPosting, content: str, directory: Path | None = None) -> Path:
    directory = directory or DATA_DIR
    directory.mkdir(parents=True, exist_ok=True)
    safe = "".join(c if c.isalnum() or c in " -_" else "_" for c in job.company)[:40]
    job_id = "".join(c if c.isalnum() or c in "-_" else "_" for c in job.id)[:40]
    path = directory / f"cover_{job_id}_{safe}.txt"
    path.write_text(content, encoding="utf-8")
    return path
