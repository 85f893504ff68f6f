"""Clean, validate and tag CV text.

Uploaded files are reduced to plain text here too: TXT is decoded directly,
PDF goes through pypdf. Everything downstream works on the cleaned string.
"""
from __future__ import annotations

import io
import re
from dataclasses import dataclass, field
from pathlib import Path

from jobmatch.errors import ValidationError
from jobmatch.log import get_logger
from jobmatch.models import ResumeDocument

log = get_logger(__name__)

MIN_LENGTH = 50
ALLOWED_SUFFIXES = (".pdf", ".txt")

SKILL_VOCABULARY: list[str] = [
    "javascript", "python", "java", "php", "laravel", "react", "vue", "angular",
    "node.js", "express", "mongodb", "mysql", "postgresql", "docker", "kubernetes",
    "aws", "azure", "gcp", "git", "agile", "scrum", "rest api", "graphql",
    "typescript", "html", "css", "sass", "webpack", "ci/cd", "jenkins",
    "machine learning", "ai", "data science", "sql", "nosql", "redis",
]

# Job-side vocabulary for gap suggestions also covers mobile and systems work.
SUGGESTION_VOCABULARY: list[str] = SKILL_VOCABULARY + [
    "flutter", "react native", "swift", "kotlin", "c++", "c#", ".net",
]

_WHITESPACE_RE = re.compile(r"\s+")
_DISALLOWED_RE = re.compile(r"[^\w\s.,;:()\-+#@]")

_EXPERIENCE_PATTERNS = (
    re.compile(r"(\d+)\+?\s*years?\s+(?:of\s+)?experience", re.IGNORECASE),
    re.compile(r"experience[:\s]+(\d+)\+?\s*years?", re.IGNORECASE),
    re.compile(r"(\d+)\+?\s*yrs?\s+exp", re.IGNORECASE),
)


@dataclass
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


def clean(raw: str) -> str:
    """Normalise whitespace, strip noise characters and enforce min length."""
    if not raw or not isinstance(raw, str):
        raise ValidationError("Invalid CV text provided")

    cleaned = _WHITESPACE_RE.sub(" ", raw).strip()
    cleaned = _DISALLOWED_RE.sub("", cleaned)

    if len(cleaned) < MIN_LENGTH:
        raise ValidationError("CV text is too short. Please provide a more detailed CV.")
    return cleaned


def validate(raw: object) -> ValidationResult:
    errors: list[str] = []
    if not raw or not isinstance(raw, str):
        errors.append("CV text is required")
    elif len(raw.strip()) < MIN_LENGTH:
        errors.append(f"CV is too short (minimum {MIN_LENGTH} characters)")
    return ValidationResult(is_valid=not errors, errors=errors)


def extract_skills(text: str, vocabulary: list[str] | None = None) -> list[str]:
    """Vocabulary terms that occur anywhere in *text* (substring match)."""
    low = (text or "").lower()
    return [term for term in (vocabulary or SKILL_VOCABULARY) if term in low]


def extract_experience_years(text: str) -> int | None:
    for pattern in _EXPERIENCE_PATTERNS:
        m = pattern.search(text or "")
        if m:
            return int(m.group(1))
    return None


def build_resume(raw: str, file_name: str = "pasted_text") -> ResumeDocument:
    """Validate, clean and tag raw CV text in one step."""
    result = validate(raw)
    if not result.is_valid:
        raise ValidationError(f"CV validation failed: {', '.join(result.errors)}")

    text = clean(raw)
    doc = ResumeDocument(
        text=text,
        skills=extract_skills(text),
        experience_years=extract_experience_years(text),
        file_name=file_name,
    )
    log.info(
        "CV accepted — file=%s, length=%d, skills=%d",
        file_name, len(text), len(doc.skills),
    )
    return doc


# ── File extraction ──────────────────────────────────────────────────────


def extract_text_from_bytes(data: bytes, file_name: str) -> str:
    """Return plain text from uploaded PDF or TXT bytes."""
    suffix = Path(file_name).suffix.lower()
    if suffix not in ALLOWED_SUFFIXES:
        raise ValidationError("Only PDF and TXT files are allowed")
    if suffix == ".txt":
        return data.decode("utf-8", errors="ignore")
    return _extract_pdf(io.BytesIO(data), file_name)


def _extract_pdf(stream: io.BytesIO, file_name: str) -> str:
    from pypdf import PdfReader
    from pypdf.errors import PdfReadError

    try:
        reader = PdfReader(stream)
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PdfReadError, ValueError, OSError) as exc:
        log.warning("PDF extraction failed for %s: %s", file_name, exc)
        raise ValidationError(
            "Failed to parse PDF file. Please ensure it contains readable text."
        ) from exc

    text = "\n".join(pages).strip()
    log.info("Extracted %d characters from %s (%d pages)", len(text), file_name, len(pages))
    return text
