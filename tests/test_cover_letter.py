from __future__ import annotations

from datetime import date
from types import SimpleNamespace

import pytest

from jobmatch.config import Settings
from jobmatch.cover_letter import (
    fallback_letter,
    generate_cover_letter,
    matched_skills_for,
    save_cover_letter,
)
from jobmatch.errors import ProviderError

from conftest import make_job


class QuotaError(Exception):
    status_code = 429


class FakeCompletions:
    def __init__(self, content: str = "", exc: Exception | None = None) -> None:
        self.content = content
        self.exc = exc
        self.kwargs: dict = {}

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.exc is not None:
            raise self.exc
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(completions: FakeCompletions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_matched_skills(resume_text: str) -> None:
    assert matched_skills_for(resume_text, make_job()) == ["react", "node.js"]


def test_template_without_key(resume_text: str) -> None:
    letter = generate_cover_letter(resume_text, make_job(), settings=Settings(), user_name="Nimal Perera")
    assert "Dear Hiring Manager" in letter
    assert "React Developer position at Acme" in letter
    assert "react, node.js" in letter
    assert "Nimal Perera" in letter
    assert "Note: This is a template cover letter" in letter


def test_fallback_letter_defaults() -> None:
    letter = fallback_letter(make_job(), [], today=date(2024, 3, 5))
    assert letter.startswith("March 5, 2024")
    assert "relevant technical skills" in letter
    assert "[Your Name]" in letter


def test_openai_letter(resume_text: str) -> None:
    completions = FakeCompletions(content="  Dear Hiring Manager, hello.  ")
    letter = generate_cover_letter(
        resume_text,
        make_job(),
        settings=Settings(openai_api_key="sk-test"),
        match_score=0.43,
        client=fake_client(completions),
    )
    assert letter == "Dear Hiring Manager, hello."
    assert completions.kwargs["model"] == "gpt-3.5-turbo"
    assert completions.kwargs["temperature"] == 0.7
    assert completions.kwargs["max_tokens"] == 800
    prompt = completions.kwargs["messages"][1]["content"]
    assert "Position: React Developer" in prompt
    assert "Match Score: 43%" in prompt
    assert "Key Matched Skills: react, node.js" in prompt


@pytest.mark.parametrize(
    "exc",
    [QuotaError("Too Many Requests"), RuntimeError("You exceeded your current quota")],
)
def test_quota_errors_use_template(resume_text: str, exc: Exception) -> None:
    letter = generate_cover_letter(
        resume_text,
        make_job(),
        settings=Settings(openai_api_key="sk-test"),
        client=fake_client(FakeCompletions(exc=exc)),
    )
    assert "template cover letter" in letter


def test_other_errors_raise(resume_text: str) -> None:
    with pytest.raises(ProviderError, match="Failed to generate cover letter: model not found"):
        generate_cover_letter(
            resume_text,
            make_job(),
            settings=Settings(openai_api_key="sk-test"),
            client=fake_client(FakeCompletions(exc=RuntimeError("model not found"))),
        )


def test_save_cover_letter(tmp_path) -> None:
    job = make_job(id="abc/123", company="Acme & Co.")
    path = save_cover_letter(job, "Hello", directory=tmp_path)
    assert path.parent == tmp_path
    assert path.name == "cover_abc_123_Acme _ Co_.txt"
    assert path.read_text(encoding="utf-8") == "Hello"
