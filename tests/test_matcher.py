from __future__ import annotations

import pytest

from jobmatch.matcher import (
    attach_suggestions,
    filter_by_min_score,
    generate_suggestions,
    match_all,
    match_insights,
    title_boost,
)
from jobmatch.models import MatchResult, round_half_up
from jobmatch.similarity import EmbeddingStrategy, KeywordStrategy, SimilarityEngine

from conftest import FakeEmbeddingProvider, make_job


def test_title_boost_bounds(resume_text: str) -> None:
    assert title_boost(resume_text, "React Developer") == pytest.approx(0.1)
    assert title_boost(resume_text, "React Express MongoDB") == pytest.approx(0.2)
    assert title_boost(resume_text, "") == 0.0
    # Short words count towards the total but never match.
    assert title_boost(resume_text, "Sr. QA") == 0.0


def test_keyword_scenario(resume_text: str) -> None:
    job = make_job()
    [result] = match_all(resume_text, [job])
    assert result.strategy == "keyword"
    assert result.match_score > 0.2
    assert result.match_percentage == round(result.match_score * 100)

    report = generate_suggestions(resume_text, job, result.match_score)
    skills = [s for s in report.suggestions if s.type == "skills"]
    assert skills and "aws" in skills[0].items
    assert report.has_improvements


def test_match_all_empty_inputs(resume_text: str) -> None:
    assert match_all("", [make_job()]) == []
    assert match_all(resume_text, []) == []


def test_match_all_sorted_and_stable() -> None:
    cv = "python django postgres docker kubernetes"
    jobs = [
        make_job(id="none", title="Chef", description="cooking baking"),
        make_job(id="tie-a", title="Cook", description="python docker"),
        make_job(id="best", title="Engineer", description="python django postgres docker"),
        make_job(id="tie-b", title="Cook", description="python docker"),
    ]
    results = match_all(cv, jobs, max_workers=4)
    assert [r.job.id for r in results] == ["best", "tie-a", "tie-b", "none"]
    scores = [r.match_score for r in results]
    assert scores == sorted(scores, reverse=True)
    for r in results:
        assert 0.0 <= r.match_score <= 1.0
        assert r.match_score == round(r.match_score, 2)


def test_match_score_capped_at_one() -> None:
    cv = "python developer python developer"
    [result] = match_all(cv, [make_job(title="Python Developer", description="python developer")])
    assert result.match_score == 1.0
    assert result.match_percentage == 100


def test_one_failing_job_falls_back_alone(resume_text: str) -> None:
    provider = FakeEmbeddingProvider(fail_marker="BROKEN")
    engine = SimilarityEngine([EmbeddingStrategy(provider), KeywordStrategy()])
    jobs = [make_job(id=f"j{i}", description=f"Node.js role number {i}") for i in range(10)]
    jobs[6] = make_job(id="j6", description="BROKEN description for Node.js role")

    results = match_all(resume_text, jobs, engine=engine)

    assert len(results) == 10
    by_strategy = {r.job.id: r.strategy for r in results}
    assert [jid for jid, s in by_strategy.items() if s == "keyword"] == ["j6"]
    assert sum(1 for s in by_strategy.values() if s == "embedding") == 9


def test_cv_embedding_failure_switches_whole_batch(resume_text: str) -> None:
    engine = SimilarityEngine([EmbeddingStrategy(FakeEmbeddingProvider(fail_all=True)), KeywordStrategy()])
    results = match_all(resume_text, [make_job(id="a"), make_job(id="b", title="Other")], engine=engine)
    assert {r.strategy for r in results} == {"keyword"}


def test_filter_by_min_score_preserves_order() -> None:
    results = [
        MatchResult(job=make_job(id="a"), match_score=0.9),
        MatchResult(job=make_job(id="b"), match_score=0.2),
        MatchResult(job=make_job(id="c"), match_score=0.3),
        MatchResult(job=make_job(id="d"), match_score=0.5),
    ]
    assert [r.job.id for r in filter_by_min_score(results)] == ["a", "c", "d"]
    assert [r.job.id for r in filter_by_min_score(results, 0.6)] == ["a"]
    assert filter_by_min_score(results, 0.0) == results


def test_keyword_suggestions_frequency_then_first_seen() -> None:
    job = make_job(
        title="Analyst",
        description="reporting dashboards reporting stakeholders dashboards reporting insights metrics growth",
    )
    report = generate_suggestions("I write python code and build dashboards for clients daily.", job)
    [keywords] = [s for s in report.suggestions if s.type == "keywords"]
    assert keywords.items == ["reporting", "stakeholders", "insights", "metrics", "growth"]


def test_keyword_suggestions_skip_stopwords() -> None:
    job = make_job(description="which would could should about their where teamwork")
    report = generate_suggestions("nothing relevant here at all in this text", job)
    [keywords] = [s for s in report.suggestions if s.type == "keywords"]
    assert keywords.items == ["teamwork"]


def test_experience_suggestion() -> None:
    job = make_job(description="Requires 3+ years building APIs")
    report = generate_suggestions("Backend developer building APIs in Go", job)
    [exp] = [s for s in report.suggestions if s.type == "experience"]
    assert exp.items == ["Mention your 3+ years of experience"]

    covered = generate_suggestions("Backend developer with many years building APIs", job)
    assert not [s for s in covered.suggestions if s.type == "experience"]


def test_skill_suggestions_capped_and_include_title() -> None:
    job = make_job(
        title="Flutter Engineer",
        description="docker kubernetes aws azure gcp redis graphql",
    )
    report = generate_suggestions("plain text resume", job)
    [skills] = [s for s in report.suggestions if s.type == "skills"]
    assert len(skills.items) == 5
    report = generate_suggestions("plain text resume", make_job(title="Flutter Engineer", description=""))
    [skills] = [s for s in report.suggestions if s.type == "skills"]
    assert skills.items == ["flutter"]


def test_no_suggestions_when_cv_covers_job() -> None:
    job = make_job(title="Dev", description="react")
    report = generate_suggestions("react", job)
    assert report.suggestions == []
    assert report.has_improvements is False


def test_attach_suggestions(resume_text: str) -> None:
    results = attach_suggestions(resume_text, match_all(resume_text, [make_job()]))
    payload = results[0].to_dict()
    assert payload["cvSuggestions"]["hasImprovements"] is True
    assert payload["cvSuggestions"]["matchScore"] == results[0].match_score
    assert payload["matchPercentage"] == round(payload["matchScore"] * 100)


def test_match_insights(resume_text: str) -> None:
    insights = match_insights(resume_text, make_job())
    assert insights.matched_keywords == ["react", "experience"]
    assert insights.total_keywords == 11
    assert insights.match_rate == pytest.approx(2 / 11)
    assert match_insights(resume_text, make_job(description="")).match_rate == 0.0


def test_scores_round_half_up() -> None:
    # Jaccard 1/8 = 0.125 exactly; no title boost for a two-letter title.
    [result] = match_all("alpha beta gamma delta", [make_job(title="Xy", description="alpha e f g h")])
    assert result.match_score == 0.13
    assert result.match_percentage == 13
    assert round_half_up(0.625, 2) == 0.63
    assert MatchResult(job=make_job(), match_score=0.29).match_percentage == 29


class OpposedEmbeddingProvider:
    """CV points one way, every job the other, so cosine is -1."""

    def __init__(self, resume_text: str) -> None:
        self.resume_text = resume_text

    def embed(self, text: str) -> list[float]:
        return [1.0, 0.0] if text == self.resume_text else [-1.0, 0.0]


def test_negative_cosine_clamped_to_zero(resume_text: str) -> None:
    engine = SimilarityEngine([EmbeddingStrategy(OpposedEmbeddingProvider(resume_text)), KeywordStrategy()])
    [result] = match_all(resume_text, [make_job(title="Xy", description="anything at all")], engine=engine)
    assert result.strategy == "embedding"
    assert result.match_score == 0.0
    assert result.match_percentage == 0
