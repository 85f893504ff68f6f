"""Streamlit UI for the CV job matcher."""
from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path

import pandas as pd
import streamlit as st

ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT))

from jobmatch.config import load_settings
from jobmatch.errors import JobMatchError
from jobmatch.log import get_logger
from jobmatch.models import MatchResult
from jobmatch.service import (
    MatchReport,
    clear_resume,
    cover_letter_for,
    job_details,
    job_insights,
    match_jobs,
    resume_info,
    search_jobs,
    upload_resume,
)
from jobmatch.session import Session
from jobmatch.similarity import clear_cache

log = get_logger(__name__)

# ── Constants ────────────────────────────────────────────────────────────

TIME_FILTERS: dict[str, str] = {
    "all": "Any time",
    "24h": "Past 24 hours",
    "week": "Past week",
    "month": "Past month",
}

_SUGGESTION_ICONS: dict[str, str] = {"skills": "🧩", "keywords": "🔑", "experience": "📅"}

_LIGHT_CSS = """
<style>
[data-testid="stAppViewContainer"] {
    background: linear-gradient(135deg, #e8eaf6 0%, #f3e5f5 40%, #e0f2f1 100%);
}
[data-testid="stMetric"], [data-testid="stForm"], [data-testid="stExpander"] {
    background: rgba(255,255,255,0.6);
    backdrop-filter: blur(12px);
    border-radius: 12px;
    border: 1px solid rgba(255,255,255,0.4);
    box-shadow: 0 4px 16px rgba(0,0,0,0.06);
}
h1, h2, h3 { color: #1a1a2e; }
</style>
"""

_DARK_CSS = """
<style>
[data-testid="stAppViewContainer"], [data-testid="stSidebar"] {
    background: linear-gradient(135deg, #0f172a 0%, #1e1b4b 60%, #0f3d3e 100%);
    color: #e2e8f0;
}
[data-testid="stMetric"], [data-testid="stForm"], [data-testid="stExpander"] {
    background: rgba(30,41,59,0.7);
    border-radius: 12px;
    border: 1px solid rgba(148,163,184,0.25);
}
h1, h2, h3, p, label, span { color: #e2e8f0 !important; }
</style>
"""

# ── Helpers ──────────────────────────────────────────────────────────────


def _session() -> Session:
    if "session" not in st.session_state:
        st.session_state["session"] = Session.from_settings(load_settings())
    return st.session_state["session"]


def _settings():
    settings = load_settings()
    if st.session_state.get("simple_matching"):
        settings = replace(settings, use_simple_matching=True)
    return settings


def _results_frame(results: list[MatchResult]) -> pd.DataFrame:
    rows = [
        {
            "Match": r.match_score,
            "Title": r.job.title,
            "Company": r.job.company,
            "Location": r.job.location,
            "Posted": r.job.posted_at_raw or "—",
            "Salary": r.job.salary or "—",
            "Via": r.job.provider,
            "Apply": r.job.apply_link,
        }
        for r in results
    ]
    return pd.DataFrame(rows)


# ── Sections ─────────────────────────────────────────────────────────────


def section_cv() -> None:
    st.subheader("1 — Your CV")
    session = _session()

    tab_upload, tab_paste = st.tabs(["Upload file", "Paste text"])
    with tab_upload:
        uploaded = st.file_uploader("PDF or TXT", type=["pdf", "txt"])
        if uploaded and st.button("Use this file", use_container_width=True):
            try:
                upload_resume(
                    session,
                    file_bytes=uploaded.getvalue(),
                    file_name=uploaded.name,
                    settings=_settings(),
                )
                st.success(f'CV file "{uploaded.name}" uploaded successfully')
            except JobMatchError as exc:
                st.error(str(exc))

    with tab_paste:
        with st.form("cv_text"):
            text = st.text_area("CV text", height=200)
            if st.form_submit_button("Save CV", type="primary", use_container_width=True):
                try:
                    upload_resume(session, text, settings=_settings())
                    st.success("CV uploaded successfully")
                except JobMatchError as exc:
                    st.error(str(exc))

    if session.resume is None:
        st.info("No CV uploaded yet.")
        return

    info = resume_info(session)
    c1, c2, c3 = st.columns(3)
    c1.metric("Source", info["fileName"])
    c2.metric("Length", f"{info['length']} chars")
    c3.metric("Experience", f"{info['experienceYears']} yrs" if info["experienceYears"] else "—")
    if info["skills"]:
        st.markdown("**Detected skills:** " + ", ".join(info["skills"]))
    with st.expander("Preview"):
        st.write(info["preview"])
    if st.button("Clear CV"):
        clear_resume(session)
        st.session_state.pop("report", None)
        st.rerun()


def section_search() -> None:
    st.subheader("2 — Search & Match")
    session = _session()
    settings = _settings()

    with st.form("search"):
        c1, c2, c3 = st.columns([3, 2, 2])
        with c1:
            query = st.text_input("Job title or keywords", placeholder="laravel developer")
        with c2:
            location = st.text_input("Location", value=settings.default_location)
        with c3:
            time_filter = st.selectbox(
                "Posted", list(TIME_FILTERS), format_func=TIME_FILTERS.get
            )
        keywords = st.text_input("Must mention (optional)", placeholder="php, mysql")
        min_score = st.slider("Min match %", 0, 100, int(settings.search_min_score * 100)) / 100
        submitted = st.form_submit_button("Search jobs", type="primary", use_container_width=True)

    if not submitted:
        return
    if session.resume is None:
        st.warning("Upload your CV first.")
        return

    with st.status("Searching…", expanded=True) as sw:
        try:
            sw.write("Fetching jobs from Google Jobs…")
            snapshot = search_jobs(
                session,
                query,
                location,
                time_filter,
                settings=settings,
                keywords=[k.strip() for k in keywords.split(",") if k.strip()],
            )
            sw.write(f"{snapshot.summary}. Matching…")
            report = match_jobs(session, min_score=min_score, settings=settings)
            st.session_state["report"] = report
            sw.update(label="Search complete!", state="complete")
        except JobMatchError as exc:
            sw.update(label="Search failed", state="error")
            st.error(str(exc))


def section_results() -> None:
    report: MatchReport | None = st.session_state.get("report")
    if report is None:
        return

    st.divider()
    st.subheader("3 — Results")
    c1, c2, c3 = st.columns(3)
    c1.metric("Jobs Found", report.total_jobs)
    c2.metric("Matched", report.matched_jobs)
    c3.metric("Top Match", f"{report.results[0].match_percentage}%" if report.results else "—")

    if not report.results:
        st.info("No jobs above the minimum match score. Try lowering it.")
        return

    st.dataframe(
        _results_frame(report.results),
        use_container_width=True,
        column_config={
            "Apply": st.column_config.LinkColumn("Apply Link"),
            "Match": st.column_config.ProgressColumn("Match", min_value=0, max_value=1, format="%.2f"),
        },
        hide_index=True,
    )

    for r in report.results:
        with st.expander(f"{r.match_percentage}% — {r.job.title} @ {r.job.company}"):
            st.caption(f"{r.job.location} · {r.job.provider} · scored by {r.strategy} similarity")
            st.write(r.job.description)
            _insights_block(r)
            cv_report = r.cv_suggestions
            if cv_report and cv_report.has_improvements:
                st.markdown("**How to improve your CV for this job**")
                for s in cv_report.suggestions:
                    icon = _SUGGESTION_ICONS.get(s.type, "💡")
                    st.markdown(f"{icon} **{s.title}** — {s.description}")
                    st.markdown("\n".join(f"- {item}" for item in s.items))
            else:
                st.success("Your CV already covers this job well.")
            _cover_letter_block(r)
            _details_block(r)


def _insights_block(r: MatchResult) -> None:
    insights = job_insights(_session(), r.job)
    if insights.matched_keywords:
        st.caption(
            f"Shared keywords ({insights.match_rate:.0%} of the description): "
            + ", ".join(insights.matched_keywords)
        )


def _details_block(r: MatchResult) -> None:
    if r.job.id.startswith("job_") or not st.button("All apply options", key=f"details_{r.job.id}"):
        return
    try:
        details = job_details(r.job.id, settings=_settings())
    except JobMatchError as exc:
        st.error(str(exc))
        return
    options = details.get("apply_options") or []
    if not options:
        st.info("No other apply options listed.")
    for opt in options:
        st.markdown(f"- [{opt.get('title', 'Apply')}]({opt.get('link', '#')})")


def _cover_letter_block(r: MatchResult) -> None:
    key = f"letter_{r.job.id}"
    name = st.text_input("Your name", key=f"name_{r.job.id}", value="")
    if st.button("Generate cover letter", key=f"btn_{r.job.id}"):
        with st.spinner("Writing cover letter…"):
            try:
                st.session_state[key] = cover_letter_for(
                    _session(),
                    r.job,
                    user_name=name or "the applicant",
                    match_score=r.match_score,
                    settings=_settings(),
                )
            except JobMatchError as exc:
                st.error(str(exc))
    letter = st.session_state.get(key)
    if letter:
        st.text_area("Cover letter", letter, height=320, key=f"text_{r.job.id}")
        st.download_button(
            "Download .txt",
            letter,
            file_name=f"cover_letter_{r.job.company}.txt",
            key=f"dl_{r.job.id}",
        )


def _sidebar() -> None:
    with st.sidebar:
        st.markdown("**Display**")
        dark = st.toggle("Dark theme", key="dark_theme")
        st.markdown(_DARK_CSS if dark else _LIGHT_CSS, unsafe_allow_html=True)

        st.divider()
        st.markdown("**Matching**")
        st.toggle("Keyword matching only", key="simple_matching",
                  help="Skip OpenAI embeddings and rank by shared words")
        if st.button("Clear embedding cache"):
            clear_cache()
            st.toast("Embedding cache cleared")

        st.divider()
        settings = load_settings()
        st.markdown("**Status**")
        st.markdown(("✅" if settings.has_serpapi_key else "⬜") + "  SerpAPI key")
        st.markdown(("✅" if settings.has_openai_key else "⬜") + "  OpenAI key")
        st.markdown(("✅" if _session().resume else "⬜") + "  CV uploaded")


# ── Main ─────────────────────────────────────────────────────────────────

st.set_page_config(page_title="Job Matcher", page_icon="🎯", layout="wide")
_sidebar()
st.title("🎯 Job Matcher")
st.caption("Find jobs on Google Jobs and rank them against your CV.")
section_cv()
st.divider()
section_search()
section_results()
