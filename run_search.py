#!/usr/bin/env python3
"""Search Google Jobs and rank the results against a CV file."""
from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from jobmatch.config import load_settings
from jobmatch.errors import JobMatchError
from jobmatch.log import configure, get_logger

log = get_logger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description=__doc__)
    p.add_argument("query", help='Job search query, e.g. "laravel developer"')
    p.add_argument("--cv", type=Path, required=True, help="CV file (.pdf or .txt)")
    p.add_argument("--location", default=None, help="Search location (default from settings)")
    p.add_argument("--time-filter", choices=["all", "24h", "week", "month"], default="all")
    p.add_argument("--min-score", type=float, default=None, help="Drop matches below this score (0-1)")
    p.add_argument("--simple", action="store_true", help="Keyword matching only, no embeddings")
    p.add_argument("--top", type=int, default=10, help="Number of matches to print")
    p.add_argument("--json", action="store_true", help="Print the full result as JSON")
    p.add_argument("--keywords", nargs="+", default=None, help="Keep only jobs mentioning one of these words")
    p.add_argument("--cover-letter", type=int, metavar="RANK", default=None,
                   help="Write a cover letter for the match at this rank into data/")
    p.add_argument("--name", default="the applicant", help="Name used to sign the cover letter")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging on the console")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.verbose:
        configure(level="DEBUG")

    from jobmatch.service import cover_letter_for, search_and_match, upload_resume
    from jobmatch.session import Session

    settings = load_settings()
    if args.simple:
        settings = replace(settings, use_simple_matching=True)

    session = Session.from_settings(settings)
    try:
        upload_resume(
            session,
            file_bytes=args.cv.read_bytes(),
            file_name=args.cv.name,
            settings=settings,
        )
        report = search_and_match(
            session,
            args.query,
            args.location,
            time_filter=args.time_filter,
            min_score=args.min_score,
            settings=settings,
            keywords=args.keywords,
        )
    except OSError as exc:
        log.error("Cannot read CV: %s", exc)
        return 1
    except JobMatchError as exc:
        log.error("%s", exc)
        return 1

    if args.cover_letter is not None:
        if not 1 <= args.cover_letter <= report.matched_jobs:
            log.error("No match at rank %d (have %d)", args.cover_letter, report.matched_jobs)
            return 1
        chosen = report.results[args.cover_letter - 1]
        try:
            cover_letter_for(
                session,
                chosen.job,
                user_name=args.name,
                match_score=chosen.match_score,
                settings=settings,
                save=True,
            )
        except (OSError, JobMatchError) as exc:
            log.error("Cover letter failed: %s", exc)
            return 1

    if args.json:
        print(json.dumps(report.to_dict(), indent=2, default=str))
        return 0

    log.info(
        "Matched %d of %d jobs (min score %.0f%%)",
        report.matched_jobs, report.total_jobs, report.min_score * 100,
    )
    for rank, r in enumerate(report.results[: args.top], 1):
        print(f"{rank:>2}. {r.match_percentage:>3}%  {r.job.title} @ {r.job.company} ({r.job.location})")
        print(f"      {r.job.apply_link}")
        if r.cv_suggestions and r.cv_suggestions.has_improvements:
            for s in r.cv_suggestions.suggestions:
                print(f"      - {s.title}: {', '.join(s.items)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
