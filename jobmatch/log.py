"""Logging for jobmatch.

Console output goes to stdout at ``LOG_LEVEL`` (default INFO). A daily file
``logs/jobmatch_YYYY-MM-DD.log`` records the same stream unless
``JOBMATCH_LOG_FILE`` is false. ``LOG_LEVELS`` sets individual loggers, e.g.
``LOG_LEVELS="jobmatch.similarity=DEBUG,openai=INFO"``.
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import date
from pathlib import Path

LOG_DIR: Path = Path(__file__).resolve().parent.parent / "logs"

_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"

# HTTP client libraries log every request at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "openai", "urllib3")

_HANDLER_TAG = "_jobmatch_handler"
_configured = False


def get_logger(name: str) -> logging.Logger:
    """Named logger; sets up the root handlers on first use."""
    if not _configured:
        configure()
    return logging.getLogger(name)


def parse_levels(spec: str | None) -> dict[str, int]:
    """``"a=DEBUG,b.c=warning"`` -> ``{"a": 10, "b.c": 30}``; bad items are skipped."""
    levels: dict[str, int] = {}
    for item in (spec or "").split(","):
        name, sep, level = item.partition("=")
        if not sep or not name.strip():
            continue
        value = logging.getLevelName(level.strip().upper())
        if isinstance(value, int):
            levels[name.strip()] = value
    return levels


def log_file_path(day: date | None = None) -> Path:
    return LOG_DIR / f"jobmatch_{(day or date.today()).isoformat()}.log"


def _env_flag(key: str, default: str) -> bool:
    return os.environ.get(key, default).strip().lower() in ("1", "true", "yes", "on")


def configure(
    level: str | None = None,
    levels: str | None = None,
    log_file: bool | None = None,
) -> None:
    """(Re)install jobmatch's handlers on the root logger.

    Arguments override ``LOG_LEVEL``, ``LOG_LEVELS`` and ``JOBMATCH_LOG_FILE``.
    Handlers installed by an earlier call are replaced; handlers added by
    anyone else (pytest, streamlit) are left alone.
    """
    global _configured
    _configured = True

    name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    root_level = logging.getLevelName(name)
    if not isinstance(root_level, int):
        root_level = logging.INFO

    root = logging.getLogger()
    root.setLevel(root_level)
    for handler in [h for h in root.handlers if getattr(h, _HANDLER_TAG, False)]:
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    setattr(console, _HANDLER_TAG, True)
    root.addHandler(console)

    file_error: OSError | None = None
    if log_file if log_file is not None else _env_flag("JOBMATCH_LOG_FILE", "true"):
        path = log_file_path()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(path, encoding="utf-8")
        except OSError as exc:
            file_error = exc
        else:
            fh.setFormatter(formatter)
            setattr(fh, _HANDLER_TAG, True)
            root.addHandler(fh)

    for quiet in _QUIET_LOGGERS:
        logging.getLogger(quiet).setLevel(max(root_level, logging.WARNING))
    for logger_name, value in parse_levels(
        levels if levels is not None else os.environ.get("LOG_LEVELS")
    ).items():
        logging.getLogger(logger_name).setLevel(value)

    if file_error is not None:
        logging.getLogger(__name__).warning("Log file disabled: %s", file_error)
