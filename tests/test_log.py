from __future__ import annotations

import logging

import pytest

import jobmatch.log as jlog
from jobmatch.log import configure, log_file_path, parse_levels


def _ours(handler: logging.Handler) -> bool:
    return getattr(handler, jlog._HANDLER_TAG, False)


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_LEVELS", raising=False)
    root = logging.getLogger()
    level = root.level
    yield
    configure(log_file=False)
    root.setLevel(level)
    logging.getLogger("jobmatch.similarity").setLevel(logging.NOTSET)


def test_parse_levels() -> None:
    assert parse_levels("jobmatch.similarity=DEBUG, openai=warning") == {
        "jobmatch.similarity": logging.DEBUG,
        "openai": logging.WARNING,
    }
    assert parse_levels("noequals,=INFO,x=LOUD") == {}
    assert parse_levels(None) == {}


def test_configure_levels_without_file() -> None:
    configure(level="warning", levels="jobmatch.similarity=DEBUG", log_file=False)
    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert logging.getLogger("jobmatch.similarity").level == logging.DEBUG
    ours = [h for h in root.handlers if _ours(h)]
    assert len(ours) == 1
    assert not any(isinstance(h, logging.FileHandler) for h in ours)


def test_levels_from_env(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    monkeypatch.setenv("LOG_LEVELS", "jobmatch.similarity=DEBUG")
    configure(log_file=False)
    assert logging.getLogger().level == logging.ERROR
    assert logging.getLogger("jobmatch.similarity").level == logging.DEBUG


def test_unknown_level_falls_back_to_info() -> None:
    configure(level="chatty", log_file=False)
    assert logging.getLogger().level == logging.INFO


def test_http_loggers_kept_quiet() -> None:
    configure(level="DEBUG", log_file=False)
    for name in ("httpx", "httpcore", "openai", "urllib3"):
        assert logging.getLogger(name).level == logging.WARNING
    configure(level="DEBUG", levels="openai=DEBUG", log_file=False)
    assert logging.getLogger("openai").level == logging.DEBUG


def test_file_handler_writes_daily_log(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(jlog, "LOG_DIR", tmp_path / "logs")
    configure(level="INFO", log_file=True)
    logging.getLogger("jobmatch.test").info("hello file")
    for handler in logging.getLogger().handlers:
        handler.flush()

    path = log_file_path()
    assert path.parent == tmp_path / "logs"
    assert path.name.startswith("jobmatch_") and path.suffix == ".log"
    assert "hello file" in path.read_text(encoding="utf-8")


def test_reconfigure_replaces_own_handlers() -> None:
    foreign = logging.NullHandler()
    root = logging.getLogger()
    root.addHandler(foreign)
    try:
        configure(log_file=False)
        configure(log_file=False)
        assert len([h for h in root.handlers if _ours(h)]) == 1
        assert foreign in root.handlers
    finally:
        root.removeHandler(foreign)
