"""Load settings from config/settings.yaml and the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from jobmatch.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
DATA_DIR: Path = ROOT_DIR / "data"

_PLACEHOLDER_KEYS = {"", "your_serpapi_key_here", "your_openai_api_key_here"}

# Settings field -> environment variable that overrides it.
_ENV_OVERRIDES: dict[str, str] = {
    "serpapi_key": "SERPAPI_KEY",
    "openai_api_key": "OPENAI_API_KEY",
    "use_simple_matching": "USE_SIMPLE_MATCHING",
    "default_location": "JOBMATCH_DEFAULT_LOCATION",
    "country_code": "JOBMATCH_COUNTRY_CODE",
    "embedding_model": "OPENAI_EMBEDDING_MODEL",
    "chat_model": "OPENAI_CHAT_MODEL",
    "cache_key_mode": "JOBMATCH_CACHE_KEY_MODE",
    "cache_max_size": "JOBMATCH_CACHE_MAX_SIZE",
    "cache_ttl_seconds": "JOBMATCH_CACHE_TTL",
    "allow_mock": "JOBMATCH_ALLOW_MOCK",
    "snapshot": "JOBMATCH_SNAPSHOT",
}


@dataclass(frozen=True)
class Settings:
    default_location: str = "Sri Lanka"
    country_code: str = "lk"
    min_score: float = 0.0
    search_min_score: float = 0.2
    use_simple_matching: bool = False
    embedding_model: str = "text-embedding-3-small"
    embedding_max_chars: int = 8000
    cache_key_mode: str = "content"
    cache_max_size: int | None = None
    cache_ttl_seconds: float | None = None
    chat_model: str = "gpt-3.5-turbo"
    max_workers: int = 8
    max_upload_bytes: int = 10 * 1024 * 1024
    request_timeout: float = 20.0
    allow_mock: bool = False
    snapshot: bool = True
    serpapi_key: str = ""
    openai_api_key: str = ""

    @property
    def has_serpapi_key(self) -> bool:
        return self.serpapi_key not in _PLACEHOLDER_KEYS

    @property
    def has_openai_key(self) -> bool:
        return self.openai_api_key not in _PLACEHOLDER_KEYS


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _coerce(value: Any, target: Any) -> Any:
    """Convert a YAML/env value to the type of the field default."""
    if value is None or value == "":
        return None if target is None else target
    if isinstance(target, bool):
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in ("1", "true", "yes", "on")
    if isinstance(target, int):
        return int(value)
    if isinstance(target, float):
        return float(value)
    if target is None:
        # Optional numeric fields default to None.
        return float(value) if "." in str(value) else int(value)
    return str(value).strip()


def load_settings(path: Path | None = None) -> Settings:
    """Build Settings from YAML defaults, then environment overrides."""
    path = path or SETTINGS_PATH
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    else:
        log.debug("No settings file at %s — using defaults", path)

    defaults = Settings()
    values: dict[str, Any] = {}
    for fld in fields(Settings):
        default = getattr(defaults, fld.name)
        raw = data.get(fld.name, default)
        env_key = _ENV_OVERRIDES.get(fld.name)
        if env_key and get_env(env_key):
            raw = get_env(env_key)
        try:
            values[fld.name] = _coerce(raw, default)
        except (TypeError, ValueError):
            log.warning("Invalid value %r for setting %s — using %r", raw, fld.name, default)
            values[fld.name] = default

    if values["cache_key_mode"] not in ("content", "prefix"):
        log.warning("Unknown cache_key_mode %r — using 'content'", values["cache_key_mode"])
        values["cache_key_mode"] = "content"

    return Settings(**values)

