from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_TIMEOUT_SECONDS = 30
TRUE_STRINGS = {"1", "true", "yes", "on"}
FALSE_STRINGS = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    source_url: str | None = None
    batch_path: str | None = None
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    strict_timestamps: bool = False
    search_case_sensitive: bool = True
    log_level: str = "INFO"

    def require_source(self) -> str:
        source = self.source_url or self.batch_path
        if not source:
            raise ValueError("MESSAGE_BROWSER_SOURCE_URL or MESSAGE_BROWSER_BATCH_PATH is required")
        return source


def _str_env(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return max(1, int(raw.strip()))
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in TRUE_STRINGS:
        return True
    if normalized in FALSE_STRINGS:
        return False
    return default


def load_settings() -> Settings:
    return Settings(
        source_url=_str_env("MESSAGE_BROWSER_SOURCE_URL"),
        batch_path=_str_env("MESSAGE_BROWSER_BATCH_PATH"),
        timeout_seconds=_int_env("MESSAGE_BROWSER_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        strict_timestamps=_bool_env("MESSAGE_BROWSER_STRICT_TIMESTAMPS", False),
        search_case_sensitive=_bool_env("MESSAGE_BROWSER_SEARCH_CASE_SENSITIVE", True),
        log_level=(_str_env("MESSAGE_BROWSER_LOG_LEVEL") or "INFO").upper(),
    )
