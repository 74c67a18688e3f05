"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# This class uses pydantic-settings to read configuration from TWO
# sources (in priority order):
#
#   1. **Environment variables** - e.g., FETCH_CONCURRENCY=4
#   2. **.env file** - key=value lines in the project root .env file
#
# The mapping is automatic: field name `request_timeout` maps to env var
# `REQUEST_TIMEOUT`.
#
# Per-source switches are NOT fields here: any `SKIP_<TOGGLE>=1` variable
# excludes the source whose `toggle` is `<TOGGLE>` in the sources table.
# They are read through `is_source_skipped()` when the task list is built.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseSettings):
    """hu5events application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Runtime ===
    app_env: str = "development"
    log_level: str = "INFO"

    # === Time ===
    timezone: str = "Europe/London"
    default_event_time: str = Field(default="20:00", pattern=r"^\d{2}:\d{2}$")

    # === Persistence ===
    cache_path: str = "public/events.json"
    sources_path: str = ""  # Empty = bundled hu5events/config/sources.yaml

    # === Fetching ===
    fetch_concurrency: int = Field(default=8, ge=1)   # Sources in flight at once
    detail_concurrency: int = Field(default=4, ge=1)  # Detail pages per source
    request_timeout: float = Field(default=15.0, gt=0)
    max_retries: int = Field(default=1, ge=0)         # Retries AFTER the first attempt
    retry_backoff: float = Field(default=0.5, ge=0)   # Seconds, multiplied by attempt
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124 Safari/537.36"
    )
    accept_language: str = "en-GB,en;q=0.9"


def is_source_skipped(toggle: str | None, environ: Mapping[str, str] | None = None) -> bool:
    """Return ``True`` when ``SKIP_<TOGGLE>`` is set to a truthy value.

    A source without a toggle, or with the variable absent, is included.
    """
    if not toggle:
        return False
    env = os.environ if environ is None else environ
    value = env.get(f"SKIP_{toggle.upper()}", "")
    return value.strip().lower() in _TRUTHY
