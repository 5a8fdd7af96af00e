from __future__ import annotations

import os
import re
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from creator_rss.browser import browser_headless_from_env, browser_user_agent_from_env


class SettingsError(RuntimeError):
    """Raised when CLI configuration is invalid."""


@dataclass(frozen=True)
class Settings:
    cache_dir: Path | None
    cache_max_age: timedelta
    http_timeout: float = 30.0
    render_timeout: float = 60.0
    browser_headless: bool = True
    browser_user_agent: str | None = None

    @property
    def cache_max_age_seconds(self) -> float:
        return self.cache_max_age.total_seconds()


DEFAULT_MAX_AGE = timedelta(hours=1)
_INTERVAL_RE = re.compile(r"^(?P<value>\d+)(?P<unit>[smhdw])$")
_UNIT_TO_SECONDS = {
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 60 * 60 * 24,
    "w": 60 * 60 * 24 * 7,
}


def parse_interval(text: str | None, seconds_override: int | None) -> timedelta:
    """Convert CLI max-age inputs into a timedelta."""
    if seconds_override is not None:
        if seconds_override <= 0:
            raise SettingsError("Max age seconds must be positive")
        return timedelta(seconds=seconds_override)

    if not text:
        return DEFAULT_MAX_AGE

    match = _INTERVAL_RE.match(text.strip().lower())
    if not match:
        raise SettingsError(
            "Invalid max age. Use formats like '30m', '1h', '2d', or pass --max-age-seconds."
        )

    value = int(match.group("value"))
    unit = match.group("unit")
    return timedelta(seconds=value * _UNIT_TO_SECONDS[unit])


def build_settings(
    *,
    cache_dir: Path | None,
    use_cache: bool = True,
    max_age_text: str | None = None,
    max_age_seconds: int | None = None,
    http_timeout: float | None = None,
    render_timeout: float | None = None,
) -> Settings:
    """Validate CLI inputs and environment overrides, and construct runtime settings."""
    resolved_dir: Path | None = None
    if use_cache:
        if cache_dir is None:
            env_dir = os.getenv("CREATOR_RSS_CACHE_DIR")
            cache_dir = Path(env_dir) if env_dir else None
        if cache_dir is not None:
            resolved_dir = cache_dir.expanduser()
            # The cache never creates its directory.
            if not resolved_dir.is_dir():
                raise SettingsError(f"Cache directory not found: {resolved_dir}")

    http = http_timeout if http_timeout is not None else _env_float("CREATOR_RSS_HTTP_TIMEOUT", 30.0)
    render = render_timeout if render_timeout is not None else _env_float("CREATOR_RSS_RENDER_TIMEOUT", 60.0)
    if http <= 0 or render <= 0:
        raise SettingsError("Timeouts must be positive")

    return Settings(
        cache_dir=resolved_dir,
        cache_max_age=parse_interval(max_age_text, max_age_seconds),
        http_timeout=http,
        render_timeout=render,
        browser_headless=browser_headless_from_env(),
        browser_user_agent=browser_user_agent_from_env(),
    )


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise SettingsError(f"{name} must be a number of seconds, got {raw!r}") from exc
