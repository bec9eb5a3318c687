"""
Runtime settings.

Values come from a `.env` file in the working directory (if present), then
from REPLYRANKER_* environment variables. CLI flags override both.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_CHUNK_SIZE = 50
DEFAULT_POLL_INTERVAL = 3.0
DEFAULT_MAX_WORKERS = 8
DEFAULT_REQUEST_TIMEOUT = 15.0
DEFAULT_TRANSPORT_RETRIES = 2

ENV_PREFIX = "REPLYRANKER_"


def load_env() -> None:
    """Load .env from the current working directory if present."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)


@dataclass(frozen=True)
class Settings:
    submit_url: Optional[str] = None
    results_url: Optional[str] = None
    chunk_size: int = DEFAULT_CHUNK_SIZE
    poll_interval: float = DEFAULT_POLL_INTERVAL
    max_workers: int = DEFAULT_MAX_WORKERS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    transport_retries: int = DEFAULT_TRANSPORT_RETRIES
    log_level: str = "INFO"

    def with_overrides(self, **overrides) -> "Settings":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def validate(self, require_endpoints: bool = True) -> "Settings":
        """
        Check settings before any network activity.

        Raises:
            ConfigurationError: On the first invalid value found
        """
        if require_endpoints:
            if not self.submit_url:
                raise ConfigurationError(f"Missing submission URL. Set {ENV_PREFIX}SUBMIT_URL or pass --submit-url.")
            if not self.results_url:
                raise ConfigurationError(f"Missing results URL. Set {ENV_PREFIX}RESULTS_URL or pass --results-url.")
        validate_chunk_size(self.chunk_size)
        if self.poll_interval <= 0:
            raise ConfigurationError(f"Poll interval must be positive, got {self.poll_interval}")
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.request_timeout <= 0:
            raise ConfigurationError(f"Request timeout must be positive, got {self.request_timeout}")
        if self.transport_retries < 0:
            raise ConfigurationError(f"transport_retries cannot be negative, got {self.transport_retries}")
        return self


def validate_chunk_size(chunk_size) -> int:
    # bool is an int subclass; True is not a chunk size
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size < 1:
        raise ConfigurationError(f"Chunk size must be a positive integer, got {chunk_size!r}")
    return chunk_size


def _env(name: str) -> Optional[str]:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_number(name: str, cast, default):
    raw = _env(name)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}")


def load_settings() -> Settings:
    """Build Settings from .env and the environment. Does not validate."""
    load_env()
    return Settings(
        submit_url=_env("SUBMIT_URL"),
        results_url=_env("RESULTS_URL"),
        chunk_size=_env_number("CHUNK_SIZE", int, DEFAULT_CHUNK_SIZE),
        poll_interval=_env_number("POLL_INTERVAL", float, DEFAULT_POLL_INTERVAL),
        max_workers=_env_number("MAX_WORKERS", int, DEFAULT_MAX_WORKERS),
        request_timeout=_env_number("REQUEST_TIMEOUT", float, DEFAULT_REQUEST_TIMEOUT),
        transport_retries=_env_number("TRANSPORT_RETRIES", int, DEFAULT_TRANSPORT_RETRIES),
        log_level=_env("LOG_LEVEL") or "INFO",
    )
