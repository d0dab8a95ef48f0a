"""
Configuration for Google Docs write operations.

Values come from environment variables so the retry policy and code styling
can be tuned without code changes. Provides a single source of truth that is
handed to the writer as an explicit RetryConfig.
"""

import os

from core.retry import RetryConfig

DEFAULT_CODE_FONT_FAMILY = "Courier New"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


class DocsConfig:
    """
    Centralized configuration for the Docs write path.

    Environment variables:
        GWS_DOCS_RETRY_MAX_ATTEMPTS: Total attempts per batch submission (default 3).
        GWS_DOCS_RETRY_INITIAL_BACKOFF: First retry delay in seconds (default 1.0).
        GWS_DOCS_RETRY_MAX_BACKOFF: Cap for any retry delay in seconds (default 30.0).
        GWS_DOCS_RETRY_MULTIPLIER: Backoff growth factor (default 2.0).
        GWS_DOCS_CODE_FONT: Monospace font for code blocks and spans (default "Courier New").
    """

    def __init__(self):
        self.retry_max_attempts = _env_int("GWS_DOCS_RETRY_MAX_ATTEMPTS", 3)
        self.retry_initial_backoff = _env_float("GWS_DOCS_RETRY_INITIAL_BACKOFF", 1.0)
        self.retry_max_backoff = _env_float("GWS_DOCS_RETRY_MAX_BACKOFF", 30.0)
        self.retry_multiplier = _env_float("GWS_DOCS_RETRY_MULTIPLIER", 2.0)
        self.code_font_family = os.getenv("GWS_DOCS_CODE_FONT", DEFAULT_CODE_FONT_FAMILY) or DEFAULT_CODE_FONT_FAMILY

        # Validate eagerly so a bad environment fails at startup
        self.retry_config()

    def retry_config(self) -> RetryConfig:
        """Build the RetryConfig described by this configuration."""
        return RetryConfig(
            max_attempts=self.retry_max_attempts,
            initial_backoff=self.retry_initial_backoff,
            max_backoff=self.retry_max_backoff,
            multiplier=self.retry_multiplier,
        )


_config: DocsConfig | None = None


def get_docs_config() -> DocsConfig:
    """Return the process-wide DocsConfig, loading it on first use."""
    global _config
    if _config is None:
        _config = DocsConfig()
    return _config


def reload_docs_config() -> DocsConfig:
    """Re-read the environment. Mainly useful in tests."""
    global _config
    _config = DocsConfig()
    return _config
