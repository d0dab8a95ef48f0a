"""Core utilities for the Google Docs write path: errors, retry and configuration."""

from core.config import DocsConfig, get_docs_config, reload_docs_config
from core.errors import (
    APIError,
    PermissionDeniedError,
    RateLimitError,
    ResourceNotFoundError,
    TablePopulationError,
    TemplateValidationError,
    ValidationError,
    WorkspaceMCPError,
    format_error,
    handle_http_error,
)
from core.retry import DEFAULT_RETRY_CONFIG, RetryConfig, is_retryable, retry_transient, with_retry

__all__ = [
    "APIError",
    "DEFAULT_RETRY_CONFIG",
    "DocsConfig",
    "format_error",
    "get_docs_config",
    "handle_http_error",
    "is_retryable",
    "PermissionDeniedError",
    "RateLimitError",
    "reload_docs_config",
    "ResourceNotFoundError",
    "retry_transient",
    "RetryConfig",
    "TablePopulationError",
    "TemplateValidationError",
    "ValidationError",
    "with_retry",
    "WorkspaceMCPError",
]
