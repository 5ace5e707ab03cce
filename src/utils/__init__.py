"""Utility modules.

- **errors** -- exception hierarchy rooted at FeedbackError, plus the
  retryability classification used by every connector.
- **concurrency** -- settle-all gather with per-call deadlines for the
  connector fan-out.
- **logging** -- structlog setup (console in development, JSON in
  production) and correlation-id binding.
"""

from src.utils.concurrency import call_async, gather_settled, with_timeout
from src.utils.errors import (
    ConfigurationError,
    ConnectorAuthError,
    ConnectorError,
    ConnectorNetworkError,
    ConnectorResponseError,
    ConnectorTimeoutError,
    ConnectorUnavailableError,
    FeedbackError,
    FeedbackValidationError,
    RateLimitError,
    error_from_status,
    is_retryable,
)
from src.utils.logging import bind_correlation_id, configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "ConnectorAuthError",
    "ConnectorError",
    "ConnectorNetworkError",
    "ConnectorResponseError",
    "ConnectorTimeoutError",
    "ConnectorUnavailableError",
    "FeedbackError",
    "FeedbackValidationError",
    "RateLimitError",
    "bind_correlation_id",
    "call_async",
    "configure_logging",
    "error_from_status",
    "gather_settled",
    "get_logger",
    "is_retryable",
    "with_timeout",
]
