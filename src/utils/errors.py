"""Custom exception hierarchy for the feedback service.

All application exceptions inherit from :class:`FeedbackError`, which
carries an optional ``provider_name`` so error handlers can identify which
storage backend (e.g. "linear", "sqlite") caused the failure.

    FeedbackError  (base -- catch-all for any feedback-service error)
    +-- ConfigurationError        (startup / missing config)
    +-- FeedbackValidationError   (ingress validation of a submission)
    +-- ConnectorError            (any storage-backend failure, carries ``retryable``)
        +-- ConnectorNetworkError     (backend unreachable)
        +-- ConnectorTimeoutError     (backend did not answer in time)
        +-- RateLimitError            (backend rate limit exceeded)
        +-- ConnectorAuthError        (credentials rejected)
        +-- ConnectorResponseError    (backend answered but refused the write)
        +-- ConnectorUnavailableError (backend not initialised / not configured)

Connectors raise these internally and translate them into a failed
``StorageResult``; :func:`is_retryable` is the single place that decides
whether a failure is worth resubmitting.
"""

from __future__ import annotations

from typing import Any

import httpx


class FeedbackError(Exception):
    """Base exception for all feedback-service errors.

    The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[linear] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Startup / ingress errors
# ---------------------------------------------------------------------------

class ConfigurationError(FeedbackError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class FeedbackValidationError(FeedbackError):
    """Raised when an inbound submission does not match the feedback shape.

    ``errors`` holds the full list of field errors; ``message`` is the
    first one, phrased for the end user.
    """

    def __init__(
        self,
        message: str = "Invalid feedback data",
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message=message)
        self._errors = errors or []

    @property
    def errors(self) -> list[dict[str, Any]]:
        return list(self._errors)


# ---------------------------------------------------------------------------
# Storage connector errors
# ---------------------------------------------------------------------------

class ConnectorError(FeedbackError):
    """Raised when a storage backend fails to accept a submission.

    Subclasses fix ``retryable`` to the value that matches their failure
    kind; the base class defaults to ``True`` for unclassified failures.
    """

    default_retryable: bool = True

    def __init__(
        self,
        message: str = "Storage connector failed",
        provider_name: str | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._retryable = self.default_retryable if retryable is None else retryable

    @property
    def retryable(self) -> bool:
        return self._retryable


class ConnectorNetworkError(ConnectorError):
    """Raised when a storage backend is unreachable."""

    def __init__(
        self,
        message: str = "Storage backend is unreachable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, retryable=True)


class ConnectorTimeoutError(ConnectorError):
    """Raised when a storage backend does not answer within its deadline."""

    def __init__(
        self,
        message: str = "Storage backend timed out",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, retryable=True)


class RateLimitError(ConnectorError):
    """Raised when a storage backend's rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, retryable=True)


class ConnectorAuthError(ConnectorError):
    """Raised when a storage backend rejects the configured credentials.

    Never retryable: resubmitting with the same credentials fails again.
    """

    def __init__(
        self,
        message: str = "Authentication with storage backend failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, retryable=False)


class ConnectorResponseError(ConnectorError):
    """Raised when a backend answers but reports that the write failed."""

    def __init__(
        self,
        message: str = "Storage backend rejected the request",
        provider_name: str | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, retryable=retryable)


class ConnectorUnavailableError(ConnectorError):
    """Raised when a connector is used before its backend is initialised."""

    def __init__(
        self,
        message: str = "Storage backend is not available",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, retryable=True)


# ---------------------------------------------------------------------------
# Retryability classification
# ---------------------------------------------------------------------------

_AUTH_STATUSES = frozenset({401, 403})


def error_from_status(
    status_code: int,
    message: str,
    provider_name: str | None = None,
) -> ConnectorError:
    """Map an HTTP status code from a backend onto the connector hierarchy.

    Only 401/403 are final.  Every other status, 4xx included, is
    retryable: backends such as Linear answer 400 for throttled requests.
    """
    if status_code in _AUTH_STATUSES:
        return ConnectorAuthError(message=message, provider_name=provider_name)
    if status_code == 429:
        return RateLimitError(message=message, provider_name=provider_name)
    return ConnectorResponseError(
        message=message, provider_name=provider_name, retryable=True
    )


def is_retryable(exc: BaseException) -> bool:
    """Return whether a client could usefully resubmit after *exc*.

    Only authentication/authorization failures are final; network,
    timeout, rate-limit and unclassified failures are retryable.
    """
    if isinstance(exc, ConnectorError):
        return exc.retryable
    if isinstance(exc, httpx.HTTPStatusError):
        return error_from_status(exc.response.status_code, str(exc)).retryable
    return True
