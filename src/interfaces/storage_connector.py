"""Abstract base classes for feedback storage connectors.

Defines the contract every storage backend (issue tracker, database,
mock sink) implements so the registry and handler can treat them
uniformly.  The adapter pattern lets a backend be added or swapped
without touching the fan-out logic.

Connector contract
------------------
- ``detect_availability`` answers "is this backend configured enough to
  attempt a store right now?"; expected misconfiguration returns ``False``.
- ``health_check`` is a lightweight liveness check; every failure resolves
  to ``False``.
- ``store`` never raises for backend failures: it returns a failed
  :class:`StorageResult` with ``retryable`` classified by failure kind.

The registry and handler still guard every call, so a connector that
breaks this contract degrades to "unavailable" or "failed" instead of
aborting the fan-out.

Analytics is an optional capability expressed as a separate ABC,
:class:`IAnalyticsCapable`, checked with :func:`supports_analytics`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.feedback import FeedbackRecord
from src.models.storage import AnalyticsData, StorageResult

# Methods the registry requires on anything it accepts.
REQUIRED_CAPABILITIES: tuple[str, ...] = ("detect_availability", "health_check", "store")


class IStorageConnector(ABC):
    """Contract for a single feedback storage backend.

    All checks and writes are async because they may perform network I/O.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique connector identity within a registry (e.g. ``"linear"``)."""

    @abstractmethod
    async def detect_availability(self) -> bool:
        """Return ``True`` if the backend is configured well enough to attempt a store.

        Must be idempotent.  Return ``False`` for missing credentials
        rather than raising.
        """

    @abstractmethod
    async def health_check(self) -> bool:
        """Return ``True`` if the backend answers a lightweight liveness check.

        May perform network I/O.  Network, auth and timeout failures all
        resolve to ``False``.
        """

    @abstractmethod
    async def store(self, record: FeedbackRecord) -> StorageResult:
        """Persist *record* in the backend.

        Parameters
        ----------
        record:
            A validated, immutable feedback record.

        Returns
        -------
        StorageResult
            ``success=True`` with the backend-assigned ``id`` and any
            backend metadata (e.g. an issue URL), or ``success=False``
            with an ``error`` message and ``retryable`` set from the
            failure kind: network, timeout and rate-limit failures are
            retryable, authentication failures are not, unknown failures
            default to retryable.
        """

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this connector."""
        return self.name


class IAnalyticsCapable(ABC):
    """Optional capability: connectors with durable storage report statistics."""

    @abstractmethod
    async def get_analytics(self) -> AnalyticsData:
        """Return aggregate statistics over everything this backend has stored."""


def supports_analytics(connector: object) -> bool:
    """Return ``True`` if *connector* offers :meth:`IAnalyticsCapable.get_analytics`."""
    return isinstance(connector, IAnalyticsCapable)


def has_required_capabilities(connector: object) -> bool:
    """Return ``True`` if *connector* exposes a name and every required method."""
    if not isinstance(getattr(connector, "name", None), str):
        return False
    return all(callable(getattr(connector, attr, None)) for attr in REQUIRED_CAPABILITIES)
