"""Storage outcome models for the connector fan-out.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Models (no imports from upper layers).
#
#   StorageResult   : what ONE connector's store() returns
#   ConnectorResult : a StorageResult annotated by the handler with the
#                     connector name, health flag and timing
#   AggregatedResult: what the handler returns for ONE submission
#   AnalyticsData   : optional per-connector statistics
#
# All models are frozen: a result is never mutated after it is returned.
# The JSON wire shape lives in src/api/schemas.py.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class StorageResult(BaseModel):
    """Outcome of one connector's attempt to store one feedback record.

    Exactly one of two shapes holds: success (with an optional backend id)
    or failure (with an error message).  ``retryable`` only means
    something on failure.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    id: str | None = None
    error: str | None = None
    retryable: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_outcome_shape(self) -> StorageResult:
        if self.success and self.error is not None:
            raise ValueError("A successful StorageResult cannot carry an error")
        if not self.success and not self.error:
            raise ValueError("A failed StorageResult must carry an error message")
        if not self.success and self.id is not None:
            raise ValueError("A failed StorageResult cannot carry an id")
        return self

    @classmethod
    def ok(cls, id: str | None = None, metadata: dict[str, Any] | None = None) -> StorageResult:  # noqa: A002
        return cls(success=True, id=id, metadata=metadata or {})

    @classmethod
    def failed(
        cls,
        error: str,
        *,
        retryable: bool = True,
        metadata: dict[str, Any] | None = None,
    ) -> StorageResult:
        return cls(
            success=False,
            error=error or "Unknown error",
            retryable=retryable,
            metadata=metadata or {},
        )


class ConnectorResult(BaseModel):
    """One entry of an aggregated result: a connector's outcome plus health."""

    model_config = ConfigDict(frozen=True)

    connector: str
    success: bool
    id: str | None = None
    error: str | None = None
    retryable: bool | None = None
    healthy: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)
    duration_ms: float | None = None

    @classmethod
    def from_storage_result(
        cls,
        connector: str,
        result: StorageResult,
        *,
        healthy: bool,
        duration_ms: float | None = None,
    ) -> ConnectorResult:
        return cls(
            connector=connector,
            success=result.success,
            id=result.id,
            error=result.error,
            retryable=None if result.success else result.retryable,
            healthy=healthy,
            metadata=dict(result.metadata),
            duration_ms=duration_ms,
        )


class AggregatedResult(BaseModel):
    """Outcome of one submission across every connector that was attempted.

    ``results`` has one entry per connector judged available when the
    submission was dispatched.  ``error`` is the top-level error, set only when
    ``results`` is empty: nothing was available, or the handler itself hit
    an unexpected error.  Per-connector failures stay in ``results``.
    """

    model_config = ConfigDict(frozen=True)

    correlation_id: str
    success: bool
    results: tuple[ConnectorResult, ...] = ()
    error: str | None = None

    @property
    def connectors_used(self) -> int:
        return len(self.results)

    @property
    def retryable(self) -> bool:
        """Whether the client should offer a retry for a failed submission.

        An empty result list (nothing configured, or an internal error) is
        worth retrying; otherwise at least one failed connector must say so.
        """
        if self.success:
            return False
        if not self.results:
            return True
        return any(r.retryable for r in self.results if not r.success)

    def get_result(self, connector: str) -> ConnectorResult | None:
        """Return the entry for *connector*, or ``None`` if it was not attempted."""
        for entry in self.results:
            if entry.connector == connector:
                return entry
        return None


class PageStat(BaseModel):
    """Feedback count for one page."""

    model_config = ConfigDict(frozen=True)

    page: str
    count: int = Field(ge=0)


class TimeRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime


class AnalyticsData(BaseModel):
    """Aggregate statistics a connector with durable storage can report."""

    model_config = ConfigDict(frozen=True)

    total_feedback: int = Field(default=0, ge=0)
    categories: dict[str, int] = Field(default_factory=dict)
    page_stats: list[PageStat] = Field(default_factory=list)
    time_range: TimeRange | None = None
