"""Pydantic request/response schemas for the feedback API.

Defines the public contract of the HTTP boundary.  The request body is
:class:`src.models.feedback.FeedbackRecord` itself; the models here
shape what goes back to the widget.

Wire keys are camelCase (``connectorsUsed``) to match what the browser
widget expects; build responses with
``model_dump(by_alias=True, exclude_none=True)``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.models.storage import AggregatedResult, AnalyticsData, ConnectorResult

SUBMISSION_SUCCESS_MESSAGE = "Feedback submitted successfully"
ALL_CONNECTORS_FAILED_MESSAGE = "All storage connectors failed"


def _submission_error(result: AggregatedResult) -> str | None:
    """The message the widget shows for a failed submission."""
    if result.success:
        return None
    return result.error or ALL_CONNECTORS_FAILED_MESSAGE


class ConnectorResultResponse(BaseModel):
    """One connector's outcome, as reported to operators and the widget."""

    connector: str
    success: bool
    id: str | None = None
    error: str | None = None
    retryable: bool | None = None
    healthy: bool | None = None
    metadata: dict[str, Any] | None = None

    @classmethod
    def from_result(cls, entry: ConnectorResult) -> ConnectorResultResponse:
        return cls(
            connector=entry.connector,
            success=entry.success,
            id=entry.id,
            error=entry.error,
            retryable=entry.retryable,
            healthy=entry.healthy,
            metadata=dict(entry.metadata) or None,
        )


class SubmissionMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    connectors_used: int = Field(alias="connectorsUsed")
    results: list[ConnectorResultResponse] = Field(default_factory=list)


class FeedbackSubmissionResponse(BaseModel):
    """Body returned by ``POST /api/feedback``.

    ``id`` is the correlation id of the submission, quoted in every log
    line written while it was processed.
    """

    success: bool
    id: str | None = None
    message: str | None = None
    error: str | None = None
    retryable: bool | None = None
    metadata: SubmissionMetadata | None = None

    @classmethod
    def from_result(cls, result: AggregatedResult) -> FeedbackSubmissionResponse:
        return cls(
            success=result.success,
            id=result.correlation_id,
            message=SUBMISSION_SUCCESS_MESSAGE if result.success else None,
            error=_submission_error(result),
            retryable=None if result.success else result.retryable,
            metadata=SubmissionMetadata(
                connectors_used=result.connectors_used,
                results=[ConnectorResultResponse.from_result(r) for r in result.results],
            ),
        )

    @classmethod
    def rejected(cls, error: str) -> FeedbackSubmissionResponse:
        """A submission refused at ingress (bad JSON / failed validation)."""
        return cls(success=False, error=error, retryable=False)


class ConnectorHealthResponse(BaseModel):
    """Health of every registered connector."""

    healthy: bool = Field(description="True when at least one connector is healthy")
    connectors: dict[str, bool]


class ConnectorListResponse(BaseModel):
    connectors: list[str]


class AnalyticsResponse(BaseModel):
    """Statistics from every connector that offers them, keyed by connector name."""

    analytics: dict[str, AnalyticsData]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
