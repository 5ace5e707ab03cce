"""Feedback API layer -- routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router
from src.api.schemas import (
    AnalyticsResponse,
    ConnectorHealthResponse,
    ConnectorListResponse,
    ConnectorResultResponse,
    ErrorResponse,
    FeedbackSubmissionResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "AnalyticsResponse",
    "ConnectorHealthResponse",
    "ConnectorListResponse",
    "ConnectorResultResponse",
    "ErrorResponse",
    "FeedbackSubmissionResponse",
]
