"""Domain models: re-exports all public model classes.

    - feedback.py: the inbound submission and its validation helpers
    - storage.py : per-connector and aggregated storage outcomes, analytics
"""

from __future__ import annotations

from src.models.feedback import (
    DEFAULT_FEEDBACK_CATEGORIES,
    FeedbackCategory,
    FeedbackRecord,
    create_feedback_record,
    is_valid_feedback_data,
    validate_feedback_data,
)
from src.models.storage import (
    AggregatedResult,
    AnalyticsData,
    ConnectorResult,
    PageStat,
    StorageResult,
    TimeRange,
)

__all__ = [
    "DEFAULT_FEEDBACK_CATEGORIES",
    "AggregatedResult",
    "AnalyticsData",
    "ConnectorResult",
    "FeedbackCategory",
    "FeedbackRecord",
    "PageStat",
    "StorageResult",
    "TimeRange",
    "create_feedback_record",
    "is_valid_feedback_data",
    "validate_feedback_data",
]
