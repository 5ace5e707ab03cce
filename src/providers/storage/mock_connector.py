"""In-memory mock storage connector.

Always available and always healthy.  Used as the zero-configuration
fallback (a fresh deployment accepts feedback and keeps it in memory
instead of failing) and in development/tests.
"""

from __future__ import annotations

import asyncio
from collections import Counter, deque
from datetime import datetime, timezone
from uuid import uuid4

import structlog

from src.interfaces.storage_connector import IAnalyticsCapable, IStorageConnector
from src.models.feedback import FeedbackRecord
from src.models.storage import AnalyticsData, PageStat, StorageResult

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_HISTORY_LIMIT = 1000


class MockConnector(IStorageConnector, IAnalyticsCapable):
    """Accepts every submission and remembers the most recent ones.

    Parameters
    ----------
    name:
        Connector identity; override to register several mocks side by side.
    delay:
        Seconds to sleep in ``store()`` to simulate backend latency.
    history_limit:
        How many recent records to keep.  Analytics counts every record
        ever stored, not just the retained ones.
    """

    def __init__(
        self, name: str = "mock", delay: float = 0.0, history_limit: int = DEFAULT_HISTORY_LIMIT
    ) -> None:
        self._name = name
        self._delay = delay
        self._history: deque[FeedbackRecord] = deque(maxlen=history_limit)
        self._total = 0
        self._categories: Counter[str] = Counter()
        self._pages: Counter[str] = Counter()

    @property
    def name(self) -> str:
        return self._name

    async def detect_availability(self) -> bool:
        return True

    async def health_check(self) -> bool:
        return True

    async def store(self, record: FeedbackRecord) -> StorageResult:
        if self._delay:
            await asyncio.sleep(self._delay)

        self._history.append(record)
        self._total += 1
        self._categories[record.category.value] += 1
        self._pages[record.page] += 1
        feedback_id = f"mock_{uuid4().hex}"
        logger.info(
            "mock_feedback_stored",
            id=feedback_id,
            page=record.page,
            category=record.category.value,
            total=self._total,
        )
        return StorageResult.ok(
            id=feedback_id,
            metadata={
                "connector": self._name,
                "timestamp": datetime.now(tz=timezone.utc).isoformat(),  # noqa: UP017
                "totalFeedbackProcessed": self._total,
            },
        )

    async def get_analytics(self) -> AnalyticsData:
        # Counter.most_common keeps first-seen order among equal counts.
        page_stats = [PageStat(page=p, count=c) for p, c in self._pages.most_common()]
        return AnalyticsData(
            total_feedback=self._total,
            categories=dict(self._categories),
            page_stats=page_stats,
        )

    def get_feedback_history(self) -> list[FeedbackRecord]:
        """Return a copy of the retained records, oldest first."""
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()
        self._total = 0
        self._categories.clear()
        self._pages.clear()
