"""Fan-out feedback handler.

# ─── HOW A SUBMISSION FLOWS ──────────────────────────────────────────
#
#   process_feedback(record)
#     1. new correlation id, bound into the structlog context
#     2. registry.detect_available()        → the dispatch set (fixed here)
#     3. empty set                          → "No storage connectors available"
#     4. per connector, concurrently:
#          health_check() ┐ both bounded by connector_timeout,
#          store(record)  ┘ neither blocks the other
#     5. settle all; every exception / timeout becomes a failed entry
#     6. success = at least one connector stored the record
#
# The handler keeps no per-call state on ``self``: concurrent submissions
# only share the (read-only) registry.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time
from uuid import uuid4

import structlog

from src.interfaces.storage_connector import IStorageConnector
from src.models.feedback import FeedbackRecord
from src.models.storage import AggregatedResult, AnalyticsData, ConnectorResult, StorageResult
from src.storage.registry import StorageRegistry
from src.utils.concurrency import call_async, gather_settled
from src.utils.errors import FeedbackError, is_retryable
from src.utils.logging import bind_correlation_id

logger = structlog.get_logger(logger_name=__name__)

NO_CONNECTORS_ERROR = "No storage connectors available"
DEFAULT_CONNECTOR_TIMEOUT = 10.0


def _error_message(exc: BaseException) -> str:
    if isinstance(exc, FeedbackError):
        return exc.message
    return str(exc) or type(exc).__name__


class FeedbackHandler:
    """Sends one feedback record to every available connector and merges the outcomes.

    Parameters
    ----------
    registry:
        The connectors to fan out to.  Owned by whoever builds the handler.
    connector_timeout:
        Ceiling in seconds for each connector's ``store()`` and
        ``health_check()``; a store that misses it is recorded as a
        retryable failure.
    """

    def __init__(
        self,
        registry: StorageRegistry,
        connector_timeout: float | None = DEFAULT_CONNECTOR_TIMEOUT,
    ) -> None:
        self._registry = registry
        self._connector_timeout = connector_timeout

    @property
    def registry(self) -> StorageRegistry:
        return self._registry

    async def process_feedback(self, record: FeedbackRecord) -> AggregatedResult:
        """Store *record* in every available connector.

        Never raises for connector or internal failures: the outcome,
        including a top-level error, is always returned as data.
        """
        correlation_id = str(uuid4())

        with bind_correlation_id(correlation_id):
            try:
                return await self._process(correlation_id, record)
            except Exception as exc:  # noqa: BLE001
                logger.exception("feedback_processing_error", error=_error_message(exc))
                return AggregatedResult(
                    correlation_id=correlation_id,
                    success=False,
                    error=_error_message(exc),
                )

    async def _process(self, correlation_id: str, record: FeedbackRecord) -> AggregatedResult:
        logger.info("feedback_received", page=record.page, category=record.category.value)

        available = await self._registry.detect_available()
        if not available:
            logger.warning("no_storage_connectors_available", registered=self._registry.names())
            return AggregatedResult(
                correlation_id=correlation_id,
                success=False,
                error=NO_CONNECTORS_ERROR,
            )

        outcomes = await gather_settled(
            [self._dispatch(connector, record) for connector in available]
        )

        results: list[ConnectorResult] = []
        for connector, outcome in zip(available, outcomes):
            if isinstance(outcome, BaseException):
                # _dispatch converts connector failures itself; this is the backstop.
                results.append(self._failure(connector.name, outcome, healthy=False))
            else:
                results.append(outcome)

        success = any(r.success for r in results)
        logger.info(
            "feedback_processed",
            success=success,
            connectors=[r.connector for r in results],
            succeeded=[r.connector for r in results if r.success],
        )
        return AggregatedResult(
            correlation_id=correlation_id,
            success=success,
            results=tuple(results),
        )

    async def _dispatch(self, connector: IStorageConnector, record: FeedbackRecord) -> ConnectorResult:
        """Run one connector's health check and store concurrently and merge them."""
        start = time.perf_counter()
        health_outcome, store_outcome = await gather_settled(
            [call_async(connector.health_check), call_async(connector.store, record)],
            timeout=self._connector_timeout,
        )
        duration_ms = round((time.perf_counter() - start) * 1000, 2)

        if isinstance(health_outcome, BaseException):
            logger.debug(
                "connector_health_check_failed",
                connector=connector.name,
                error=_error_message(health_outcome),
            )
        healthy = health_outcome is True

        if isinstance(store_outcome, BaseException):
            return self._failure(connector.name, store_outcome, healthy=healthy, duration_ms=duration_ms)

        if not isinstance(store_outcome, StorageResult):
            logger.error(
                "connector_invalid_result",
                connector=connector.name,
                result_type=type(store_outcome).__name__,
            )
            return ConnectorResult(
                connector=connector.name,
                success=False,
                error="Connector returned an invalid result",
                retryable=True,
                healthy=healthy,
                duration_ms=duration_ms,
            )

        if not store_outcome.success:
            logger.warning(
                "connector_store_failed",
                connector=connector.name,
                error=store_outcome.error,
                retryable=store_outcome.retryable,
                duration_ms=duration_ms,
            )
        return ConnectorResult.from_storage_result(
            connector.name, store_outcome, healthy=healthy, duration_ms=duration_ms
        )

    @staticmethod
    def _failure(
        name: str,
        exc: BaseException,
        *,
        healthy: bool,
        duration_ms: float | None = None,
    ) -> ConnectorResult:
        retryable = is_retryable(exc)
        logger.warning(
            "connector_store_raised",
            connector=name,
            error=_error_message(exc),
            error_type=type(exc).__name__,
            retryable=retryable,
        )
        return ConnectorResult(
            connector=name,
            success=False,
            error=_error_message(exc),
            retryable=retryable,
            healthy=healthy,
            duration_ms=duration_ms,
        )

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    async def get_health_status(self) -> dict[str, bool]:
        return await self._registry.check_health()

    def get_registered_connectors(self) -> list[str]:
        return self._registry.names()

    async def get_analytics(self) -> dict[str, AnalyticsData]:
        return await self._registry.collect_analytics()
