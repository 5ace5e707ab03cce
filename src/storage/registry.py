"""Registry of named feedback storage connectors.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# The registry owns the set of connectors for one handler.  It is built
# once at startup (src/storage/factory.py) and only read afterwards, so
# concurrent submissions share it without locking.
#
# Every check it runs (availability, health, analytics) is isolated:
# a connector that raises is logged and treated as unavailable /
# unhealthy / silent, and never stops the registry from reporting on
# the others.  Partial failure is the normal case here, not an edge case.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import structlog

from src.interfaces.storage_connector import (
    IStorageConnector,
    has_required_capabilities,
    supports_analytics,
)
from src.models.storage import AnalyticsData
from src.utils.concurrency import call_async, gather_settled

logger = structlog.get_logger(logger_name=__name__)


class StorageRegistry:
    """Named collection of storage connectors.

    Parameters
    ----------
    check_timeout:
        Seconds allowed for each availability / health / analytics check.
        ``None`` leaves bounding to the connectors themselves.
    """

    def __init__(self, check_timeout: float | None = None) -> None:
        # dicts keep insertion order, and replacing a key keeps its slot.
        self._connectors: dict[str, IStorageConnector] = {}
        self._check_timeout = check_timeout

    def __len__(self) -> int:
        return len(self._connectors)

    def __contains__(self, name: object) -> bool:
        return name in self._connectors

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def register(self, connector: IStorageConnector) -> None:
        """Register *connector* under its name, replacing any previous one.

        Raises
        ------
        TypeError
            If *connector* lacks a name or one of the required methods.
        """
        if not has_required_capabilities(connector):
            raise TypeError(
                f"{type(connector).__name__} does not implement the storage connector contract"
            )
        replaced = connector.name in self._connectors
        self._connectors[connector.name] = connector
        logger.debug("connector_registered", connector=connector.name, replaced=replaced)

    def unregister(self, name: str) -> bool:
        """Remove the connector called *name*; returns whether one was removed."""
        return self._connectors.pop(name, None) is not None

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_by_name(self, name: str) -> IStorageConnector | None:
        return self._connectors.get(name)

    def list_all(self) -> list[IStorageConnector]:
        """Every registered connector, in registration order."""
        return list(self._connectors.values())

    def names(self) -> list[str]:
        return list(self._connectors)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    async def detect_available(self) -> list[IStorageConnector]:
        """Return the connectors whose ``detect_availability()`` answered ``True``.

        Checks run concurrently; registration order is preserved.  A check
        that raises (or times out) excludes its connector.
        """
        connectors = self.list_all()
        outcomes = await gather_settled(
            [call_async(c.detect_availability) for c in connectors],
            timeout=self._check_timeout,
        )

        available: list[IStorageConnector] = []
        for connector, outcome in zip(connectors, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(
                    "connector_detection_failed",
                    connector=connector.name,
                    error=str(outcome) or type(outcome).__name__,
                )
            elif outcome is True:
                available.append(connector)
        return available

    async def check_health(self) -> dict[str, bool]:
        """Map every registered connector name to its health.

        A check that raises (or times out) maps to ``False``.
        """
        connectors = self.list_all()
        outcomes = await gather_settled(
            [call_async(c.health_check) for c in connectors],
            timeout=self._check_timeout,
        )

        health: dict[str, bool] = {}
        for connector, outcome in zip(connectors, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(
                    "connector_health_check_failed",
                    connector=connector.name,
                    error=str(outcome) or type(outcome).__name__,
                )
                health[connector.name] = False
            else:
                health[connector.name] = outcome is True
        return health

    async def collect_analytics(self) -> dict[str, AnalyticsData]:
        """Gather analytics from every connector that offers them.

        Connectors without the capability are skipped; one whose
        ``get_analytics()`` raises is logged and left out.
        """
        capable = [c for c in self.list_all() if supports_analytics(c)]
        outcomes = await gather_settled(
            [call_async(c.get_analytics) for c in capable],  # type: ignore[attr-defined]
            timeout=self._check_timeout,
        )

        analytics: dict[str, AnalyticsData] = {}
        for connector, outcome in zip(capable, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(
                    "connector_analytics_failed",
                    connector=connector.name,
                    error=str(outcome) or type(outcome).__name__,
                )
            else:
                analytics[connector.name] = outcome
        return analytics
