"""Shared pytest fixtures for the feedback service test suite."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.storage_connector import IStorageConnector
from src.models.feedback import FeedbackRecord
from src.models.storage import StorageResult
from src.storage.registry import StorageRegistry


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def feedback_payload() -> dict[str, Any]:
    """A valid camelCase submission as the browser widget sends it."""
    return {
        "page": "/docs/x",
        "category": "Bug",
        "comment": "test",
        "timestamp": "2025-03-14T09:26:53.589Z",
        "userAgent": "Mozilla/5.0 (X11; Linux x86_64)",
    }


@pytest.fixture
def sample_record(feedback_payload: dict[str, Any]) -> FeedbackRecord:
    return FeedbackRecord.model_validate(feedback_payload)


# ---------------------------------------------------------------------------
# Connector doubles
# ---------------------------------------------------------------------------


class FakeConnector(IStorageConnector):
    """Scriptable connector for registry/handler tests.

    Each behaviour is either a value to return or an exception to raise.
    ``store_delay`` simulates a slow backend.
    """

    def __init__(
        self,
        name: str,
        *,
        available: bool | BaseException = True,
        healthy: bool | BaseException = True,
        store_result: StorageResult | BaseException | None = None,
        store_delay: float = 0.0,
    ) -> None:
        self._name = name
        self.available = available
        self.healthy = healthy
        self.store_result = store_result or StorageResult.ok(id=f"{name}-1")
        self.store_delay = store_delay
        self.stored: list[FeedbackRecord] = []
        self.detect_calls = 0

    @property
    def name(self) -> str:
        return self._name

    async def detect_availability(self) -> bool:
        self.detect_calls += 1
        if isinstance(self.available, BaseException):
            raise self.available
        return self.available

    async def health_check(self) -> bool:
        if isinstance(self.healthy, BaseException):
            raise self.healthy
        return self.healthy

    async def store(self, record: FeedbackRecord) -> StorageResult:
        if self.store_delay:
            await asyncio.sleep(self.store_delay)
        if isinstance(self.store_result, BaseException):
            raise self.store_result
        self.stored.append(record)
        return self.store_result


@pytest.fixture
def make_connector() -> Callable[..., FakeConnector]:
    """Factory fixture: ``make_connector("linear", store_result=RuntimeError())``."""
    return FakeConnector


@pytest.fixture
def mock_connector() -> IStorageConnector:
    """MagicMock connector that is available, healthy and always stores.

    Override e.g. ``mock_connector.store.side_effect = ...`` per test.
    """
    mock = MagicMock(spec=IStorageConnector)
    mock.name = "mocked"
    mock.detect_availability = AsyncMock(return_value=True)
    mock.health_check = AsyncMock(return_value=True)
    mock.store = AsyncMock(return_value=StorageResult.ok(id="mocked-1"))
    return mock


@pytest.fixture
def registry() -> StorageRegistry:
    return StorageRegistry()
