"""Unit tests for the exception hierarchy and retryability classification."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from src.utils.errors import (
    ConfigurationError,
    ConnectorAuthError,
    ConnectorError,
    ConnectorNetworkError,
    ConnectorResponseError,
    ConnectorTimeoutError,
    ConnectorUnavailableError,
    FeedbackError,
    FeedbackValidationError,
    RateLimitError,
    error_from_status,
    is_retryable,
)


class TestFeedbackError:
    def test_str_includes_provider(self) -> None:
        assert str(FeedbackError("boom", provider_name="linear")) == "[linear] boom"

    def test_str_without_provider(self) -> None:
        exc = FeedbackError("boom")
        assert str(exc) == "boom"
        assert exc.message == "boom"
        assert exc.provider_name is None

    def test_hierarchy(self) -> None:
        assert issubclass(ConfigurationError, FeedbackError)
        assert issubclass(FeedbackValidationError, FeedbackError)
        for cls in (
            ConnectorNetworkError,
            ConnectorTimeoutError,
            RateLimitError,
            ConnectorAuthError,
            ConnectorResponseError,
            ConnectorUnavailableError,
        ):
            assert issubclass(cls, ConnectorError)

    def test_validation_error_keeps_field_errors(self) -> None:
        exc = FeedbackValidationError("page: bad", errors=[{"loc": ("page",)}])
        assert exc.errors == [{"loc": ("page",)}]
        assert FeedbackValidationError().errors == []


class TestRetryableFlags:
    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (ConnectorNetworkError(), True),
            (ConnectorTimeoutError(), True),
            (RateLimitError(), True),
            (ConnectorUnavailableError(), True),
            (ConnectorAuthError(), False),
            (ConnectorError(), True),
            (ConnectorError(retryable=False), False),
            (ConnectorResponseError(retryable=False), False),
        ],
    )
    def test_connector_errors(self, exc, expected) -> None:
        assert is_retryable(exc) is expected


class TestErrorFromStatus:
    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_statuses(self, status) -> None:
        exc = error_from_status(status, "denied", provider_name="linear")
        assert isinstance(exc, ConnectorAuthError)
        assert exc.retryable is False
        assert exc.provider_name == "linear"

    def test_rate_limit(self) -> None:
        assert isinstance(error_from_status(429, "slow down"), RateLimitError)

    def test_server_error_is_retryable(self) -> None:
        exc = error_from_status(503, "unavailable")
        assert isinstance(exc, ConnectorResponseError)
        assert exc.retryable is True

    @pytest.mark.parametrize("status", [400, 404, 422])
    def test_other_client_errors_are_retryable(self, status) -> None:
        exc = error_from_status(status, "bad request")
        assert isinstance(exc, ConnectorResponseError)
        assert exc.retryable is True


class TestIsRetryableForeignExceptions:
    def test_httpx_status_error(self) -> None:
        request = httpx.Request("POST", "https://api.linear.app/graphql")
        unauthorized = httpx.Response(401, request=request)
        overloaded = httpx.Response(502, request=request)

        assert is_retryable(
            httpx.HTTPStatusError("401", request=request, response=unauthorized)
        ) is False
        assert is_retryable(
            httpx.HTTPStatusError("502", request=request, response=overloaded)
        ) is True

    @pytest.mark.parametrize(
        "exc",
        [
            httpx.ConnectError("refused"),
            httpx.ReadTimeout("slow"),
            asyncio.TimeoutError(),
            ConnectionResetError(),
            OSError("disk"),
        ],
    )
    def test_transport_failures_are_retryable(self, exc) -> None:
        assert is_retryable(exc) is True

    def test_unknown_failure_defaults_to_retryable(self) -> None:
        assert is_retryable(ValueError("???")) is True
