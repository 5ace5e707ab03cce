"""Unit tests for LinearConnector.

httpx.AsyncClient is patched at the module where it is used so no real
HTTP traffic is sent.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from src.models.feedback import FeedbackRecord
from src.providers.storage.linear_connector import (
    LinearConnector,
    extract_page_name,
    format_issue_description,
    format_issue_title,
)

_CLIENT = "src.providers.storage.linear_connector.httpx.AsyncClient"


# ======================================================================
# Helpers
# ======================================================================


def _mock_response(status_code: int = 200, json_data: Any = None, text: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    if json_data is None:
        resp.json.side_effect = ValueError("not json")
    else:
        resp.json.return_value = json_data
    return resp


def _patched_client(mock_client_cls: MagicMock, *, response=None, side_effect=None) -> AsyncMock:
    client = AsyncMock()
    if side_effect is not None:
        client.post.side_effect = side_effect
    else:
        client.post.return_value = response
    mock_client_cls.return_value.__aenter__ = AsyncMock(return_value=client)
    mock_client_cls.return_value.__aexit__ = AsyncMock(return_value=False)
    return client


def _issue_created() -> dict:
    return {
        "data": {
            "issueCreate": {
                "success": True,
                "issue": {
                    "id": "issue-uuid",
                    "identifier": "DOC-42",
                    "title": "[Feedback] Bug: X",
                    "url": "https://linear.app/acme/issue/DOC-42",
                },
            }
        }
    }


@pytest.fixture
def connector() -> LinearConnector:
    return LinearConnector(api_key="lin_api_test", team_id="team-1", project_id="proj-1")


# ======================================================================
# Formatting
# ======================================================================


class TestFormatting:
    @pytest.mark.parametrize(
        ("page", "expected"),
        [
            ("/docs/api/getting-started", "Api Getting Started"),
            ("/docs/x", "X"),
            ("/", "Homepage"),
            ("/docs/", "Homepage"),
            ("/guides/setup", "Guides Setup"),
        ],
    )
    def test_extract_page_name(self, page, expected) -> None:
        assert extract_page_name(page) == expected

    def test_issue_title(self, sample_record) -> None:
        assert format_issue_title(sample_record) == "[Feedback] Bug: X"

    def test_description_includes_optional_sections(self, feedback_payload) -> None:
        record = FeedbackRecord.model_validate(
            {
                **feedback_payload,
                "highlightedText": "line one\nline two",
                "sectionId": "auth",
                "suggestedTag": "api",
                "userName": "Ada",
                "userEmail": "ada@example.com",
            }
        )
        body = format_issue_description(record)

        assert "**Page:** /docs/x" in body
        assert "> line one\n> line two" in body
        assert "**Section:** auth" in body
        assert "**User Comment:**\ntest" in body
        assert "**Suggested Tag:** api" in body
        assert "**Submitted By:** Ada <ada@example.com>" in body
        assert body.endswith("*This issue was automatically created from documentation feedback.*")

    def test_description_skips_missing_sections(self, sample_record) -> None:
        body = format_issue_description(sample_record)

        assert "Selected Text" not in body
        assert "Submitted By" not in body


# ======================================================================
# Availability / health
# ======================================================================


class TestAvailability:
    @pytest.mark.asyncio
    async def test_available_with_credentials(self, connector) -> None:
        assert connector.name == "linear"
        assert await connector.detect_availability() is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("key", "team"), [("", "team"), ("key", ""), ("", "")])
    async def test_unavailable_without_credentials(self, key, team) -> None:
        assert await LinearConnector(api_key=key, team_id=team).detect_availability() is False

    @pytest.mark.asyncio
    async def test_health_check_ok(self, connector) -> None:
        with patch(_CLIENT) as mock_cls:
            _patched_client(mock_cls, response=_mock_response(json_data={"data": {"viewer": {"id": "u1"}}}))
            assert await connector.health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_auth_failure(self, connector) -> None:
        with patch(_CLIENT) as mock_cls:
            _patched_client(mock_cls, response=_mock_response(401, text="unauthorized"))
            assert await connector.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_network_failure(self, connector) -> None:
        with patch(_CLIENT) as mock_cls:
            _patched_client(mock_cls, side_effect=httpx.ConnectError("refused"))
            assert await connector.health_check() is False


# ======================================================================
# Store
# ======================================================================


class TestStore:
    @pytest.mark.asyncio
    async def test_creates_issue(self, connector, sample_record) -> None:
        with patch(_CLIENT) as mock_cls:
            client = _patched_client(mock_cls, response=_mock_response(json_data=_issue_created()))
            result = await connector.store(sample_record)

        assert result.success is True
        assert result.id == "issue-uuid"
        assert result.metadata == {
            "issueUrl": "https://linear.app/acme/issue/DOC-42",
            "issueTitle": "[Feedback] Bug: X",
            "issueIdentifier": "DOC-42",
        }
        _, kwargs = client.post.call_args
        issue_input = kwargs["json"]["variables"]["input"]
        assert issue_input["teamId"] == "team-1"
        assert issue_input["projectId"] == "proj-1"
        assert issue_input["title"] == "[Feedback] Bug: X"
        assert kwargs["headers"]["Authorization"] == "Bearer lin_api_test"

    @pytest.mark.asyncio
    async def test_label_ids_per_category(self, sample_record) -> None:
        connector = LinearConnector(api_key="k", team_id="t", label_ids={"Bug": ["label-bug"]})
        with patch(_CLIENT) as mock_cls:
            client = _patched_client(mock_cls, response=_mock_response(json_data=_issue_created()))
            await connector.store(sample_record)

        issue_input = client.post.call_args.kwargs["json"]["variables"]["input"]
        assert issue_input["labelIds"] == ["label-bug"]
        assert "projectId" not in issue_input

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "retryable"),
        [(401, False), (403, False), (429, True), (500, True), (503, True), (400, True)],
    )
    async def test_http_status_classification(self, connector, sample_record, status, retryable) -> None:
        with patch(_CLIENT) as mock_cls:
            _patched_client(mock_cls, response=_mock_response(status, text="err"))
            result = await connector.store(sample_record)

        assert result.success is False
        assert result.retryable is retryable
        assert f"HTTP {status}" in result.error

    @pytest.mark.asyncio
    async def test_timeout_is_retryable(self, connector, sample_record) -> None:
        with patch(_CLIENT) as mock_cls:
            _patched_client(mock_cls, side_effect=httpx.ReadTimeout("too slow"))
            result = await connector.store(sample_record)

        assert result.success is False
        assert result.retryable is True
        assert "timed out" in result.error

    @pytest.mark.asyncio
    async def test_network_error_is_retryable(self, connector, sample_record) -> None:
        with patch(_CLIENT) as mock_cls:
            _patched_client(mock_cls, side_effect=httpx.ConnectError("dns"))
            result = await connector.store(sample_record)

        assert result.retryable is True
        assert "network error" in result.error

    @pytest.mark.asyncio
    async def test_graphql_auth_error_not_retryable(self, connector, sample_record) -> None:
        body = {"errors": [{"message": "Authentication required", "extensions": {"code": "AUTHENTICATION_ERROR"}}]}
        with patch(_CLIENT) as mock_cls:
            _patched_client(mock_cls, response=_mock_response(json_data=body))
            result = await connector.store(sample_record)

        assert result.success is False
        assert result.error == "Authentication required"
        assert result.retryable is False

    @pytest.mark.asyncio
    async def test_graphql_rate_limit_retryable(self, connector, sample_record) -> None:
        body = {"errors": [{"message": "Too many", "extensions": {"code": "RATELIMITED"}}]}
        with patch(_CLIENT) as mock_cls:
            _patched_client(mock_cls, response=_mock_response(json_data=body))
            result = await connector.store(sample_record)

        assert result.retryable is True

    @pytest.mark.asyncio
    async def test_unsuccessful_issue_create(self, connector, sample_record) -> None:
        body = {"data": {"issueCreate": {"success": False, "issue": None}}}
        with patch(_CLIENT) as mock_cls:
            _patched_client(mock_cls, response=_mock_response(json_data=body))
            result = await connector.store(sample_record)

        assert result.success is False
        assert result.error == "Failed to create Linear issue"

    @pytest.mark.asyncio
    async def test_non_json_response(self, connector, sample_record) -> None:
        with patch(_CLIENT) as mock_cls:
            _patched_client(mock_cls, response=_mock_response(json_data=None, text="<html>"))
            result = await connector.store(sample_record)

        assert result.success is False
        assert "non-JSON" in result.error

    @pytest.mark.asyncio
    async def test_rate_limit_on_http_400_is_retryable(self, connector, sample_record) -> None:
        body = {"errors": [{"message": "Rate limit exceeded", "extensions": {"code": "RATELIMITED"}}]}
        with patch(_CLIENT) as mock_cls:
            _patched_client(mock_cls, response=_mock_response(400, json_data=body, text="{}"))
            result = await connector.store(sample_record)

        assert result.success is False
        assert result.error == "Rate limit exceeded"
        assert result.retryable is True

    @pytest.mark.asyncio
    async def test_auth_error_body_on_http_400_is_not_retryable(self, connector, sample_record) -> None:
        body = {"errors": [{"message": "Invalid API key", "extensions": {"code": "AUTHENTICATION_ERROR"}}]}
        with patch(_CLIENT) as mock_cls:
            _patched_client(mock_cls, response=_mock_response(400, json_data=body))
            result = await connector.store(sample_record)

        assert result.error == "Invalid API key"
        assert result.retryable is False

    @pytest.mark.asyncio
    async def test_non_object_json_body_is_a_failure(self, connector, sample_record) -> None:
        with patch(_CLIENT) as mock_cls:
            _patched_client(mock_cls, response=_mock_response(json_data=["unexpected"]))
            result = await connector.store(sample_record)

        assert result.success is False
        assert "unexpected response body" in result.error

    @pytest.mark.asyncio
    async def test_non_object_json_body_is_unhealthy(self, connector) -> None:
        with patch(_CLIENT) as mock_cls:
            _patched_client(mock_cls, response=_mock_response(json_data=["unexpected"]))
            assert await connector.health_check() is False
