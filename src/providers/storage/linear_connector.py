"""Linear issue-tracker storage connector.

# ─── ARCHITECTURE ────────────────────────────────────────────────────
#
# LinearConnector turns each feedback submission into a Linear issue via
# the GraphQL API, so documentation feedback lands in the team's normal
# triage queue.
#
#   - httpx for async HTTP requests (one short-lived client per call)
#   - Bearer-token auth with the configured API key
#   - HTTP status codes and GraphQL error payloads are mapped onto the
#     ConnectorError hierarchy; store() converts those into a failed
#     StorageResult with ``retryable`` from is_retryable()
#
# Graceful degradation: without an API key and team id the connector
# reports itself unavailable and is never dispatched to.
#
# Layer: Providers (depends on httpx, structlog)
# ─────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from src.interfaces.storage_connector import IStorageConnector
from src.models.feedback import FeedbackRecord
from src.models.storage import StorageResult
from src.utils.errors import (
    ConnectorAuthError,
    ConnectorError,
    ConnectorNetworkError,
    ConnectorResponseError,
    ConnectorTimeoutError,
    RateLimitError,
    error_from_status,
    is_retryable,
)

logger = structlog.get_logger(logger_name=__name__)

_LINEAR_API = "https://api.linear.app/graphql"
_DEFAULT_TIMEOUT = 8.0

_VIEWER_QUERY = """
query {
  viewer {
    id
    name
  }
}
"""

_CREATE_ISSUE_MUTATION = """
mutation CreateFeedbackIssue($input: IssueCreateInput!) {
  issueCreate(input: $input) {
    success
    issue {
      id
      identifier
      title
      url
    }
  }
}
"""


def extract_page_name(page: str) -> str:
    """Turn a page path into a readable title fragment.

    ``"/docs/api/getting-started"`` becomes ``"Api Getting Started"``; the
    site root becomes ``"Homepage"``.
    """
    segments = [s for s in page.split("/") if s]
    meaningful = [s for s in segments if s != "docs"]
    if not meaningful:
        return "Homepage"
    return " ".join(
        " ".join(word[:1].upper() + word[1:] for word in segment.split("-"))
        for segment in meaningful
    )


def format_issue_title(record: FeedbackRecord) -> str:
    return f"[Feedback] {record.category.value}: {extract_page_name(record.page)}"


def format_issue_description(record: FeedbackRecord) -> str:
    """Render the Markdown body of the Linear issue."""
    parts = [
        f"**Page:** {record.page}\n",
        f"**Category:** {record.category.value}\n",
        f"**Timestamp:** {record.timestamp}\n\n",
    ]
    if record.highlighted_text:
        quoted = "\n> ".join(record.highlighted_text.splitlines() or [""])
        parts.append(f"**Selected Text:**\n> {quoted}\n\n")
    if record.section_id:
        parts.append(f"**Section:** {record.section_id}\n\n")
    parts.append(f"**User Comment:**\n{record.comment}\n\n")
    if record.suggested_tag:
        parts.append(f"**Suggested Tag:** {record.suggested_tag}\n")
    if record.user_name or record.user_email:
        who = " ".join(p for p in (record.user_name, f"<{record.user_email}>" if record.user_email else None) if p)
        parts.append(f"**Submitted By:** {who}\n")
    if record.user_agent:
        parts.append(f"**User Agent:** {record.user_agent}\n")
    parts.append("\n---\n*This issue was automatically created from documentation feedback.*")
    return "".join(parts)


class LinearConnector(IStorageConnector):
    """Creates one Linear issue per feedback submission.

    Constructor injection: credentials are passed in, not read from env.
    """

    def __init__(
        self,
        *,
        api_key: str,
        team_id: str,
        project_id: str | None = None,
        label_ids: dict[str, list[str]] | None = None,
        api_url: str = _LINEAR_API,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._api_key = api_key
        self._team_id = team_id
        self._project_id = project_id or None
        # Optional mapping of category value -> Linear label ids.
        self._label_ids = label_ids or {}
        self._api_url = api_url
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "linear"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    # ------------------------------------------------------------------
    # IStorageConnector implementation
    # ------------------------------------------------------------------

    async def detect_availability(self) -> bool:
        return bool(self._api_key and self._team_id)

    async def health_check(self) -> bool:
        """Query the authenticated viewer; any failure means unhealthy."""
        if not self._api_key:
            return False
        try:
            data = await self._request(_VIEWER_QUERY)
        except ConnectorError as exc:
            logger.debug("linear_health_check_failed", error=str(exc))
            return False
        return bool((data.get("data") or {}).get("viewer"))

    async def store(self, record: FeedbackRecord) -> StorageResult:
        """Create a Linear issue for *record*."""
        issue_input: dict[str, Any] = {
            "teamId": self._team_id,
            "title": format_issue_title(record),
            "description": format_issue_description(record),
        }
        if self._project_id:
            issue_input["projectId"] = self._project_id
        label_ids = self._label_ids.get(record.category.value)
        if label_ids:
            issue_input["labelIds"] = list(label_ids)

        try:
            data = await self._request(_CREATE_ISSUE_MUTATION, {"input": issue_input})
            payload = (data.get("data") or {}).get("issueCreate") or {}
            if not payload.get("success") or not payload.get("issue"):
                raise ConnectorResponseError(
                    message="Failed to create Linear issue",
                    provider_name=self.name,
                )
        except ConnectorError as exc:
            logger.warning(
                "linear_issue_creation_failed",
                error=exc.message,
                error_type=type(exc).__name__,
                retryable=exc.retryable,
            )
            return StorageResult.failed(exc.message, retryable=exc.retryable)
        except Exception as exc:  # noqa: BLE001
            logger.warning("linear_issue_creation_error", error=str(exc))
            return StorageResult.failed(str(exc) or type(exc).__name__, retryable=is_retryable(exc))

        issue = payload["issue"]
        logger.info(
            "linear_issue_created",
            issue_id=issue.get("id"),
            identifier=issue.get("identifier"),
            page=record.page,
        )
        return StorageResult.ok(
            id=issue.get("id"),
            metadata={
                "issueUrl": issue.get("url"),
                "issueTitle": issue.get("title"),
                "issueIdentifier": issue.get("identifier"),
            },
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """POST a GraphQL document and return the decoded body.

        Raises
        ------
        ConnectorError
            A subclass matching the failure kind (network, timeout,
            rate limit, auth, rejected request).
        """
        body: dict[str, Any] = {"query": query}
        if variables is not None:
            body["variables"] = variables

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._api_url, headers=self._headers(), json=body)
        except httpx.TimeoutException as exc:
            raise ConnectorTimeoutError(
                message=f"Linear request timed out: {exc}", provider_name=self.name
            ) from exc
        except httpx.HTTPError as exc:
            raise ConnectorNetworkError(
                message=f"Linear network error: {exc}", provider_name=self.name
            ) from exc

        try:
            data = resp.json()
        except ValueError:
            data = None

        # Linear reports rate limits and auth failures as GraphQL errors on
        # non-200 responses too; their extension code outranks the status.
        errors = data.get("errors") if isinstance(data, dict) else None
        if errors and isinstance(errors, list) and isinstance(errors[0], dict):
            raise self._graphql_error(errors[0])

        if resp.status_code != 200:
            raise error_from_status(
                resp.status_code,
                f"HTTP {resp.status_code}: {resp.text[:200]}",
                provider_name=self.name,
            )
        if data is None:
            raise ConnectorResponseError(
                message="Linear returned a non-JSON response", provider_name=self.name
            )
        if not isinstance(data, dict):
            raise ConnectorResponseError(
                message="Linear returned an unexpected response body", provider_name=self.name
            )
        return data

    def _graphql_error(self, error: dict[str, Any]) -> ConnectorError:
        """Classify a GraphQL error entry by its extension code."""
        message = str(error.get("message") or "Linear GraphQL error")
        extensions = error.get("extensions") or {}
        code = str(extensions.get("code") or extensions.get("type") or "").upper()
        if code in {"AUTHENTICATION_ERROR", "FORBIDDEN", "UNAUTHENTICATED"}:
            return ConnectorAuthError(message=message, provider_name=self.name)
        if code in {"RATELIMITED", "RATE_LIMITED"}:
            return RateLimitError(message=message, provider_name=self.name)
        return ConnectorResponseError(message=message, provider_name=self.name)
