"""Integration tests for the feedback API endpoints using TestClient."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.routes import router as api_router
from src.api.schemas import ALL_CONNECTORS_FAILED_MESSAGE
from src.models.storage import StorageResult
from src.providers.storage.mock_connector import MockConnector
from src.storage.handler import NO_CONNECTORS_ERROR, FeedbackHandler
from src.storage.registry import StorageRegistry
from src.utils.errors import ConnectorAuthError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _create_test_app(*connectors, with_handler: bool = True) -> FastAPI:
    """Create a FastAPI app whose handler fans out to *connectors*."""
    app = FastAPI()
    app.include_router(api_router)
    if with_handler:
        registry = StorageRegistry()
        for connector in connectors:
            registry.register(connector)
        app.state.feedback_handler = FeedbackHandler(registry, connector_timeout=1.0)
    return app


@pytest.fixture
def payload() -> dict:
    return {
        "page": "/docs/x",
        "category": "Bug",
        "comment": "test",
        "timestamp": "2025-03-14T09:26:53.589Z",
    }


# ---------------------------------------------------------------------------
# POST /api/feedback
# ---------------------------------------------------------------------------


class TestSubmitFeedback:
    def test_success_with_mock(self, payload) -> None:
        mock = MockConnector()
        client = TestClient(_create_test_app(mock))

        resp = client.post("/api/feedback", json=payload)

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "Feedback submitted successfully"
        assert body["id"]
        assert "retryable" not in body
        assert body["metadata"]["connectorsUsed"] == 1
        result = body["metadata"]["results"][0]
        assert result["connector"] == "mock"
        assert result["success"] is True
        assert result["id"].startswith("mock_")
        assert len(mock.get_feedback_history()) == 1

    def test_partial_failure_is_200(self, payload, make_connector) -> None:
        client = TestClient(
            _create_test_app(
                make_connector("linear", store_result=RuntimeError("boom")),
                make_connector("database", store_result=StorageResult.ok(id="row-1")),
            )
        )

        resp = client.post("/api/feedback", json=payload)

        assert resp.status_code == 200
        results = {r["connector"]: r for r in resp.json()["metadata"]["results"]}
        assert results["linear"]["success"] is False
        assert results["linear"]["error"] == "boom"
        assert results["database"]["success"] is True

    def test_all_failed_is_500(self, payload, make_connector) -> None:
        client = TestClient(
            _create_test_app(make_connector("linear", store_result=ConnectorAuthError("revoked")))
        )

        resp = client.post("/api/feedback", json=payload)

        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == ALL_CONNECTORS_FAILED_MESSAGE
        assert body["retryable"] is False

    def test_no_connectors_is_500_and_retryable(self, payload, make_connector) -> None:
        client = TestClient(_create_test_app(make_connector("linear", available=False)))

        resp = client.post("/api/feedback", json=payload)

        assert resp.status_code == 500
        assert resp.json()["error"] == NO_CONNECTORS_ERROR
        assert resp.json()["retryable"] is True
        assert resp.json()["metadata"]["connectorsUsed"] == 0

    def test_invalid_json_is_400(self) -> None:
        client = TestClient(_create_test_app(MockConnector()))

        resp = client.post(
            "/api/feedback",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert resp.status_code == 400
        assert resp.json() == {
            "success": False,
            "error": "Invalid JSON in request body",
            "retryable": False,
        }

    def test_validation_failure_is_400(self, payload) -> None:
        mock = MockConnector()
        client = TestClient(_create_test_app(mock))

        resp = client.post("/api/feedback", json={**payload, "page": "docs/x"})

        assert resp.status_code == 400
        assert "Page must start with /" in resp.json()["error"]
        assert resp.json()["retryable"] is False
        assert mock.get_feedback_history() == []

    def test_non_object_body_is_400(self) -> None:
        client = TestClient(_create_test_app(MockConnector()))

        resp = client.post("/api/feedback", content=json.dumps([1, 2]))

        assert resp.status_code == 400
        assert resp.json()["error"] == "Feedback must be a JSON object"

    def test_missing_handler_is_503(self, payload) -> None:
        client = TestClient(_create_test_app(with_handler=False))

        resp = client.post("/api/feedback", json=payload)

        assert resp.status_code == 503


# ---------------------------------------------------------------------------
# Diagnostics endpoints
# ---------------------------------------------------------------------------


class TestDiagnosticsEndpoints:
    def test_health(self, make_connector) -> None:
        client = TestClient(
            _create_test_app(make_connector("linear", healthy=False), MockConnector())
        )

        resp = client.get("/api/feedback/health")

        assert resp.status_code == 200
        assert resp.json() == {"healthy": True, "connectors": {"linear": False, "mock": True}}

    def test_connectors(self, make_connector) -> None:
        client = TestClient(_create_test_app(make_connector("linear"), MockConnector()))

        resp = client.get("/api/feedback/connectors")

        assert resp.json() == {"connectors": ["linear", "mock"]}

    def test_analytics(self, payload, make_connector) -> None:
        client = TestClient(_create_test_app(make_connector("linear"), MockConnector()))
        client.post("/api/feedback", json=payload)

        resp = client.get("/api/feedback/analytics")

        assert resp.status_code == 200
        analytics = resp.json()["analytics"]
        assert list(analytics) == ["mock"]
        assert analytics["mock"]["total_feedback"] == 1
        assert analytics["mock"]["categories"] == {"Bug": 1}

    @pytest.mark.parametrize(
        "path", ["/api/feedback/health", "/api/feedback/connectors", "/api/feedback/analytics"]
    )
    def test_missing_handler_is_503(self, path) -> None:
        client = TestClient(_create_test_app(with_handler=False))
        assert client.get(path).status_code == 503


# ---------------------------------------------------------------------------
# Full application (lifespan, middleware, CORS)
# ---------------------------------------------------------------------------


class TestFullApplication:
    def test_lifespan_builds_handler(self, payload) -> None:
        from src.main import create_app

        handler = FeedbackHandler(_registry_with(MockConnector()))
        with patch("src.main.create_feedback_handler", AsyncMock(return_value=handler)):
            with TestClient(create_app()) as client:
                resp = client.post("/api/feedback", json=payload)

        assert resp.status_code == 200
        assert resp.json()["metadata"]["results"][0]["connector"] == "mock"

    def test_cors_preflight(self) -> None:
        from src.main import create_app

        client = TestClient(create_app())

        resp = client.options(
            "/api/feedback",
            headers={
                "Origin": "https://docs.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert resp.status_code == 200
        assert "POST" in resp.headers["access-control-allow-methods"]
        assert resp.headers["access-control-max-age"] == "86400"


def _registry_with(*connectors) -> StorageRegistry:
    registry = StorageRegistry()
    for connector in connectors:
        registry.register(connector)
    return registry
