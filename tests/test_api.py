"""Tests for API routes."""
import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from app.errors import RATE_LIMIT_MESSAGE, NotFoundError, RateLimitError


@pytest.fixture
def app():
    from app.main import app
    return app


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture
def route_settings():
    with patch("app.api.routes.agents.settings") as mock_settings:
        mock_settings.perplexity_api_key = "pplx-test"
        mock_settings.llm_api_key = ""
        yield mock_settings


ANSWERS = {
    "sentiment_agent": json.dumps(
        {
            "overallScore": 76,
            "positive": 60,
            "negative": 25,
            "neutral": 15,
            "reviews": [
                {"source": "amazon.com", "rating": 4, "text": "Does the job"},
                {"source": "bestbuy.com", "rating": 5, "text": "Excellent"},
                {"source": "reddit.com", "rating": 3, "text": "Fine"},
            ],
        }
    ),
    "competitor_agent": "```json\n"
    + json.dumps(
        {
            "competitors": [
                {"name": "Gadget Y", "company": "Globex", "price": "$49.99", "rating": 4.4},
                {"name": "Gizmo Z", "company": "Initech", "price": "$39.00", "rating": 4.0},
                {"name": "Thing Q", "company": "Umbrella", "price": "$29.00", "rating": 3.7},
            ]
        }
    )
    + "\n```",
    "trend_agent": "Trend data: "
    + json.dumps(
        {
            "trendingKeywords": ["widget x"],
            "recentNews": [{"headline": "Acme ships Widget X 2", "source": "theverge.com"}],
            "trendDirection": "stable",
            "trendScore": 55,
        }
    ),
}


async def _fake_search(query, *, api_key, system_prompt, agent):
    return ANSWERS[agent]


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "market-research"


def test_run_agents_end_to_end(client, route_settings):
    with (
        patch("app.agents.executor.perplexity_search.search", new=_fake_search),
        patch("app.agents.dispatcher.persistence.record_outcome", new=AsyncMock()) as record,
    ):
        response = client.post(
            "/run-agents",
            json={"productName": "Widget X", "companyName": "Acme", "projectId": "proj-1"},
        )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert len(data["results"]) == 3
    assert [r["type"] for r in data["results"]] == ["sentiment", "competitor", "trend"]
    assert "Sentiment: positive" in data["summary"]
    assert "Competitors: 3 found" in data["summary"]
    assert "Trend: stable" in data["summary"]
    assert data["apiSourcesUsed"]["perplexity"] is True
    assert data["apiSourcesUsed"]["dataPoints"] == 3
    assert record.await_count == 3

    sentiment = data["results"][0]["data"]
    assert sentiment["positive"] + sentiment["negative"] + sentiment["neutral"] == 100
    assert sentiment["confidenceLevel"] == "High"


def test_run_agents_with_one_rate_limited_agent(client, route_settings):
    async def fake_search(query, *, api_key, system_prompt, agent):
        if agent == "competitor_agent":
            raise RateLimitError("Perplexity API error: 429")
        return ANSWERS[agent]

    with (
        patch("app.agents.executor.perplexity_search.search", new=fake_search),
        patch("app.agents.dispatcher.persistence.record_outcome", new=AsyncMock()) as record,
    ):
        response = client.post(
            "/run-agents", json={"productName": "Widget X", "projectId": "proj-1"}
        )

    assert response.status_code == 200
    data = response.json()
    assert [r["type"] for r in data["results"]] == ["sentiment", "trend"]
    recorded = {call.args[1].kind.value: call.args[1] for call in record.await_args_list}
    assert recorded["competitor"].error_message == RATE_LIMIT_MESSAGE


def test_run_agents_missing_search_key_makes_no_calls(client, monkeypatch):
    calls = 0

    async def fake_post(self, url, **kwargs):  # noqa: ARG001
        nonlocal calls
        calls += 1
        raise AssertionError("no upstream call expected")

    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post)
    with (
        patch("app.api.routes.agents.settings") as mock_settings,
        patch("app.agents.dispatcher.persistence.record_outcome", new=AsyncMock()) as record,
    ):
        mock_settings.perplexity_api_key = ""
        mock_settings.llm_api_key = ""
        response = client.post(
            "/run-agents", json={"productName": "Widget X", "projectId": "proj-1"}
        )

    assert response.status_code == 400
    body = response.json()
    assert "PERPLEXITY_API_KEY" in body["error"]
    assert body["diagnostics"]["errorCode"] == "MISSING_API_KEY"
    assert calls == 0
    record.assert_not_awaited()


def test_run_agents_rejects_missing_product_name(client, route_settings):
    response = client.post("/run-agents", json={"projectId": "proj-1"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request body"


def test_generate_insights_not_found(client):
    with patch(
        "app.api.routes.insights.generate_insights",
        new=AsyncMock(side_effect=NotFoundError("No agent results found for this project")),
    ):
        response = client.post("/generate-insights", json={"projectId": "proj-1"})

    assert response.status_code == 404
    assert response.json() == {"error": "No agent results found for this project"}


def test_generate_strategy_route(client):
    result = {
        "strategies": [
            {"title": "Pricing Strategy", "content": "Price at parity.", "confidence": 55, "recommendations": []}
        ],
        "fallback": False,
    }
    with patch("app.api.routes.strategy.generate_strategy", new=AsyncMock(return_value=result)):
        response = client.post("/generate-strategy", json={"projectName": "Widget X"})

    assert response.status_code == 200
    assert response.json() == result


def test_list_agent_results_route(client):
    rows = [{"agent_type": "trend", "status": "completed", "results": {"trendScore": 55}}]
    with patch("app.api.routes.projects.db.list_agent_results", new=AsyncMock(return_value=rows)) as list_rows:
        response = client.get("/api/projects/proj-1/agent-results")

    assert response.status_code == 200
    assert response.json() == {"results": rows}
    list_rows.assert_awaited_once_with("proj-1")


def test_unexpected_error_returns_json_500_with_cors_headers(app):
    from fastapi.testclient import TestClient

    client = TestClient(app, raise_server_exceptions=False)
    with patch(
        "app.api.routes.projects.db.list_agent_results",
        new=AsyncMock(side_effect=RuntimeError("boom")),
    ):
        response = client.get(
            "/api/projects/p/agent-results", headers={"Origin": "http://x.test"}
        )

    assert response.status_code == 500
    assert response.json() == {"error": "boom"}
    assert response.headers.get("access-control-allow-origin") == "*"
