from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest

from app.agents.executor import AGENT_SPECS, AgentExecutor, build_system_prompt
from app.errors import RateLimitError
from app.models.payloads import AgentKind, CompetitorPayload, DataStatus


def _spec(kind: AgentKind):
    return next(spec for spec in AGENT_SPECS if spec.kind == kind)


def test_agent_specs_cover_each_kind_once():
    assert [spec.kind for spec in AGENT_SPECS] == [
        AgentKind.SENTIMENT,
        AgentKind.COMPETITOR,
        AgentKind.TREND,
    ]


def test_build_query_mentions_product_and_company():
    query = _spec(AgentKind.COMPETITOR).build_query(
        "Widget X", "Acme", search_date="2026-10-19", strict=True
    )
    assert '"Widget X" by Acme.' in query
    assert "at most 5 competitors" in query
    assert "ZERO HALLUCINATION POLICY" in query
    assert "$" not in query


def test_build_query_without_company():
    query = _spec(AgentKind.TREND).build_query(
        "Widget X", None, search_date="2026-10-19", strict=False
    )
    assert 'popularity data for "Widget X".' in query
    assert '"searchDate": "2026-10-19"' in query
    assert "ZERO HALLUCINATION POLICY" not in query


def test_strict_system_prompt_includes_policy_clause():
    assert len(build_system_prompt(True)) > len(build_system_prompt(False))


@pytest.mark.asyncio
async def test_executor_normalizes_fenced_answer():
    answer = "Here is the data:\n```json\n" + json.dumps(
        {
            "competitors": [
                {"name": "Gadget Y", "company": "Globex", "price": "$49", "rating": 4.4},
            ],
            "sourceDomains": ["globex.com"],
        }
    ) + "\n```"
    with patch(
        "app.agents.executor.perplexity_search.search", new=AsyncMock(return_value=answer)
    ) as search:
        executor = AgentExecutor(_spec(AgentKind.COMPETITOR), api_key="pplx-test")
        payload = await executor.run("Widget X", "Acme")

    assert isinstance(payload, CompetitorPayload)
    assert payload.api_error is None
    assert payload.competitors[0].name == "Gadget Y"
    search.assert_awaited_once()
    assert search.await_args.kwargs["api_key"] == "pplx-test"
    assert search.await_args.kwargs["agent"] == "competitor_agent"


@pytest.mark.asyncio
async def test_executor_returns_empty_payload_for_unparseable_answer():
    with patch(
        "app.agents.executor.perplexity_search.search",
        new=AsyncMock(return_value="Sorry, I could not find anything."),
    ):
        payload = await AgentExecutor(_spec(AgentKind.SENTIMENT), api_key="k").run("Widget X")

    assert payload.api_error == "No valid sentiment data returned from API"
    assert payload.raw_response == "Sorry, I could not find anything."
    assert payload.data_status == DataStatus.INSUFFICIENT
    assert payload.overall_score is None


@pytest.mark.asyncio
async def test_executor_requires_competitor_list():
    with patch(
        "app.agents.executor.perplexity_search.search",
        new=AsyncMock(return_value='{"competitors": "none found"}'),
    ):
        payload = await AgentExecutor(_spec(AgentKind.COMPETITOR), api_key="k").run("Widget X")

    assert payload.api_error == "No valid competitor data returned from API"


@pytest.mark.asyncio
async def test_executor_propagates_provider_errors():
    with patch(
        "app.agents.executor.perplexity_search.search",
        new=AsyncMock(side_effect=RateLimitError("Perplexity API error: 429")),
    ):
        with pytest.raises(RateLimitError):
            await AgentExecutor(_spec(AgentKind.TREND), api_key="k").run("Widget X")
