from __future__ import annotations

import argparse
from unittest.mock import AsyncMock, patch

import pytest

import main as cli
from app.errors import ConfigurationError
from app.models.outcomes import AgentOutcome, PipelineResult
from app.models.payloads import AgentKind, TrendDirection, TrendPayload


def _args(**overrides) -> argparse.Namespace:
    values = {"product": " Widget X ", "company": "  ", "project_id": "cli", "json": False}
    values.update(overrides)
    return argparse.Namespace(**values)


def test_build_request_strips_inputs():
    request = cli.build_request(_args())
    assert request.product_name == "Widget X"
    assert request.company_name is None
    assert request.project_id == "cli"


@pytest.mark.asyncio
async def test_run_research_prints_summary(capsys):
    outcome = AgentOutcome.completed(
        AgentKind.TREND, TrendPayload(trend_direction=TrendDirection.RISING)
    )
    result = PipelineResult(
        success=True, results=[outcome], outcomes=[outcome], summary="Widget X: Trend: rising"
    )
    with patch("main.dispatcher.run_agents", new=AsyncMock(return_value=result)):
        code = await cli.run_research(cli.build_request(_args()))

    assert code == 0
    out = capsys.readouterr().out
    assert "[+] trend: insufficient" in out
    assert "Widget X: Trend: rising" in out


@pytest.mark.asyncio
async def test_run_research_reports_missing_key(capsys):
    with patch(
        "main.dispatcher.run_agents",
        new=AsyncMock(side_effect=ConfigurationError("PERPLEXITY_API_KEY not configured.")),
    ):
        code = await cli.run_research(cli.build_request(_args()))

    assert code == 2
    assert "PERPLEXITY_API_KEY" in capsys.readouterr().out
