from __future__ import annotations

import pytest

from app.services.prompt_store import render_prompt


def test_render_prompt_substitutes_template_values():
    prompt = render_prompt(
        "strategy.user_prompt",
        project_name="Widget X",
        by_company=" by Acme",
        research_data="No research data provided.",
        strategy_titles="Pricing Strategy",
    )
    assert 'data for "Widget X" by Acme,' in prompt
    assert "Use these six titles, in order: Pricing Strategy." in prompt


def test_render_prompt_joins_line_lists():
    prompt = render_prompt("insights.user_prompt", agent_results="[]")
    assert prompt.splitlines()[0].startswith("Analyze the following research agent results")
    assert "Agent Results:\n[]\n" in prompt


def test_render_prompt_raises_for_unknown_key():
    with pytest.raises(KeyError):
        render_prompt("missing.prompt.key")


def test_render_prompt_reports_missing_value():
    with pytest.raises(KeyError, match="agent_results"):
        render_prompt("insights.user_prompt")
