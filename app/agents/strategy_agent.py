from __future__ import annotations

import json
import math
from typing import Any

from app import llm_client
from app.models.schemas import GenerateStrategyRequest
from app.services import logger as log_service
from app.services.normalizer import parse_response
from app.services.prompt_store import render_prompt

STRATEGY_TITLES: tuple[str, ...] = (
    "Go-To-Market Strategy",
    "User Segmentation Strategy",
    "Pricing Strategy",
    "Marketing Messaging Blueprint",
    "Risk Mitigation Plan",
    "Opportunity Exploitation Roadmap",
)

# Served only when the model output is unusable; flagged with fallback=True.
FALLBACK_STRATEGIES: tuple[dict[str, Any], ...] = (
    {
        "title": "Go-To-Market Strategy",
        "content": "Based on the available research data, a phased market entry approach is recommended. Start with core user segments identified in the sentiment analysis.",
        "confidence": 60,
        "recommendations": ["Focus on primary user segments", "Leverage positive sentiment themes", "Address key pain points first"],
    },
    {
        "title": "User Segmentation Strategy",
        "content": "Segment users based on the sentiment patterns and engagement data available from the research.",
        "confidence": 55,
        "recommendations": ["Identify high-value segments", "Create targeted messaging", "Develop segment-specific features"],
    },
    {
        "title": "Pricing Strategy",
        "content": "Based on competitor pricing data, position competitively while maintaining value perception.",
        "confidence": 50,
        "recommendations": ["Analyze competitor price points", "Consider value-based pricing", "Test different price tiers"],
    },
    {
        "title": "Marketing Messaging Blueprint",
        "content": "Leverage positive themes from sentiment analysis to craft compelling marketing messages.",
        "confidence": 55,
        "recommendations": ["Highlight key differentiators", "Address user pain points", "Use social proof effectively"],
    },
    {
        "title": "Risk Mitigation Plan",
        "content": "Address identified negative sentiment themes and competitive threats proactively.",
        "confidence": 50,
        "recommendations": ["Monitor competitor moves", "Address negative feedback patterns", "Build contingency plans"],
    },
    {
        "title": "Opportunity Exploitation Roadmap",
        "content": "Capitalize on emerging trends and positive market signals identified in the research.",
        "confidence": 55,
        "recommendations": ["Prioritize high-impact opportunities", "Allocate resources strategically", "Set clear milestones"],
    },
)


def build_research_context(request: GenerateStrategyRequest) -> str:
    parts: list[str] = []
    if request.sentiment_data:
        parts.append(f"Sentiment Analysis: {json.dumps(request.sentiment_data)}")
    if request.competitor_data:
        parts.append(f"Competitor Analysis: {json.dumps(request.competitor_data)}")
    if request.trend_data:
        parts.append(f"Trend Analysis: {json.dumps(request.trend_data)}")
    return "\n\n".join(parts) if parts else "No research data provided."


def _clean_strategy(item: Any) -> dict[str, Any] | None:
    if not isinstance(item, dict):
        return None
    title = item.get("title")
    content = item.get("content")
    if not isinstance(title, str) or not title.strip():
        return None
    if not isinstance(content, str) or not content.strip():
        return None

    confidence = item.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        confidence = 0
    elif not math.isfinite(confidence):
        confidence = 0
    recommendations = item.get("recommendations")
    if not isinstance(recommendations, list):
        recommendations = []

    return {
        "title": title.strip(),
        "content": content.strip(),
        "confidence": int(max(0, min(100, round(confidence)))),
        "recommendations": [r.strip() for r in recommendations if isinstance(r, str) and r.strip()],
    }


def sanitize_strategies(parsed: dict[str, Any] | None) -> list[dict[str, Any]]:
    if not parsed or not isinstance(parsed.get("strategies"), list):
        return []
    return [s for s in (_clean_strategy(item) for item in parsed["strategies"]) if s is not None]


async def generate_strategy(request: GenerateStrategyRequest) -> dict[str, Any]:
    """Draft six strategy sections from whatever research data the caller provides."""
    llm_client.require_api_key()

    response = await llm_client.complete(
        caller="strategy",
        system=render_prompt("strategy.system_prompt"),
        user=render_prompt(
            "strategy.user_prompt",
            project_name=request.project_name,
            by_company=f" by {request.company_name}" if request.company_name else "",
            research_data=build_research_context(request),
            strategy_titles=", ".join(STRATEGY_TITLES),
        ),
    )

    content = llm_client.response_text(response)
    strategies = sanitize_strategies(parse_response(content))
    if not strategies:
        log_service.logger.warning(
            f"Failed to parse strategy response, serving fallback: {content[:200]!r}"
        )
        return {"strategies": [dict(s) for s in FALLBACK_STRATEGIES], "fallback": True}

    return {"strategies": strategies, "fallback": False}
