from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from app import llm_client
from app.errors import NotFoundError, ParseError
from app.models.schemas import Insights
from app.services import logger as log_service
from app.services import supabase as db
from app.services.prompt_store import render_prompt

TOOL_NAME = "generate_insights"

INSIGHTS_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": TOOL_NAME,
        "description": "Generate structured insights from research data",
        "parameters": {
            "type": "object",
            "properties": {
                "keyFindings": {"type": "array", "items": {"type": "string"}},
                "sentimentAnalysis": {
                    "type": "object",
                    "properties": {
                        "positive": {"type": "number"},
                        "negative": {"type": "number"},
                        "neutral": {"type": "number"},
                    },
                    "required": ["positive", "negative", "neutral"],
                },
                "trends": {"type": "array", "items": {"type": "string"}},
                "anomalies": {"type": "array", "items": {"type": "string"}},
                "recommendations": {"type": "array", "items": {"type": "string"}},
            },
            "required": [
                "keyFindings",
                "sentimentAnalysis",
                "trends",
                "anomalies",
                "recommendations",
            ],
        },
    },
}


def summarize_rows(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {
            "agent": row.get("agent_type"),
            "status": row.get("status"),
            "results": row.get("results"),
        }
        for row in rows
    ]


async def generate_insights(project_id: str) -> dict[str, Any]:
    """Summarize every stored agent result of a project into structured insights."""
    llm_client.require_api_key()

    rows = await db.list_agent_results(project_id)
    if not rows:
        raise NotFoundError("No agent results found for this project")

    response = await llm_client.complete(
        caller="insights",
        system=render_prompt("insights.system_prompt"),
        user=render_prompt(
            "insights.user_prompt",
            agent_results=json.dumps(summarize_rows(rows), indent=2),
        ),
        tools=[INSIGHTS_TOOL],
        tool_choice={"type": "function", "function": {"name": TOOL_NAME}},
    )

    arguments = llm_client.tool_arguments(response, TOOL_NAME)
    if arguments is None:
        raise ParseError("No insights generated")
    try:
        insights = Insights.model_validate(arguments).model_dump(by_alias=True)
    except ValidationError as e:
        raise ParseError("Insights did not match the expected schema") from e

    await db.create_insight(project_id, "ai_summary", insights)
    log_service.log_event(
        event_type="insights_generated",
        message="Insights stored",
        project_id=project_id,
        source_rows=len(rows),
    )
    return insights
