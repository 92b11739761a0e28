from __future__ import annotations

import asyncio
import json
from typing import Any

from supabase import create_client, Client

from app.config import settings
from app.errors import ConfigurationError


def get_client() -> Client:
    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise ConfigurationError(
            "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set",
            error_code="MISSING_DB_CONFIG",
        )
    return create_client(settings.supabase_url, settings.supabase_service_role_key)


_client: Client | None = None


def client() -> Client:
    global _client
    if _client is None:
        _client = get_client()
    return _client


async def _execute(query: Any) -> Any:
    """Run blocking Supabase query execution in a worker thread."""
    return await asyncio.to_thread(query.execute)


def _coerce_json_object(value: Any) -> dict[str, Any] | None:
    """Normalize legacy JSON-string columns into dictionaries; keep SQL nulls."""
    if value is None or isinstance(value, dict):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


# --- Agent results ---


async def insert_agent_result(row: dict[str, Any]) -> dict[str, Any]:
    """Append one agent outcome; rows are never updated afterwards."""
    result = await _execute(client().table("agent_results").insert(row))
    return result.data[0] if result.data else row


async def list_agent_results(project_id: str) -> list[dict[str, Any]]:
    result = await _execute(
        client()
        .table("agent_results")
        .select("*")
        .eq("project_id", project_id)
        .order("created_at", desc=True)
    )
    rows = result.data or []
    for row in rows:
        row["results"] = _coerce_json_object(row.get("results"))
    return rows


# --- Insights ---


async def create_insight(
    project_id: str, insight_type: str, data: dict[str, Any]
) -> dict[str, Any]:
    row = {
        "project_id": project_id,
        "insight_type": insight_type,
        "data": data,
    }
    result = await _execute(client().table("insights").insert(row))
    return result.data[0] if result.data else row
