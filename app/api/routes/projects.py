from __future__ import annotations

from fastapi import APIRouter

from app.models.schemas import AgentResultsResponse
from app.services import supabase as db

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("/{project_id}/agent-results", response_model=AgentResultsResponse)
async def list_agent_results(project_id: str):
    """Stored agent outcomes of a project, newest first, as written."""
    rows = await db.list_agent_results(project_id)
    return AgentResultsResponse(results=rows)
