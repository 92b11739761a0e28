from __future__ import annotations

from fastapi import APIRouter

from app.agents.insights_agent import generate_insights
from app.models.schemas import GenerateInsightsRequest, InsightsResponse

router = APIRouter(tags=["insights"])


@router.post("/generate-insights", response_model=InsightsResponse)
async def create_insights(body: GenerateInsightsRequest):
    insights = await generate_insights(body.project_id)
    return InsightsResponse(insights=insights)
