from __future__ import annotations

from fastapi import APIRouter

from app.agents import dispatcher
from app.config import settings
from app.models.outcomes import Credentials, ResearchRequest
from app.models.schemas import RunAgentsRequest, RunAgentsResponse

router = APIRouter(tags=["agents"])


def build_research_request(body: RunAgentsRequest) -> ResearchRequest:
    company = (body.company_name or "").strip() or None
    return ResearchRequest(
        product_name=body.product_name.strip(),
        company_name=company,
        project_id=body.project_id,
        credentials=Credentials(
            search_api_key=settings.perplexity_api_key or None,
            llm_api_key=settings.llm_api_key or None,
        ),
    )


@router.post("/run-agents", response_model=RunAgentsResponse)
async def run_agents(body: RunAgentsRequest):
    """Run the sentiment, competitor and trend agents for one product."""
    result = await dispatcher.run_agents(build_research_request(body))
    return result.to_response()
