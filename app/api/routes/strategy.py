from __future__ import annotations

from fastapi import APIRouter

from app.agents.strategy_agent import generate_strategy
from app.models.schemas import GenerateStrategyRequest, StrategyResponse

router = APIRouter(tags=["strategy"])


@router.post("/generate-strategy", response_model=StrategyResponse)
async def create_strategy(body: GenerateStrategyRequest):
    return await generate_strategy(body)
