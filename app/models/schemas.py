from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Requests ---


class RunAgentsRequest(CamelModel):
    product_name: str = Field(min_length=1)
    company_name: str | None = None
    project_id: str = Field(min_length=1)


class GenerateInsightsRequest(CamelModel):
    project_id: str = Field(min_length=1)


class GenerateStrategyRequest(CamelModel):
    project_name: str = Field(min_length=1)
    company_name: str | None = None
    sentiment_data: dict[str, Any] | None = None
    competitor_data: dict[str, Any] | None = None
    trend_data: dict[str, Any] | None = None


# --- Responses ---


class AgentResultItem(BaseModel):
    type: str
    data: dict[str, Any] | None


class RunAgentsResponse(BaseModel):
    success: bool
    results: list[AgentResultItem]
    summary: str
    apiSourcesUsed: dict[str, Any]


class SentimentBreakdown(BaseModel):
    positive: float
    negative: float
    neutral: float


class Insights(CamelModel):
    key_findings: list[str]
    sentiment_analysis: SentimentBreakdown
    trends: list[str]
    anomalies: list[str]
    recommendations: list[str]


class InsightsResponse(BaseModel):
    insights: dict[str, Any]


class Strategy(BaseModel):
    title: str
    content: str
    confidence: int = Field(ge=0, le=100)
    recommendations: list[str] = Field(default_factory=list)


class StrategyResponse(BaseModel):
    strategies: list[Strategy]
    fallback: bool = False


class AgentResultsResponse(BaseModel):
    results: list[dict[str, Any]]
