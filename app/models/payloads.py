from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MAX_COMPETITORS = 5


class AgentKind(str, Enum):
    SENTIMENT = "sentiment"
    COMPETITOR = "competitor"
    TREND = "trend"


class ConfidenceLevel(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class DataStatus(str, Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"
    INSUFFICIENT = "insufficient"
    API_ERROR = "api_error"


class TrendDirection(str, Enum):
    RISING = "rising"
    STABLE = "stable"
    DECLINING = "declining"
    UNKNOWN = "unknown"


class PayloadModel(BaseModel):
    """Base for everything persisted as agent JSON (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AgentPayload(PayloadModel):
    """Metadata shared by every agent payload kind."""

    confidence: int = Field(default=0, ge=0, le=100)
    confidence_level: ConfidenceLevel = ConfidenceLevel.LOW
    data_status: DataStatus = DataStatus.INSUFFICIENT
    source_domains: list[str] = Field(default_factory=list)
    api_sources_used: list[str] = Field(default_factory=list)
    results_count: int = 0
    api_error: str | None = Field(default=None, alias="_apiError")
    raw_response: str | None = Field(default=None, alias="_rawResponse")

    def to_json(self) -> dict[str, Any]:
        """Serialize with explicit nulls for data fields; diagnostics only when set."""
        exclude = {name for name in ("api_error", "raw_response") if getattr(self, name) is None}
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)


# --- Sentiment ---


class Review(PayloadModel):
    source: str | None = None
    rating: float | None = Field(default=None, ge=0, le=5)
    text: str
    date: str | None = None


class SentimentPayload(AgentPayload):
    overall_score: int | None = Field(default=None, ge=0, le=100)
    average_rating: float | None = Field(default=None, ge=0, le=5)
    positive: int | None = Field(default=None, ge=0, le=100)
    negative: int | None = Field(default=None, ge=0, le=100)
    neutral: int | None = Field(default=None, ge=0, le=100)
    positive_themes: list[str] = Field(default_factory=list)
    negative_themes: list[str] = Field(default_factory=list)
    reviews: list[Review] = Field(default_factory=list)
    total_reviews_analyzed: int = 0


# --- Competitor ---


class Competitor(PayloadModel):
    name: str
    company: str
    price: str
    rating: float = Field(ge=0, le=5)
    price_source: str | None = None
    rating_source: str | None = None
    features: list[str] = Field(default_factory=list)
    advantages: list[str] = Field(default_factory=list)
    disadvantages: list[str] = Field(default_factory=list)
    price_confidence: int = 20
    confidence_level: ConfidenceLevel = ConfidenceLevel.LOW
    source_evidence: str = "No source available"


class CompetitorPayload(AgentPayload):
    competitors: list[Competitor] = Field(default_factory=list, max_length=MAX_COMPETITORS)


# --- Trend ---


class EmergingTopic(PayloadModel):
    topic: str
    source: str | None = None
    sentiment: str | None = None


class NewsItem(PayloadModel):
    headline: str
    source: str | None = None
    date: str | None = None
    summary: str | None = None


class MarketMention(PayloadModel):
    mention: str
    source: str | None = None
    context: str | None = None


class TrendPayload(AgentPayload):
    trending_keywords: list[str] = Field(default_factory=list)
    emerging_topics: list[EmergingTopic] = Field(default_factory=list)
    recent_news: list[NewsItem] = Field(default_factory=list)
    market_mentions: list[MarketMention] = Field(default_factory=list)
    trend_direction: TrendDirection = TrendDirection.UNKNOWN
    trend_score: int | None = Field(default=None, ge=0, le=100)
    search_date: str | None = None


PAYLOAD_TYPES: dict[AgentKind, type[AgentPayload]] = {
    AgentKind.SENTIMENT: SentimentPayload,
    AgentKind.COMPETITOR: CompetitorPayload,
    AgentKind.TREND: TrendPayload,
}
