from __future__ import annotations

from typing import Iterable

from app.models.outcomes import AgentOutcome
from app.models.payloads import (
    AgentKind,
    CompetitorPayload,
    SentimentPayload,
    TrendDirection,
    TrendPayload,
)

NO_DATA_SUMMARY = (
    "Insufficient API data available. Please check API limits or provide more details."
)


def sentiment_label(score: int) -> str:
    if score >= 70:
        return "positive"
    if score >= 40:
        return "mixed"
    return "negative"


def compose_summary(
    product_name: str,
    company_name: str | None,
    outcomes: Iterable[AgentOutcome],
) -> str:
    """One-line digest built only from completed agent outcomes."""
    payloads = {o.kind: o.payload for o in outcomes if o.is_completed}
    if not payloads:
        return NO_DATA_SUMMARY

    parts: list[str] = []

    sentiment = payloads.get(AgentKind.SENTIMENT)
    if isinstance(sentiment, SentimentPayload) and sentiment.overall_score is not None:
        label = sentiment_label(sentiment.overall_score)
        parts.append(
            f"Sentiment: {label} ({sentiment.overall_score}/100 "
            f"from {len(sentiment.reviews)} reviews)"
        )

    competitor = payloads.get(AgentKind.COMPETITOR)
    if isinstance(competitor, CompetitorPayload) and competitor.competitors:
        parts.append(f"Competitors: {len(competitor.competitors)} found")

    trend = payloads.get(AgentKind.TREND)
    if isinstance(trend, TrendPayload) and trend.trend_direction != TrendDirection.UNKNOWN:
        parts.append(f"Trend: {trend.trend_direction.value}")

    if not parts:
        return (
            f"Insufficient API data for {product_name}. "
            "Limited data was returned from search APIs."
        )

    subject = f"{product_name} by {company_name}" if company_name else product_name
    return f"{subject}: {' | '.join(parts)} (API-verified data)"
