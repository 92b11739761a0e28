"""Turn free-text provider answers into validated agent payloads.

Parsing is a short fallback chain (fenced block, then first balanced
object). Normalization never invents values: anything missing or out of
range becomes an explicit null or an empty list, and the only numbers added
are ones computed from values already present (rebalanced sentiment split,
score from average rating, confidence from evidence counts).
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable

from app.models.payloads import (
    MAX_COMPETITORS,
    AgentKind,
    AgentPayload,
    Competitor,
    CompetitorPayload,
    ConfidenceLevel,
    DataStatus,
    EmergingTopic,
    MarketMention,
    NewsItem,
    PAYLOAD_TYPES,
    Review,
    SentimentPayload,
    TrendDirection,
    TrendPayload,
)
from app.tools.web_utils import collect_domains

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)

_PLACEHOLDERS = {"", "null", "none", "n/a", "na", "unknown", "not found", "not available"}
_CURRENCY_RE = re.compile(r"[$€£¥₹]|\b(?:USD|EUR|GBP|JPY|INR|CAD|AUD|CHF|CNY)\b", re.IGNORECASE)

ABUNDANT_CONFIDENCE = 85
SOME_CONFIDENCE = 65
NO_DATA_CONFIDENCE = 20
ABUNDANT_MIN_ITEMS = 3
ABUNDANT_MIN_DOMAINS = 2

# Legacy estimate used only when the zero-hallucination policy is off.
LENIENT_TREND_SCORE = 60

RAW_EXCERPT_CHARS = 500


@dataclass(frozen=True, slots=True)
class NormalizationContext:
    api_sources: list[str] = field(default_factory=list)
    search_date: str | None = None
    strict: bool = True
    max_competitors: int = MAX_COMPETITORS


@dataclass(frozen=True, slots=True)
class Quality:
    confidence: int
    confidence_level: ConfidenceLevel
    data_status: DataStatus


# --- Parsing ---


def _load_object(text: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def first_balanced_object(text: str) -> str | None:
    """Return the first ``{...}`` span whose braces balance, skipping braces inside strings."""
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def parse_response(raw_text: str | None) -> dict[str, Any] | None:
    """Recover a JSON object from a model answer, or None."""
    if not raw_text:
        return None

    fence = _FENCE_RE.search(raw_text)
    if fence:
        parsed = _load_object(fence.group(1).strip())
        if parsed is not None:
            return parsed

    candidate = first_balanced_object(raw_text)
    if candidate is not None:
        return _load_object(candidate)
    return None


# --- Coercion helpers ---


def _as_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.lower() in _PLACEHOLDERS:
        return None
    return text


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = value.strip().rstrip("%").strip()
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _in_range(value: float | None, low: float, high: float) -> float | None:
    if value is None or value < low or value > high:
        return None
    return value


def _as_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [text for text in (_as_text(item) for item in value) if text is not None]


def _dict_items(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _as_name(value: Any) -> str | None:
    name = _as_text(value)
    if name is None or "unable" in name.lower():
        return None
    return name


def _as_price(value: Any) -> str | None:
    """Keep prices as quoted by the source: a string with an amount and a currency marker, or "free".

    Bare numbers are rejected; the currency cannot be recovered from them.
    """
    price = _as_text(value)
    if price is None:
        return None
    if "free" in price.lower():
        return price
    if any(ch.isdigit() for ch in price) and _CURRENCY_RE.search(price):
        return price
    return None


# --- Quality ---


def assess_quality(
    has_real_data: bool,
    *,
    evidence_items: int,
    domain_count: int,
    reported_status: Any = None,
) -> Quality:
    """Derive confidence and data status from what was actually found."""
    if not has_real_data:
        return Quality(NO_DATA_CONFIDENCE, ConfidenceLevel.LOW, DataStatus.INSUFFICIENT)

    status = DataStatus.PARTIAL if reported_status == DataStatus.PARTIAL.value else DataStatus.COMPLETE
    if evidence_items >= ABUNDANT_MIN_ITEMS and domain_count >= ABUNDANT_MIN_DOMAINS:
        return Quality(ABUNDANT_CONFIDENCE, ConfidenceLevel.HIGH, status)
    return Quality(SOME_CONFIDENCE, ConfidenceLevel.MEDIUM, status)


# --- Sentiment ---


def rebalance_percentages(
    positive: Any, negative: Any, neutral: Any
) -> tuple[int | None, int | None, int | None]:
    """Coerce the sentiment split and force it to sum to exactly 100 when complete."""
    values = [_as_number(v) for v in (positive, negative, neutral)]
    values = [None if v is None or v < 0 else v for v in values]

    if any(v is None for v in values):
        return tuple(None if v is None else min(round(v), 100) for v in values)  # type: ignore[return-value]

    largest = max(values)  # type: ignore[type-var]
    if largest == 0:
        return None, None, None

    # Scaled to the largest share first so huge inputs cannot overflow the sum.
    shares = [v / largest for v in values]  # type: ignore[operator]
    total = sum(shares)
    pos = round(shares[0] * 100 / total)
    neg = round(shares[1] * 100 / total)
    if pos + neg > 100:
        neg = 100 - pos
    return pos, neg, 100 - pos - neg


def normalize_sentiment(parsed: dict[str, Any], ctx: NormalizationContext) -> SentimentPayload:
    reviews: list[Review] = []
    for item in _dict_items(parsed.get("reviews")):
        text = _as_text(item.get("text"))
        if text is None:
            continue
        reviews.append(
            Review(
                source=_as_text(item.get("source")),
                rating=_in_range(_as_number(item.get("rating")), 0, 5),
                text=text,
                date=_as_text(item.get("date")),
            )
        )

    positive_themes = _as_str_list(parsed.get("positiveThemes"))
    negative_themes = _as_str_list(parsed.get("negativeThemes"))
    domains = collect_domains(
        _as_str_list(parsed.get("sourceDomains")),
        [review.source for review in reviews],
    )
    has_real_data = bool(reviews or positive_themes or negative_themes or domains)

    average_rating = _in_range(_as_number(parsed.get("averageRating")), 0, 5)
    overall = _in_range(_as_number(parsed.get("overallScore")), 0, 100)
    overall_score = round(overall) if overall is not None else None
    if overall_score is None and average_rating is not None:
        overall_score = round(average_rating / 5 * 100)
    positive, negative, neutral = rebalance_percentages(
        parsed.get("positive"), parsed.get("negative"), parsed.get("neutral")
    )

    if ctx.strict and not has_real_data:
        # Scores with no reviews, themes or sources behind them are untraceable.
        overall_score = average_rating = None
        positive = negative = neutral = None

    quality = assess_quality(
        has_real_data,
        evidence_items=len(reviews),
        domain_count=len(domains),
        reported_status=parsed.get("dataStatus"),
    )
    return SentimentPayload(
        overall_score=overall_score,
        average_rating=average_rating,
        positive=positive,
        negative=negative,
        neutral=neutral,
        positive_themes=positive_themes,
        negative_themes=negative_themes,
        reviews=reviews,
        total_reviews_analyzed=len(reviews),
        confidence=quality.confidence,
        confidence_level=quality.confidence_level,
        data_status=quality.data_status,
        source_domains=domains,
        api_sources_used=list(ctx.api_sources),
        results_count=len(reviews),
    )


# --- Competitor ---


def _complete_competitor(item: dict[str, Any]) -> Competitor | None:
    name = _as_name(item.get("name"))
    company = _as_name(item.get("company"))
    price = _as_price(item.get("price"))
    rating = _in_range(_as_number(item.get("rating")), 0, 5)
    if name is None or company is None or price is None or rating is None:
        return None

    price_source = _as_text(item.get("priceSource"))
    rating_source = _as_text(item.get("ratingSource"))
    if price_source and rating_source:
        level = ConfidenceLevel.HIGH
    elif price_source or rating_source:
        level = ConfidenceLevel.MEDIUM
    else:
        level = ConfidenceLevel.LOW

    return Competitor(
        name=name,
        company=company,
        price=price,
        rating=rating,
        price_source=price_source,
        rating_source=rating_source,
        features=_as_str_list(item.get("features")),
        advantages=_as_str_list(item.get("advantages")),
        disadvantages=_as_str_list(item.get("disadvantages")),
        price_confidence=80 if price_source else 20,
        confidence_level=level,
        source_evidence=price_source or rating_source or "No source available",
    )


def normalize_competitor(parsed: dict[str, Any], ctx: NormalizationContext) -> CompetitorPayload:
    limit = max(0, min(ctx.max_competitors, MAX_COMPETITORS))
    competitors: list[Competitor] = []
    for item in _dict_items(parsed.get("competitors")):
        if len(competitors) >= limit:
            break
        entry = _complete_competitor(item)
        if entry is not None:
            competitors.append(entry)

    domains = collect_domains(
        _as_str_list(parsed.get("sourceDomains")),
        [c.price_source for c in competitors],
        [c.rating_source for c in competitors],
    )
    quality = assess_quality(
        bool(competitors),
        evidence_items=len(competitors),
        domain_count=len(domains),
        reported_status=parsed.get("dataStatus"),
    )
    return CompetitorPayload(
        competitors=competitors,
        confidence=quality.confidence,
        confidence_level=quality.confidence_level,
        data_status=quality.data_status,
        source_domains=domains,
        api_sources_used=list(ctx.api_sources),
        results_count=len(competitors),
    )


# --- Trend ---


def _as_direction(value: Any) -> TrendDirection:
    text = _as_text(value)
    if text is None:
        return TrendDirection.UNKNOWN
    try:
        return TrendDirection(text.lower())
    except ValueError:
        return TrendDirection.UNKNOWN


def normalize_trend(parsed: dict[str, Any], ctx: NormalizationContext) -> TrendPayload:
    keywords = _as_str_list(parsed.get("trendingKeywords"))
    topics = [
        EmergingTopic(
            topic=topic,
            source=_as_text(item.get("source")),
            sentiment=_as_text(item.get("sentiment")),
        )
        for item in _dict_items(parsed.get("emergingTopics"))
        if (topic := _as_text(item.get("topic"))) is not None
    ]
    news = [
        NewsItem(
            headline=headline,
            source=_as_text(item.get("source")),
            date=_as_text(item.get("date")),
            summary=_as_text(item.get("summary")),
        )
        for item in _dict_items(parsed.get("recentNews"))
        if (headline := _as_text(item.get("headline"))) is not None
    ]
    mentions = [
        MarketMention(
            mention=mention,
            source=_as_text(item.get("source")),
            context=_as_text(item.get("context")),
        )
        for item in _dict_items(parsed.get("marketMentions"))
        if (mention := _as_text(item.get("mention"))) is not None
    ]

    has_real_data = bool(keywords or news or mentions)
    direction = _as_direction(parsed.get("trendDirection"))
    score = _in_range(_as_number(parsed.get("trendScore")), 0, 100)
    trend_score = round(score) if score is not None else None

    if ctx.strict and not has_real_data:
        direction = TrendDirection.UNKNOWN
        trend_score = None
    elif not ctx.strict and trend_score is None and has_real_data:
        trend_score = LENIENT_TREND_SCORE

    domains = collect_domains(
        _as_str_list(parsed.get("sourceDomains")),
        [t.source for t in topics],
        [n.source for n in news],
        [m.source for m in mentions],
    )
    quality = assess_quality(
        has_real_data,
        evidence_items=len(news) + len(mentions),
        domain_count=len(domains),
        reported_status=parsed.get("dataStatus"),
    )
    return TrendPayload(
        trending_keywords=keywords,
        emerging_topics=topics,
        recent_news=news,
        market_mentions=mentions,
        trend_direction=direction,
        trend_score=trend_score,
        search_date=ctx.search_date,
        confidence=quality.confidence,
        confidence_level=quality.confidence_level,
        data_status=quality.data_status,
        source_domains=domains,
        api_sources_used=list(ctx.api_sources),
        results_count=len(news) + len(mentions),
    )


Normalizer = Callable[[dict[str, Any], NormalizationContext], AgentPayload]

NORMALIZERS: dict[AgentKind, Normalizer] = {
    AgentKind.SENTIMENT: normalize_sentiment,
    AgentKind.COMPETITOR: normalize_competitor,
    AgentKind.TREND: normalize_trend,
}


def empty_payload(
    kind: AgentKind,
    ctx: NormalizationContext,
    *,
    api_error: str,
    data_status: DataStatus = DataStatus.INSUFFICIENT,
    raw_response: str | None = None,
) -> AgentPayload:
    """Payload with every data field null/empty, carrying failure diagnostics."""
    extra: dict[str, Any] = {}
    if kind == AgentKind.TREND:
        extra["search_date"] = ctx.search_date
    return PAYLOAD_TYPES[kind](
        confidence=0,
        confidence_level=ConfidenceLevel.LOW,
        data_status=data_status,
        api_sources_used=list(ctx.api_sources),
        api_error=api_error,
        raw_response=raw_response[:RAW_EXCERPT_CHARS] if raw_response else None,
        **extra,
    )
