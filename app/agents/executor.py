from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from app.config import settings
from app.models.payloads import AgentKind, AgentPayload, MAX_COMPETITORS
from app.services import logger as log_service
from app.services.normalizer import (
    NORMALIZERS,
    NormalizationContext,
    Normalizer,
    empty_payload,
    parse_response,
)
from app.services.prompt_store import render_prompt
from app.tools import perplexity_search


@dataclass(frozen=True, slots=True)
class AgentSpec:
    """Everything that differs between the sentiment, competitor and trend agents."""

    kind: AgentKind
    prompt_key: str
    normalize: Normalizer
    required_list: str | None = None

    def build_query(
        self,
        product_name: str,
        company_name: str | None,
        *,
        search_date: str,
        strict: bool,
    ) -> str:
        return render_prompt(
            self.prompt_key,
            product_name=product_name,
            by_company=f" by {company_name}" if company_name else "",
            max_competitors=min(settings.max_competitors, MAX_COMPETITORS),
            search_date=search_date,
            policy_rule=render_prompt(
                "search.policy_clause" if strict else "search.lenient_clause"
            ),
        )


AGENT_SPECS: tuple[AgentSpec, ...] = (
    AgentSpec(
        kind=AgentKind.SENTIMENT,
        prompt_key="agents.sentiment_query",
        normalize=NORMALIZERS[AgentKind.SENTIMENT],
    ),
    AgentSpec(
        kind=AgentKind.COMPETITOR,
        prompt_key="agents.competitor_query",
        normalize=NORMALIZERS[AgentKind.COMPETITOR],
        required_list="competitors",
    ),
    AgentSpec(
        kind=AgentKind.TREND,
        prompt_key="agents.trend_query",
        normalize=NORMALIZERS[AgentKind.TREND],
    ),
)


def build_system_prompt(strict: bool) -> str:
    system = render_prompt("search.system_prompt")
    if strict:
        system = f"{system} {render_prompt('search.policy_clause')}"
    return system


class AgentExecutor:
    """Run one research agent: prompt, grounded search call, parse, normalize.

    Provider errors (rate limit, bad key, HTTP failures) propagate to the
    dispatcher. An answer with no recoverable JSON does not raise; it comes
    back as an empty payload with ``api_error`` set.
    """

    def __init__(self, spec: AgentSpec, *, api_key: str, strict: bool | None = None):
        self.spec = spec
        self.api_key = api_key
        self.strict = settings.zero_hallucination_policy if strict is None else strict

    @property
    def kind(self) -> AgentKind:
        return self.spec.kind

    @property
    def name(self) -> str:
        return f"{self.spec.kind.value}_agent"

    async def run(self, product_name: str, company_name: str | None = None) -> AgentPayload:
        ctx = NormalizationContext(
            api_sources=[perplexity_search.source_label()],
            search_date=date.today().isoformat(),
            strict=self.strict,
            max_competitors=settings.max_competitors,
        )
        query = self.spec.build_query(
            product_name, company_name, search_date=ctx.search_date, strict=self.strict
        )
        log_service.logger.info(f"Running {self.name} for: {product_name}")

        content = await perplexity_search.search(
            query,
            api_key=self.api_key,
            system_prompt=build_system_prompt(self.strict),
            agent=self.name,
        )

        parsed = parse_response(content)
        if parsed is not None and self.spec.required_list:
            if not isinstance(parsed.get(self.spec.required_list), list):
                parsed = None

        if parsed is None:
            log_service.logger.warning(
                f"{self.name}: no usable JSON in response ({len(content)} chars)"
            )
            return empty_payload(
                self.kind,
                ctx,
                api_error=f"No valid {self.kind.value} data returned from API",
                raw_response=content,
            )

        payload = self.spec.normalize(parsed, ctx)
        log_service.logger.info(
            f"{self.name} normalized: status={payload.data_status.value} "
            f"confidence={payload.confidence} results={payload.results_count}"
        )
        return payload
