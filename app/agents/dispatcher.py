from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from app.agents.executor import AGENT_SPECS, AgentExecutor
from app.errors import ConfigurationError, classify_error
from app.models.outcomes import AgentOutcome, PipelineResult, ResearchRequest
from app.models.payloads import AgentKind, AgentPayload
from app.services import logger as log_service
from app.services import persistence
from app.services.summary import compose_summary


def _settle(kind: AgentKind, item: AgentPayload | BaseException) -> AgentOutcome:
    if isinstance(item, BaseException):
        if not isinstance(item, Exception):
            raise item
        message = classify_error(item)
        log_service.logger.error(f"{kind.value} agent failed: {message}")
        return AgentOutcome.failed(kind, message)

    if item.api_error:
        log_service.logger.error(
            f"{kind.value} agent returned no usable data: {item.api_error} "
            f"raw={item.raw_response!r}"
        )
        return AgentOutcome.failed(kind, item.api_error)

    return AgentOutcome.completed(kind, item)


async def run_agents(request: ResearchRequest) -> PipelineResult:
    """Fan out the three research agents, persist every outcome, join the results.

    A missing search credential aborts before any call is made. Past that
    point no agent failure is raised: each becomes a failed outcome and the
    run succeeds when at least one agent completed.
    """
    api_key = request.credentials.search_api_key
    if not api_key:
        log_service.logger.error("PERPLEXITY_API_KEY not configured")
        raise ConfigurationError(
            "PERPLEXITY_API_KEY not configured. Cannot fetch real data.",
            error_code="MISSING_API_KEY",
            details={"timestamp": datetime.now(timezone.utc).isoformat()},
        )

    log_service.log_event(
        event_type="agents_started",
        message="Starting agents",
        product_name=request.product_name,
        company_name=request.company_name,
        project_id=request.project_id,
        llm_key_configured=bool(request.credentials.llm_api_key),
    )

    executors = [AgentExecutor(spec, api_key=api_key) for spec in AGENT_SPECS]
    settled = await asyncio.gather(
        *(executor.run(request.product_name, request.company_name) for executor in executors),
        return_exceptions=True,
    )

    outcomes: list[AgentOutcome] = []
    for executor, item in zip(executors, settled):
        outcome = _settle(executor.kind, item)
        await persistence.record_outcome(request.project_id, outcome)
        outcomes.append(outcome)

    completed = [outcome for outcome in outcomes if outcome.is_completed]
    summary = compose_summary(request.product_name, request.company_name, completed)

    log_service.log_event(
        event_type="agents_completed",
        message="Agents finished",
        project_id=request.project_id,
        completed=[o.kind.value for o in completed],
        failed=[o.kind.value for o in outcomes if not o.is_completed],
    )

    return PipelineResult(
        success=len(completed) > 0,
        results=completed,
        outcomes=outcomes,
        summary=summary,
        api_sources_used={
            "perplexity": True,
            "llm": bool(request.credentials.llm_api_key),
            "dataPoints": len(completed),
        },
    )
