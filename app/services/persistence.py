from __future__ import annotations

from app.models.outcomes import AgentOutcome
from app.services import logger as log_service
from app.services import supabase as db


async def record_outcome(project_id: str, outcome: AgentOutcome) -> None:
    """Persist one agent outcome, best effort.

    A failed write is logged and dropped; the pipeline result reports the
    API fan-out, not the storage fan-out.
    """
    row = outcome.to_record(project_id)
    details = f"project={project_id} agent={outcome.kind.value} status={outcome.status.value}"
    try:
        await db.insert_agent_result(row)
    except Exception as e:
        log_service.log_db_operation(
            operation="insert",
            table="agent_results",
            status="failed",
            details=details,
            error=str(e),
        )
        return
    log_service.log_db_operation(
        operation="insert",
        table="agent_results",
        status="success",
        details=details,
    )
