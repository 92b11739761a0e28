from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from app.models.payloads import AgentKind, AgentPayload


class OutcomeStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Credentials:
    search_api_key: str | None = None
    llm_api_key: str | None = None


@dataclass(frozen=True, slots=True)
class ResearchRequest:
    """One user-triggered research run, consumed once by the dispatcher."""

    product_name: str
    company_name: str | None
    project_id: str
    credentials: Credentials = field(default_factory=Credentials)


@dataclass(frozen=True, slots=True)
class AgentOutcome:
    """Settled result of one agent: a payload or an error message, never both."""

    kind: AgentKind
    status: OutcomeStatus
    payload: AgentPayload | None = None
    error_message: str | None = None

    def __post_init__(self) -> None:
        if (self.payload is None) == (self.error_message is None):
            raise ValueError("AgentOutcome needs exactly one of payload or error_message")
        if self.status == OutcomeStatus.COMPLETED and self.payload is None:
            raise ValueError("completed outcome requires a payload")
        if self.status == OutcomeStatus.FAILED and self.error_message is None:
            raise ValueError("failed outcome requires an error message")

    @classmethod
    def completed(cls, kind: AgentKind, payload: AgentPayload) -> "AgentOutcome":
        return cls(kind=kind, status=OutcomeStatus.COMPLETED, payload=payload)

    @classmethod
    def failed(cls, kind: AgentKind, error_message: str) -> "AgentOutcome":
        return cls(kind=kind, status=OutcomeStatus.FAILED, error_message=error_message)

    @property
    def is_completed(self) -> bool:
        return self.status == OutcomeStatus.COMPLETED

    def to_record(self, project_id: str) -> dict[str, Any]:
        """Row for the ``agent_results`` table."""
        row: dict[str, Any] = {
            "project_id": project_id,
            "agent_type": self.kind.value,
            "status": self.status.value,
        }
        if self.payload is not None:
            row["results"] = self.payload.to_json()
        else:
            row["error_message"] = self.error_message
        return row

    def to_result(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "data": self.payload.to_json() if self.payload is not None else None,
        }


@dataclass(slots=True)
class PipelineResult:
    success: bool
    results: list[AgentOutcome]
    outcomes: list[AgentOutcome]
    summary: str
    api_sources_used: dict[str, Any] = field(default_factory=dict)

    def to_response(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "results": [outcome.to_result() for outcome in self.results],
            "summary": self.summary,
            "apiSourcesUsed": self.api_sources_used,
        }
