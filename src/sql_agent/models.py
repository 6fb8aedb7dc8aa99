"""
Data Models
===========

Core data structures for the SQL query agent.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union


@dataclass(frozen=True)
class ColumnInfo:
    """A single column of a user table."""

    name: str
    data_type: str
    nullable: bool = True
    default: Optional[str] = None


# Table name -> ordered column descriptors
SchemaSnapshot = dict[str, list[ColumnInfo]]


@dataclass(frozen=True)
class QueryAttempt:
    """One candidate query produced by the generator."""

    attempt_number: int
    sql: str
    raw_output: str


@dataclass
class SafetyVerdict:
    """Outcome of the safety check for one candidate query."""

    safe: bool
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def feedback(self) -> str:
        """Blocking issues joined for the next generation attempt."""
        return "; ".join(self.issues)


@dataclass
class ExecutionOutcome:
    """Rows returned by executing an accepted query."""

    rows: list[dict[str, Any]]
    row_count: int
    elapsed_ms: float
    columns: list[str] = field(default_factory=list)
    executed_sql: str = ""


@dataclass
class GeneratedQuery:
    """SQL text returned by the generation port."""

    sql: str
    raw_output: str
    model: str = ""


@dataclass
class LLMResponse:
    """Response from an LLM call."""

    content: str
    model: str
    tokens_used: int = 0


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class TraceEntry:
    """Single entry in the agent trace."""

    step: str
    success: bool
    attempt: Optional[int] = None
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"step": self.step, "success": self.success}
        if self.attempt is not None:
            data["attempt"] = self.attempt
        data.update(self.details)
        data["timestamp"] = self.timestamp
        return data


class FailureKind(str, Enum):
    """Terminal failure categories reported to callers."""

    SCHEMA_FETCH = "schema_fetch"
    GENERATION = "generation"
    REFINEMENT_EXHAUSTED = "refinement_exhausted"
    EXECUTION = "execution"
    SUMMARIZATION = "summarization"


FAILURE_REASONS: dict[FailureKind, str] = {
    FailureKind.SCHEMA_FETCH: "Failed to extract database schema",
    FailureKind.GENERATION: "Failed to generate SQL query",
    FailureKind.REFINEMENT_EXHAUSTED: "Could not generate a safe query after multiple attempts",
    FailureKind.EXECUTION: "Query execution failed",
    FailureKind.SUMMARIZATION: "Failed to generate summary",
}


@dataclass
class AgentSuccess:
    """A question answered from an executed, safety-checked query."""

    answer: str
    sql: str
    outcome: ExecutionOutcome
    attempts: int
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceEntry] = field(default_factory=list)

    success = True


@dataclass
class AgentFailure:
    """A request that stopped before producing an answer."""

    kind: FailureKind
    detail: Any
    trace: list[TraceEntry]
    attempts: int = 0
    sql: Optional[str] = None
    outcome: Optional[ExecutionOutcome] = None
    last_issues: list[str] = field(default_factory=list)

    success = False

    @property
    def reason(self) -> str:
        return FAILURE_REASONS[self.kind]


AgentResult = Union[AgentSuccess, AgentFailure]
