"""
API Schemas
===========

Pydantic models for API request/response validation.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from sql_agent.models import AgentFailure, AgentSuccess, TraceEntry


class AskRequest(BaseModel):
    """Request body for answering a question."""

    question: str = Field(
        ...,
        min_length=1,
        max_length=2000,
        description="Your question about the database",
        examples=["How many users are in the database?"],
    )
    max_retries: int | None = Field(
        default=None,
        ge=1,
        le=10,
        description="Maximum number of generation attempts (default: 3)",
    )
    max_rows: int | None = Field(
        default=None,
        ge=1,
        le=10000,
        description="Maximum rows to return (default: 100)",
    )
    debug: bool = Field(
        default=False,
        description="Include the step trace in successful responses",
    )


class TraceEntryResponse(BaseModel):
    """Single step of the agent trace."""

    step: str = Field(..., description="Step name")
    success: bool = Field(..., description="Whether the step succeeded")
    attempt: int | None = Field(None, description="Generation attempt the step belongs to")
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: str = Field(..., description="ISO 8601 timestamp")

    @classmethod
    def from_entry(cls, entry: TraceEntry) -> "TraceEntryResponse":
        return cls(
            step=entry.step,
            success=entry.success,
            attempt=entry.attempt,
            details=entry.details,
            timestamp=entry.timestamp,
        )


class ResultData(BaseModel):
    """Rows returned by the executed query."""

    rows: list[dict[str, Any]] = Field(default_factory=list)
    row_count: int = Field(..., description="Number of rows returned")
    execution_time_ms: float = Field(..., description="Query execution time in milliseconds")


class AnswerMetadata(BaseModel):
    """How the answer was produced."""

    attempts: int = Field(..., description="Number of generation attempts")
    warnings: list[str] = Field(default_factory=list, description="Advisory safety warnings")


class AskResponse(BaseModel):
    """Successful answer."""

    success: bool = Field(True)
    answer: str = Field(..., description="Natural-language answer")
    query: str = Field(..., description="SQL that produced the answer")
    data: ResultData
    metadata: AnswerMetadata
    trace: list[TraceEntryResponse] | None = Field(None, description="Step trace (debug only)")
    request_id: str | None = Field(None, description="Unique request identifier")
    processing_time_ms: float = Field(..., description="Processing time in milliseconds")

    @classmethod
    def from_result(
        cls,
        result: AgentSuccess,
        debug: bool,
        request_id: str | None,
        processing_time_ms: float,
    ) -> "AskResponse":
        return cls(
            answer=result.answer,
            query=result.sql,
            data=ResultData(
                rows=result.outcome.rows,
                row_count=result.outcome.row_count,
                execution_time_ms=round(result.outcome.elapsed_ms, 2),
            ),
            metadata=AnswerMetadata(attempts=result.attempts, warnings=result.warnings),
            trace=[TraceEntryResponse.from_entry(e) for e in result.trace] if debug else None,
            request_id=request_id,
            processing_time_ms=processing_time_ms,
        )


class AskFailureResponse(BaseModel):
    """The agent could not answer the question."""

    success: bool = Field(False)
    error: str = Field(..., description="Failure reason")
    kind: str = Field(..., description="Failure category")
    details: Any = Field(None, description="Collaborator error details")
    query: str | None = Field(None, description="Accepted SQL, if one was found")
    data: ResultData | None = Field(None, description="Rows, if the query ran")
    attempts: int = Field(..., description="Number of generation attempts")
    last_issues: list[str] = Field(default_factory=list, description="Issues of the last rejected query")
    trace: list[TraceEntryResponse] = Field(default_factory=list)
    request_id: str | None = Field(None)

    @classmethod
    def from_result(cls, result: AgentFailure, request_id: str | None) -> "AskFailureResponse":
        data = None
        if result.outcome is not None:
            data = ResultData(
                rows=result.outcome.rows,
                row_count=result.outcome.row_count,
                execution_time_ms=round(result.outcome.elapsed_ms, 2),
            )
        return cls(
            error=result.reason,
            kind=result.kind.value,
            details=result.detail,
            query=result.sql,
            data=data,
            attempts=result.attempts,
            last_issues=result.last_issues,
            trace=[TraceEntryResponse.from_entry(e) for e in result.trace],
            request_id=request_id,
        )


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(..., description="Overall health status")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(default_factory=_utc_now)
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual component health checks",
    )


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(..., description="Whether the service is ready to handle requests")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual readiness checks",
    )


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    request_id: str | None = Field(None, description="Request ID if available")
    details: dict[str, Any] | None = Field(None, description="Additional error details")
