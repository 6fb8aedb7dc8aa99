"""
Agent Exceptions
================

Failure taxonomy for the SQL query agent.

Collaborator adapters translate library errors into these types; the
orchestrator maps each one onto a distinct ``FailureKind``.
"""

from typing import Any, Optional

from sql_agent.models import QueryAttempt, SafetyVerdict


class AgentError(Exception):
    """Base class for every error the agent knows how to report."""

    def __init__(
        self,
        message: str,
        context: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Serializable form used in traces and API responses."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
        }


class SchemaFetchError(AgentError):
    """The database schema could not be read."""


class GenerationError(AgentError):
    """The SQL generator was unreachable or returned nothing usable."""


class SummarizationError(AgentError):
    """The result summarizer failed."""


class ExecutionError(AgentError):
    """The database rejected or failed to run the accepted query."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        detail: Optional[str] = None,
        sql: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, context={"sql": sql} if sql else None, cause=cause)
        self.code = code
        self.detail = detail
        self.sql = sql

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["code"] = self.code
        data["detail"] = self.detail
        return data


class SafetyRejection(AgentError):
    """A candidate query failed the safety check. Recoverable."""

    def __init__(self, attempt: QueryAttempt, verdict: SafetyVerdict) -> None:
        super().__init__(
            f"Safety check failed: {verdict.feedback}",
            context={"attempt": attempt.attempt_number, "issues": list(verdict.issues)},
        )
        self.attempt = attempt
        self.verdict = verdict

    @property
    def feedback(self) -> str:
        return self.verdict.feedback


class RefinementExhausted(AgentError):
    """Every attempt in the retry budget was rejected as unsafe."""

    def __init__(self, attempts: int, last_issues: list[str]) -> None:
        super().__init__(
            f"No safe query after {attempts} attempt(s)",
            context={"attempts": attempts, "last_issues": list(last_issues)},
        )
        self.attempts = attempts
        self.last_issues = list(last_issues)
