"""
SQL Query Agent
===============

Orchestrates question answering: schema fetch, bounded generate/verify
refinement, execution and summarization.
"""

from enum import Enum
from typing import Any, Optional

import structlog
from opentelemetry import trace

from sql_agent.errors import (
    AgentError,
    ExecutionError,
    GenerationError,
    RefinementExhausted,
    SafetyRejection,
    SchemaFetchError,
    SummarizationError,
)
from sql_agent.models import (
    AgentFailure,
    AgentResult,
    AgentSuccess,
    ExecutionOutcome,
    FailureKind,
    QueryAttempt,
    SafetyVerdict,
    SchemaSnapshot,
    TraceEntry,
)
from sql_agent.ports import QueryExecutor, QueryGenerator, ResultSummarizer, SchemaProvider
from sql_agent.verifiers.safety import SafetyVerifier

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_MAX_ROWS = 100


class AgentState(str, Enum):
    """States of a single agent run."""

    AWAIT_SCHEMA = "await_schema"
    GENERATING = "generating"
    CHECKING = "checking"
    RETRY = "retry"
    EXECUTING = "executing"
    SUMMARIZING = "summarizing"
    DONE = "done"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class _Run:
    """Mutable bookkeeping for one request. Never shared between requests."""

    def __init__(self, question: str, max_retries: int, max_rows: int) -> None:
        self.question = question
        self.max_retries = max_retries
        self.max_rows = max_rows
        self.state = AgentState.AWAIT_SCHEMA
        self.trace: list[TraceEntry] = []
        self.attempt = 0
        self.accepted: Optional[QueryAttempt] = None
        self.verdict: Optional[SafetyVerdict] = None
        self.outcome: Optional[ExecutionOutcome] = None

    def record(
        self,
        step: str,
        success: bool,
        next_state: AgentState,
        attempt: Optional[int] = None,
        **details: Any,
    ) -> None:
        self.trace.append(TraceEntry(step=step, success=success, attempt=attempt, details=details))
        logger.debug(
            "agent.transition",
            step=step,
            success=success,
            from_state=self.state.value,
            to_state=next_state.value,
            attempt=attempt,
        )
        self.state = next_state


class SQLQueryAgent:
    """
    Answers natural-language questions from a database.

    The agent:
    1. Fetches the database schema once
    2. Generates SQL with the configured generator
    3. Checks the SQL with the safety verifier
    4. Retries generation with the rejection reasons, up to ``max_retries`` attempts
    5. Executes the single accepted query with a row limit
    6. Summarizes the rows into an answer
    7. Keeps a trace of every step
    """

    def __init__(
        self,
        schema_provider: SchemaProvider,
        generator: QueryGenerator,
        executor: QueryExecutor,
        summarizer: ResultSummarizer,
        verifier: SafetyVerifier | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        max_rows: int = DEFAULT_MAX_ROWS,
    ) -> None:
        """
        Initialize the agent.

        Args:
            schema_provider: Source of table/column metadata
            generator: NL-to-SQL generation port
            executor: Runs the accepted query
            summarizer: Turns rows into an answer
            verifier: Safety gate (defaults to SafetyVerifier)
            max_retries: Default generation attempt budget per request
            max_rows: Default row limit per request
        """
        self.schema_provider = schema_provider
        self.generator = generator
        self.executor = executor
        self.summarizer = summarizer
        self.verifier = verifier or SafetyVerifier()
        self.max_retries = max_retries
        self.max_rows = max_rows

    async def run(
        self,
        question: str,
        max_retries: Optional[int] = None,
        max_rows: Optional[int] = None,
    ) -> AgentResult:
        """
        Main entry point: answer one question.

        Args:
            question: The user's question in natural language
            max_retries: Generation attempt budget (default: agent setting)
            max_rows: Row limit passed to the executor (default: agent setting)

        Returns:
            AgentSuccess, or AgentFailure naming the failed stage
        """
        max_retries = self.max_retries if max_retries is None else max_retries
        max_rows = self.max_rows if max_rows is None else max_rows
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if max_rows < 1:
            raise ValueError("max_rows must be at least 1")

        run = _Run(question, max_retries, max_rows)
        log = logger.bind(question=question, max_retries=max_retries)

        with tracer.start_as_current_span("sql_agent.run") as span:
            try:
                schema = await self._fetch_schema(run)
                accepted = await self._refine(run, schema)
                outcome = await self._execute(run, accepted)
                answer = await self._summarize(run, accepted, outcome)
            except AgentError as exc:
                result = self._failure(run, exc)
                log.warning(
                    "agent.failed",
                    kind=result.kind.value,
                    attempts=result.attempts,
                    error=exc.message,
                )
            else:
                result = AgentSuccess(
                    answer=answer,
                    sql=accepted.sql,
                    outcome=outcome,
                    attempts=run.attempt,
                    warnings=list(run.verdict.warnings),
                    trace=run.trace,
                )
                log.info("agent.succeeded", attempts=run.attempt, row_count=outcome.row_count)

            span.set_attribute("query.success", result.success)
            span.set_attribute("query.attempts", run.attempt)
            if not result.success:
                span.set_attribute("query.failure_kind", result.kind.value)

        return result

    async def _fetch_schema(self, run: _Run) -> SchemaSnapshot:
        try:
            schema = await self.schema_provider.fetch_schema()
        except SchemaFetchError as exc:
            run.record("schema_extraction", False, AgentState.FAILED, error=exc.message)
            raise

        run.record("schema_extraction", True, AgentState.GENERATING, table_count=len(schema))
        return schema

    async def _refine(self, run: _Run, schema: SchemaSnapshot) -> QueryAttempt:
        """Generate and check until a query is safe or the budget is spent."""
        previous_sql: Optional[str] = None
        feedback: Optional[str] = None
        run.attempt = 1

        while True:
            attempt = await self._generate(run, schema, previous_sql, feedback)
            try:
                return self._check(run, attempt)
            except SafetyRejection as rejection:
                if run.attempt >= run.max_retries:
                    raise RefinementExhausted(run.attempt, rejection.verdict.issues) from rejection
                previous_sql = rejection.attempt.sql
                feedback = rejection.feedback
                run.attempt += 1
                run.record(
                    "retry",
                    True,
                    AgentState.GENERATING,
                    attempt=run.attempt,
                    previous_query=previous_sql,
                    feedback=feedback,
                )

    async def _generate(
        self,
        run: _Run,
        schema: SchemaSnapshot,
        previous_sql: Optional[str],
        feedback: Optional[str],
    ) -> QueryAttempt:
        try:
            generated = await self.generator.generate(run.question, schema, previous_sql, feedback)
        except GenerationError as exc:
            run.record(
                "query_generation", False, AgentState.FAILED, attempt=run.attempt, error=exc.message
            )
            raise

        attempt = QueryAttempt(
            attempt_number=run.attempt,
            sql=generated.sql,
            raw_output=generated.raw_output,
        )
        run.record(
            "query_generation", True, AgentState.CHECKING, attempt=run.attempt, query=attempt.sql
        )
        return attempt

    def _check(self, run: _Run, attempt: QueryAttempt) -> QueryAttempt:
        verdict = self.verifier.verify(attempt.sql)
        run.verdict = verdict

        if verdict.safe:
            next_state = AgentState.EXECUTING
        elif attempt.attempt_number < run.max_retries:
            next_state = AgentState.RETRY
        else:
            next_state = AgentState.EXHAUSTED

        run.record(
            "safety_check",
            verdict.safe,
            next_state,
            attempt=attempt.attempt_number,
            safe=verdict.safe,
            issues=list(verdict.issues),
            warnings=list(verdict.warnings),
        )

        if not verdict.safe:
            logger.info(
                "agent.query_rejected",
                attempt=attempt.attempt_number,
                issues=verdict.issues,
            )
            raise SafetyRejection(attempt, verdict)

        run.accepted = attempt
        return attempt

    async def _execute(self, run: _Run, accepted: QueryAttempt) -> ExecutionOutcome:
        try:
            outcome = await self.executor.execute(accepted.sql, run.max_rows)
        except ExecutionError as exc:
            run.record(
                "execution",
                False,
                AgentState.FAILED,
                error=exc.message,
                code=exc.code,
                detail=exc.detail,
            )
            raise

        run.outcome = outcome
        run.record(
            "execution",
            True,
            AgentState.SUMMARIZING,
            row_count=outcome.row_count,
            execution_time_ms=round(outcome.elapsed_ms, 2),
        )
        return outcome

    async def _summarize(
        self, run: _Run, accepted: QueryAttempt, outcome: ExecutionOutcome
    ) -> str:
        try:
            answer = await self.summarizer.summarize(run.question, accepted.sql, outcome)
        except SummarizationError as exc:
            run.record("summarization", False, AgentState.FAILED, error=exc.message)
            raise

        run.record("summarization", True, AgentState.DONE)
        return answer

    def _failure(self, run: _Run, exc: AgentError) -> AgentFailure:
        sql = run.accepted.sql if run.accepted else None

        if isinstance(exc, RefinementExhausted):
            return AgentFailure(
                kind=FailureKind.REFINEMENT_EXHAUSTED,
                detail=exc.message,
                trace=run.trace,
                attempts=exc.attempts,
                last_issues=exc.last_issues,
            )
        if isinstance(exc, SchemaFetchError):
            kind = FailureKind.SCHEMA_FETCH
            detail: Any = exc.message
        elif isinstance(exc, GenerationError):
            kind = FailureKind.GENERATION
            detail = exc.message
        elif isinstance(exc, ExecutionError):
            kind = FailureKind.EXECUTION
            detail = {"message": exc.message, "code": exc.code, "detail": exc.detail}
        elif isinstance(exc, SummarizationError):
            kind = FailureKind.SUMMARIZATION
            detail = exc.message
        else:
            raise exc

        return AgentFailure(
            kind=kind,
            detail=detail,
            trace=run.trace,
            attempts=run.attempt,
            sql=sql,
            outcome=run.outcome,
        )
