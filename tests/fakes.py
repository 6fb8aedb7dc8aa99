"""
Collaborator Fakes
==================

In-memory stand-ins for the agent's schema, generation, execution and
summarization ports.
"""

from dataclasses import dataclass
from typing import Optional

from sql_agent.errors import AgentError
from sql_agent.models import ColumnInfo, ExecutionOutcome, GeneratedQuery, SchemaSnapshot
from sql_agent.ports import QueryExecutor, QueryGenerator, ResultSummarizer, SchemaProvider

SAMPLE_SCHEMA: SchemaSnapshot = {
    "orders": [
        ColumnInfo("id", "integer", nullable=False, default="nextval('orders_id_seq'::regclass)"),
        ColumnInfo("user_id", "integer", nullable=False),
        ColumnInfo("amount", "numeric"),
        ColumnInfo("created_at", "timestamp without time zone", default="now()"),
    ],
    "users": [
        ColumnInfo("id", "integer", nullable=False),
        ColumnInfo("name", "text", nullable=False),
        ColumnInfo("email", "text"),
        ColumnInfo("updated_at", "timestamp without time zone"),
    ],
}


class FakeSchemaProvider(SchemaProvider):
    """Returns a fixed schema, or raises the configured error."""

    def __init__(self, schema: SchemaSnapshot | None = None, error: AgentError | None = None):
        self.schema = SAMPLE_SCHEMA if schema is None else schema
        self.error = error
        self.calls = 0

    async def fetch_schema(self) -> SchemaSnapshot:
        self.calls += 1
        if self.error:
            raise self.error
        return self.schema


@dataclass
class GenerateCall:
    question: str
    previous_attempt: Optional[str]
    feedback: Optional[str]


class ScriptedGenerator(QueryGenerator):
    """Returns scripted SQL in order; an AgentError in the script is raised."""

    def __init__(self, script: list):
        self.script = list(script)
        self.calls: list[GenerateCall] = []

    async def generate(self, question, schema, previous_attempt=None, feedback=None):
        self.calls.append(GenerateCall(question, previous_attempt, feedback))
        item = self.script[min(len(self.calls), len(self.script)) - 1]
        if isinstance(item, AgentError):
            raise item
        return GeneratedQuery(sql=item, raw_output=item, model="scripted")


class FakeExecutor(QueryExecutor):
    """Records executed SQL and returns a canned outcome."""

    def __init__(self, outcome: ExecutionOutcome | None = None, error: AgentError | None = None):
        self.outcome = outcome or ExecutionOutcome(
            rows=[{"count": 2}],
            row_count=1,
            elapsed_ms=1.5,
            columns=["count"],
        )
        self.error = error
        self.calls: list[tuple[str, int]] = []

    async def execute(self, sql: str, row_limit: int) -> ExecutionOutcome:
        self.calls.append((sql, row_limit))
        if self.error:
            raise self.error
        return self.outcome


class FakeSummarizer(ResultSummarizer):
    """Returns a fixed answer, or raises the configured error."""

    def __init__(self, answer: str = "There are 2 users.", error: AgentError | None = None):
        self.answer = answer
        self.error = error
        self.calls: list[tuple[str, str, ExecutionOutcome]] = []

    async def summarize(self, question, sql, outcome) -> str:
        self.calls.append((question, sql, outcome))
        if self.error:
            raise self.error
        return self.answer

