"""
Collaborator Ports
==================

Abstract interfaces for the external systems the agent drives. Each method is
a single round trip; implementations raise the matching ``AgentError``
subclass on failure and never return partial results.
"""

from abc import ABC, abstractmethod
from typing import Optional

from sql_agent.models import ExecutionOutcome, GeneratedQuery, SchemaSnapshot


class SchemaProvider(ABC):
    """Reads table and column metadata. Raises ``SchemaFetchError``."""

    @abstractmethod
    async def fetch_schema(self) -> SchemaSnapshot:
        pass


class QueryGenerator(ABC):
    """Turns a question into candidate SQL. Raises ``GenerationError``."""

    @abstractmethod
    async def generate(
        self,
        question: str,
        schema: SchemaSnapshot,
        previous_attempt: Optional[str] = None,
        feedback: Optional[str] = None,
    ) -> GeneratedQuery:
        """
        Generate candidate SQL.

        Args:
            question: The user's natural-language question
            schema: Tables and columns the query may use
            previous_attempt: SQL rejected on the previous attempt (retries only)
            feedback: Why it was rejected (retries only)
        """
        pass


class QueryExecutor(ABC):
    """Runs accepted SQL. Raises ``ExecutionError``."""

    @abstractmethod
    async def execute(self, sql: str, row_limit: int) -> ExecutionOutcome:
        """
        Execute a query that has passed the safety check.

        Implementations must return at most ``row_limit`` rows, whatever
        LIMIT clauses the query itself carries.
        """
        pass


class ResultSummarizer(ABC):
    """Explains results in natural language. Raises ``SummarizationError``."""

    @abstractmethod
    async def summarize(self, question: str, sql: str, outcome: ExecutionOutcome) -> str:
        pass
