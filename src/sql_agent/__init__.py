"""
SQL Query Agent
===============

Natural-language questions answered from a database, with every generated
query passed through a safety gate before it runs.
"""

from sql_agent.agent import AgentState, SQLQueryAgent
from sql_agent.errors import (
    AgentError,
    ExecutionError,
    GenerationError,
    RefinementExhausted,
    SafetyRejection,
    SchemaFetchError,
    SummarizationError,
)
from sql_agent.generation import LLMQueryGenerator, LLMResultSummarizer
from sql_agent.llm import LLMInterface, MockLLM, OpenAILLM
from sql_agent.models import (
    AgentFailure,
    AgentResult,
    AgentSuccess,
    ColumnInfo,
    ExecutionOutcome,
    FailureKind,
    QueryAttempt,
    SafetyVerdict,
    TraceEntry,
)
from sql_agent.verifiers import SafetyVerifier, check_query_safety

__version__ = "0.1.0"

__all__ = [
    # Models
    "AgentFailure",
    "AgentResult",
    "AgentSuccess",
    "ColumnInfo",
    "ExecutionOutcome",
    "FailureKind",
    "QueryAttempt",
    "SafetyVerdict",
    "TraceEntry",
    # Errors
    "AgentError",
    "SchemaFetchError",
    "GenerationError",
    "SafetyRejection",
    "RefinementExhausted",
    "ExecutionError",
    "SummarizationError",
    # Agent
    "AgentState",
    "SQLQueryAgent",
    "LLMQueryGenerator",
    "LLMResultSummarizer",
    # Verifiers
    "SafetyVerifier",
    "check_query_safety",
    # LLM
    "LLMInterface",
    "MockLLM",
    "OpenAILLM",
]
