"""
Pytest Fixtures
===============

Shared fixtures for SQL query agent tests.
"""

import pytest

from fakes import SAMPLE_SCHEMA, FakeExecutor, FakeSchemaProvider, FakeSummarizer, ScriptedGenerator
from sql_agent.agent import SQLQueryAgent
from sql_agent.models import SchemaSnapshot
from sql_agent.verifiers.safety import SafetyVerifier


@pytest.fixture
def sample_schema() -> SchemaSnapshot:
    """Return the sample database schema."""
    return SAMPLE_SCHEMA


@pytest.fixture
def safety_verifier() -> SafetyVerifier:
    """Create a SafetyVerifier instance."""
    return SafetyVerifier()


@pytest.fixture
def schema_provider() -> FakeSchemaProvider:
    return FakeSchemaProvider()


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def summarizer() -> FakeSummarizer:
    return FakeSummarizer()


@pytest.fixture
def make_agent(schema_provider, executor, summarizer):
    """Factory building an agent around a scripted generator."""

    def _make(script: list, max_retries: int = 3, **overrides) -> SQLQueryAgent:
        return SQLQueryAgent(
            schema_provider=overrides.get("schema_provider", schema_provider),
            generator=overrides.get("generator", ScriptedGenerator(script)),
            executor=overrides.get("executor", executor),
            summarizer=overrides.get("summarizer", summarizer),
            max_retries=max_retries,
        )

    return _make


@pytest.fixture
def safe_sql() -> str:
    """Return a safe SELECT query."""
    return "SELECT COUNT(*) AS count FROM users"


@pytest.fixture
def unsafe_sql() -> str:
    """Return a destructive query."""
    return "DELETE FROM users"
