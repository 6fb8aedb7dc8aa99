"""
Unit Tests for the HTTP API
===========================

Requests go through the full middleware stack with the agent's
collaborators replaced by in-memory fakes.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from api.main import create_app
from fakes import FakeExecutor, FakeSchemaProvider, FakeSummarizer, ScriptedGenerator
from sql_agent.agent import SQLQueryAgent
from sql_agent.config import Settings
from sql_agent.errors import ExecutionError

SAFE_SQL = "SELECT COUNT(*) AS count FROM users"


def build_agent(script: list, executor: FakeExecutor | None = None) -> SQLQueryAgent:
    return SQLQueryAgent(
        schema_provider=FakeSchemaProvider(),
        generator=ScriptedGenerator(script),
        executor=executor or FakeExecutor(),
        summarizer=FakeSummarizer(),
    )


@pytest.fixture
def app():
    """Application with a fake-backed agent and no database."""
    app = create_app(Settings(ENVIRONMENT="test", LOG_LEVEL="WARNING"))
    app.state.agent = build_agent([SAFE_SQL])
    return app


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


class TestAskEndpoint:
    """Tests for POST /api/v1/ask."""

    @pytest.mark.asyncio
    async def test_success(self, client: AsyncClient) -> None:
        """Test a successful answer without the trace."""
        response = await client.post("/api/v1/ask", json={"question": "How many users are there?"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["answer"] == "There are 2 users."
        assert body["query"] == SAFE_SQL
        assert body["data"]["rows"] == [{"count": 2}]
        assert body["data"]["row_count"] == 1
        assert body["metadata"]["attempts"] == 1
        assert body["trace"] is None
        assert body["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_debug_includes_trace(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/ask", json={"question": "How many users are there?", "debug": True}
        )

        steps = [entry["step"] for entry in response.json()["trace"]]
        assert steps[0] == "schema_extraction"
        assert steps[-1] == "summarization"

    @pytest.mark.asyncio
    async def test_exhausted_is_400(self, app, client: AsyncClient) -> None:
        """Test that a refinement failure returns the reason, issues and trace."""
        app.state.agent = build_agent(["DROP TABLE users"])

        response = await client.post(
            "/api/v1/ask", json={"question": "Drop the users", "max_retries": 2}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["kind"] == "refinement_exhausted"
        assert body["error"] == "Could not generate a safe query after multiple attempts"
        assert body["attempts"] == 2
        assert "Destructive keyword detected: DROP" in body["last_issues"]
        assert body["query"] is None
        assert body["trace"]

    @pytest.mark.asyncio
    async def test_execution_failure_keeps_query(self, app, client: AsyncClient) -> None:
        executor = FakeExecutor(error=ExecutionError("permission denied", code="42501"))
        app.state.agent = build_agent([SAFE_SQL], executor=executor)

        response = await client.post("/api/v1/ask", json={"question": "How many users?"})

        assert response.status_code == 400
        body = response.json()
        assert body["kind"] == "execution"
        assert body["query"] == SAFE_SQL
        assert body["details"]["code"] == "42501"

    @pytest.mark.asyncio
    async def test_max_rows_forwarded(self, app, client: AsyncClient) -> None:
        executor = FakeExecutor()
        app.state.agent = build_agent([SAFE_SQL], executor=executor)

        await client.post("/api/v1/ask", json={"question": "How many users?", "max_rows": 25})

        assert executor.calls == [(SAFE_SQL, 25)]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"question": ""},
            {"question": "q", "max_retries": 0},
            {"question": "q", "max_rows": 0},
        ],
    )
    async def test_invalid_body(self, client: AsyncClient, payload: dict) -> None:
        response = await client.post("/api/v1/ask", json=payload)
        assert response.status_code == 422


class TestServiceEndpoints:
    """Tests for the index, health and metrics endpoints."""

    @pytest.mark.asyncio
    async def test_index(self, client: AsyncClient) -> None:
        response = await client.get("/")
        assert response.status_code == 200
        assert "POST /api/v1/ask" in response.json()["endpoints"]

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["agent"] is True

    @pytest.mark.asyncio
    async def test_ready_without_database(self, client: AsyncClient) -> None:
        response = await client.get("/ready")
        body = response.json()
        assert body["ready"] is False
        assert body["checks"]["database"] is False

    @pytest.mark.asyncio
    async def test_live(self, client: AsyncClient) -> None:
        response = await client.get("/live")
        assert response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_metrics_after_question(self, client: AsyncClient) -> None:
        await client.post("/api/v1/ask", json={"question": "How many users?"})

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "sql_agent_questions_total" in response.text
        assert "sql_agent_generation_attempts" in response.text

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client: AsyncClient) -> None:
        response = await client.get("/live", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"
        assert "X-Response-Time-Ms" in response.headers
