"""
Unit Tests for Database Collaborators
=====================================

Row limiting, schema grouping and execution against an in-memory SQLite
database through the same async engine API used for PostgreSQL.
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from sql_agent.config import Settings
from sql_agent.database import (
    DatabaseQueryExecutor,
    InformationSchemaProvider,
    apply_row_limit,
    create_engine_from_settings,
)
from sql_agent.database.schema import rows_to_schema
from sql_agent.errors import ExecutionError, SchemaFetchError


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine seeded with a users table."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.exec_driver_sql(
            "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, email TEXT)"
        )
        await conn.exec_driver_sql(
            "INSERT INTO users (name, email) VALUES "
            "('alice', 'alice@example.com'), ('bob', NULL), ('carol', 'carol@example.com')"
        )
    yield engine
    await engine.dispose()


class TestApplyRowLimit:
    """Tests for apply_row_limit."""

    def test_appends_limit(self) -> None:
        assert apply_row_limit("SELECT * FROM users", 100) == "SELECT * FROM users LIMIT 100"

    def test_strips_trailing_semicolon(self) -> None:
        assert apply_row_limit("SELECT * FROM users;  ", 5) == "SELECT * FROM users LIMIT 5"

    def test_existing_limit_wrapped(self) -> None:
        """Test that a query mentioning LIMIT is bounded by an outer LIMIT."""
        sql = "SELECT * FROM users limit 10;"
        assert apply_row_limit(sql, 100) == (
            "SELECT * FROM (SELECT * FROM users limit 10) AS limited_query LIMIT 100"
        )

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT id FROM tickets WHERE note = 'over limit'",
            "SELECT id FROM tickets WHERE id NOT IN (SELECT id FROM tickets LIMIT 1)",
        ],
    )
    def test_inner_limit_does_not_count(self, sql: str) -> None:
        """Test that LIMIT in a literal or subquery still gets an outer limit."""
        limited = apply_row_limit(sql, 5)
        assert limited.startswith("SELECT * FROM (")
        assert limited.endswith(") AS limited_query LIMIT 5")

    def test_limit_in_identifier_does_not_count(self) -> None:
        """Test that only a whole-word LIMIT counts."""
        sql = "SELECT credit_limit FROM accounts"
        assert apply_row_limit(sql, 3) == "SELECT credit_limit FROM accounts LIMIT 3"

    @pytest.mark.parametrize("row_limit", [0, -1])
    def test_invalid_limit(self, row_limit: int) -> None:
        with pytest.raises(ValueError):
            apply_row_limit("SELECT 1", row_limit)


class TestRowsToSchema:
    """Tests for grouping information_schema rows."""

    def test_groups_by_table_in_order(self) -> None:
        rows = [
            {"table_name": "orders", "column_name": "id", "data_type": "integer",
             "is_nullable": "NO", "column_default": None},
            {"table_name": "orders", "column_name": "note", "data_type": "text",
             "is_nullable": "YES", "column_default": "''::text"},
            {"table_name": "users", "column_name": "id", "data_type": "integer",
             "is_nullable": "NO", "column_default": None},
        ]
        schema = rows_to_schema(rows)

        assert list(schema) == ["orders", "users"]
        assert [c.name for c in schema["orders"]] == ["id", "note"]
        assert schema["orders"][0].nullable is False
        assert schema["orders"][1].nullable is True
        assert schema["orders"][1].default == "''::text"

    def test_no_rows(self) -> None:
        assert rows_to_schema([]) == {}


class TestDatabaseQueryExecutor:
    """Tests for executing accepted queries."""

    @pytest.mark.asyncio
    async def test_rows_returned_as_dicts(self, engine) -> None:
        outcome = await DatabaseQueryExecutor(engine).execute(
            "SELECT id, name FROM users ORDER BY id", row_limit=100
        )

        assert outcome.row_count == 3
        assert outcome.columns == ["id", "name"]
        assert outcome.rows[0] == {"id": 1, "name": "alice"}
        assert outcome.elapsed_ms >= 0
        assert outcome.executed_sql == "SELECT id, name FROM users ORDER BY id LIMIT 100"

    @pytest.mark.asyncio
    async def test_row_limit_applied(self, engine) -> None:
        """Test that the row limit caps the result."""
        outcome = await DatabaseQueryExecutor(engine).execute("SELECT name FROM users", row_limit=2)
        assert outcome.row_count == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT id FROM tickets WHERE note = 'over limit'",
            "SELECT id FROM tickets WHERE id NOT IN (SELECT id FROM tickets LIMIT 1)",
            "SELECT id FROM tickets ORDER BY id LIMIT 40",
        ],
    )
    async def test_row_limit_holds_when_query_mentions_limit(self, engine, sql: str) -> None:
        """Test that LIMIT text elsewhere in the query cannot lift the row limit."""
        values = ", ".join(f"({n}, 'over limit')" for n in range(1, 51))
        async with engine.begin() as conn:
            await conn.exec_driver_sql("CREATE TABLE tickets (id INTEGER PRIMARY KEY, note TEXT)")
            await conn.exec_driver_sql(f"INSERT INTO tickets (id, note) VALUES {values}")

        outcome = await DatabaseQueryExecutor(engine).execute(sql, row_limit=5)

        assert outcome.row_count == 5
        assert outcome.executed_sql.endswith("LIMIT 5")

    @pytest.mark.asyncio
    async def test_empty_result(self, engine) -> None:
        outcome = await DatabaseQueryExecutor(engine).execute(
            "SELECT name FROM users WHERE id > 100", row_limit=10
        )
        assert outcome.rows == []
        assert outcome.row_count == 0

    @pytest.mark.asyncio
    async def test_database_error_wrapped(self, engine) -> None:
        """Test that driver errors become ExecutionError with the executed SQL."""
        with pytest.raises(ExecutionError) as exc_info:
            await DatabaseQueryExecutor(engine).execute("SELECT * FROM missing", row_limit=5)

        error = exc_info.value
        assert "no such table" in error.message
        assert error.sql == "SELECT * FROM missing LIMIT 5"
        assert error.cause is not None

    @pytest.mark.asyncio
    async def test_connection_reusable_after_error(self, engine) -> None:
        """Test that a failed query does not poison the pool."""
        executor = DatabaseQueryExecutor(engine)
        with pytest.raises(ExecutionError):
            await executor.execute("SELECT * FROM missing", row_limit=5)

        outcome = await executor.execute("SELECT COUNT(*) AS n FROM users", row_limit=1)
        assert outcome.rows == [{"n": 3}]


class TestInformationSchemaProvider:
    """Tests for schema extraction failures."""

    @pytest.mark.asyncio
    async def test_unreadable_catalog(self, engine) -> None:
        """Test that a missing information_schema is a SchemaFetchError."""
        provider = InformationSchemaProvider(engine, schema_name="public")

        with pytest.raises(SchemaFetchError) as exc_info:
            await provider.fetch_schema()

        assert exc_info.value.context == {"schema": "public"}


class TestEngineFactory:
    """Tests for create_engine_from_settings."""

    def test_engine_from_settings(self) -> None:
        settings = Settings(DATABASE_URL="postgresql+asyncpg://app:secret@db:5432/shop")
        engine = create_engine_from_settings(settings)

        assert engine.url.drivername == "postgresql+asyncpg"
        assert engine.url.database == "shop"
        assert engine.pool.size() == settings.db_pool_size
