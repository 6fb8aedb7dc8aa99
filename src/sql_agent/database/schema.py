"""
Schema Provider
===============

Reads user tables and columns from ``information_schema``.
"""

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from sql_agent.errors import SchemaFetchError
from sql_agent.models import ColumnInfo, SchemaSnapshot
from sql_agent.ports import SchemaProvider

SCHEMA_QUERY = text(
    """
    SELECT table_name, column_name, data_type, is_nullable, column_default
    FROM information_schema.columns
    WHERE table_schema = :schema
    ORDER BY table_name, ordinal_position
    """
)


def rows_to_schema(rows) -> SchemaSnapshot:
    """Group information_schema rows by table, keeping column order."""
    schema: SchemaSnapshot = {}
    for row in rows:
        schema.setdefault(row["table_name"], []).append(
            ColumnInfo(
                name=row["column_name"],
                data_type=row["data_type"],
                nullable=row["is_nullable"] == "YES",
                default=row["column_default"],
            )
        )
    return schema


class InformationSchemaProvider(SchemaProvider):
    """Schema provider for databases exposing ``information_schema``."""

    def __init__(self, engine: AsyncEngine, schema_name: str = "public") -> None:
        self.engine = engine
        self.schema_name = schema_name

    async def fetch_schema(self) -> SchemaSnapshot:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(SCHEMA_QUERY, {"schema": self.schema_name})
                rows = result.mappings().all()
        except (SQLAlchemyError, OSError, TimeoutError) as exc:
            raise SchemaFetchError(
                f"Could not read schema '{self.schema_name}': {exc}",
                context={"schema": self.schema_name},
                cause=exc,
            ) from exc

        schema = rows_to_schema(rows)
        if not schema:
            raise SchemaFetchError(
                f"No tables found in schema '{self.schema_name}'",
                context={"schema": self.schema_name},
            )
        return schema
