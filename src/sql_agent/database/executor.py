"""
Query Executor
==============

Runs accepted queries on a pooled connection with a mandatory row limit.
"""

import re
import time

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from sql_agent.errors import ExecutionError
from sql_agent.models import ExecutionOutcome
from sql_agent.ports import QueryExecutor

_LIMIT_CLAUSE = re.compile(r"\bLIMIT\b", re.IGNORECASE)


def apply_row_limit(sql: str, row_limit: int) -> str:
    """
    Bound a query to at most ``row_limit`` rows.

    A query without the word LIMIT gets ``LIMIT row_limit`` appended. Any
    other query is wrapped so the outer SELECT carries the limit, since a
    LIMIT found in the text may sit in a literal or a subquery.
    """
    if row_limit < 1:
        raise ValueError("row_limit must be a positive integer")
    query = sql.strip().rstrip(";").rstrip()
    if _LIMIT_CLAUSE.search(query):
        return f"SELECT * FROM ({query}) AS limited_query LIMIT {int(row_limit)}"
    return f"{query} LIMIT {int(row_limit)}"


def _driver_error_fields(exc: BaseException) -> tuple[str | None, str | None]:
    """Pull SQLSTATE and detail out of a wrapped driver error, when present."""
    candidates = []
    if isinstance(exc, DBAPIError):
        candidates.append(exc.orig)
        if exc.orig is not None:
            candidates.append(exc.orig.__cause__)
    candidates.append(exc.__cause__)

    code = detail = None
    for candidate in candidates:
        if candidate is None:
            continue
        code = code or getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        detail = detail or getattr(candidate, "detail", None)
    return code, detail


class DatabaseQueryExecutor(QueryExecutor):
    """Executes SQL through an explicitly passed ``AsyncEngine``."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine

    async def execute(self, sql: str, row_limit: int) -> ExecutionOutcome:
        query = apply_row_limit(sql, row_limit)
        start_time = time.perf_counter()
        try:
            # The connection goes back to the pool on every exit path; nothing
            # is committed, so the implicit transaction is rolled back.
            async with self.engine.connect() as conn:
                result = await conn.exec_driver_sql(query)
                columns = list(result.keys())
                rows = [dict(row) for row in result.mappings().fetchmany(row_limit)]
        except (SQLAlchemyError, OSError, TimeoutError) as exc:
            code, detail = _driver_error_fields(exc)
            message = str(exc.orig) if isinstance(exc, DBAPIError) and exc.orig else str(exc)
            raise ExecutionError(message, code=code, detail=detail, sql=query, cause=exc) from exc

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        return ExecutionOutcome(
            rows=rows,
            row_count=len(rows),
            elapsed_ms=elapsed_ms,
            columns=columns,
            executed_sql=query,
        )
