"""
Connection Pool
===============

Builds the SQLAlchemy ``AsyncEngine`` shared by the schema provider and the
executor. The engine is created once at start-up and handed to each
collaborator explicitly; callers own its lifetime and must ``dispose()`` it.
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from sql_agent.config import Settings


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Create a pooled async engine.

    pool_pre_ping discards connections the server has closed, so a long idle
    period does not surface as an execution error on the next request.
    """
    url = make_url(settings.database_url)
    connect_args = {}
    if url.get_driver_name() == "asyncpg":
        connect_args["command_timeout"] = settings.db_command_timeout

    return create_async_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_recycle=3600,
        connect_args=connect_args,
    )
