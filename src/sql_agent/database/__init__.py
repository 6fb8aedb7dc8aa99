"""
Database Module
===============

Schema and execution ports over a pooled SQLAlchemy async engine.
"""

from sql_agent.database.engine import create_engine_from_settings
from sql_agent.database.executor import DatabaseQueryExecutor, apply_row_limit
from sql_agent.database.schema import InformationSchemaProvider

__all__ = [
    "create_engine_from_settings",
    "DatabaseQueryExecutor",
    "InformationSchemaProvider",
    "apply_row_limit",
]
