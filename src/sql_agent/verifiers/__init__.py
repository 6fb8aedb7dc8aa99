"""
Verifiers Module
================

Safety gate applied to every generated query before execution.
"""

from sql_agent.verifiers.safety import (
    DESTRUCTIVE_KEYWORDS,
    SafetyVerifier,
    check_query_safety,
    has_row_limit,
    violated_rules,
)

__all__ = [
    "DESTRUCTIVE_KEYWORDS",
    "SafetyVerifier",
    "check_query_safety",
    "has_row_limit",
    "violated_rules",
]
