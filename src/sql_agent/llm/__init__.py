"""
LLM Module
==========

Pluggable LLM interfaces for SQL generation and summarization.
"""

from sql_agent.llm.base import LLMInterface
from sql_agent.llm.mock import MockLLM
from sql_agent.llm.openai_llm import OpenAILLM
from sql_agent.llm.retry import RetryPolicy, call_with_retry

__all__ = [
    "LLMInterface",
    "MockLLM",
    "OpenAILLM",
    "RetryPolicy",
    "call_with_retry",
]
