"""
LLM Provider Interface
======================

The single call every model backend has to support. Generation and
summarization both go through it.
"""

from abc import ABC, abstractmethod

from sql_agent.models import LLMResponse


class LLMInterface(ABC):
    """A chat model that turns one prompt into one completion."""

    @abstractmethod
    async def generate(self, prompt: str, system_prompt: str | None = None) -> LLMResponse:
        """
        Send a prompt and wait for the completion.

        Transport failures propagate as the provider's own exceptions;
        callers wrap them into agent errors.

        Args:
            prompt: Full prompt text (schema, question, any correction feedback)
            system_prompt: Optional instructions sent ahead of the prompt

        Returns:
            LLMResponse with the completion text, model name and token usage
        """
        pass
