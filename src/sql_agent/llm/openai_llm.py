"""
OpenAI-Compatible LLM
=====================

LLM provider backed by ``openai.AsyncOpenAI``. Works with any endpoint that
speaks the chat-completions protocol (OpenAI, Gemini's OpenAI layer, vLLM,
Ollama, ...).
"""

import openai

from sql_agent.config import Settings
from sql_agent.llm.base import LLMInterface
from sql_agent.llm.retry import RetryPolicy, call_with_retry
from sql_agent.models import LLMResponse

# Errors worth another try; auth and bad-request errors are not.
RETRYABLE_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
)


class OpenAILLM(LLMInterface):
    """Chat-completions client with bounded transport retry."""

    def __init__(
        self,
        client: openai.AsyncOpenAI,
        model: str,
        retry_policy: RetryPolicy | None = None,
        temperature: float = 0.0,
    ) -> None:
        self.client = client
        self.model = model
        self.retry_policy = retry_policy or RetryPolicy()
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAILLM":
        """Build a client from application settings."""
        client = openai.AsyncOpenAI(
            api_key=settings.llm_api_key or None,
            base_url=settings.llm_base_url,
            timeout=settings.llm_timeout,
            # Retries are handled by call_with_retry
            max_retries=0,
        )
        return cls(
            client=client,
            model=settings.llm_model,
            retry_policy=RetryPolicy(
                max_attempts=settings.llm_retry_attempts,
                delay_seconds=settings.llm_retry_delay,
            ),
        )

    async def generate(self, prompt: str, system_prompt: str | None = None) -> LLMResponse:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        async def _call():
            return await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
            )

        completion = await call_with_retry(_call, self.retry_policy, RETRYABLE_ERRORS)

        # Some compatible endpoints return no choices; that is an empty reply
        content = completion.choices[0].message.content if completion.choices else None
        content = content or ""
        tokens = completion.usage.total_tokens if completion.usage else 0
        return LLMResponse(content=content, model=completion.model or self.model, tokens_used=tokens)

    async def close(self) -> None:
        await self.client.close()
