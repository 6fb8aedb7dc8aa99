"""
Mock LLM
========

Mock LLM implementation for testing and offline demos.
"""

from sql_agent.llm.base import LLMInterface
from sql_agent.models import LLMResponse


class MockLLM(LLMInterface):
    """
    Mock LLM for demonstration and testing purposes.

    In production, use OpenAILLM against a real endpoint.
    """

    def __init__(
        self,
        responses: dict[str, list[str]] | None = None,
        default: str = "SELECT * FROM unknown_table",
    ) -> None:
        """
        Initialize with canned responses.

        Args:
            responses: Dict mapping prompt substrings to a list of outputs.
                       Each output is returned in sequence (for testing correction).
            default: Output returned when no key matches the prompt
        """
        self.responses = responses or {}
        self.default = default
        self.call_counts: dict[str, int] = {}
        self.prompts: list[str] = []

    async def generate(self, prompt: str, system_prompt: str | None = None) -> LLMResponse:
        """
        Generate a mock response.

        Keys are matched against the question line first, so text that only
        appears in the schema or feedback sections does not trigger a match.
        """
        self.prompts.append(prompt)
        question = _question_line(prompt)

        for key, outputs in self.responses.items():
            if key.lower() in question.lower():
                count = self.call_counts.get(key, 0)
                self.call_counts[key] = count + 1

                # Return successive outputs (simulating correction)
                index = min(count, len(outputs) - 1)
                return LLMResponse(content=outputs[index], model="mock-llm-v1")

        return LLMResponse(content=self.default, model="mock-llm-v1")

    def reset(self) -> None:
        """Reset call counts and recorded prompts for fresh test runs."""
        self.call_counts = {}
        self.prompts = []


def _question_line(prompt: str) -> str:
    for line in prompt.splitlines():
        if line.startswith(("User Question:", "Question:")):
            return line
    return prompt
