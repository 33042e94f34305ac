"""LLM protocol for dependency injection."""
from typing import Protocol, AsyncIterator, runtime_checkable


@runtime_checkable
class LLMProtocol(Protocol):
    """Protocol for generative text service."""

    async def generate(self, prompt: str, max_tokens: int | None = None) -> str:
        """Generate a complete response.

        Args:
            prompt: Prompt text.
            max_tokens: Output budget (client default if None).

        Returns:
            Generated text.
        """
        ...

    def generate_stream(
        self, prompt: str, max_tokens: int | None = None
    ) -> AsyncIterator[str]:
        """Stream a response token by token.

        Closing the iterator must release the underlying request.

        Args:
            prompt: Prompt text.
            max_tokens: Output budget (client default if None).

        Yields:
            Response tokens.
        """
        ...
