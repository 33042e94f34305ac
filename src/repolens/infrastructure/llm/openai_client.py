
import logging
from typing import AsyncIterator

from openai import AsyncOpenAI, OpenAIError

from ...exceptions import GenerationError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a precise assistant for software engineers. "
    "Answer in Markdown and only make claims the given code supports."
)


class OpenAICompatibleClient:
    """LLM client for OpenAI-compatible APIs (Ollama, vLLM, OpenAI)."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434/v1",
        model: str = "qwen2.5-coder:7b",
        api_key: str = "ollama",
        max_tokens: int = 2000,
        temperature: float = 0.3,
        timeout: float = 120.0,
    ):
        """Initialize client.

        Args:
            base_url: API URL.
            model: Model name.
            api_key: API key (any non-empty string for Ollama).
            max_tokens: Default max response tokens.
            temperature: Sampling temperature.
            timeout: Request timeout in seconds.
        """
        self._client = AsyncOpenAI(base_url=base_url, api_key=api_key, timeout=timeout)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    def _messages(self, prompt: str) -> list[dict]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    async def generate(self, prompt: str, max_tokens: int | None = None) -> str:
        """Generate a complete response.

        Raises:
            GenerationError: On API failure.
        """
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=self._messages(prompt),
                max_tokens=max_tokens or self._max_tokens,
                temperature=self._temperature,
            )
        except OpenAIError as e:
            raise GenerationError(f"Completion failed: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def generate_stream(
        self, prompt: str, max_tokens: int | None = None
    ) -> AsyncIterator[str]:
        """Stream a response.

        Closing the iterator closes the HTTP response.

        Yields:
            Response tokens.

        Raises:
            GenerationError: On API failure, before or during streaming.
        """
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=self._messages(prompt),
                max_tokens=max_tokens or self._max_tokens,
                temperature=self._temperature,
                stream=True,
            )
        except OpenAIError as e:
            raise GenerationError(f"Stream request failed: {e}") from e

        try:
            async for chunk in response:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        except OpenAIError as e:
            logger.error(f"[stream] Stream error: {e}")
            raise GenerationError(f"Stream interrupted: {e}") from e
        finally:
            await response.close()
