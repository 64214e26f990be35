"""Base abstraction for text-completion providers."""

from abc import ABC, abstractmethod
from typing import Any


class TextCompletionProvider(ABC):
    """Abstract base class for text-completion providers.

    Completion is optional everywhere in the engine: only the Intelligent
    strategy and the Q&A benchmark consult it, and both degrade or skip
    when no provider is configured.

    Example:
        answer = await provider.complete(
            "Do these passages discuss the same topic? Answer YES or NO.",
            max_tokens=3,
        )
    """

    # Timeout cap (seconds) for a single completion
    MAX_TIMEOUT: float = 30.0

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        **kwargs: Any,
    ) -> str:
        """Generate a completion for the given prompt.

        Args:
            prompt: The user prompt
            system_prompt: Optional system prompt to set context
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            **kwargs: Implementation-specific options

        Returns:
            The completion text

        Raises:
            RuntimeError: If the provider cannot serve the request
        """

    @property
    def name(self) -> str:
        return self.__class__.__name__
