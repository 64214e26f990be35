#!/usr/bin/env python3
"""
Immutable chunking options value object.

Options are validated on construction so that invalid combinations are
rejected before any chunking begins. Values are never silently clamped.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, TypeVar

from chunkwise.domain.exceptions import ConfigurationError, OverlapConfigurationError

T = TypeVar("T")

DEFAULT_MAX_CHUNK_SIZE = 1024
DEFAULT_OVERLAP_SIZE = 128


class ChunkingStrategyType(str, Enum):
    """Closed set of chunking strategies."""

    AUTO = "Auto"
    SMART = "Smart"
    INTELLIGENT = "Intelligent"
    SEMANTIC = "Semantic"
    PARAGRAPH = "Paragraph"
    FIXED_SIZE = "FixedSize"
    HIERARCHICAL = "Hierarchical"
    PAGE_LEVEL = "PageLevel"

    @classmethod
    def from_name(cls, name: str) -> "ChunkingStrategyType | None":
        """Case-insensitive lookup; returns None for names outside the closed set."""
        lowered = name.strip().lower()
        for member in cls:
            if member.value.lower() == lowered:
                return member
        return None


@dataclass(frozen=True)
class ChunkingOptions:
    """
    Options controlling one chunking pass.

    ``max_chunk_size`` and ``overlap_size`` are measured in characters.
    ``strategy_options`` carries strategy-specific settings (for example
    ``MinParagraphLength`` for Paragraph); ``custom_properties`` is copied
    onto produced chunks by the enrichment step.
    """

    strategy: str | ChunkingStrategyType = ChunkingStrategyType.AUTO
    max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE
    overlap_size: int = DEFAULT_OVERLAP_SIZE
    preserve_structure: bool = True
    preserve_paragraphs: bool = True
    preserve_sentences: bool = True
    max_heading_level: int = 3
    strategy_options: dict[str, Any] = field(default_factory=dict)
    custom_properties: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate options after initialization."""
        if not self.strategy_name:
            raise ConfigurationError("strategy cannot be empty", {"option": "strategy"})

        if isinstance(self.max_chunk_size, bool) or not isinstance(self.max_chunk_size, int):
            raise ConfigurationError(
                f"max_chunk_size must be an integer, got {type(self.max_chunk_size).__name__}",
                {"option": "max_chunk_size", "value": self.max_chunk_size},
            )

        if self.max_chunk_size <= 0:
            raise ConfigurationError(
                f"max_chunk_size must be positive, got {self.max_chunk_size}",
                {"option": "max_chunk_size", "value": self.max_chunk_size},
            )

        if isinstance(self.overlap_size, bool) or not isinstance(self.overlap_size, int):
            raise ConfigurationError(
                f"overlap_size must be an integer, got {type(self.overlap_size).__name__}",
                {"option": "overlap_size", "value": self.overlap_size},
            )

        if self.overlap_size < 0:
            raise ConfigurationError(
                f"overlap_size cannot be negative, got {self.overlap_size}",
                {"option": "overlap_size", "value": self.overlap_size},
            )

        if self.overlap_size >= self.max_chunk_size:
            raise OverlapConfigurationError(self.overlap_size, self.max_chunk_size)

        if not 1 <= self.max_heading_level <= 6:
            raise ConfigurationError(
                f"max_heading_level must be between 1 and 6, got {self.max_heading_level}",
                {"option": "max_heading_level", "value": self.max_heading_level},
            )

        if not isinstance(self.strategy_options, dict):
            raise ConfigurationError("strategy_options must be a mapping", {"option": "strategy_options"})

        if not isinstance(self.custom_properties, dict):
            raise ConfigurationError("custom_properties must be a mapping", {"option": "custom_properties"})

    @property
    def strategy_name(self) -> str:
        """Strategy as a plain string."""
        if isinstance(self.strategy, ChunkingStrategyType):
            return self.strategy.value
        return str(self.strategy).strip()

    @property
    def effective_chunk_size(self) -> int:
        """Room left for new content once the overlap window is reserved."""
        return self.max_chunk_size - self.overlap_size

    @property
    def uses_default_sizes(self) -> bool:
        """True when the caller kept the default size and overlap."""
        return self.max_chunk_size == DEFAULT_MAX_CHUNK_SIZE and self.overlap_size == DEFAULT_OVERLAP_SIZE

    def get_strategy_option(self, key: str, default: T) -> T:
        """
        Read a strategy option, falling back to ``default`` on a missing key.

        Raises:
            ConfigurationError: If the stored value has the wrong type
        """
        if key not in self.strategy_options:
            return default

        value = self.strategy_options[key]
        if isinstance(default, bool):
            if isinstance(value, bool):
                return value  # type: ignore[return-value]
        elif isinstance(default, float) and isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)  # type: ignore[return-value]
        elif isinstance(default, int) and isinstance(value, int) and not isinstance(value, bool):
            return value  # type: ignore[return-value]
        elif default is None or isinstance(value, type(default)):
            return value  # type: ignore[no-any-return]

        raise ConfigurationError(
            f"Strategy option '{key}' expects {type(default).__name__}, got {type(value).__name__}",
            {"option": f"strategy_options.{key}", "value": value},
        )

    def with_sizes(self, max_chunk_size: int, overlap_size: int) -> "ChunkingOptions":
        """Return a copy with new size and overlap (validated again)."""
        return replace(self, max_chunk_size=max_chunk_size, overlap_size=overlap_size)

    def with_strategy(self, strategy: str | ChunkingStrategyType) -> "ChunkingOptions":
        """Return a copy targeting a different strategy."""
        return replace(self, strategy=strategy)

    def to_dict(self) -> dict[str, Any]:
        """Convert options to a dictionary."""
        return {
            "strategy": self.strategy_name,
            "max_chunk_size": self.max_chunk_size,
            "overlap_size": self.overlap_size,
            "preserve_structure": self.preserve_structure,
            "preserve_paragraphs": self.preserve_paragraphs,
            "preserve_sentences": self.preserve_sentences,
            "max_heading_level": self.max_heading_level,
            "strategy_options": dict(self.strategy_options),
            "custom_properties": dict(self.custom_properties),
        }
