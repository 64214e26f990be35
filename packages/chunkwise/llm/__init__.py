"""Text-completion provider contract."""

from .base import TextCompletionProvider

__all__ = ["TextCompletionProvider"]
