"""Text segmentation and cancellation helpers."""

from chunkwise.utils.cancellation import CancellationToken, check_cancelled

__all__ = ["CancellationToken", "check_cancelled"]
