"""Exception hierarchy for the thinkstream core.

Adapter and segmentation failures are request-scoped: the pipeline turns
them into an ``error`` lifecycle event. ``AbortedError`` is the one
exception that is not an error outcome; it marks a cancelled request.
"""

from __future__ import annotations


class ThinkStreamError(Exception):
    """Base exception for all thinkstream errors."""


class ChunkFormatError(ThinkStreamError):
    """Raised when a raw provider chunk has an unexpected shape."""

    def __init__(self, message: str, chunk: object = None) -> None:
        super().__init__(message)
        self.chunk = chunk


class SegmentationError(ThinkStreamError):
    """Raised when the segment transformer receives an unusable delta."""


class AbortedError(ThinkStreamError):
    """Raised by a cancellable chunk source once its request is cancelled."""

    def __init__(self, request_id: str = "") -> None:
        message = "Operation aborted"
        if request_id:
            message = f"Operation aborted for request {request_id}"
        super().__init__(message)
        self.request_id = request_id


class ProviderError(ThinkStreamError):
    """Raised when the upstream completion endpoint cannot be streamed."""
