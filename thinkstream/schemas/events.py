"""Lifecycle event schemas delivered to the caller's sink.

Events are emitted in strict arrival order for one request. The ``type``
values are the wire names consumed by the message-store collaborator.
"""

from __future__ import annotations

import time
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from thinkstream.schemas.deltas import Usage


class LifecycleEventType(StrEnum):
    """Types of lifecycle events emitted by the response pipeline."""

    RESPONSE_CREATED = "response-created"
    THINKING_DELTA = "thinking-delta"
    THINKING_COMPLETE = "thinking-complete"
    TEXT_DELTA = "text-delta"
    TEXT_COMPLETE = "text-complete"
    BLOCK_COMPLETE = "block-complete"
    ERROR = "error"


class ErrorInfo(BaseModel):
    """Serializable description of a request-scoped failure."""

    message: str = Field(description="Human-readable error message")
    kind: str = Field(default="", description="Exception class name")

    @classmethod
    def from_exception(cls, error: BaseException) -> ErrorInfo:
        return cls(message=str(error) or type(error).__name__, kind=type(error).__name__)


class CompletedResponse(BaseModel):
    """Final accumulated response attached to block-complete."""

    text: str = Field(default="", description="Full answer text")
    thinking: str = Field(default="", description="Full reasoning text")
    finish_reason: str | None = Field(default=None, description="Provider finish_reason")
    usage: Usage | None = Field(default=None, description="Token usage, when reported")


class _EventBase(BaseModel):
    timestamp: float = Field(
        default_factory=time.time,
        description="Unix timestamp when the event was emitted",
    )


class ResponseCreated(_EventBase):
    type: Literal[LifecycleEventType.RESPONSE_CREATED] = LifecycleEventType.RESPONSE_CREATED


class ThinkingDelta(_EventBase):
    type: Literal[LifecycleEventType.THINKING_DELTA] = LifecycleEventType.THINKING_DELTA
    text: str = Field(description="Reasoning text fragment")
    elapsed_ms: int = Field(ge=0, description="Milliseconds since the first token")


class ThinkingComplete(_EventBase):
    type: Literal[LifecycleEventType.THINKING_COMPLETE] = LifecycleEventType.THINKING_COMPLETE
    text: str = Field(description="All reasoning text for the request")
    elapsed_ms: int = Field(ge=0, description="Milliseconds since the first token")


class TextDeltaEvent(_EventBase):
    type: Literal[LifecycleEventType.TEXT_DELTA] = LifecycleEventType.TEXT_DELTA
    text: str = Field(description="Answer text fragment")


class TextComplete(_EventBase):
    type: Literal[LifecycleEventType.TEXT_COMPLETE] = LifecycleEventType.TEXT_COMPLETE
    text: str = Field(description="All answer text for the request")


class BlockComplete(_EventBase):
    type: Literal[LifecycleEventType.BLOCK_COMPLETE] = LifecycleEventType.BLOCK_COMPLETE
    response: CompletedResponse | None = Field(
        default=None, description="Accumulated response, when available"
    )


class ErrorEvent(_EventBase):
    type: Literal[LifecycleEventType.ERROR] = LifecycleEventType.ERROR
    error: ErrorInfo = Field(description="The failure that halted the request")


LifecycleEvent = Annotated[
    ResponseCreated
    | ThinkingDelta
    | ThinkingComplete
    | TextDeltaEvent
    | TextComplete
    | BlockComplete
    | ErrorEvent,
    Field(discriminator="type"),
]
