"""Adapter for OpenAI-compatible ``chat.completion.chunk`` objects.

Works with the OpenAI SDK, LiteLLM's streaming wrapper, and plain dicts
decoded from an SSE stream.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from thinkstream.adapters.base import ChunkAdapter, field, parse_usage, text_field
from thinkstream.errors import ChunkFormatError
from thinkstream.schemas.deltas import (
    DeltaEvent,
    Finish,
    ReasoningDelta,
    TextDelta,
    ToolCallDelta,
)


class OpenAIChunkAdapter(ChunkAdapter):
    """Reads ``choices[0].delta`` and ``choices[0].finish_reason``."""

    name = "openai"

    def adapt(self, chunk: Any) -> list[DeltaEvent]:
        if chunk is None or isinstance(chunk, (str, bytes)):
            raise ChunkFormatError(f"Unexpected chunk: {chunk!r}", chunk)

        choices = field(chunk, "choices", None)
        if choices is None or isinstance(choices, (str, bytes, Mapping)) or not isinstance(
            choices, Sequence
        ):
            raise ChunkFormatError("Chunk has no choices list", chunk)
        if not choices:
            # Usage-only trailer sent after the finish chunk
            return []

        choice = choices[0]
        delta = field(choice, "delta", None)
        deltas: list[DeltaEvent] = []

        reasoning = text_field(delta, "reasoning_content") or text_field(delta, "reasoning")
        if reasoning:
            deltas.append(ReasoningDelta(text=reasoning))

        content = text_field(delta, "content")
        if content:
            deltas.append(TextDelta(text=content))

        tool_calls = field(delta, "tool_calls", None)
        if tool_calls:
            deltas.append(ToolCallDelta(payload=delta))

        finish_reason = field(choice, "finish_reason", None)
        if finish_reason:
            deltas.append(
                Finish(reason=str(finish_reason), usage=parse_usage(field(chunk, "usage")))
            )
        return deltas
