"""Adapter for LangChain-style message chunks.

These carry answer text in ``content`` and native reasoning in
``additional_kwargs["reasoning_content"]`` (DeepSeek, Ollama). Streams of
this shape often end without an explicit finish chunk; the pipeline then
treats source exhaustion as the finish.
"""

from __future__ import annotations

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


def _content_text(content: Any) -> str:
    """Flatten string or content-block list content into text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif field(block, "type") == "text":
                parts.append(text_field(block, "text"))
        return "".join(parts)
    raise ChunkFormatError(f"Unsupported content type: {type(content).__name__}")


class MessageChunkAdapter(ChunkAdapter):
    """Reads ``content``, ``additional_kwargs`` and ``response_metadata``."""

    name = "langchain"

    def adapt(self, chunk: Any) -> list[DeltaEvent]:
        if chunk is None or isinstance(chunk, (str, bytes)):
            raise ChunkFormatError(f"Unexpected chunk: {chunk!r}", chunk)
        if field(chunk, "content", None) is None and field(chunk, "additional_kwargs") is None:
            raise ChunkFormatError("Chunk has neither content nor additional_kwargs", chunk)

        deltas: list[DeltaEvent] = []

        reasoning = text_field(field(chunk, "additional_kwargs"), "reasoning_content")
        if reasoning:
            deltas.append(ReasoningDelta(text=reasoning))

        content = _content_text(field(chunk, "content"))
        if content:
            deltas.append(TextDelta(text=content))

        tool_chunks = field(chunk, "tool_call_chunks", None)
        if tool_chunks:
            deltas.append(ToolCallDelta(payload=tool_chunks))

        metadata = field(chunk, "response_metadata")
        finish_reason = field(metadata, "finish_reason") or field(metadata, "done_reason")
        if finish_reason:
            deltas.append(
                Finish(
                    reason=str(finish_reason),
                    usage=parse_usage(field(chunk, "usage_metadata")),
                )
            )
        return deltas
