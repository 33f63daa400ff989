"""Base class for chunk adapters.

A chunk adapter converts provider-specific raw stream chunks into the
canonical deltas consumed by the segment transformer. Within one raw
chunk the order is fixed: reasoning, content, tool calls, finish.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterable, AsyncIterator, Mapping
from typing import Any

from thinkstream.errors import ChunkFormatError
from thinkstream.schemas.deltas import DeltaEvent, Finish, Usage

logger = logging.getLogger(__name__)

_MISSING = object()


def field(obj: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a mapping or an attribute-style object."""
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    value = getattr(obj, name, _MISSING)
    return default if value is _MISSING else value


def parse_usage(raw: Any) -> Usage | None:
    """Build a Usage from OpenAI-style or LangChain-style usage data."""
    if raw is None:
        return None
    prompt = field(raw, "prompt_tokens", None)
    if prompt is None:
        prompt = field(raw, "input_tokens", 0)
    completion = field(raw, "completion_tokens", None)
    if completion is None:
        completion = field(raw, "output_tokens", 0)
    total = field(raw, "total_tokens", None)
    try:
        prompt = int(prompt or 0)
        completion = int(completion or 0)
        total = int(total) if total is not None else prompt + completion
    except (TypeError, ValueError) as e:
        raise ChunkFormatError(f"Invalid usage data: {raw!r}") from e
    return Usage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)


def text_field(obj: Any, name: str) -> str:
    """Read an optional text field, rejecting non-string values."""
    value = field(obj, name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ChunkFormatError(f"Expected string for {name!r}, got {type(value).__name__}")
    return value


class ChunkAdapter(ABC):
    """Converts raw provider chunks into canonical deltas."""

    name: str = ""

    @abstractmethod
    def adapt(self, chunk: Any) -> list[DeltaEvent]:
        """Map one raw chunk to zero or more deltas.

        Raises:
            ChunkFormatError: If the chunk does not have the expected shape.
        """

    async def stream(self, source: AsyncIterable[Any]) -> AsyncIterator[DeltaEvent]:
        """Adapt every chunk of ``source``, stopping after the first Finish."""
        async for chunk in source:
            for delta in self.adapt(chunk):
                yield delta
                if isinstance(delta, Finish):
                    return

    @staticmethod
    def for_provider(name: str) -> ChunkAdapter:
        """Return the adapter for a provider family.

        Raises:
            ValueError: If the provider family is unknown.
        """
        from thinkstream.adapters.message_chunks import MessageChunkAdapter
        from thinkstream.adapters.openai_chunks import OpenAIChunkAdapter

        adapters: dict[str, type[ChunkAdapter]] = {
            "openai": OpenAIChunkAdapter,
            "litellm": OpenAIChunkAdapter,
            "langchain": MessageChunkAdapter,
            "deepseek": MessageChunkAdapter,
            "ollama": MessageChunkAdapter,
        }
        try:
            return adapters[name.lower()]()
        except KeyError:
            raise ValueError(
                f"Unknown provider {name!r}; expected one of {sorted(adapters)}"
            ) from None
