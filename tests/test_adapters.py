"""Tests for thinkstream.adapters — raw chunk to canonical delta mapping."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from thinkstream.adapters import ChunkAdapter, MessageChunkAdapter, OpenAIChunkAdapter
from thinkstream.errors import ChunkFormatError
from thinkstream.schemas.deltas import (
    DeltaType,
    Finish,
    ReasoningDelta,
    TextDelta,
    ToolCallDelta,
    Usage,
)

# ── Helpers ───────────────────────────────────────────────────


def _openai_chunk(
    content: str | None = None,
    reasoning: str | None = None,
    tool_calls: list | None = None,
    finish_reason: str | None = None,
    usage: SimpleNamespace | None = None,
) -> SimpleNamespace:
    """Build a LiteLLM/OpenAI streaming chunk-like object."""
    delta = SimpleNamespace(
        content=content, reasoning_content=reasoning, tool_calls=tool_calls, role="assistant"
    )
    choice = SimpleNamespace(delta=delta, finish_reason=finish_reason, index=0)
    return SimpleNamespace(choices=[choice], usage=usage)


async def _aiter(items):
    for item in items:
        yield item


async def _collect(adapter: ChunkAdapter, chunks: list) -> list:
    return [d async for d in adapter.stream(_aiter(chunks))]


# ── OpenAI chunks ────────────────────────────────────────────


class TestOpenAIChunkAdapter:
    def test_content_only(self):
        assert OpenAIChunkAdapter().adapt(_openai_chunk(content="hi")) == [TextDelta(text="hi")]

    def test_reasoning_content(self):
        deltas = OpenAIChunkAdapter().adapt(_openai_chunk(reasoning="hmm"))
        assert deltas == [ReasoningDelta(text="hmm")]

    def test_reasoning_alias_in_dict_chunk(self):
        chunk = {"choices": [{"delta": {"reasoning": "r"}, "finish_reason": None}]}
        assert OpenAIChunkAdapter().adapt(chunk) == [ReasoningDelta(text="r")]

    def test_fixed_order_when_fields_coexist(self):
        usage = SimpleNamespace(prompt_tokens=5, completion_tokens=7, total_tokens=12)
        chunk = _openai_chunk(
            content="c", reasoning="r", tool_calls=[{"id": "t"}],
            finish_reason="tool_calls", usage=usage,
        )
        deltas = OpenAIChunkAdapter().adapt(chunk)
        assert [d.type for d in deltas] == [
            DeltaType.REASONING, DeltaType.TEXT, DeltaType.TOOL_CALL, DeltaType.FINISH,
        ]
        assert deltas[-1] == Finish(
            reason="tool_calls",
            usage=Usage(prompt_tokens=5, completion_tokens=7, total_tokens=12),
        )

    def test_tool_call_payload_is_raw_delta(self):
        chunk = _openai_chunk(tool_calls=[{"id": "call_1"}])
        (delta,) = OpenAIChunkAdapter().adapt(chunk)
        assert isinstance(delta, ToolCallDelta)
        assert delta.payload is chunk.choices[0].delta

    def test_empty_choices_yields_nothing(self):
        assert OpenAIChunkAdapter().adapt({"choices": [], "usage": {"prompt_tokens": 1}}) == []

    def test_empty_delta_yields_nothing(self):
        assert OpenAIChunkAdapter().adapt(_openai_chunk()) == []

    @pytest.mark.parametrize("chunk", [None, "data: {}", b"x", {}, {"choices": "nope"}, 42])
    def test_malformed_chunks_raise(self, chunk):
        with pytest.raises(ChunkFormatError):
            OpenAIChunkAdapter().adapt(chunk)

    def test_non_string_content_raises(self):
        with pytest.raises(ChunkFormatError, match="content"):
            OpenAIChunkAdapter().adapt({"choices": [{"delta": {"content": 5}}]})

    def test_malformed_error_carries_chunk(self):
        with pytest.raises(ChunkFormatError) as exc_info:
            OpenAIChunkAdapter().adapt({"nothing": True})
        assert exc_info.value.chunk == {"nothing": True}


class TestAdapterStream:
    @pytest.mark.asyncio
    async def test_stops_after_finish(self):
        chunks = [
            _openai_chunk(content="a"),
            _openai_chunk(finish_reason="stop"),
            _openai_chunk(content="never"),
        ]
        deltas = await _collect(OpenAIChunkAdapter(), chunks)
        assert deltas == [TextDelta(text="a"), Finish(reason="stop")]

    @pytest.mark.asyncio
    async def test_no_further_pulls_after_finish(self):
        pulled = []

        async def source():
            for chunk in [_openai_chunk(finish_reason="stop"), _openai_chunk(content="x")]:
                pulled.append(chunk)
                yield chunk

        deltas = [d async for d in OpenAIChunkAdapter().stream(source())]
        assert len(deltas) == 1
        assert len(pulled) == 1

    @pytest.mark.asyncio
    async def test_malformed_chunk_raises_from_stream(self):
        with pytest.raises(ChunkFormatError):
            await _collect(OpenAIChunkAdapter(), [_openai_chunk(content="a"), None])


# ── LangChain-style message chunks ───────────────────────────


class TestMessageChunkAdapter:
    def test_content_and_native_reasoning(self):
        chunk = SimpleNamespace(
            content="answer",
            additional_kwargs={"reasoning_content": "why"},
            tool_call_chunks=[],
            response_metadata={},
        )
        assert MessageChunkAdapter().adapt(chunk) == [
            ReasoningDelta(text="why"), TextDelta(text="answer"),
        ]

    def test_empty_additional_kwargs(self):
        chunk = {"content": "x", "additional_kwargs": {}}
        assert MessageChunkAdapter().adapt(chunk) == [TextDelta(text="x")]

    def test_content_block_list(self):
        chunk = {"content": [{"type": "text", "text": "a"}, "b", {"type": "image"}]}
        assert MessageChunkAdapter().adapt(chunk) == [TextDelta(text="ab")]

    def test_finish_with_usage_metadata(self):
        chunk = {
            "content": "",
            "response_metadata": {"finish_reason": "stop"},
            "usage_metadata": {"input_tokens": 3, "output_tokens": 4, "total_tokens": 7},
        }
        assert MessageChunkAdapter().adapt(chunk) == [
            Finish(reason="stop", usage=Usage(prompt_tokens=3, completion_tokens=4, total_tokens=7))
        ]

    def test_ollama_done_reason(self):
        chunk = {"content": "", "response_metadata": {"done_reason": "stop"}}
        assert MessageChunkAdapter().adapt(chunk) == [Finish(reason="stop")]

    def test_tool_call_chunks(self):
        tool_chunks = [{"name": "search", "args": "{"}]
        (delta,) = MessageChunkAdapter().adapt({"content": "", "tool_call_chunks": tool_chunks})
        assert delta == ToolCallDelta(payload=tool_chunks)

    @pytest.mark.parametrize("chunk", [None, "text", {"other": 1}, {"content": 3}])
    def test_malformed_chunks_raise(self, chunk):
        with pytest.raises(ChunkFormatError):
            MessageChunkAdapter().adapt(chunk)


class TestForProvider:
    @pytest.mark.parametrize(
        ("name", "cls"),
        [
            ("openai", OpenAIChunkAdapter),
            ("LiteLLM", OpenAIChunkAdapter),
            ("deepseek", MessageChunkAdapter),
            ("ollama", MessageChunkAdapter),
            ("langchain", MessageChunkAdapter),
        ],
    )
    def test_known_providers(self, name, cls):
        assert isinstance(ChunkAdapter.for_provider(name), cls)

    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            ChunkAdapter.for_provider("carrier-pigeon")
