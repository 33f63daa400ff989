"""Chunk adapters from provider stream shapes to canonical deltas."""

from thinkstream.adapters.base import ChunkAdapter
from thinkstream.adapters.message_chunks import MessageChunkAdapter
from thinkstream.adapters.openai_chunks import OpenAIChunkAdapter

__all__ = ["ChunkAdapter", "MessageChunkAdapter", "OpenAIChunkAdapter"]
