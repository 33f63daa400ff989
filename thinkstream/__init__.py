"""thinkstream — streaming reasoning/answer segmentation for LLM output."""

__version__ = "0.1.0"

from thinkstream.adapters import ChunkAdapter, MessageChunkAdapter, OpenAIChunkAdapter
from thinkstream.cancellation import CancellationRegistry, CancelToken, cancellable
from thinkstream.errors import (
    AbortedError,
    ChunkFormatError,
    ProviderError,
    SegmentationError,
    ThinkStreamError,
)
from thinkstream.pipeline import ResponseEventPipeline
from thinkstream.segmenter import (
    SegmentationState,
    SegmentTransformer,
    extract_thinking_and_response,
    segment_delta,
    should_enable_thinking_mode,
)
from thinkstream.tags import TagDictionary, find_potential_start

__all__ = [
    "AbortedError",
    "CancelToken",
    "CancellationRegistry",
    "ChunkAdapter",
    "ChunkFormatError",
    "MessageChunkAdapter",
    "OpenAIChunkAdapter",
    "ProviderError",
    "ResponseEventPipeline",
    "SegmentTransformer",
    "SegmentationError",
    "SegmentationState",
    "TagDictionary",
    "ThinkStreamError",
    "cancellable",
    "extract_thinking_and_response",
    "find_potential_start",
    "segment_delta",
    "should_enable_thinking_mode",
]
