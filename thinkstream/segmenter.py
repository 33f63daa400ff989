"""Streaming segmentation of tagged reasoning out of answer text.

Models that reason inline interleave chain-of-thought and answer text in
one stream, wrapping the reasoning in a tag pair such as ``<think>`` /
``</think>``. Tags may be split at any byte across network chunks, so
the transformer keeps a small buffer of text that could still be the
start of the next tag and resolves it once more text arrives.

The core is the pure function ``segment_delta``; SegmentTransformer owns
one SegmentationState per request and wraps it for the pipeline.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from pydantic import BaseModel

from thinkstream.errors import SegmentationError
from thinkstream.schemas.deltas import (
    DeltaEvent,
    Finish,
    ReasoningDelta,
    TextDelta,
    ToolCallDelta,
)
from thinkstream.schemas.tags import TagPair
from thinkstream.tags.dictionary import TagDictionary
from thinkstream.tags.scanner import find_potential_start

logger = logging.getLogger(__name__)

Segment = ReasoningDelta | TextDelta


@dataclass
class SegmentationState:
    """Per-request segmentation state. Never shared between requests."""

    buffer: str = ""
    is_reasoning: bool = False
    first_reasoning_emitted: bool = False
    first_text_emitted: bool = False
    after_switch: bool = False


def _publish(state: SegmentationState, text: str, tags: TagPair, out: list[DeltaEvent]) -> None:
    """Emit ``text`` in the current mode, prefixing the separator after a switch."""
    if not text:
        return
    if state.is_reasoning:
        seen = state.first_reasoning_emitted
    else:
        seen = state.first_text_emitted
    if state.after_switch and seen:
        text = tags.separator + text
    out.append(ReasoningDelta(text=text) if state.is_reasoning else TextDelta(text=text))
    state.after_switch = False
    if state.is_reasoning:
        state.first_reasoning_emitted = True
    else:
        state.first_text_emitted = True


def _drain(state: SegmentationState, tags: TagPair, out: list[DeltaEvent]) -> None:
    while True:
        next_tag = tags.closing_tag if state.is_reasoning else tags.opening_tag
        start = find_potential_start(state.buffer, next_tag)
        if start is None:
            _publish(state, state.buffer, tags, out)
            state.buffer = ""
            return

        _publish(state, state.buffer[:start], tags, out)
        if start + len(next_tag) <= len(state.buffer):
            state.buffer = state.buffer[start + len(next_tag):]
            state.is_reasoning = not state.is_reasoning
            state.after_switch = True
            continue

        # Candidate tag prefix at the tail; wait for the next delta
        state.buffer = state.buffer[start:]
        return


def segment_delta(
    state: SegmentationState, delta: DeltaEvent, tags: TagPair
) -> tuple[SegmentationState, list[DeltaEvent]]:
    """Apply one canonical delta to ``state``.

    Text deltas are appended to the buffer and split into mode-tagged
    segments. A native reasoning delta first flushes the buffer, so
    output order follows arrival order. Tool calls and Finish pass
    through and leave the buffer untouched. ``state`` itself is not
    modified.

    Returns:
        The new state and the deltas to emit, in order.

    Raises:
        SegmentationError: If ``delta`` is not a canonical delta.
    """
    if isinstance(delta, TextDelta):
        new_state = dataclasses.replace(state, buffer=state.buffer + delta.text)
        out: list[DeltaEvent] = []
        _drain(new_state, tags, out)
        return new_state, out
    if isinstance(delta, ReasoningDelta):
        # Buffered text arrived first and is emitted first
        new_state, out = flush_state(state, tags)
        return new_state, [*out, delta]
    if isinstance(delta, (ToolCallDelta, Finish)):
        return state, [delta]
    raise SegmentationError(f"Unsupported delta type: {type(delta).__name__}")


def flush_state(
    state: SegmentationState, tags: TagPair
) -> tuple[SegmentationState, list[DeltaEvent]]:
    """Emit any buffered text as plain content of the current mode."""
    new_state = dataclasses.replace(state, buffer="")
    out: list[DeltaEvent] = []
    _publish(new_state, state.buffer, tags, out)
    return new_state, out


class SegmentTransformer:
    """Stateful wrapper around ``segment_delta`` for a single request.

    With ``enabled=False`` the transformer is a pass-through and tags are
    left in the answer text.
    """

    def __init__(self, tags: TagPair, *, enabled: bool = True) -> None:
        self.tags = tags
        self.enabled = enabled
        self.state = SegmentationState()

    @property
    def pending(self) -> str:
        """Buffered text that is not yet classified."""
        return self.state.buffer

    def feed(self, delta: DeltaEvent) -> list[DeltaEvent]:
        if not isinstance(delta, BaseModel):
            raise SegmentationError(f"Unsupported delta type: {type(delta).__name__}")
        if not self.enabled:
            return [delta]
        self.state, out = segment_delta(self.state, delta, self.tags)
        if self.state.buffer:
            logger.debug("Holding %d chars of possible tag text", len(self.state.buffer))
        return out

    def flush(self) -> list[DeltaEvent]:
        self.state, out = flush_state(self.state, self.tags)
        return out

    def reset(self) -> None:
        self.state = SegmentationState()


def _pick_pair(text: str, pairs: Iterable[TagPair]) -> TagPair | None:
    for pair in pairs:
        start = text.find(pair.opening_tag)
        if start != -1 and text.find(pair.closing_tag, start + len(pair.opening_tag)) != -1:
            return pair
    return None


def extract_thinking_and_response(
    text: str, pairs: Iterable[TagPair] | None = None
) -> tuple[str, str]:
    """Split a complete response into reasoning and answer text.

    Uses the first pair whose opening tag is followed by its closing tag.
    Both parts are stripped of surrounding whitespace. Text without a
    closed reasoning span is returned unchanged as the answer.
    """
    candidates = TagDictionary().pairs() if pairs is None else pairs
    pair = _pick_pair(text, candidates)
    if pair is None:
        return "", text

    transformer = SegmentTransformer(pair)
    segments = transformer.feed(TextDelta(text=text)) + transformer.flush()
    thinking = "".join(s.text for s in segments if isinstance(s, ReasoningDelta))
    response = "".join(s.text for s in segments if isinstance(s, TextDelta))
    return thinking.strip(), response.strip()


def has_thinking_tags(text: str, pairs: Iterable[TagPair] | None = None) -> bool:
    """Whether ``text`` contains any known opening or closing tag."""
    if not text:
        return False
    candidates = TagDictionary().pairs() if pairs is None else pairs
    return any(p.opening_tag in text or p.closing_tag in text for p in candidates)


def clean_thinking_content(text: str, pairs: Iterable[TagPair] | None = None) -> str:
    """Remove stray tags and surrounding whitespace from reasoning text."""
    if not text:
        return ""
    candidates = TagDictionary().pairs() if pairs is None else pairs
    for pair in candidates:
        text = text.replace(pair.opening_tag, "").replace(pair.closing_tag, "")
    return text.strip()


# Prompt phrases that ask the model to show its reasoning
THINKING_KEYWORDS = ("思考过程", "thinking process", "reasoning", "think step by step")


def should_enable_thinking_mode(prompt: str | None, pairs: Iterable[TagPair] | None = None) -> bool:
    """Whether ``prompt`` asks for visible reasoning.

    True when the prompt contains a known reasoning tag or one of
    THINKING_KEYWORDS.
    """
    if not prompt:
        return False
    contains_tag = has_thinking_tags(prompt, pairs)
    contains_keyword = any(keyword in prompt for keyword in THINKING_KEYWORDS)
    logger.debug(
        "Thinking mode check: tag=%s keyword=%s prompt=%.50r",
        contains_tag, contains_keyword, prompt,
    )
    return contains_tag or contains_keyword
