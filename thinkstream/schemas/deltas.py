"""Canonical delta schemas produced by chunk adapters.

Provider-specific raw chunks are converted into this small tagged union
before segmentation, so the segment transformer and the pipeline never
see provider shapes.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class DeltaType(StrEnum):
    """Discriminator for canonical deltas."""

    REASONING = "reasoning"
    TEXT = "text-delta"
    TOOL_CALL = "tool-calls"
    FINISH = "finish"


class ReasoningDelta(BaseModel):
    """A fragment of reasoning (chain-of-thought) text."""

    type: Literal[DeltaType.REASONING] = DeltaType.REASONING
    text: str = Field(description="Reasoning text in this fragment")


class TextDelta(BaseModel):
    """A fragment of answer text, possibly containing reasoning tags."""

    type: Literal[DeltaType.TEXT] = DeltaType.TEXT
    text: str = Field(description="Answer text in this fragment")


class ToolCallDelta(BaseModel):
    """An opaque tool-call payload passed through untouched."""

    type: Literal[DeltaType.TOOL_CALL] = DeltaType.TOOL_CALL
    payload: Any = Field(description="Provider tool-call delta, unmodified")


class Usage(BaseModel):
    """Token usage summary reported with the terminal chunk."""

    prompt_tokens: int = Field(default=0, ge=0, description="Input tokens consumed")
    completion_tokens: int = Field(default=0, ge=0, description="Output tokens generated")
    total_tokens: int = Field(default=0, ge=0, description="Sum reported by the provider")


class Finish(BaseModel):
    """Terminal signal; no further deltas follow."""

    type: Literal[DeltaType.FINISH] = DeltaType.FINISH
    reason: str | None = Field(default=None, description="Provider finish_reason")
    usage: Usage | None = Field(default=None, description="Token usage, when reported")


DeltaEvent = Annotated[
    ReasoningDelta | TextDelta | ToolCallDelta | Finish,
    Field(discriminator="type"),
]
