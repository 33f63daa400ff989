"""thinkstream schema definitions.

Pydantic v2 models for tag pairs, canonical deltas, lifecycle events and
pipeline configuration.
"""

from thinkstream.schemas.deltas import (
    DeltaEvent,
    DeltaType,
    Finish,
    ReasoningDelta,
    TextDelta,
    ToolCallDelta,
    Usage,
)
from thinkstream.schemas.events import (
    BlockComplete,
    CompletedResponse,
    ErrorEvent,
    ErrorInfo,
    LifecycleEvent,
    LifecycleEventType,
    ResponseCreated,
    TextComplete,
    TextDeltaEvent,
    ThinkingComplete,
    ThinkingDelta,
)
from thinkstream.schemas.pipeline import PipelineConfig, RequestContext, RequestStatus
from thinkstream.schemas.tags import TagDictionaryConfig, TagPair, TagRule

__all__ = [
    "BlockComplete",
    "CompletedResponse",
    "DeltaEvent",
    "DeltaType",
    "ErrorEvent",
    "ErrorInfo",
    "Finish",
    "LifecycleEvent",
    "LifecycleEventType",
    "PipelineConfig",
    "ReasoningDelta",
    "RequestContext",
    "RequestStatus",
    "ResponseCreated",
    "TagDictionaryConfig",
    "TagPair",
    "TagRule",
    "TextComplete",
    "TextDelta",
    "TextDeltaEvent",
    "ThinkingComplete",
    "ThinkingDelta",
    "ToolCallDelta",
    "Usage",
]
