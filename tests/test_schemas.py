"""Tests for the delta, event, tag and pipeline schemas."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from thinkstream.cancellation import CancelToken
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
    ErrorEvent,
    ErrorInfo,
    LifecycleEvent,
    LifecycleEventType,
    ThinkingDelta,
)
from thinkstream.schemas.pipeline import PipelineConfig, RequestContext, RequestStatus
from thinkstream.schemas.tags import TagPair


class TestDeltas:
    def test_type_values(self):
        assert ReasoningDelta(text="r").type == "reasoning"
        assert TextDelta(text="t").type == "text-delta"
        assert ToolCallDelta(payload={}).type == "tool-calls"
        assert Finish().type == "finish"

    def test_finish_defaults(self):
        finish = Finish()
        assert finish.reason is None
        assert finish.usage is None

    def test_discriminated_union(self):
        adapter = TypeAdapter(DeltaEvent)
        delta = adapter.validate_python({"type": "reasoning", "text": "why"})
        assert isinstance(delta, ReasoningDelta)
        finish = adapter.validate_python({"type": "finish", "reason": "stop"})
        assert isinstance(finish, Finish)

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            TypeAdapter(DeltaEvent).validate_python({"type": "audio", "text": "x"})

    def test_usage_non_negative(self):
        with pytest.raises(ValidationError):
            Usage(prompt_tokens=-1)

    def test_delta_type_is_str(self):
        assert DeltaType.TEXT == "text-delta"


class TestLifecycleEvents:
    def test_wire_names(self):
        assert [t.value for t in LifecycleEventType] == [
            "response-created",
            "thinking-delta",
            "thinking-complete",
            "text-delta",
            "text-complete",
            "block-complete",
            "error",
        ]

    def test_json_round_trip_through_union(self):
        adapter = TypeAdapter(LifecycleEvent)
        event = ThinkingDelta(text="hmm", elapsed_ms=42)
        parsed = adapter.validate_json(event.model_dump_json())
        assert parsed == event

    def test_elapsed_non_negative(self):
        with pytest.raises(ValidationError):
            ThinkingDelta(text="x", elapsed_ms=-1)

    def test_timestamp_set(self):
        assert BlockComplete().timestamp > 0

    def test_error_info_from_exception(self):
        info = ErrorInfo.from_exception(ValueError("bad chunk"))
        assert info.message == "bad chunk"
        assert info.kind == "ValueError"

    def test_error_info_empty_message_uses_class_name(self):
        assert ErrorInfo.from_exception(TimeoutError()).message == "TimeoutError"

    def test_error_event_serializes(self):
        event = ErrorEvent(error=ErrorInfo(message="boom", kind="RuntimeError"))
        data = event.model_dump()
        assert data["type"] == "error"
        assert data["error"] == {"message": "boom", "kind": "RuntimeError"}


class TestTagPair:
    def test_empty_tag_rejected(self):
        with pytest.raises(ValidationError):
            TagPair(opening_tag="", closing_tag="</think>")


class TestPipelineSchemas:
    def test_config_defaults(self):
        config = PipelineConfig()
        assert config.enable_reasoning is True
        assert config.default_timeout == 120
        assert config.max_retries == 3

    def test_max_retries_bounds(self):
        with pytest.raises(ValidationError):
            PipelineConfig(max_retries=0)
        with pytest.raises(ValidationError):
            PipelineConfig(max_retries=11)

    def test_request_context_defaults(self):
        token = CancelToken("m1")
        ctx = RequestContext(message_id="m1", cancel_token=token)
        assert ctx.cancel_token is token
        assert ctx.status == RequestStatus.PENDING
        assert ctx.accumulated_text == ""
        assert ctx.first_token_at is None
        assert ctx.thinking_completed is False
