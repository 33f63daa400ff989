"""Pipeline configuration and per-request context schemas."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from thinkstream.cancellation import CancelToken


class PipelineConfig(BaseModel):
    """Defaults for the response pipeline, loaded from defaults.toml."""

    enable_reasoning: bool = Field(
        default=True, description="Split tagged reasoning out of the answer stream"
    )
    default_timeout: int = Field(
        default=120, gt=0, description="Request timeout in seconds for live streaming"
    )
    max_retries: int = Field(
        default=3, ge=1, le=10, description="Attempts when opening a provider stream"
    )


class RequestStatus(StrEnum):
    """Outcome of a single streamed request."""

    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ERROR = "error"
    ABORTED = "aborted"


class RequestContext(BaseModel):
    """Mutable state for one in-flight completion.

    Created when the completion is dispatched and updated as events are
    emitted. The caller inspects ``status`` once the pipeline returns; an
    ``aborted`` request should be marked as interrupted by the caller.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    message_id: str = Field(description="Request id, also the registry key")
    cancel_token: CancelToken = Field(description="Token checked at each suspension point")
    first_token_at: float | None = Field(
        default=None, description="Clock reading of the first reasoning or text delta"
    )
    accumulated_text: str = Field(default="", description="Answer text so far")
    accumulated_thinking: str = Field(default="", description="Reasoning text so far")
    thinking_completed: bool = Field(
        default=False, description="Whether thinking-complete was already emitted"
    )
    finish_reason: str | None = Field(default=None, description="Provider finish_reason")
    status: RequestStatus = Field(default=RequestStatus.PENDING, description="Request outcome")
