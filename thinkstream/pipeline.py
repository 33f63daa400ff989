"""Response event pipeline.

Drives one streamed completion from raw provider chunks to ordered
lifecycle events:

    raw chunks -> ChunkAdapter -> SegmentTransformer -> lifecycle events -> sink

The pipeline is pull-based: the next raw chunk is requested only after
every event derived from the previous one has been delivered to the
sink. Cancellation is checked before each pull and before each pulled
chunk is processed, so a cancelled request stops within one chunk and
never emits block-complete.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import AsyncIterable, Awaitable, Callable
from typing import Any

from thinkstream.adapters.base import ChunkAdapter
from thinkstream.cancellation import (
    CancellationRegistry,
    CancelToken,
    cancellable,
    is_abort_error,
)
from thinkstream.schemas.deltas import (
    DeltaEvent,
    Finish,
    ReasoningDelta,
    TextDelta,
    ToolCallDelta,
)
from thinkstream.schemas.events import (
    BlockComplete,
    CompletedResponse,
    ErrorEvent,
    ErrorInfo,
    LifecycleEvent,
    ResponseCreated,
    TextComplete,
    TextDeltaEvent,
    ThinkingComplete,
    ThinkingDelta,
)
from thinkstream.schemas.pipeline import RequestContext, RequestStatus
from thinkstream.schemas.tags import TagPair
from thinkstream.segmenter import SegmentTransformer

logger = logging.getLogger(__name__)

# Sinks may be plain callables or coroutine functions
EventSink = Callable[[LifecycleEvent], Awaitable[Any] | Any]


class ResponseEventPipeline:
    """Turns a raw chunk stream into lifecycle events for one request at a time.

    The pipeline holds no per-request state between runs; each ``run``
    gets its own SegmentTransformer and RequestContext, so concurrent runs
    on the same pipeline only share the cancellation registry.
    """

    def __init__(
        self,
        adapter: ChunkAdapter,
        tags: TagPair,
        registry: CancellationRegistry | None = None,
        *,
        enable_reasoning: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._adapter = adapter
        self._tags = tags
        self._registry = registry if registry is not None else CancellationRegistry()
        self._enable_reasoning = enable_reasoning
        self._clock = clock

    @property
    def registry(self) -> CancellationRegistry:
        return self._registry

    @property
    def tags(self) -> TagPair:
        return self._tags

    async def run(
        self,
        request_id: str,
        source: AsyncIterable[Any],
        sink: EventSink,
        *,
        cancel_fn: Callable[[], object] | None = None,
    ) -> RequestContext:
        """Stream ``source`` for ``request_id`` and deliver events to ``sink``.

        The request is registered with the cancellation registry for the
        duration of the run and released exactly once on exit.

        Args:
            request_id: Message id; also the cancellation key.
            source: Async iterable of raw provider chunks.
            sink: Callable receiving each LifecycleEvent in order.
            cancel_fn: Optional handle invoked when the request is cancelled.

        Returns:
            The RequestContext; ``status`` tells completed, error, or aborted.
        """
        with self._registry.scope(request_id, cancel_fn) as token:
            ctx = RequestContext(message_id=request_id, cancel_token=token)
            transformer = SegmentTransformer(self._tags, enabled=self._enable_reasoning)
            await self._stream(ctx, transformer, source, sink)
            return ctx

    async def _stream(
        self,
        ctx: RequestContext,
        transformer: SegmentTransformer,
        source: AsyncIterable[Any],
        sink: EventSink,
    ) -> None:
        token: CancelToken = ctx.cancel_token
        await self._emit(sink, ResponseCreated())
        ctx.status = RequestStatus.STREAMING

        try:
            # Closed before the request is released, also when Finish ends the loop
            async with (
                contextlib.aclosing(cancellable(source, token)) as chunks,
                contextlib.aclosing(self._adapter.stream(chunks)) as deltas,
            ):
                async for delta in deltas:
                    token.raise_if_cancelled()
                    finished = False
                    for segment in transformer.feed(delta):
                        if isinstance(segment, Finish):
                            await self._finish(ctx, transformer, segment, sink)
                            finished = True
                        else:
                            await self._handle(ctx, segment, sink)
                    if finished:
                        return
            token.raise_if_cancelled()
            logger.debug("Source for %s ended without finish, completing", ctx.message_id)
            await self._finish(ctx, transformer, Finish(), sink)
        except asyncio.CancelledError:
            ctx.status = RequestStatus.ABORTED
            raise
        except Exception as e:
            if token.cancelled or is_abort_error(e):
                logger.info("Request %s aborted", ctx.message_id)
                ctx.status = RequestStatus.ABORTED
                return
            logger.warning("Request %s failed: %s", ctx.message_id, e)
            ctx.status = RequestStatus.ERROR
            await self._emit(sink, ErrorEvent(error=ErrorInfo.from_exception(e)))

    async def _handle(self, ctx: RequestContext, delta: DeltaEvent, sink: EventSink) -> None:
        if isinstance(delta, ReasoningDelta):
            self._mark_first_token(ctx)
            ctx.accumulated_thinking += delta.text
            await self._emit(sink, ThinkingDelta(text=delta.text, elapsed_ms=self._elapsed(ctx)))
        elif isinstance(delta, TextDelta):
            self._mark_first_token(ctx)
            if ctx.accumulated_thinking and not ctx.thinking_completed:
                await self._complete_thinking(ctx, sink)
            ctx.accumulated_text += delta.text
            await self._emit(sink, TextDeltaEvent(text=delta.text))
        elif isinstance(delta, ToolCallDelta):
            logger.debug("Ignoring tool-call delta for %s", ctx.message_id)

    async def _finish(
        self,
        ctx: RequestContext,
        transformer: SegmentTransformer,
        finish: Finish,
        sink: EventSink,
    ) -> None:
        for segment in transformer.flush():
            await self._handle(ctx, segment, sink)

        if ctx.accumulated_thinking and not ctx.thinking_completed:
            await self._complete_thinking(ctx, sink)
        if ctx.accumulated_text:
            await self._emit(sink, TextComplete(text=ctx.accumulated_text))

        ctx.finish_reason = finish.reason
        ctx.status = RequestStatus.COMPLETED
        response = CompletedResponse(
            text=ctx.accumulated_text,
            thinking=ctx.accumulated_thinking,
            finish_reason=finish.reason,
            usage=finish.usage,
        )
        await self._emit(sink, BlockComplete(response=response))

    async def _complete_thinking(self, ctx: RequestContext, sink: EventSink) -> None:
        ctx.thinking_completed = True
        await self._emit(
            sink,
            ThinkingComplete(text=ctx.accumulated_thinking, elapsed_ms=self._elapsed(ctx)),
        )

    def _mark_first_token(self, ctx: RequestContext) -> None:
        if ctx.first_token_at is None:
            ctx.first_token_at = self._clock()

    def _elapsed(self, ctx: RequestContext) -> int:
        if ctx.first_token_at is None:
            return 0
        return max(0, int((self._clock() - ctx.first_token_at) * 1000))

    async def _emit(self, sink: EventSink, event: LifecycleEvent) -> None:
        """Deliver ``event``; sink failures are logged and never propagate."""
        try:
            result = sink(event)
            if asyncio.iscoroutine(result):
                await result
        except Exception:
            logger.exception("Event sink error for %s", event.type)
