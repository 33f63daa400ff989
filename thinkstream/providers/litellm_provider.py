"""LiteLLM streaming source for the response pipeline.

Opens a streamed chat completion through ``litellm.acompletion`` and feeds
its chunks into a ResponseEventPipeline with the OpenAI chunk adapter.
Opening the stream is retried with exponential backoff on transient
failures; once streaming has started, failures are reported as error
events by the pipeline.
"""

from __future__ import annotations

import asyncio
import logging
import os
import uuid

import litellm

# Suppress LiteLLM's "Give Feedback / Get Help" and "Provider List" banners
litellm.suppress_debug_info = True

from thinkstream.adapters.openai_chunks import OpenAIChunkAdapter
from thinkstream.cancellation import CancellationRegistry
from thinkstream.errors import ProviderError
from thinkstream.pipeline import EventSink, ResponseEventPipeline
from thinkstream.schemas.pipeline import RequestContext
from thinkstream.tags.dictionary import TagDictionary

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_BASE_BACKOFF = 1.0  # seconds


def _short_error_reason(error: Exception) -> str:
    """Extract a short, user-friendly reason from a LiteLLM error."""
    error_str = str(error).lower()
    if "rate" in error_str or "429" in error_str:
        return "rate limit"
    if "overloaded" in error_str or "529" in error_str:
        return "overloaded"
    if "timeout" in error_str or isinstance(error, TimeoutError):
        return "timeout"
    if "503" in error_str or "unavailable" in error_str:
        return "service unavailable"
    if "500" in error_str or "internal" in error_str:
        return "server error"
    if "connection" in error_str:
        return "connection error"
    return str(error)[:80]


class LiteLLMStreamer:
    """Streams one model through LiteLLM into lifecycle events.

    The tag pair is chosen from the TagDictionary by model id, so the
    same streamer handles ``<think>`` models and other dialects.
    """

    def __init__(
        self,
        model: str,
        *,
        dictionary: TagDictionary | None = None,
        registry: CancellationRegistry | None = None,
        api_key_env: str = "",
        api_base: str = "",
        enable_reasoning: bool = True,
        max_retries: int = _MAX_RETRIES,
    ) -> None:
        self._model = model
        self._api_key = os.environ.get(api_key_env, "") if api_key_env else ""
        self._api_key_env = api_key_env
        self._api_base = api_base
        self._max_retries = max_retries
        dictionary = dictionary or TagDictionary()
        self._pipeline = ResponseEventPipeline(
            OpenAIChunkAdapter(),
            dictionary.lookup(model),
            registry,
            enable_reasoning=enable_reasoning,
        )

    @property
    def model(self) -> str:
        return self._model

    @property
    def registry(self) -> CancellationRegistry:
        return self._pipeline.registry

    @property
    def pipeline(self) -> ResponseEventPipeline:
        return self._pipeline

    async def stream(
        self,
        messages: list[dict[str, str]],
        sink: EventSink,
        *,
        system: str = "",
        request_id: str | None = None,
        timeout: int = 120,
    ) -> RequestContext:
        """Send a streaming completion and deliver lifecycle events to ``sink``.

        Args:
            messages: Conversation messages in OpenAI format.
            sink: Callable receiving each LifecycleEvent.
            system: Optional system prompt prepended to ``messages``.
            request_id: Cancellation key; a UUID is generated when omitted.
            timeout: Timeout in seconds passed to LiteLLM.

        Returns:
            The RequestContext of the finished, failed, or aborted request.

        Raises:
            ProviderError: If the stream cannot be opened after all retries.
            TimeoutError: If every attempt to open the stream timed out.
        """
        full_messages = [{"role": "system", "content": system}, *messages] if system else messages
        kwargs = self._build_completion_kwargs(full_messages, timeout)
        response = await self._call_streaming_with_retry(kwargs)

        return await self._pipeline.run(
            request_id or str(uuid.uuid4()),
            response,
            sink,
        )

    def _build_completion_kwargs(self, messages: list[dict[str, str]], timeout: int) -> dict:
        """Build the kwargs dict for litellm.acompletion."""
        kwargs: dict = {
            "model": self._model,
            "messages": messages,
            "timeout": float(timeout),
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._api_base:
            kwargs["api_base"] = self._api_base
        return kwargs

    async def _call_streaming_with_retry(self, kwargs: dict):
        """Call litellm.acompletion with stream=True and retry on failure.

        Retries on transient errors (rate limits, server errors, timeouts).
        Non-retryable errors (auth, invalid request) are raised immediately.
        """
        last_error: Exception | None = None

        for attempt in range(self._max_retries):
            try:
                return await litellm.acompletion(**kwargs)
            except TimeoutError:
                last_error = TimeoutError(
                    f"Streaming call timed out after {kwargs.get('timeout')}s "
                    f"(attempt {attempt + 1}/{self._max_retries})"
                )
            except litellm.AuthenticationError:
                hint = f" Check that {self._api_key_env} is set correctly." if self._api_key_env else ""
                raise ProviderError(f"Authentication failed for {self._model}.{hint}") from None
            except litellm.BadRequestError as e:
                raise ProviderError(f"Bad request to {self._model}: {e}") from e
            except (
                litellm.RateLimitError,
                litellm.ServiceUnavailableError,
                litellm.InternalServerError,
                litellm.APIConnectionError,
            ) as e:
                last_error = e

            if attempt < self._max_retries - 1:
                backoff = _BASE_BACKOFF * (2**attempt)
                logger.warning(
                    "Streaming retry %d/%d for %s (%s, backoff: %.1fs)",
                    attempt + 1, self._max_retries, self._model,
                    _short_error_reason(last_error), backoff,
                )
                await asyncio.sleep(backoff)

        if isinstance(last_error, TimeoutError):
            raise last_error
        raise ProviderError(
            f"Streaming call to {self._model} failed after "
            f"{self._max_retries} retries: {last_error}"
        ) from last_error
