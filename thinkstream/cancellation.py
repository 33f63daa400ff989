"""Cooperative cancellation for in-flight streamed requests.

The CancellationRegistry maps request ids to CancelTokens. The owner of a
request registers it on start and releases it exactly once on exit,
normally through ``scope()``. Cancelling a request sets its token; the
pipeline observes the token at its next suspension point, and a source
wrapped with ``cancellable()`` raises AbortedError on its next pull.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from thinkstream.errors import AbortedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

CancelFn = Callable[[], object]

# Messages raised by HTTP clients and SDKs when a request is torn down
_ABORT_MESSAGES = (
    "request was aborted.",
    "operation aborted",
    "signal is aborted without reason",
)


class CancelToken:
    """A cooperative cancellation flag shared by reference.

    Setting the flag never preempts running work; holders check it at
    their suspension points via ``cancelled`` or ``raise_if_cancelled()``.
    """

    def __init__(self, request_id: str = "") -> None:
        self.request_id = request_id
        self._flag = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._flag.is_set()

    def cancel(self) -> None:
        """Set the flag. Idempotent and safe to call from any thread."""
        self._flag.set()

    def raise_if_cancelled(self) -> None:
        if self._flag.is_set():
            raise AbortedError(self.request_id)

    def __repr__(self) -> str:
        return f"CancelToken(request_id={self.request_id!r}, cancelled={self.cancelled})"


class _Entry:
    __slots__ = ("token", "cancel_fn")

    def __init__(self, token: CancelToken, cancel_fn: CancelFn | None) -> None:
        self.token = token
        self.cancel_fn = cancel_fn


class CancellationRegistry:
    """Maps request ids to cancellation handles.

    Safe for concurrent registration and removal across threads; operations
    on distinct ids never affect each other. Registering an id that is
    already present replaces the earlier entry without invoking its
    handle; that earlier owner's ``cleanup`` then leaves the new entry in
    place.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def register(self, request_id: str, cancel_fn: CancelFn | None = None) -> CancelToken:
        """Create and register a token for ``request_id``.

        Args:
            request_id: Key for the request, usually the message id.
            cancel_fn: Optional extra handle invoked synchronously on cancel,
                e.g. closing the underlying HTTP response.

        Returns:
            The CancelToken the request must check at each suspension point.
        """
        token = CancelToken(request_id)
        with self._lock:
            replaced = self._entries.get(request_id)
            self._entries[request_id] = _Entry(token, cancel_fn)
        if replaced is not None:
            logger.debug("Replaced cancellation handle for %s without cancelling it", request_id)
        return token

    def cancel(self, request_id: str) -> bool:
        """Cancel ``request_id`` if registered.

        Returns:
            True if a registered request was signalled, False otherwise.
        """
        with self._lock:
            entry = self._entries.get(request_id)
        if entry is None:
            logger.debug("Cancel requested for unknown request %s", request_id)
            return False

        logger.info("Cancelling request %s", request_id)
        entry.token.cancel()
        if entry.cancel_fn is not None:
            try:
                entry.cancel_fn()
            except Exception:
                # The token is already set; the request still stops at its next pull
                logger.exception("Cancel handle for %s failed", request_id)
        return True

    def cleanup(self, request_id: str, token: CancelToken | None = None) -> None:
        """Remove the association for ``request_id``.

        When ``token`` is given, the entry is removed only if it still
        belongs to that token.
        """
        with self._lock:
            entry = self._entries.get(request_id)
            if entry is None:
                removed = False
            elif token is not None and entry.token is not token:
                logger.debug("Skipping cleanup of %s: handle was re-registered", request_id)
                return
            else:
                del self._entries[request_id]
                removed = True
        if not removed:
            logger.warning("Cleanup for %s found no registered handle", request_id)

    def is_registered(self, request_id: str) -> bool:
        with self._lock:
            return request_id in self._entries

    def token_for(self, request_id: str) -> CancelToken | None:
        with self._lock:
            entry = self._entries.get(request_id)
        return entry.token if entry else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @contextmanager
    def scope(self, request_id: str, cancel_fn: CancelFn | None = None) -> Iterator[CancelToken]:
        """Register ``request_id`` for the duration of the block.

        Cleanup runs exactly once on exit, whether the block returns,
        raises, or is cancelled.
        """
        token = self.register(request_id, cancel_fn)
        try:
            yield token
        finally:
            self.cleanup(request_id, token)


async def cancellable(source: AsyncIterable[T], token: CancelToken) -> AsyncIterator[T]:
    """Wrap ``source`` so every pull fails with AbortedError once cancelled.

    The token is checked before each pull and again after the pulled item
    arrives, so a cancel issued while awaiting the network is honoured
    before the item is handed on.
    """
    iterator = source.__aiter__()
    try:
        while True:
            token.raise_if_cancelled()
            try:
                item = await iterator.__anext__()
            except StopAsyncIteration:
                return
            token.raise_if_cancelled()
            yield item
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()


def is_abort_error(error: BaseException) -> bool:
    """Return True if ``error`` signals a user abort rather than a failure."""
    if isinstance(error, AbortedError):
        return True
    message = str(error).lower()
    return any(text in message for text in _ABORT_MESSAGES)
