"""A bounded byte pipe from a CAR producer thread to an HTTP request body.

The producer writes CAR chunks as the node service streams them; the
consumer iterates the chunks as the upload body. The queue is bounded so
the whole CAR is never held in memory. A producer failure is raised in the
consumer, and closing the consumer early stops the producer.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable, Iterator

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHUNKS = 16
_POLL_SECONDS = 0.1

Writer = Callable[[bytes], None]
Producer = Callable[[Writer], None]

_END = object()


class CarStreamError(RuntimeError):
    """The CAR producer failed before the stream was complete."""


class _Cancelled(Exception):
    """Raised inside the producer when the consumer has gone away."""


class CarStream:
    """Iterate the bytes *producer* writes, produced on a worker thread.

    Parameters
    ----------
    producer:
        Called once with a ``write(chunk)`` function; returns when the CAR
        is complete.
    max_chunks:
        Queue capacity; the producer blocks when it is full.
    name:
        Thread name, for logs.
    """

    def __init__(
        self,
        producer: Producer,
        *,
        max_chunks: int = DEFAULT_MAX_CHUNKS,
        name: str = "car-stream",
    ) -> None:
        self._producer = producer
        self._queue: queue.Queue[object] = queue.Queue(maxsize=max_chunks)
        self._cancel = threading.Event()
        self._error: BaseException | None = None
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._started = False
        self._finished = False

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def _put(self, item: object) -> None:
        while True:
            if self._cancel.is_set():
                raise _Cancelled()
            try:
                self._queue.put(item, timeout=_POLL_SECONDS)
                return
            except queue.Full:
                continue

    def write(self, chunk: bytes) -> None:
        if chunk:
            self._put(bytes(chunk))

    def _run(self) -> None:
        try:
            self._producer(self.write)
        except _Cancelled:
            logger.debug("CAR producer cancelled")
            return
        except Exception as exc:
            self._error = exc
        try:
            self._put(_END)
        except _Cancelled:
            pass

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    def start(self) -> CarStream:
        if not self._started:
            self._started = True
            self._thread.start()
        return self

    def __iter__(self) -> Iterator[bytes]:
        self.start()
        while not self._finished:
            item = self._queue.get()
            if item is _END:
                self._finished = True
                if self._error is not None:
                    raise CarStreamError(f"CAR export failed: {self._error}") from self._error
                return
            yield item  # type: ignore[misc]

    def close(self) -> None:
        """Stop the producer and wait for it to exit."""
        self._cancel.set()
        if self._started:
            # Unblock a producer waiting on a full queue.
            while self._thread.is_alive():
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    pass
                self._thread.join(timeout=_POLL_SECONDS)

    def __enter__(self) -> CarStream:
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.close()
