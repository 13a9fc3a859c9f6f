"""Local queue publisher: bounded, in-memory, thread-safe.

Used by the test suite, by CLI dry runs, and by single-process
deployments whose consumers live in the same interpreter.  Messages are
kept per queue in FIFO order until received.
"""

from __future__ import annotations

import collections
import logging
import threading

from pydantic import BaseModel, ConfigDict

from derivcast.errors import PublishError

logger = logging.getLogger(__name__)


class QueuedMessage(BaseModel):
    """A message as a consumer would receive it."""

    model_config = ConfigDict(frozen=True)

    queue: str
    headers: dict[str, str]
    body: bytes


class LocalQueuePublisher:
    """In-memory publisher.

    Parameters
    ----------
    max_queue:
        Maximum number of undelivered messages across all queues.  A
        publish beyond this raises ``PublishError``.
    """

    def __init__(self, *, max_queue: int = 1024) -> None:
        self._max_queue = max_queue
        self._queue: collections.deque[QueuedMessage] = collections.deque()
        self._lock = threading.Lock()
        self._published = 0

    @property
    def publisher_name(self) -> str:
        return "local_queue"

    @property
    def depth(self) -> int:
        """Number of messages waiting to be received."""
        with self._lock:
            return len(self._queue)

    @property
    def published_count(self) -> int:
        """Total messages accepted since construction."""
        with self._lock:
            return self._published

    def publish(self, queue: str, headers: dict[str, str], body: bytes) -> None:
        message = QueuedMessage(queue=queue, headers=dict(headers), body=body)
        with self._lock:
            if len(self._queue) >= self._max_queue:
                raise PublishError(
                    f"Local queue is full (depth={len(self._queue)}); "
                    f"message for {queue!r} rejected"
                )
            self._queue.append(message)
            self._published += 1
            depth = len(self._queue)
        logger.debug("LocalQueuePublisher: queued message for %s (depth=%d)", queue, depth)

    def receive(self, queue: str | None = None) -> QueuedMessage | None:
        """Dequeue the oldest message, optionally only from *queue*."""
        with self._lock:
            for message in self._queue:
                if queue is None or message.queue == queue:
                    self._queue.remove(message)
                    return message
        return None

    def drain(self, queue: str | None = None) -> list[QueuedMessage]:
        """Dequeue every waiting message (for *queue*, when given)."""
        messages: list[QueuedMessage] = []
        while (message := self.receive(queue)) is not None:
            messages.append(message)
        return messages

    def __repr__(self) -> str:
        return f"LocalQueuePublisher(depth={self.depth}, max_queue={self._max_queue})"
