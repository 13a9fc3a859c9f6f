"""Publisher protocol and factory.

All publishers implement ``BasePublisher``: a ``publisher_name`` property
and a ``publish(queue, headers, body)`` method.  Publishing is a single
attempt; there is no retry here.  Redelivery is the broker's and the
consumer's business.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from derivcast.errors import PublishError

if TYPE_CHECKING:
    from derivcast.config import Settings


@runtime_checkable
class BasePublisher(Protocol):
    """Protocol that every derivcast publisher must implement.

    Attributes
    ----------
    publisher_name : str
        A human-readable identifier (``"local_queue"``, ``"stomp"``).
    """

    @property
    def publisher_name(self) -> str:
        ...

    def publish(self, queue: str, headers: dict[str, str], body: bytes) -> None:
        """Deliver *body* to *queue*.

        Raises
        ------
        PublishError
            If the broker is unreachable or rejects the write.
        """
        ...


def build_publisher(cfg: Settings | None = None) -> BasePublisher:
    """Return the publisher selected by ``cfg.broker_backend``."""
    from derivcast.config import settings

    cfg = cfg or settings
    backend = cfg.broker_backend.lower()
    if backend == "local":
        from derivcast.publishing.local_queue import LocalQueuePublisher

        return LocalQueuePublisher(max_queue=cfg.local_queue_max)
    if backend == "stomp":
        from derivcast.publishing.stomp_broker import StompPublisher

        return StompPublisher.from_settings(cfg)
    raise ValueError(f"Unknown broker backend: {cfg.broker_backend!r}")


__all__ = ["BasePublisher", "PublishError", "build_publisher"]
