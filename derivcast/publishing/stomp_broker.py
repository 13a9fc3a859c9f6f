"""STOMP publisher: sends events to a message broker via stomp.py.

The connection is opened lazily on first publish and reused afterwards.
A failed send is reported as ``PublishError``; the connection is dropped
so the next dispatch reconnects, but the failed message is not retried.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import stomp
from stomp.exception import StompException

from derivcast.config import Settings, settings
from derivcast.errors import PublishError

logger = logging.getLogger(__name__)


def destination_for(queue: str) -> str:
    """Prefix bare queue names with ``/queue/``; leave topics alone."""
    if queue.startswith(("/queue/", "/topic/")):
        return queue
    return f"/queue/{queue}"


class StompPublisher:
    """Publishes to a STOMP broker (ActiveMQ, RabbitMQ, Artemis).

    Parameters
    ----------
    host, port:
        Broker address.
    login, passcode:
        Broker credentials; empty for anonymous brokers.
    connection:
        Pre-built ``stomp.Connection``; mainly for tests.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 61613,
        *,
        login: str = "",
        passcode: str = "",
        connection: Any | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._login = login
        self._passcode = passcode
        self._conn = connection
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, cfg: Settings | None = None) -> StompPublisher:
        cfg = cfg or settings
        return cls(
            cfg.stomp_host,
            cfg.stomp_port,
            login=cfg.stomp_login,
            passcode=cfg.stomp_passcode,
        )

    @property
    def publisher_name(self) -> str:
        return "stomp"

    def _connected(self) -> Any:
        if self._conn is None:
            self._conn = stomp.Connection([(self._host, self._port)])
        if not self._conn.is_connected():
            self._conn.connect(self._login, self._passcode, wait=True)
            logger.info("Connected to STOMP broker %s:%d", self._host, self._port)
        return self._conn

    def publish(self, queue: str, headers: dict[str, str], body: bytes) -> None:
        destination = destination_for(queue)
        frame_headers = {"persistent": "true", **headers}
        with self._lock:
            try:
                conn = self._connected()
                conn.send(
                    destination,
                    body,
                    content_type="application/json",
                    headers=frame_headers,
                )
            except (StompException, OSError) as exc:
                self._reset()
                raise PublishError(
                    f"STOMP send to {destination} on {self._host}:{self._port} failed: {exc}"
                ) from exc
        logger.debug("Sent %d bytes to %s", len(body), destination)

    def _reset(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            if conn.is_connected():
                conn.disconnect()
        except (StompException, OSError):
            logger.debug("Ignoring error while dropping broken STOMP connection")

    def close(self) -> None:
        """Disconnect from the broker."""
        with self._lock:
            self._reset()

    def __enter__(self) -> StompPublisher:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"StompPublisher(host={self._host!r}, port={self._port})"
