"""Tests for the local queue and STOMP publishers and the factory."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest
from stomp.exception import StompException

from derivcast.config import Settings
from derivcast.errors import PublishError
from derivcast.publishing import BasePublisher, build_publisher
from derivcast.publishing.local_queue import LocalQueuePublisher
from derivcast.publishing.stomp_broker import StompPublisher, destination_for

AUTH = {"Authorization": "Bearer t0k3n"}


class TestLocalQueuePublisher:
    def test_satisfies_protocol(self):
        assert isinstance(LocalQueuePublisher(), BasePublisher)

    def test_publish_and_receive_fifo(self):
        publisher = LocalQueuePublisher()
        publisher.publish("q", AUTH, b"first")
        publisher.publish("q", AUTH, b"second")
        assert publisher.depth == 2
        assert publisher.receive().body == b"first"
        assert publisher.receive().body == b"second"
        assert publisher.receive() is None

    def test_receive_by_queue(self):
        publisher = LocalQueuePublisher()
        publisher.publish("a", AUTH, b"1")
        publisher.publish("b", AUTH, b"2")
        message = publisher.receive("b")
        assert message.queue == "b"
        assert message.headers == AUTH
        assert publisher.depth == 1

    def test_drain(self):
        publisher = LocalQueuePublisher()
        for i in range(3):
            publisher.publish("q", AUTH, str(i).encode())
        assert [m.body for m in publisher.drain("q")] == [b"0", b"1", b"2"]
        assert publisher.depth == 0
        assert publisher.published_count == 3

    def test_full_queue_rejects(self):
        publisher = LocalQueuePublisher(max_queue=1)
        publisher.publish("q", AUTH, b"1")
        with pytest.raises(PublishError):
            publisher.publish("q", AUTH, b"2")
        assert publisher.published_count == 1

    def test_concurrent_publish(self):
        publisher = LocalQueuePublisher(max_queue=1000)
        threads = [
            threading.Thread(
                target=lambda: [publisher.publish("q", AUTH, b"x") for _ in range(50)]
            )
            for _ in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert publisher.depth == 400


class TestStompPublisher:
    @pytest.fixture
    def connection(self) -> MagicMock:
        conn = MagicMock()
        conn.is_connected.return_value = False
        return conn

    def test_destination_prefix(self):
        assert destination_for("islandora-connector-houdini") == (
            "/queue/islandora-connector-houdini"
        )
        assert destination_for("/topic/derivatives") == "/topic/derivatives"
        assert destination_for("/queue/x") == "/queue/x"

    def test_connects_and_sends(self, connection):
        publisher = StompPublisher("broker", 61613, login="u", passcode="p", connection=connection)
        publisher.publish("houdini", AUTH, b"{}")

        connection.connect.assert_called_once_with("u", "p", wait=True)
        connection.send.assert_called_once()
        args, kwargs = connection.send.call_args
        assert args == ("/queue/houdini", b"{}")
        assert kwargs["content_type"] == "application/json"
        assert kwargs["headers"]["Authorization"] == "Bearer t0k3n"
        assert kwargs["headers"]["persistent"] == "true"

    def test_reuses_live_connection(self, connection):
        connection.is_connected.return_value = True
        publisher = StompPublisher(connection=connection)
        publisher.publish("q", AUTH, b"1")
        publisher.publish("q", AUTH, b"2")
        connection.connect.assert_not_called()
        assert connection.send.call_count == 2

    def test_send_failure_raises_publish_error(self, connection):
        connection.send.side_effect = StompException("broker went away")
        publisher = StompPublisher(connection=connection)
        with pytest.raises(PublishError, match="broker went away"):
            publisher.publish("q", AUTH, b"{}")

    def test_connect_failure_raises_publish_error(self, connection):
        connection.connect.side_effect = ConnectionRefusedError("refused")
        publisher = StompPublisher(connection=connection)
        with pytest.raises(PublishError):
            publisher.publish("q", AUTH, b"{}")
        connection.send.assert_not_called()

    def test_close_disconnects(self, connection):
        connection.is_connected.return_value = True
        with StompPublisher(connection=connection) as publisher:
            publisher.publish("q", AUTH, b"{}")
        connection.disconnect.assert_called_once()


class TestBuildPublisher:
    def test_local(self):
        publisher = build_publisher(Settings(broker_backend="local", local_queue_max=5))
        assert isinstance(publisher, LocalQueuePublisher)
        assert publisher.publisher_name == "local_queue"

    def test_stomp(self):
        publisher = build_publisher(Settings(broker_backend="stomp", stomp_host="mq"))
        assert isinstance(publisher, StompPublisher)
        assert publisher.publisher_name == "stomp"

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            build_publisher(Settings(broker_backend="carrier-pigeon"))
