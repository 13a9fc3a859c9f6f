"""Shared test fixtures for derivcast."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import pytest

from derivcast.bridge.auth import JwtAuthProvider
from derivcast.core.dispatcher import Dispatcher
from derivcast.core.urls import UrlGenerator
from derivcast.models.entities import (
    FieldDescriptor,
    FileRecord,
    MediaItem,
    Principal,
    Term,
    TriggerEntity,
)
from derivcast.publishing.local_queue import LocalQueuePublisher
from derivcast.repository import StaticPrincipalSource
from derivcast.repository.memory import InMemoryRepository

BASE_URL = "http://localhost:8000"
JWT_SECRET = "derivcast-test-secret-0123456789abcdef"

IMAGE_URI = "http://purl.org/coar/resource_type/c_c513"
PRESERVATION_MASTER_URI = "http://pcdm.org/use#PreservationMasterFile"
SERVICE_FILE_URI = "http://pcdm.org/use#ServiceFile"

FIXED_TIME = datetime(2024, 3, 7, 12, 30, 5, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Dispatch clock pinned to FIXED_TIME."""
    return lambda: FIXED_TIME


@pytest.fixture
def node() -> TriggerEntity:
    return TriggerEntity(
        id=1,
        bundle="repository_item",
        uuid="5a1a3c1e-0000-4000-8000-000000000001",
        title="Test Node",
        fields={"field_media": [1]},
    )


@pytest.fixture
def repository(node: TriggerEntity) -> InMemoryRepository:
    """Node 1 with one media tagged Preservation Master wrapping test_file.txt."""
    return InMemoryRepository(
        entities=[node],
        terms=[
            Term(tid=1, name="Image", vocabulary="resource_types", external_uri=IMAGE_URI),
            Term(tid=2, name="Preservation Master", external_uri=PRESERVATION_MASTER_URI),
            Term(tid=3, name="Service File", external_uri=SERVICE_FILE_URI),
        ],
        media=[
            MediaItem(
                mid=1,
                name="test_file.txt",
                tags=[2],
                references={"field_media_of": [1]},
                source_fid=1,
            ),
        ],
        files=[
            FileRecord(
                fid=1,
                filename="test_file.txt",
                uri="public://test_file.txt",
                mimetype="text/plain",
            ),
        ],
        reference_fields=[
            FieldDescriptor(name="field_media_of", entity_type="media", target_type="node"),
            FieldDescriptor(name="field_media", entity_type="node", target_type="media"),
            FieldDescriptor(name="field_thumbnail", entity_type="node", target_type="media"),
        ],
        base_url=BASE_URL,
        stream_wrappers={"public": f"{BASE_URL}/sites/default/files"},
        schemes=["public", "private"],
    )


@pytest.fixture
def urls() -> UrlGenerator:
    return UrlGenerator(BASE_URL)


@pytest.fixture
def principal() -> Principal:
    return Principal(uid=1, name="admin", roles=["administrator"])


@pytest.fixture
def auth(urls: UrlGenerator) -> JwtAuthProvider:
    return JwtAuthProvider(secret=JWT_SECRET, urls=urls)


@pytest.fixture
def publisher() -> LocalQueuePublisher:
    return LocalQueuePublisher(max_queue=16)


@pytest.fixture
def dispatcher(
    repository: InMemoryRepository,
    auth: JwtAuthProvider,
    publisher: LocalQueuePublisher,
    principal: Principal,
    fixed_clock: Callable[[], datetime],
) -> Dispatcher:
    return Dispatcher.from_repository(
        repository,
        auth=auth,
        publisher=publisher,
        principals=StaticPrincipalSource(principal),
        base_url=BASE_URL,
        clock=fixed_clock,
    )


# ---------------------------------------------------------------------------
# Configuration factories shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_semantic_config() -> Callable[..., dict[str, Any]]:
    """Factory fixture: raw semantic-tag configuration with sensible defaults."""

    def _factory(**overrides: Any) -> dict[str, Any]:
        defaults: dict[str, Any] = {
            "strategy": "semantic_tag",
            "source_term_uri": PRESERVATION_MASTER_URI,
            "derivative_term_uri": SERVICE_FILE_URI,
            "mimetype": "image/jpeg",
            "args": "-thumbnail 20x20",
            "scheme": "public",
            "path": "[date:custom:Y]-[date:custom:m]/[node:nid].jpg",
        }
        defaults.update(overrides)
        return defaults

    return _factory


@pytest.fixture
def make_field_config() -> Callable[..., dict[str, Any]]:
    """Factory fixture: raw field-mapping configuration with sensible defaults."""

    def _factory(**overrides: Any) -> dict[str, Any]:
        defaults: dict[str, Any] = {
            "strategy": "field_mapping",
            "source": "field_media",
            "destination": "field_media",
            "bundle": "tn",
            "mimetype": "image/jpeg",
            "args": "-thumbnail 20x20",
        }
        defaults.update(overrides)
        return defaults

    return _factory


class CountingPublisher:
    """Records publish calls; optionally fails every call."""

    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, dict[str, str], bytes]] = []
        self._error = error

    @property
    def publisher_name(self) -> str:
        return "counting"

    def publish(self, queue: str, headers: dict[str, str], body: bytes) -> None:
        self.calls.append((queue, dict(headers), body))
        if self._error is not None:
            raise self._error


@pytest.fixture
def make_publisher() -> Callable[..., CountingPublisher]:
    """Factory fixture: a CountingPublisher, failing with *error* when given."""
    return CountingPublisher


@pytest.fixture
def make_dispatcher(
    repository: InMemoryRepository,
    auth: JwtAuthProvider,
    principal: Principal,
    fixed_clock: Callable[[], datetime],
) -> Callable[..., Dispatcher]:
    """Factory fixture: dispatcher with replaceable publisher and auth."""

    def _factory(**overrides: Any) -> Dispatcher:
        return Dispatcher.from_repository(
            overrides.pop("repository", repository),
            auth=overrides.pop("auth", auth),
            publisher=overrides.pop("publisher", CountingPublisher()),
            principals=StaticPrincipalSource(overrides.pop("principal", principal)),
            base_url=BASE_URL,
            clock=overrides.pop("clock", fixed_clock),
            **overrides,
        )

    return _factory
