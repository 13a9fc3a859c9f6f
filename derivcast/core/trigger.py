"""Trigger source: delivers entity-mutation events to subscribers.

The content repository (or whatever rule engine decides an action should
fire) calls :meth:`TriggerSource.emit` inline when an entity is saved.
Subscribers run synchronously, in subscription order.  A failing
subscriber is logged and skipped; it never propagates back into the
mutation that emitted the event.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from derivcast.models.entities import TriggerEntity

logger = logging.getLogger(__name__)


class MutationKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class EntityMutation(BaseModel):
    """One content mutation, as seen by subscribers."""

    model_config = ConfigDict(frozen=True)

    entity: TriggerEntity
    kind: MutationKind = MutationKind.UPDATE


MutationHandler = Callable[[EntityMutation], Any]


class _Subscription:
    def __init__(
        self,
        handler: MutationHandler,
        entity_type: str | None,
        kinds: frozenset[MutationKind] | None,
    ) -> None:
        self.handler = handler
        self.entity_type = entity_type
        self.kinds = kinds

    def matches(self, mutation: EntityMutation) -> bool:
        if self.entity_type is not None and mutation.entity.entity_type != self.entity_type:
            return False
        return self.kinds is None or mutation.kind in self.kinds


class TriggerSource:
    """Fan-out point for entity mutations.

    Usage
    -----
    >>> source = TriggerSource()
    >>> source.subscribe(handler, entity_type="node")
    >>> source.emit(EntityMutation(entity=node, kind=MutationKind.INSERT))
    """

    def __init__(self) -> None:
        self._subscriptions: list[_Subscription] = []

    def subscribe(
        self,
        handler: MutationHandler,
        *,
        entity_type: str | None = None,
        kinds: set[MutationKind] | None = None,
    ) -> None:
        """Call *handler* for matching mutations.

        ``entity_type`` and ``kinds`` narrow which mutations are
        delivered; ``None`` means all.
        """
        self._subscriptions.append(
            _Subscription(handler, entity_type, frozenset(kinds) if kinds else None)
        )

    def unsubscribe(self, handler: MutationHandler) -> None:
        self._subscriptions = [s for s in self._subscriptions if s.handler is not handler]

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def emit(self, mutation: EntityMutation) -> list[Any]:
        """Deliver *mutation* to every matching subscriber.

        Returns the handlers' return values, in subscription order;
        failed handlers contribute nothing.
        """
        results: list[Any] = []
        for sub in list(self._subscriptions):
            if not sub.matches(mutation):
                continue
            try:
                results.append(sub.handler(mutation))
            except Exception:  # noqa: BLE001
                logger.exception(
                    "Mutation handler %r failed for %s %s",
                    sub.handler,
                    mutation.entity.entity_type,
                    mutation.entity.id,
                )
        return results
