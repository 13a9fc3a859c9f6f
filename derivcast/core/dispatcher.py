"""Dispatcher: resolve, template, build, sign and publish, in that order.

A dispatch runs inline in the caller's thread and always ends in DONE or
ABORTED.  Failures up to and including credential issuance abort before
the publisher is touched, so a partial or malformed message is never
sent.  A publish failure happens after the event is complete; it is
logged and reported in the result, and nothing is rolled back.

``dispatch`` never raises for dispatch-time failures.  The mutation that
triggered it must not be blocked by derivative generation, so errors are
only visible in logs and in the returned :class:`DispatchResult`.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict

from derivcast.bridge.auth import AuthProvider, bearer_header
from derivcast.core.event_builder import EventBuilder
from derivcast.core.hasher import canonical_json_bytes, locator_key
from derivcast.core.resolver import Resolution, ResolverRegistry, default_resolvers
from derivcast.core.state_machine import DispatchStateMachine
from derivcast.core.templating import PathTemplateEngine
from derivcast.core.tokens import TokenContext
from derivcast.core.trigger import EntityMutation, MutationKind, TriggerSource
from derivcast.core.urls import UrlGenerator
from derivcast.core.validation import parse_task_config
from derivcast.models.dispatch import DispatchState, DispatchTransition
from derivcast.models.entities import TriggerEntity
from derivcast.models.events import CanonicalEvent
from derivcast.models.task_config import SemanticTagConfig, TaskConfigBase
from derivcast.publishing import BasePublisher
from derivcast.repository import PrincipalSource

logger = logging.getLogger(__name__)


class DispatchResult(BaseModel):
    """Outcome of one dispatch."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    dispatch_id: str
    state: DispatchState
    transitions: list[DispatchTransition]
    resolution: Resolution | None = None
    event: CanonicalEvent | None = None
    error: Exception | None = None

    @property
    def published(self) -> bool:
        return self.state == DispatchState.DONE

    @property
    def aborted_in(self) -> DispatchState | None:
        """State the dispatch was in when it aborted."""
        if self.state != DispatchState.ABORTED or not self.transitions:
            return None
        return self.transitions[-1].from_state

    def raise_for_error(self) -> None:
        """Re-raise the error that aborted this dispatch, if any."""
        if self.error is not None:
            raise self.error


class Dispatcher:
    """Orchestrates a single derivative request per call.

    Holds only collaborators; no per-dispatch state lives on the
    instance, so one dispatcher can serve concurrent dispatches.

    Parameters
    ----------
    resolvers:
        Strategy registry for source/destination resolution.
    builder:
        Event builder.
    auth:
        Issues the bearer credential.
    publisher:
        Delivers the serialized event.
    principals:
        Supplies the acting principal.
    engine:
        Path template engine for the semantic-tag strategy.
    clock:
        Returns the dispatch time used by date tokens.
    """

    def __init__(
        self,
        resolvers: ResolverRegistry,
        builder: EventBuilder,
        auth: AuthProvider,
        publisher: BasePublisher,
        principals: PrincipalSource,
        *,
        engine: PathTemplateEngine | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._resolvers = resolvers
        self._builder = builder
        self._auth = auth
        self._publisher = publisher
        self._principals = principals
        self._engine = engine or PathTemplateEngine()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def from_repository(
        cls,
        repository: Any,
        *,
        auth: AuthProvider,
        publisher: BasePublisher,
        principals: PrincipalSource,
        base_url: str,
        **kwargs: Any,
    ) -> Dispatcher:
        """Wire a dispatcher to a repository implementing every index protocol."""
        urls = UrlGenerator(base_url)
        return cls(
            default_resolvers(repository, repository, repository, urls),
            EventBuilder(urls),
            auth,
            publisher,
            principals,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, entity: TriggerEntity, config: Any) -> DispatchResult:
        """Run one dispatch for *entity* under *config* to a terminal state."""
        dispatch_id = f"dx-{uuid.uuid4().hex[:12]}"
        machine = DispatchStateMachine(dispatch_id)
        resolution: Resolution | None = None
        event: CanonicalEvent | None = None

        try:
            task = config if isinstance(config, TaskConfigBase) else parse_task_config(config)

            machine.advance(DispatchState.RESOLVING)
            resolution = self._resolvers.resolve(entity, task)
            file_upload_uri = self._upload_uri(entity, task, resolution)

            machine.advance(DispatchState.BUILDING)
            principal = self._principals.current_principal()
            event = self._builder.build(
                task, resolution, entity, principal, file_upload_uri=file_upload_uri
            )
            body = canonical_json_bytes(event.to_wire())

            machine.advance(DispatchState.AUTHENTICATING)
            headers = bearer_header(self._auth.issue(principal))

            machine.advance(DispatchState.PUBLISHING)
        except Exception as exc:  # noqa: BLE001
            failed_in = machine.state
            machine.abort(f"{type(exc).__name__}: {exc}")
            logger.error(
                "Dispatch %s for %s %s aborted while %s: %s",
                dispatch_id,
                entity.entity_type,
                entity.id,
                failed_in.value,
                exc,
            )
            return self._result(dispatch_id, machine, resolution, event, exc)

        try:
            self._publisher.publish(task.queue, headers, body)
        except Exception as exc:  # noqa: BLE001
            machine.abort(f"{type(exc).__name__}: {exc}")
            logger.error(
                "Dispatch %s: publish to %s via %s failed: %s",
                dispatch_id,
                task.queue,
                self._publisher.publisher_name,
                exc,
            )
            return self._result(dispatch_id, machine, resolution, event, exc)

        machine.advance(DispatchState.DONE)
        logger.info(
            "Dispatch %s: published %r for %s %s to %s (%s)",
            dispatch_id,
            task.event,
            entity.entity_type,
            entity.id,
            task.queue,
            locator_key(resolution.source_locator, resolution.destination_locator),
        )
        return self._result(dispatch_id, machine, resolution, event, None)

    def _upload_uri(
        self, entity: TriggerEntity, task: Any, resolution: Resolution
    ) -> str | None:
        if not isinstance(task, SemanticTagConfig):
            return None
        context = TokenContext(
            entity=entity,
            media=resolution.media,
            term=resolution.derivative_term,
            mimetype=task.mimetype,
            dispatch_time=self._clock(),
        )
        return self._engine.render_uri(task.scheme, task.path, context)

    @staticmethod
    def _result(
        dispatch_id: str,
        machine: DispatchStateMachine,
        resolution: Resolution | None,
        event: CanonicalEvent | None,
        error: Exception | None,
    ) -> DispatchResult:
        return DispatchResult(
            dispatch_id=dispatch_id,
            state=machine.state,
            transitions=machine.transitions,
            resolution=resolution,
            event=event,
            error=error,
        )

    # ------------------------------------------------------------------
    # Trigger wiring
    # ------------------------------------------------------------------

    def listen(
        self,
        source: TriggerSource,
        config: Any,
        *,
        entity_type: str | None = "node",
        kinds: set[MutationKind] | None = None,
    ) -> Callable[[EntityMutation], DispatchResult]:
        """Subscribe to *source*, dispatching *config* for each mutation.

        *config* is parsed once here; returns the registered handler so
        callers can unsubscribe it.
        """
        task = config if isinstance(config, TaskConfigBase) else parse_task_config(config)

        def _handle(mutation: EntityMutation) -> DispatchResult:
            return self.dispatch(mutation.entity, task)

        source.subscribe(_handle, entity_type=entity_type, kinds=kinds)
        return _handle
