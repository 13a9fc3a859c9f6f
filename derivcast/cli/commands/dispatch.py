"""``derivcast dispatch``: run one dispatch end to end.

Validates the configuration, resolves the entity from a fixture
repository, and publishes through the configured broker backend.  With
the ``local`` backend nothing leaves the process; the published message
is printed instead.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from derivcast.bridge.auth import JwtAuthProvider
from derivcast.cli.commands._common import config_error_table, load_json
from derivcast.config import settings
from derivcast.core.dispatcher import Dispatcher
from derivcast.core.urls import UrlGenerator
from derivcast.core.validation import TaskConfigValidator
from derivcast.errors import AuthError, ConfigError
from derivcast.models.dispatch import DispatchState
from derivcast.models.entities import Principal
from derivcast.publishing import build_publisher
from derivcast.publishing.local_queue import LocalQueuePublisher
from derivcast.repository import StaticPrincipalSource
from derivcast.repository.memory import InMemoryRepository

console = Console()


def dispatch_cmd(
    config_path: Path = typer.Argument(..., help="Task configuration JSON file."),
    fixtures: Path = typer.Option(
        ..., "--fixtures", "-f", help="Repository fixture JSON."
    ),
    entity_type: str = typer.Option("node", "--entity-type", "-t"),
    entity_id: int = typer.Option(..., "--entity-id", "-i", help="Trigger entity id."),
    backend: str = typer.Option(
        None, "--backend", "-b", help="Broker backend: local or stomp (default from settings)."
    ),
    uid: int = typer.Option(1, "--uid", help="Acting principal's user id."),
    user_name: str = typer.Option("admin", "--user", help="Acting principal's name."),
    jwt_secret: str = typer.Option(
        None, "--jwt-secret", envvar="DERIVCAST_JWT_SECRET", help="HS* signing secret."
    ),
) -> None:
    """Dispatch a derivative request for one entity."""
    cfg = settings.model_copy(
        update={
            k: v
            for k, v in {"broker_backend": backend, "jwt_secret": jwt_secret}.items()
            if v is not None
        }
    )

    repository = InMemoryRepository.load(fixtures, base_url=cfg.base_url)
    entity = repository.lookup_entity(entity_type, entity_id)
    if entity is None:
        console.print(f"[red]No {entity_type} with id {entity_id} in {fixtures}[/red]")
        raise typer.Exit(code=2)

    validator = TaskConfigValidator(
        repository, repository, repository, entity_type=entity_type
    )
    try:
        task = validator.validate(load_json(config_path, console))
    except ConfigError as exc:
        console.print(config_error_table(exc))
        raise typer.Exit(code=1)

    urls = UrlGenerator(cfg.base_url)
    try:
        auth = JwtAuthProvider.from_settings(cfg, urls=urls)
    except AuthError as exc:
        console.print(f"[red]Auth setup failed:[/red] {exc}")
        raise typer.Exit(code=1)

    publisher = build_publisher(cfg)
    dispatcher = Dispatcher.from_repository(
        repository,
        auth=auth,
        publisher=publisher,
        principals=StaticPrincipalSource(Principal(uid=uid, name=user_name)),
        base_url=cfg.base_url,
    )
    result = dispatcher.dispatch(entity, task)

    table = Table(title=f"Dispatch {result.dispatch_id}")
    table.add_column("From", style="dim")
    table.add_column("To", style="cyan")
    table.add_column("Reason", style="red")
    for t in result.transitions:
        table.add_row(t.from_state.value, t.to_state.value, t.reason or "")
    console.print(table)

    if result.event is not None:
        console.print(
            Panel(
                Syntax(json.dumps(result.event.to_wire(), indent=2), "json"),
                title=f"Event for {task.queue}",
                border_style="green" if result.published else "yellow",
            )
        )

    if isinstance(publisher, LocalQueuePublisher):
        for message in publisher.drain():
            console.print(f"[dim]queued on {message.queue}: {len(message.body)} bytes[/dim]")

    if result.state != DispatchState.DONE:
        raise typer.Exit(code=1)
