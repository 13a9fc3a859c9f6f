"""``derivcast validate``: check a task configuration before saving it."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from derivcast.cli.commands._common import config_error_table, load_json
from derivcast.core.validation import TaskConfigValidator
from derivcast.errors import ConfigError
from derivcast.repository.memory import InMemoryRepository

console = Console()


def validate_cmd(
    config_path: Path = typer.Argument(..., help="Task configuration JSON file."),
    fixtures: Path = typer.Option(
        ...,
        "--fixtures",
        "-f",
        help="Repository fixture JSON (terms, fields, media).",
    ),
    entity_type: str = typer.Option(
        "node", "--entity-type", "-t", help="Entity type the action runs on."
    ),
) -> None:
    """Validate a task configuration against a fixture repository.

    Exits with status 1 and a field-by-field table when invalid.
    """
    raw = load_json(config_path, console)
    repository = InMemoryRepository.load(fixtures)
    validator = TaskConfigValidator(
        repository, repository, repository, entity_type=entity_type
    )

    try:
        config = validator.validate(raw)
    except ConfigError as exc:
        console.print(config_error_table(exc))
        raise typer.Exit(code=1)

    console.print(
        f"[bold green]Valid[/bold green] {config.strategy} configuration "
        f"for queue [cyan]{config.queue}[/cyan]"
    )
