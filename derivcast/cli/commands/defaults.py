"""``derivcast defaults``: print the default task configuration."""

from __future__ import annotations

import json

import typer
from rich.console import Console
from rich.syntax import Syntax

from derivcast.models.task_config import Strategy, default_configuration

console = Console()


def defaults_cmd(
    strategy: Strategy = typer.Option(
        Strategy.SEMANTIC_TAG,
        "--strategy",
        "-s",
        help="Mapping strategy to print defaults for.",
    ),
) -> None:
    """Print the default configuration for a mapping strategy.

    Blank values mark fields that must be filled in before saving.
    """
    data = default_configuration(strategy)
    console.print(Syntax(json.dumps(data, indent=2), "json"))
