"""Helpers shared by CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from derivcast.errors import ConfigError


def load_json(path: Path, console: Console) -> Any:
    """Read a JSON document, exiting with a readable message on failure."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        console.print(f"[red]File not found:[/red] {path}")
        raise typer.Exit(code=2)
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid JSON in {path}:[/red] {exc}")
        raise typer.Exit(code=2)


def config_error_table(error: ConfigError) -> Table:
    table = Table(title="Configuration errors", show_lines=False)
    table.add_column("Field", style="cyan")
    table.add_column("Problem", style="red")
    for field, message in error.errors.items():
        table.add_row(field, message)
    return table
