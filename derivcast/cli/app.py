"""Main Typer application: imports and registers all CLI commands.

Entry point: ``derivcast`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import typer

from derivcast.cli.commands.defaults import defaults_cmd
from derivcast.cli.commands.dispatch import dispatch_cmd
from derivcast.cli.commands.validate import validate_cmd
from derivcast.config import settings
from derivcast.logging_config import setup_logging

app = typer.Typer(
    name="derivcast",
    help="derivcast: publish derivative-generation requests to a message broker.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    setup_logging(settings.log_level, verbose=verbose)


# Register subcommands
app.command(name="defaults", help="Print the default task configuration.")(defaults_cmd)
app.command(name="validate", help="Validate a task configuration.")(validate_cmd)
app.command(name="dispatch", help="Dispatch a derivative request for one entity.")(dispatch_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
