"""derivcast CLI: Typer-based command-line interface.

Provides the ``derivcast`` command with subcommands for printing default
task configurations, validating configurations against a fixture
repository, and running a dispatch end to end.

All output uses Rich for formatted terminal display.
"""
