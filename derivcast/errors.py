"""Error taxonomy shared across configuration and dispatch.

Configuration-time errors (``ConfigError``) are raised when a task
configuration is saved.  Dispatch-time errors (``ResolutionError``,
``TemplateError``, ``AuthError``) abort a dispatch before anything is
published.  ``PublishError`` is the only error that can occur after an
event has been fully built.
"""

from __future__ import annotations


class DerivcastError(Exception):
    """Base class for every error raised by derivcast."""


class ConfigError(DerivcastError, ValueError):
    """Raised when a derivative task configuration is invalid.

    ``errors`` maps a configuration field name to a human-readable
    message, suitable for field-level display in an admin surface.
    """

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        detail = "; ".join(f"{field}: {msg}" for field, msg in self.errors.items())
        super().__init__(f"Invalid task configuration: {detail}")


class ResolutionError(DerivcastError, LookupError):
    """Raised when a source or destination locator cannot be resolved."""


class TemplateError(DerivcastError, ValueError):
    """Raised when a path template contains tokens that cannot be replaced."""

    def __init__(self, template: str, unresolved: list[str]) -> None:
        self.template = template
        self.unresolved = list(unresolved)
        super().__init__(
            f"Unresolved tokens in {template!r}: {', '.join(self.unresolved)}"
        )


class AuthError(DerivcastError, RuntimeError):
    """Raised when a bearer credential cannot be issued."""


class PublishError(DerivcastError, RuntimeError):
    """Raised when the broker is unreachable or rejects a write."""
