"""Path template engine: replaces ``[namespace:property]`` tokens."""

from __future__ import annotations

import re

from derivcast.core.tokens import TokenContext, TokenRegistry, default_registry
from derivcast.errors import TemplateError

TOKEN_PATTERN = re.compile(r"\[([^\s\[\]:]+):([^\[\]]+)\]")
_SEPARATORS = "\\/"


class PathTemplateEngine:
    """Substitutes contextual tokens into storage path templates.

    Parameters
    ----------
    registry:
        Namespace resolvers.  Defaults to :func:`default_registry`.
    """

    def __init__(self, registry: TokenRegistry | None = None) -> None:
        self._registry = registry or default_registry()

    @property
    def registry(self) -> TokenRegistry:
        return self._registry

    @staticmethod
    def tokens(template: str) -> list[str]:
        """Return every token in *template*, in order of appearance."""
        return [m.group(0) for m in TOKEN_PATTERN.finditer(template)]

    def unknown_namespaces(self, template: str) -> list[str]:
        """Namespaces used in *template* that no resolver handles."""
        return sorted(
            {
                m.group(1)
                for m in TOKEN_PATTERN.finditer(template)
                if m.group(1) not in self._registry
            }
        )

    def render(self, template: str, context: TokenContext) -> str:
        """Replace every token and strip leading/trailing separators.

        Raises
        ------
        TemplateError
            If any token cannot be resolved.  Nothing is partially
            rendered; all unresolved tokens are reported together.
        """
        unresolved: list[str] = []

        def _replace(match: re.Match[str]) -> str:
            value = self._registry.resolve(match.group(1), match.group(2), context)
            if value is None:
                unresolved.append(match.group(0))
                return match.group(0)
            return value

        rendered = TOKEN_PATTERN.sub(_replace, template)
        if unresolved:
            raise TemplateError(template, unresolved)
        return rendered.strip(_SEPARATORS)

    @staticmethod
    def storage_uri(scheme: str, path: str) -> str:
        """Join *scheme* and *path* into ``scheme://path``.

        Idempotent: a *path* that already carries ``scheme://`` is
        returned unchanged.
        """
        prefix = f"{scheme}://"
        if path.startswith(prefix):
            return path
        return prefix + path.strip(_SEPARATORS)

    def render_uri(self, scheme: str, template: str, context: TokenContext) -> str:
        return self.storage_uri(scheme, self.render(template, context))
