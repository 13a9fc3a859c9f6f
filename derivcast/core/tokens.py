"""Token resolvers: one function per token namespace.

A resolver receives the property part of a token (``custom:Y`` for
``[date:custom:Y]``) and the context bundle, and returns the replacement
text or ``None`` when it cannot supply one.  New namespaces are added by
registering a function on a :class:`TokenRegistry`; the templating engine
itself never changes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from derivcast.models.entities import MediaItem, Term, TriggerEntity

logger = logging.getLogger(__name__)


class TokenContext(BaseModel):
    """Objects available to token resolvers during one dispatch."""

    model_config = ConfigDict(frozen=True)

    entity: TriggerEntity | None = None
    media: MediaItem | None = None
    term: Term | None = None
    mimetype: str = ""
    dispatch_time: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


TokenResolver = Callable[[str, TokenContext], "str | None"]


class TokenRegistry:
    """Maps a token namespace to its resolver function."""

    def __init__(self) -> None:
        self._resolvers: dict[str, TokenResolver] = {}

    def register(self, namespace: str, resolver: TokenResolver) -> None:
        """Register (or replace) the resolver for *namespace*."""
        if namespace in self._resolvers:
            logger.debug("Replacing token resolver for namespace %r", namespace)
        self._resolvers[namespace] = resolver

    def unregister(self, namespace: str) -> None:
        self._resolvers.pop(namespace, None)

    @property
    def namespaces(self) -> list[str]:
        return sorted(self._resolvers)

    def __contains__(self, namespace: object) -> bool:
        return namespace in self._resolvers

    def resolve(self, namespace: str, prop: str, context: TokenContext) -> str | None:
        resolver = self._resolvers.get(namespace)
        if resolver is None:
            return None
        return resolver(prop, context)


# ---------------------------------------------------------------------------
# Date formatting (PHP-style format characters)
# ---------------------------------------------------------------------------

_DATE_CHARS: dict[str, Callable[[datetime], str]] = {
    "Y": lambda d: f"{d.year:04d}",
    "y": lambda d: f"{d.year % 100:02d}",
    "m": lambda d: f"{d.month:02d}",
    "n": lambda d: str(d.month),
    "d": lambda d: f"{d.day:02d}",
    "j": lambda d: str(d.day),
    "H": lambda d: f"{d.hour:02d}",
    "G": lambda d: str(d.hour),
    "i": lambda d: f"{d.minute:02d}",
    "s": lambda d: f"{d.second:02d}",
    "U": lambda d: str(int(d.timestamp())),
    "M": lambda d: d.strftime("%b"),
    "F": lambda d: d.strftime("%B"),
    "D": lambda d: d.strftime("%a"),
    "l": lambda d: d.strftime("%A"),
}


def format_date(fmt: str, moment: datetime) -> str:
    """Format *moment* using PHP ``date()`` characters; ``\\`` escapes."""
    out: list[str] = []
    escaped = False
    for ch in fmt:
        if escaped:
            out.append(ch)
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch in _DATE_CHARS:
            out.append(_DATE_CHARS[ch](moment))
        else:
            out.append(ch)
    return "".join(out)


# ---------------------------------------------------------------------------
# Built-in resolvers
# ---------------------------------------------------------------------------


def entity_tokens(prop: str, context: TokenContext) -> str | None:
    entity = context.entity
    if entity is None:
        return None
    values = {
        "nid": entity.id,
        "id": entity.id,
        "title": entity.title,
        "type": entity.bundle,
        "bundle": entity.bundle,
        "uuid": entity.uuid,
    }
    value = values.get(prop)
    return None if value in (None, "") else str(value)


def media_tokens(prop: str, context: TokenContext) -> str | None:
    media = context.media
    if media is None:
        return None
    values = {"mid": media.mid, "id": media.mid, "name": media.name, "bundle": media.bundle}
    value = values.get(prop)
    return None if value in (None, "") else str(value)


def term_tokens(prop: str, context: TokenContext) -> str | None:
    term = context.term
    if term is None:
        return None
    values = {"tid": term.tid, "id": term.tid, "name": term.name, "vid": term.vocabulary}
    value = values.get(prop)
    return None if value in (None, "") else str(value)


def date_tokens(prop: str, context: TokenContext) -> str | None:
    moment = context.dispatch_time
    if prop.startswith("custom:"):
        fmt = prop[len("custom:"):]
        return format_date(fmt, moment) if fmt else None
    if prop == "timestamp":
        return str(int(moment.timestamp()))
    if prop == "iso":
        return moment.isoformat()
    return None


def derivative_tokens(prop: str, context: TokenContext) -> str | None:
    parts = context.mimetype.split("/")
    if len(parts) != 2 or not all(parts):
        return None
    if prop == "extension":
        return parts[1]
    if prop == "mimetype":
        return context.mimetype
    return None


def default_registry() -> TokenRegistry:
    """Return a registry with the built-in namespaces."""
    registry = TokenRegistry()
    registry.register("node", entity_tokens)
    registry.register("entity", entity_tokens)
    registry.register("media", media_tokens)
    registry.register("term", term_tokens)
    registry.register("date", date_tokens)
    registry.register("derivative", derivative_tokens)
    return registry
