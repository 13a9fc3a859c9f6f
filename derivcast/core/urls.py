"""Absolute URL construction for repository routes."""

from __future__ import annotations

from derivcast.models.entities import Principal, TriggerEntity


class UrlGenerator:
    """Builds the absolute URLs that appear in published events.

    Parameters
    ----------
    base_url:
        Scheme and host of the repository, e.g. ``https://repo.example.org``.
    """

    def __init__(self, base_url: str) -> None:
        self._base = base_url.rstrip("/")

    @property
    def base_url(self) -> str:
        return self._base

    def entity_url(self, entity: TriggerEntity) -> str:
        return f"{self._base}/{entity.entity_type}/{entity.id}"

    def principal_url(self, principal: Principal) -> str:
        return f"{self._base}/user/{principal.uid}"

    def media_put_url(
        self, entity: TriggerEntity, media_type: str, term_id: int
    ) -> str:
        """Route a worker PUTs the derivative to, creating or updating media."""
        return (
            f"{self._base}/{entity.entity_type}/{entity.id}"
            f"/media/{media_type}/{term_id}"
        )
