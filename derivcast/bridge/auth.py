"""Bearer credentials for published events.

Each dispatch carries a short-lived JWT bound to the acting principal in
its ``Authorization`` header, so workers can call back into the
repository (fetch the source, PUT the derivative) as that principal.

Signing uses PyJWT.  HS* algorithms sign with ``jwt_secret``; RS*/ES*/EdDSA
algorithms sign with the PEM key at ``jwt_private_key_path``.  Any failure
is raised as ``AuthError`` and stops the dispatch before publishing.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import jwt

from derivcast.config import Settings, settings
from derivcast.core.urls import UrlGenerator
from derivcast.errors import AuthError
from derivcast.models.entities import Principal

logger = logging.getLogger(__name__)


@runtime_checkable
class AuthProvider(Protocol):
    """Issues a signed credential for a principal."""

    def issue(self, principal: Principal) -> str:
        ...


def bearer_header(token: str) -> dict[str, str]:
    """Return the ``Authorization`` header for *token*."""
    return {"Authorization": f"Bearer {token}"}


class JwtAuthProvider:
    """Issues short-lived JWTs.

    Parameters
    ----------
    algorithm:
        JWT signing algorithm (``HS256``, ``RS256``, ...).
    secret:
        Shared secret for HS* algorithms.
    private_key:
        PEM-encoded private key for asymmetric algorithms.
    issuer:
        Value of the ``iss`` claim.
    ttl_seconds:
        Lifetime of each token.
    urls:
        When given, adds a ``webid`` claim with the principal's URL.
    """

    def __init__(
        self,
        *,
        algorithm: str = "HS256",
        secret: str = "",
        private_key: str = "",
        issuer: str = "derivcast",
        ttl_seconds: int = 300,
        urls: UrlGenerator | None = None,
    ) -> None:
        self._algorithm = algorithm
        self._secret = secret
        self._private_key = private_key
        self._issuer = issuer
        self._ttl = timedelta(seconds=ttl_seconds)
        self._urls = urls

    @classmethod
    def from_settings(
        cls, cfg: Settings | None = None, *, urls: UrlGenerator | None = None
    ) -> JwtAuthProvider:
        cfg = cfg or settings
        private_key = ""
        if cfg.jwt_private_key_path is not None:
            try:
                private_key = Path(cfg.jwt_private_key_path).read_text(encoding="utf-8")
            except OSError as exc:
                raise AuthError(
                    f"Cannot read JWT private key {cfg.jwt_private_key_path}: {exc}"
                ) from exc
        return cls(
            algorithm=cfg.jwt_algorithm,
            secret=cfg.jwt_secret,
            private_key=private_key,
            issuer=cfg.jwt_issuer,
            ttl_seconds=cfg.jwt_ttl_seconds,
            urls=urls or UrlGenerator(cfg.base_url),
        )

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def _signing_key(self) -> str:
        key = self._secret if self._algorithm.startswith("HS") else self._private_key
        if not key:
            raise AuthError(f"No signing key configured for {self._algorithm}")
        return key

    def claims(self, principal: Principal, *, now: datetime | None = None) -> dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "iss": self._issuer,
            "sub": str(principal.uid),
            "uid": principal.uid,
            "name": principal.name,
            "roles": list(principal.roles),
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttl).timestamp()),
            "jti": secrets.token_hex(16),
        }
        if self._urls is not None:
            payload["webid"] = self._urls.principal_url(principal)
        return payload

    def issue(self, principal: Principal) -> str:
        """Sign a token for *principal*.

        Raises
        ------
        AuthError
            If no key is configured or signing fails.
        """
        key = self._signing_key()
        try:
            token = jwt.encode(self.claims(principal), key, algorithm=self._algorithm)
        except (jwt.PyJWTError, NotImplementedError, ValueError, TypeError) as exc:
            raise AuthError(f"JWT signing failed ({self._algorithm}): {exc}") from exc
        logger.debug("Issued %s token for uid %s", self._algorithm, principal.uid)
        return token

    def decode(self, token: str, *, verification_key: str | None = None) -> dict[str, Any]:
        """Verify and decode a token issued by this provider."""
        key = verification_key or self._secret
        return jwt.decode(
            token, key, algorithms=[self._algorithm], issuer=self._issuer
        )
