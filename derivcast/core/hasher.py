"""Canonical serialization helpers for wire payloads.

Every published body goes through ``canonical_json_bytes`` so that two
dispatches producing the same event produce byte-identical bodies, which
lets consumers deduplicate on content.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """Serialize *obj* the way every published message body is serialized."""
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Digest behind :func:`locator_key`."""
    return hashlib.sha256(data).hexdigest()


def locator_key(source: str, destination: str) -> str:
    """Key identifying one (source, destination) derivative request.

    Consumers are expected to be idempotent on this pair; derivcast logs
    it so duplicate emissions can be correlated.
    """
    payload = {"source": source, "destination": destination}
    return f"sha256:{sha256_hex(canonical_json_bytes(payload))}"
