"""Canonical JSON encoding and hashing of serialized scenario state."""

import hashlib
import json
from typing import Any


def canonical_json(obj: Any) -> str:
    """Deterministic, compact JSON text.

    * Keys are sorted.
    * No extra whitespace.
    * NaN and infinities are rejected, so a corrupted metric cannot be saved.
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def compute_state_hash(document: Any) -> str:
    """SHA-256 hex digest of the canonical encoding of ``document``."""
    return hashlib.sha256(canonical_json(document).encode("utf-8")).hexdigest()
