"""Digest and timestamp helpers for the fetch manifest."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone


def sha256_text(text: str) -> str:
    """Return the hex SHA-256 digest of *text* encoded as UTF-8."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def utcnow_iso() -> str:
    """Current UTC time, to the second, as ISO-8601."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()
