"""Identifier and timestamp helpers for persisted records."""

import uuid
from datetime import datetime, timezone


def new_id() -> str:
    """Opaque record identifier (uuid4, hex)."""
    return uuid.uuid4().hex


def utc_now() -> str:
    """Current UTC time as ISO-8601 with microseconds, so rows sort by creation."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")
