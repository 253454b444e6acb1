"""Timestamp helpers shared by table models."""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    # Application-side timestamps keep sub-second ordering on every backend.
    return datetime.now(timezone.utc)
