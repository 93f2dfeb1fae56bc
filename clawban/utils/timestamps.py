"""Timestamp helpers."""

from datetime import datetime, timezone


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with fixed millisecond precision.

    Fixed precision keeps lexical order equal to chronological order.
    """
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")
