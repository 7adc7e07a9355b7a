# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for EduTransfer.

All timestamps are stored as timezone-aware UTC. Some drivers (SQLite in
particular) hand back naive datetimes, so comparisons against stored values
go through ensure_utc() first.

Usage:
    from edutransfer.utils.datetime import utc_now

    created_at = mapped_column(DateTime(timezone=True), default=utc_now)
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Note:
        - If dt is None, returns None
        - If dt is naive, assumes UTC and adds tzinfo
        - If dt is aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def days_ago(days: int) -> datetime:
    """Get a datetime N days ago from now."""
    return utc_now() - timedelta(days=days)


def days_from_now(days: int) -> datetime:
    """Get a datetime N days from now."""
    return utc_now() + timedelta(days=days)


def is_expired(expiry: datetime | None, at: datetime | None = None) -> bool:
    """Check if a datetime has passed (is expired).

    Args:
        expiry: The expiry datetime to check.
        at: Reference instant; defaults to now.

    Returns:
        True if expired or expiry is None, False otherwise.
    """
    if expiry is None:
        return True

    reference = ensure_utc(at) if at is not None else utc_now()
    return reference > ensure_utc(expiry)
