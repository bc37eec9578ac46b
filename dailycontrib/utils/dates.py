"""Date helpers shared by the catalog and the pipeline."""

from __future__ import annotations

from datetime import date, datetime, timezone


def current_date(*, use_utc: bool = True) -> date:
    """Return today's calendar day in UTC or in the local timezone."""

    if use_utc:
        return datetime.now(timezone.utc).date()
    return datetime.now().date()


def display_date(value: date) -> str:
    """Format ``value`` for humans, e.g. ``January 15, 2024``."""

    return f"{value.strftime('%B')} {value.day}, {value.year}"


__all__ = ["current_date", "display_date"]
