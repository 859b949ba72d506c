"""Helpers for rendering durations and timestamps and for reading date ranges."""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

DEFAULT_LOOKBACK = timedelta(days=30)

_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_INVALID_DATE = "Invalid date format. Please use YYYY-MM-DD"


def format_duration(delta: timedelta) -> str:
    """Render a duration truncated to whole seconds, such as '1h2m3s' or '45s'."""
    micros = delta // timedelta(microseconds=1)
    sign = "-" if micros < 0 else ""
    total = abs(micros) // 1_000_000
    if total == 0:
        return "0s"
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def format_timestamp(moment: datetime) -> str:
    """Render a timestamp as 'YYYY-MM-DD HH:MM:SS ZONE'."""
    return moment.strftime("%Y-%m-%d %H:%M:%S %Z").rstrip()


def median_duration(durations: Iterable[timedelta]) -> timedelta:
    """Return the median duration, or zero for no durations."""
    ordered = sorted(durations)
    count = len(ordered)
    if count == 0:
        return timedelta(0)
    middle = count // 2
    if count % 2:
        return ordered[middle]
    return (ordered[middle - 1] + ordered[middle]) // 2


def _parse_day(text: str) -> datetime:
    if not _DATE_RE.fullmatch(text):
        raise ValueError(f"{_INVALID_DATE}: {text!r}")
    try:
        parsed = datetime.strptime(text, "%Y-%m-%d")
    except ValueError as exc:
        raise ValueError(f"{_INVALID_DATE}: {exc}") from exc
    return parsed.replace(tzinfo=timezone.utc)


def parse_date_range(
    since: str | None, until: str | None, now: datetime | None = None
) -> tuple[datetime, datetime]:
    """Resolve the --since/--until options into a (start, end) pair.

    Missing values default to thirty days before now and to now.
    """
    if now is None:
        now = datetime.now().astimezone()
    elif now.tzinfo is None:
        now = now.astimezone()
    start = _parse_day(since) if since else now - DEFAULT_LOOKBACK
    end = _parse_day(until) if until else now
    if start > end:
        raise ValueError("Start date cannot be after end date")
    return start, end