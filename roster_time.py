from __future__ import annotations

import datetime as _dt
from typing import Any, Callable

# Canonical storage format. Lexical order of these strings is chronological order,
# which the interval store relies on for SQL comparisons.
TS_FORMAT = "%Y-%m-%d %H:%M:%S"

Clock = Callable[[], str]


def require_ts(value: Any, *, field: str = "at") -> str:
    """
    Normalize a datetime-like value into ``YYYY-MM-DD HH:MM:SS``.

    Accepts datetime, date (midnight), or an ISO string (``T`` separator,
    trailing ``Z`` and fractional seconds are tolerated). Fail-loud.
    """
    if value is None:
        raise ValueError(f"{field} is required")
    if isinstance(value, _dt.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(_dt.timezone.utc).replace(tzinfo=None)
        return value.replace(microsecond=0).strftime(TS_FORMAT)
    if isinstance(value, _dt.date):
        return _dt.datetime(value.year, value.month, value.day).strftime(TS_FORMAT)

    s = str(value).strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        parsed = _dt.datetime.fromisoformat(s)
    except ValueError as exc:
        raise ValueError(f"Invalid {field}: {value!r}") from exc
    return require_ts(parsed, field=field)


def optional_ts(value: Any, *, field: str = "at") -> str | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return require_ts(value, field=field)


def parse_ts(value: str) -> _dt.datetime:
    return _dt.datetime.strptime(require_ts(value), TS_FORMAT)


def shift_ts(value: str, **delta: float) -> str:
    """Return ``value`` moved by ``timedelta(**delta)``."""
    return require_ts(parse_ts(value) + _dt.timedelta(**delta))


def wall_clock_ts() -> str:
    # Only the API edge reads the host clock; the lifecycle engine always receives
    # its clock as a dependency.
    return require_ts(_dt.datetime.now(_dt.timezone.utc))


def fixed_clock(value: Any) -> Clock:
    ts = require_ts(value, field="now")
    return lambda: ts
