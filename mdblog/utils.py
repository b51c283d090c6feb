from __future__ import annotations

import datetime as dt

DATE_FMT = "%Y-%m-%d"


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return False


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def join_url(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return base
    return f"{base}/{path}"


def format_date(value: object) -> str:
    """Normalise a front matter date value to ``YYYY-MM-DD``."""
    if isinstance(value, dt.datetime):
        return value.date().isoformat()
    if isinstance(value, dt.date):
        return value.isoformat()
    if value is None:
        return ""
    return str(value).strip()


def timestamp_date(timestamp: float) -> str:
    return dt.datetime.fromtimestamp(timestamp, tz=dt.timezone.utc).strftime(DATE_FMT)


def rfc822_date(value: str) -> str:
    try:
        parsed = dt.datetime.strptime(value[:10], DATE_FMT)
    except ValueError:
        return ""
    parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.strftime("%a, %d %b %Y %H:%M:%S %z")
