"""Small helpers shared by the token, auth and storage layers."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_year() -> datetime:
    now = utcnow()
    try:
        return now.replace(year=now.year + 1)
    except ValueError:  # Feb 29
        return now.replace(year=now.year + 1, day=28)


def next_month() -> datetime:
    now = utcnow()
    year, month = (now.year + 1, 1) if now.month == 12 else (now.year, now.month + 1)
    for day in (now.day, 30, 29, 28):
        try:
            return now.replace(year=year, month=month, day=day)
        except ValueError:
            continue
    raise AssertionError("unreachable")


def next_hour() -> datetime:
    return utcnow() + timedelta(hours=1)


def to_iso8601(moment: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and Z suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def from_iso8601(text: str) -> datetime:
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


def to_epoch_seconds(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


def make_uuid4() -> str:
    return str(uuid.uuid4())


def update_query_string_parameter(url: str, key: str, value: str) -> str:
    """Set key=value in url's query string, replacing any existing value."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != key]
    query.append((key, value))
    return urlunsplit(parts._replace(query=urlencode(query)))


def _version_tuple(version: str) -> tuple[int, ...]:
    parts = []
    for piece in version.split("."):
        digits = "".join(c for c in piece if c.isdigit())
        parts.append(int(digits) if digits else 0)
    return tuple(parts)


def is_later_version(v1: str, v2: str) -> bool:
    """True if dotted version v1 >= v2, e.g. is_later_version("1.1.0", "1.0.9")."""
    a, b = _version_tuple(v1), _version_tuple(v2)
    width = max(len(a), len(b))
    a += (0,) * (width - len(a))
    b += (0,) * (width - len(b))
    return a >= b


def is_same_origin_absolute_url(url1: str, url2: str) -> bool:
    """Scheme, host and effective port match, and both URLs are absolute."""
    p1, p2 = urlsplit(url1), urlsplit(url2)
    if not (p1.scheme and p1.hostname and p2.scheme and p2.hostname):
        return False
    default_ports = {"http": 80, "https": 443}
    try:
        port1 = p1.port or default_ports.get(p1.scheme)
        port2 = p2.port or default_ports.get(p2.scheme)
    except ValueError:
        return False
    return (p1.scheme, p1.hostname, port1) == (p2.scheme, p2.hostname, port2)
