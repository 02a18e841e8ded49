"""Timestamps embedded in rotated log file names."""

from __future__ import annotations

import re
from datetime import datetime, timezone

__all__ = [
    "BACKUP_TIME_LAYOUT",
    "format_backup_time",
    "parse_backup_time",
    "strftime_to_parse_pattern",
    "parse_with_pattern",
]

BACKUP_TIME_LAYOUT = "YYYY-MM-DDTHH-MM-SS.mmm"

_BACKUP_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2})-(\d{2})-(\d{2})[.,](\d{3})"
)

_FIELD_DIRECTIVES = "YmdHMS"
_FIELD_NAMES = {
    "Y": "year",
    "m": "month",
    "d": "day",
    "H": "hour",
    "M": "minute",
    "S": "second",
}
_PATTERN_TOKEN_RE = re.compile(r"%[YmdHMS]|%%|%|[^%]+")


def format_backup_time(moment: datetime) -> str:
    """Render ``moment`` as it appears in a backup file name, to milliseconds."""
    return (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}-{moment.minute:02d}-{moment.second:02d}"
        f".{moment.microsecond // 1000:03d}"
    )


def parse_backup_time(text: str) -> datetime:
    """Read a backup file name timestamp back into a UTC datetime.

    Raises :class:`ValueError` if ``text`` is not exactly such a timestamp.
    """
    match = _BACKUP_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"cannot parse {text!r} as a backup timestamp")
    year, month, day, hour, minute, second, millis = map(int, match.groups())
    return datetime(
        year, month, day, hour, minute, second, millis * 1000, tzinfo=timezone.utc
    )


def strftime_to_parse_pattern(pattern: str) -> str:
    """Turn a file name strftime pattern into a pattern for reading names back.

    Only ``%Y``, ``%m``, ``%d``, ``%H``, ``%M`` and ``%S`` stay fields; every
    other ``%`` becomes literal text, so names made with other directives
    will not parse.
    """
    return re.sub(r"%(?![YmdHMS])", "%%", pattern)


def parse_with_pattern(pattern: str, text: str) -> datetime:
    """Parse ``text`` against a pattern made by :func:`strftime_to_parse_pattern`.

    ``%Y`` takes four digits and the other fields two; ``%%`` stands for a
    literal ``%`` and any other text must match exactly. Fields the pattern
    lacks default to the first of January of year 1, midnight. The result is
    in UTC. Raises :class:`ValueError` when ``text`` does not fit.
    """
    parts: list[str] = []
    fields: list[str] = []
    for token in _PATTERN_TOKEN_RE.findall(pattern):
        if len(token) == 2 and token[0] == "%" and token[1] in _FIELD_DIRECTIVES:
            parts.append(r"(\d{4})" if token[1] == "Y" else r"(\d{2})")
            fields.append(_FIELD_NAMES[token[1]])
        elif token == "%%":
            parts.append(re.escape("%"))
        else:
            parts.append(re.escape(token))

    match = re.fullmatch("".join(parts), text)
    if match is None:
        raise ValueError(f"{text!r} does not match pattern {pattern!r}")

    values = {"year": 1, "month": 1, "day": 1, "hour": 0, "minute": 0, "second": 0}
    values.update(zip(fields, map(int, match.groups())))
    return datetime(tzinfo=timezone.utc, **values)