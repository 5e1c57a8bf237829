"""Timestamps that remember whether their UTC offset was explicit.

An XML Schema ``dateTime`` may omit its zone (``2019-07-05T08:30:00``). Such a
value cannot be placed on the timeline without guessing, so
:class:`TimeInstant` keeps it as a naive ``datetime`` and reports
``has_explicit_utc_offset == False``. Values with ``Z`` or ``+hh:mm`` are
converted to UTC and flagged as explicit.

Example:
    >>> t = TimeInstant.from_xsd_datetime("2019-07-05T11:30:00+03:00")
    >>> t.value.isoformat()
    '2019-07-05T08:30:00+00:00'
    >>> t.has_explicit_utc_offset
    True
    >>> t.to_xsd_datetime()
    '2019-07-05T08:30:00.000Z'

Notes:
    Output is always UTC with a ``Z`` marker. A naive value is read as system
    local time when written or compared, so after a round trip it comes back
    as an explicit UTC instant.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional, Tuple

from .errors import IllegalDateTimeError

_XSD_DATETIME = re.compile(
    r"^(?P<year>-?[0-9]{4,})-(?P<month>[0-9]{2})-(?P<day>[0-9]{2})"
    r"T(?P<hour>[0-9]{2}):(?P<minute>[0-9]{2}):(?P<second>[0-9]{2})"
    r"(?:\.(?P<fraction>[0-9]+))?"
    r"(?P<zone>Z|[+-][0-9]{2}:[0-9]{2})?\Z"
)

_UTC_ZONE_KEYS = ("UTC", "Etc/UTC")


def _is_utc(zone: Optional[tzinfo]) -> bool:
    if zone is None:
        return False
    if zone == timezone.utc:
        return True
    name = getattr(zone, "key", None) or getattr(zone, "zone", None)
    return name in _UTC_ZONE_KEYS


def _has_explicit_offset(text: str) -> bool:
    # Expecting <date> "T" <time>
    parts = text.split("T")
    if len(parts) != 2:
        raise ValueError("Failed to parse date and time from string")
    time_part = parts[1]
    return time_part.endswith("Z") or "+" in time_part or "-" in time_part


def _parse_zone(zone: str) -> timezone:
    if zone == "Z":
        return timezone.utc
    sign = -1 if zone[0] == "-" else 1
    hours, minutes = int(zone[1:3]), int(zone[4:6])
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def _parse_xsd_datetime(text: str) -> Tuple[bool, datetime]:
    explicit = _has_explicit_offset(text)
    match = _XSD_DATETIME.match(text)
    if match is None:
        raise ValueError(f"Not an XML Schema dateTime: {text!r}")

    fraction = match.group("fraction") or "0"
    microsecond = int(fraction[:6].ljust(6, "0"))
    parsed = datetime(
        int(match.group("year")),
        int(match.group("month")),
        int(match.group("day")),
        int(match.group("hour")),
        int(match.group("minute")),
        int(match.group("second")),
        microsecond,
    )

    if explicit:
        zone = _parse_zone(match.group("zone"))
        return True, parsed.replace(tzinfo=zone).astimezone(timezone.utc)
    return False, parsed


class TimeInstant:
    """A point in time plus a flag telling if its UTC offset was explicit.

    Args:
        value: Timezone-aware ``datetime`` in UTC.

    Raises:
        IllegalDateTimeError: If ``value`` is naive or not in UTC.
    """

    __slots__ = ("_value", "_has_explicit_offset")

    def __init__(self, value: datetime) -> None:
        if not _is_utc(value.tzinfo):
            raise IllegalDateTimeError("DateTime must have UTC as time zone")
        self._value = value
        self._has_explicit_offset = True

    @classmethod
    def from_xsd_datetime(cls, text: str) -> "TimeInstant":
        """Parse an XML Schema ``dateTime`` string.

        Raises:
            ValueError: ``Failed to parse DateTime string`` (cause chained).
        """
        try:
            explicit, parsed = _parse_xsd_datetime(text)
        except (ValueError, OverflowError) as exc:
            raise ValueError("Failed to parse DateTime string") from exc

        instant = cls.__new__(cls)
        instant._value = parsed
        instant._has_explicit_offset = explicit
        return instant

    @classmethod
    def now(cls) -> "TimeInstant":
        return cls(datetime.now(timezone.utc))

    @property
    def value(self) -> datetime:
        """The timestamp; naive when the source carried no offset."""
        return self._value

    @property
    def has_explicit_utc_offset(self) -> bool:
        """Whether the offset is known. Check before trusting a naive value."""
        return self._has_explicit_offset

    def to_utc(self) -> datetime:
        """Return an aware UTC ``datetime``; naive values are read as local time."""
        return self._value.astimezone(timezone.utc)

    def to_xsd_datetime(self) -> str:
        """Serialise as XML Schema ``dateTime`` in UTC."""
        utc = self.to_utc()
        if utc.microsecond % 1000:
            fraction = f"{utc.microsecond:06d}"
        else:
            fraction = f"{utc.microsecond // 1000:03d}"
        return (
            f"{utc.year:04d}-{utc.month:02d}-{utc.day:02d}"
            f"T{utc.hour:02d}:{utc.minute:02d}:{utc.second:02d}.{fraction}Z"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeInstant):
            return NotImplemented
        return (
            self._has_explicit_offset == other._has_explicit_offset
            and self._value == other._value
        )

    def __hash__(self) -> int:
        return hash((self._value, self._has_explicit_offset))

    def __lt__(self, other: "TimeInstant") -> bool:
        return self.to_utc() < other.to_utc()

    def __repr__(self) -> str:
        return (
            f"TimeInstant({self._value.isoformat()!r}, "
            f"explicit_offset={self._has_explicit_offset})"
        )
