"""Date parsing for feed entries.

Atom ``updated`` and RSS ``pubDate`` values are matched against two fixed
layouts each. Anything that does not fit resolves to the current time, so a
bad date never aborts a parse.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from feed_normalizer.models.schemas import utc_now


_ATOM_BASE_FORMAT = "%Y-%m-%dT%H:%M:%S"
_RSS_BASE_FORMAT = "%a, %d %b %Y %H:%M:%S"

# 2006-01-02T15:04:05Z
_ATOM_ZULU_RE = re.compile(
    r"(?P<base>\d{4}-\d{2}-\d{2}T\d{1,2}:\d{2}:\d{2})(?P<frac>\.\d+)?Z"
)
# 2006-01-02T15:04:05-07:00
_ATOM_OFFSET_RE = re.compile(
    r"(?P<base>\d{4}-\d{2}-\d{2}T\d{1,2}:\d{2}:\d{2})(?P<frac>\.\d+)?"
    r"(?P<sign>[+-])(?P<hours>\d{2}):(?P<minutes>\d{2})"
)
# Mon, 2 Jan 2006 15:04:05 MST
_RSS_NAMED_ZONE_RE = re.compile(
    r"(?P<base>[A-Za-z]{3}, \d{1,2} [A-Za-z]{3} \d{4} \d{1,2}:\d{2}:\d{2})"
    r"(?P<frac>\.\d+)? (?P<zone>[A-Z]{3,5})"
)
# Mon, 2 Jan 2006 15:04:05 -0700
_RSS_NUMERIC_ZONE_RE = re.compile(
    r"(?P<base>[A-Za-z]{3}, \d{1,2} [A-Za-z]{3} \d{4} \d{1,2}:\d{2}:\d{2})"
    r"(?P<frac>\.\d+)? (?P<sign>[+-])(?P<hours>\d{2})(?P<minutes>\d{2})"
)

# Hours east of UTC. Abbreviations missing here are read as UTC.
ZONE_OFFSETS = {
    "UTC": 0,
    "GMT": 0,
    "EST": -5,
    "EDT": -4,
    "CST": -6,
    "CDT": -5,
    "MST": -7,
    "MDT": -6,
    "PST": -8,
    "PDT": -7,
}


def _microseconds(frac: Optional[str]) -> int:
    if not frac:
        return 0
    return int(frac[1:7].ljust(6, "0"))


def _offset(sign: str, hours: str, minutes: str) -> timezone:
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    return timezone(-delta if sign == "-" else delta)


def _build(match: "re.Match", base_format: str, tz: timezone) -> datetime:
    parsed = datetime.strptime(match.group("base"), base_format)
    return parsed.replace(microsecond=_microseconds(match.group("frac")), tzinfo=tz)


def parse_atom_date(text: str) -> datetime:
    """Parse an Atom ``updated`` value.

    Text ending in ``Z`` is read as UTC, anything else must carry a
    ``+HH:MM``/``-HH:MM`` offset. Returns the current time on failure.
    """
    try:
        if text.upper().endswith("Z"):
            match = _ATOM_ZULU_RE.fullmatch(text)
            if match:
                return _build(match, _ATOM_BASE_FORMAT, timezone.utc)
        else:
            match = _ATOM_OFFSET_RE.fullmatch(text)
            if match:
                tz = _offset(match.group("sign"), match.group("hours"), match.group("minutes"))
                return _build(match, _ATOM_BASE_FORMAT, tz)
    except ValueError:
        pass
    return utc_now()


def parse_rss_date(text: str) -> datetime:
    """Parse an RSS ``pubDate`` value.

    Text ending in ``T`` (``GMT``, ``EST``...) uses the named zone layout,
    anything else must end in a ``-0700`` style offset. Returns the current
    time on failure.
    """
    try:
        if text.upper().endswith("T"):
            match = _RSS_NAMED_ZONE_RE.fullmatch(text)
            if match:
                hours = ZONE_OFFSETS.get(match.group("zone"), 0)
                return _build(match, _RSS_BASE_FORMAT, timezone(timedelta(hours=hours)))
        else:
            match = _RSS_NUMERIC_ZONE_RE.fullmatch(text)
            if match:
                tz = _offset(match.group("sign"), match.group("hours"), match.group("minutes"))
                return _build(match, _RSS_BASE_FORMAT, tz)
    except ValueError:
        pass
    return utc_now()
