"""
AQUAMANAGER Core API - Time Helpers

Timezone resolution and lenient instant parsing shared by the engines.
"""

import math
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from aquamanager.maintenance.exceptions import InvalidTimezone

RawInstant = Union[datetime, date, str, None]

SECONDS_PER_DAY = 86400


def resolve_timezone(tz: Union[str, tzinfo, None]) -> tzinfo:
    """Resolve an IANA name (or pass through a tzinfo). None means UTC."""
    if tz is None:
        return timezone.utc
    if isinstance(tz, tzinfo):
        return tz
    if tz.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidTimezone(f"Unknown timezone: {tz!r}") from exc


def ensure_aware(value: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Attach tz (UTC by default) to naive datetimes; aware values are returned unchanged."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz or timezone.utc)
    return value


def coerce_instant(value: RawInstant, tz: tzinfo) -> Tuple[Optional[datetime], Optional[str]]:
    """
    Normalize a stored date value into an aware datetime.

    Date-only and naive values are anchored in ``tz``. Returns ``(instant, warning)``;
    unparseable input yields ``(None, warning)`` instead of raising.
    """
    if value is None or value == "":
        return None, None

    if isinstance(value, datetime):
        return ensure_aware(value, tz), None

    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=tz), None

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None, f"Unparseable date value: {value!r}"
        return ensure_aware(parsed, tz), None

    return None, f"Unsupported date value type: {type(value).__name__}"


def floor_days(delta: timedelta) -> int:
    """Whole days in delta, rounded toward negative infinity."""
    return math.floor(delta.total_seconds() / SECONDS_PER_DAY)


def local_date(instant: datetime, tz: tzinfo) -> date:
    """Calendar date of instant as seen in tz."""
    return instant.astimezone(tz).date()
