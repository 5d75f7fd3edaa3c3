import logging
from datetime import date, datetime, timezone
from typing import Optional, Union

from borrowtrack.core.exceptions import InvalidDateFormat

logger = logging.getLogger(__name__)

DateLike = Union[str, date, datetime]


def now_iso() -> str:
    """UTC timestamp in the same shape browsers produce with toISOString()."""
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def parse_local_date(value: DateLike, field: Optional[str] = None) -> date:
    """Calendar date of `value` in the local time zone of this process.

    Date-only strings are their own calendar date. Timestamps carrying an
    offset are converted to local time first; naive timestamps are taken
    to already be local.
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        return value
    else:
        if not isinstance(value, str) or not value.strip():
            raise InvalidDateFormat(value, field)
        try:
            moment = datetime.fromisoformat(value.strip())
        except ValueError:
            raise InvalidDateFormat(value, field) from None
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.date()


def calendar_date(value: DateLike) -> Optional[date]:
    """Like parse_local_date, but None for values that do not parse."""
    try:
        return parse_local_date(value)
    except InvalidDateFormat:
        logger.debug(f"Ignoring unparseable date {value!r}")
        return None
