from datetime import date
from typing import List, NamedTuple, Optional

from borrowtrack.core.utils import DateLike, parse_local_date

DAYS = tuple(f"{day:02d}" for day in range(1, 32))


class Partition(NamedTuple):
    year_month: str
    day: str


def partition_of(date_string: DateLike) -> Partition:
    """Storage partition (`YYYY-MM`, `DD`) for a borrow date.

    Raises InvalidDateFormat when the value cannot be parsed.
    """
    when = parse_local_date(date_string, field="borrowDate")
    return Partition(f"{when.year:04d}-{when.month:02d}", f"{when.day:02d}")


def recent_months(count: int, today: Optional[date] = None) -> List[str]:
    """The `count` year-months ending at the current one, oldest first."""
    today = today or date.today()
    year, month = today.year, today.month
    months = []
    for _ in range(max(count, 0)):
        months.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return months[::-1]
