from typing import Iterable, List, Optional, Set

from borrowtrack.core.utils import DateLike, calendar_date, parse_local_date
from borrowtrack.schemas.record import BorrowingRecord, RecordStatus


def _holds(record: BorrowingRecord, day, excluding_record_id=None) -> bool:
    """True if `record` keeps its item checked out on calendar day `day`."""
    if excluding_record_id is not None and record.id == excluding_record_id:
        return False
    if record.status == RecordStatus.RETURNED:
        return False
    return calendar_date(record.borrow_date) == day


def is_available(records: Iterable[BorrowingRecord], item_name: str, borrow_date: DateLike,
                 excluding_record_id: Optional[str] = None) -> bool:
    """Whether `item_name` is free to borrow on `borrow_date`.

    An item is taken when another unreturned record for it was borrowed
    on the same calendar day.
    """
    day = parse_local_date(borrow_date, field="borrowDate")
    return not any(
        record.item_name == item_name and _holds(record, day, excluding_record_id)
        for record in records
    )


def unavailable_items(records: Iterable[BorrowingRecord], borrow_date: DateLike,
                      excluding_record_id: Optional[str] = None) -> Set[str]:
    """Names of every item already checked out on `borrow_date`."""
    day = parse_local_date(borrow_date, field="borrowDate")
    return {r.item_name for r in records if _holds(r, day, excluding_record_id)}


def available_items(catalog: Iterable[str], records: Iterable[BorrowingRecord],
                    borrow_date: DateLike) -> List[str]:
    taken = unavailable_items(records, borrow_date)
    return [name for name in catalog if name not in taken]
