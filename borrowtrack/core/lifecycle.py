#!/usr/bin/env python

"""
    Borrowing lifecycle for BorrowTrack.

    A record starts `active`, may look `overdue` once its due date has
    passed, and ends `returned`. Overdue is derived on read and never
    written back. Each transition validates its input, produces the
    patch sent to the store, and only after the store accepts it
    replaces the record in the in-memory ledger.

    :copyright: (c) 2015 by AUTHORS
    :license: see LICENSE for more details
"""

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional

from borrowtrack.core.availability import is_available, unavailable_items
from borrowtrack.core.exceptions import RecordNotFound, ValidationError
from borrowtrack.core.identifiers import next_record_id
from borrowtrack.core.store import RecordStore
from borrowtrack.core.utils import DateLike, calendar_date, now_iso, parse_local_date
from borrowtrack.schemas.record import (
    BorrowingChanges,
    BorrowingDraft,
    BorrowingRecord,
    RecordStatus,
)

logger = logging.getLogger(__name__)

STATUS_FILTERS = ("all", "borrowed", "overdue", "returned")

REQUIRED_FIELDS = (
    ("item_name", "itemName", "Item name is required"),
    ("first_name", "firstName", "First name is required"),
    ("last_name", "lastName", "Last name is required"),
    ("department", "department", "Department is required"),
    ("location", "location", "Location is required"),
    ("purpose", "purpose", "Purpose is required"),
)

EDITABLE_FIELDS = (
    "item_name", "first_name", "last_name", "department", "location", "purpose", "due_date",
)


def derive_status(record: BorrowingRecord, today: Optional[date] = None) -> RecordStatus:
    """Status to display: an active record past its due date shows as overdue."""
    if record.status != RecordStatus.ACTIVE:
        return record.status
    due = calendar_date(record.due_date)
    if due is not None and due < (today or date.today()):
        return RecordStatus.OVERDUE
    return RecordStatus.ACTIVE


def ensure_open(record: BorrowingRecord) -> None:
    if record.is_returned:
        raise ValidationError("status", f"{record.id} has already been returned")


def validate_changes(changes: BorrowingChanges, borrow_date: DateLike) -> None:
    for attr, field, message in REQUIRED_FIELDS:
        if not getattr(changes, attr):
            raise ValidationError(field, message)
    if not changes.due_date:
        raise ValidationError("dueDate", "Due date is required")
    borrowed = parse_local_date(borrow_date, field="borrowDate")
    if parse_local_date(changes.due_date, field="dueDate") <= borrowed:
        raise ValidationError("dueDate", "Due date must be after borrow date")


def new_record(draft: BorrowingDraft, records: List[BorrowingRecord]) -> BorrowingRecord:
    """Validate a draft against the current records and assign the next id."""
    if not draft.borrow_date:
        raise ValidationError("borrowDate", "Borrow date is required")
    validate_changes(draft, draft.borrow_date)
    if not is_available(records, draft.item_name, draft.borrow_date):
        raise ValidationError(
            "itemName", f"{draft.item_name} is already borrowed on {draft.borrow_date}")
    return BorrowingRecord(
        id=next_record_id(records),
        status=RecordStatus.ACTIVE,
        **draft.model_dump(),
    )


def extension_patch(record: BorrowingRecord, new_due_date: str) -> dict:
    ensure_open(record)
    new_due_date = (new_due_date or "").strip()
    if not new_due_date:
        raise ValidationError("dueDate", "Please select a new due date")
    current = parse_local_date(record.due_date, field="dueDate")
    if parse_local_date(new_due_date, field="dueDate") <= current:
        raise ValidationError("dueDate", "New due date must be after the current due date")
    return {"dueDate": new_due_date}


def return_patch(record: BorrowingRecord, returned_by: Optional[str] = None,
                 returned_at: Optional[str] = None) -> dict:
    ensure_open(record)
    returned_by = (returned_by or "").strip() or record.full_name
    if not returned_by:
        raise ValidationError("returnedBy", "Please enter who returned the item")
    return {
        "status": RecordStatus.RETURNED.value,
        "returnedAt": returned_at or now_iso(),
        "returnedBy": returned_by,
    }


def edit_patch(record: BorrowingRecord, changes: BorrowingChanges,
               records: Iterable[BorrowingRecord]) -> dict:
    """Patch for an edit. The borrow date, and so the partition, stays put."""
    ensure_open(record)
    validate_changes(changes, record.borrow_date)
    if changes.item_name != record.item_name and not is_available(
            records, changes.item_name, record.borrow_date, excluding_record_id=record.id):
        raise ValidationError(
            "itemName", f"{changes.item_name} is already borrowed on {record.borrow_date}")
    return changes.model_dump(by_alias=True, include=set(EDITABLE_FIELDS))


def apply_patch(record: BorrowingRecord, patch: dict) -> BorrowingRecord:
    return BorrowingRecord.model_validate({**record.model_dump(by_alias=True), **patch})


def sort_recent_first(records: Iterable[BorrowingRecord]) -> List[BorrowingRecord]:
    return sorted(records, key=lambda r: (r.borrow_date, r.id), reverse=True)


class BorrowingLedger:
    """In-memory list of records mirroring the record store.

    The list only changes after the store confirms a write. Writes go
    through one lock, so an id or an item-day slot is never handed out
    twice while a create is waiting on the store. There is no versioning
    against other processes: concurrent writers elsewhere are
    last-write-wins.
    """

    def __init__(self, store: RecordStore, records: Optional[Iterable[BorrowingRecord]] = None):
        self.store = store
        self.records: List[BorrowingRecord] = list(records or [])
        self.loaded = records is not None
        self.lock = asyncio.Lock()

    async def load(self) -> List[BorrowingRecord]:
        async with self.lock:
            self.records = sort_recent_first(await self.store.list_all())
            self.loaded = True
        logger.info(f"Loaded {len(self.records)} borrowing records")
        return self.records

    async def ensure_loaded(self) -> List[BorrowingRecord]:
        # Ids are only safe to assign once the stored records are known
        if not self.loaded:
            await self.load()
        return self.records

    def get(self, record_id: str) -> BorrowingRecord:
        for record in self.records:
            if record.id == record_id:
                return record
        raise RecordNotFound(record_id)

    def _replace(self, updated: BorrowingRecord) -> None:
        self.records = [updated if r.id == updated.id else r for r in self.records]

    async def _commit(self, record: BorrowingRecord, patch: dict) -> BorrowingRecord:
        # Callers hold the lock
        await self.store.update(record.storage_key or record.id, patch, record.borrow_date)
        updated = apply_patch(record, patch)
        self._replace(updated)
        return updated

    async def create(self, draft: BorrowingDraft) -> BorrowingRecord:
        async with self.lock:
            record = new_record(draft, self.records).model_copy(
                update={"created_at": datetime.now(timezone.utc)})
            storage_key = await self.store.create(record)
            record = record.model_copy(update={"storage_key": storage_key})
            self.records = [record, *self.records]
            return record

    async def extend(self, record_id: str, new_due_date: str) -> BorrowingRecord:
        async with self.lock:
            record = self.get(record_id)
            return await self._commit(record, extension_patch(record, new_due_date))

    async def return_item(self, record_id: str, returned_by: Optional[str] = None) -> BorrowingRecord:
        async with self.lock:
            record = self.get(record_id)
            return await self._commit(record, return_patch(record, returned_by))

    async def edit(self, record_id: str, changes: BorrowingChanges) -> BorrowingRecord:
        async with self.lock:
            record = self.get(record_id)
            return await self._commit(record, edit_patch(record, changes, self.records))

    async def delete(self, record_id: str) -> BorrowingRecord:
        async with self.lock:
            record = self.get(record_id)
            await self.store.delete(record.storage_key or record.id, record.borrow_date)
            self.records = [r for r in self.records if r.id != record_id]
            return record

    def unavailable_items(self, borrow_date: DateLike, excluding_record_id=None):
        return unavailable_items(self.records, borrow_date, excluding_record_id)

    def search(self, term: str = "", status: str = "all",
               today: Optional[date] = None) -> List[BorrowingRecord]:
        """Records matching `term` (item, borrower or id) and a status filter.

        `borrowed` means active and not yet overdue.
        """
        if status not in STATUS_FILTERS:
            raise ValidationError("status", f"Unknown status filter {status!r}")
        term = (term or "").strip().lower()
        wanted = {
            "borrowed": RecordStatus.ACTIVE,
            "overdue": RecordStatus.OVERDUE,
            "returned": RecordStatus.RETURNED,
        }.get(status)
        return [
            r for r in self.records
            if (not term or term in r.item_name.lower() or term in r.full_name.lower()
                or term in r.id.lower())
            and (wanted is None or derive_status(r, today) == wanted)
        ]

    def summary(self, today: Optional[date] = None) -> Dict[str, int]:
        counts = {status.value: 0 for status in RecordStatus}
        for record in self.records:
            counts[derive_status(record, today).value] += 1
        counts["total"] = len(self.records)
        return counts

    def recent(self, limit: int = 5) -> List[BorrowingRecord]:
        return self.records[:limit]
