#!/usr/bin/env python

"""
    Record Store for BorrowTrack.

    Borrowing records live three levels deep, partitioned by borrow date:

        borrowingRecords/{YYYY-MM}                  marker document
        borrowingRecords/{YYYY-MM}/{DD}/{recordId}  record document
        borrowingRecords/{recordId}                 legacy flat layout

    A document database can list the documents of a known collection
    but cannot enumerate nested collections, so the marker documents
    are what make a month discoverable. Listing reconciles markers,
    a bounded month window and the legacy flat layout into one view.

    :copyright: (c) 2015 by AUTHORS
    :license: see LICENSE for more details
"""

import asyncio
import logging
import re
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from borrowtrack.configs import FALLBACK_MONTHS, SCAN_CONCURRENCY
from borrowtrack.core.documents import DocumentStore
from borrowtrack.core.exceptions import InvalidDateFormat, RecordNotFound
from borrowtrack.core.partition import DAYS, partition_of, recent_months
from borrowtrack.core.utils import DateLike, now_iso
from borrowtrack.schemas.record import BorrowingRecord

logger = logging.getLogger(__name__)

COLLECTION = "borrowingRecords"
YEAR_MONTH = re.compile(r"^\d{4}-\d{2}$")


class Resolution(NamedTuple):
    """Where an addressing strategy found a record."""
    strategy: str
    path: Tuple[str, ...]


class AddressingStrategy:
    """One way of turning a storage key into a candidate document path."""

    name = None

    def candidate(self, storage_key: str, borrow_date_hint: DateLike) -> Optional[Tuple[str, ...]]:
        raise NotImplementedError


class PartitionedAddressing(AddressingStrategy):
    name = "partitioned"

    def candidate(self, storage_key, borrow_date_hint):
        try:
            partition = partition_of(borrow_date_hint)
        except InvalidDateFormat:
            logger.warning(f"No partition for {storage_key}, unreadable borrow date {borrow_date_hint!r}")
            return None
        return (COLLECTION, partition.year_month, partition.day, storage_key)


class FlatAddressing(AddressingStrategy):
    name = "flat"

    def candidate(self, storage_key, borrow_date_hint):
        return (COLLECTION, storage_key)


class RecordStore:

    def __init__(self, documents: DocumentStore, strategies=None,
                 fallback_months=FALLBACK_MONTHS, concurrency=SCAN_CONCURRENCY):
        self.documents = documents
        self.strategies: List[AddressingStrategy] = strategies or [
            PartitionedAddressing(), FlatAddressing()]
        self.fallback_months = fallback_months
        self.concurrency = max(1, concurrency)

    async def create(self, record: BorrowingRecord) -> str:
        """Write a new record under its borrow-date partition.

        The month marker and the record are two separate idempotent writes;
        a crash between them leaves a marker with nothing under it, which
        listing tolerates.
        """
        partition = partition_of(record.borrow_date)
        try:
            await self.documents.write_document(
                COLLECTION, partition.year_month,
                data={"yearMonth": partition.year_month, "updatedAt": now_iso()},
                merge=True,
            )
            await self.documents.write_document(
                COLLECTION, partition.year_month, partition.day, record.id,
                data={"createdAt": now_iso(), **record.to_document()},
            )
        except Exception as e:
            logger.error(f"Error adding borrowing record {record.id}: {e}")
            raise
        logger.info(f"Stored {record.id} at {COLLECTION}/{partition.year_month}/{partition.day}")
        return record.id

    async def list_all(self) -> List[BorrowingRecord]:
        """Every record the reconciliation passes can find, once each.

        Order is not meaningful; callers sort for display.
        """
        try:
            months = await self.marker_months()
            if months:
                logger.info(f"Scanning {len(months)} marked months")
            else:
                months = recent_months(self.fallback_months)
                logger.warning(
                    f"No month markers found, scanning the last {len(months)} months")

            records = await self.scan_partitions(months)
            if records:
                return records

            records = await self.scan_flat()
        except Exception as e:
            logger.error(f"Error listing borrowing records: {e}")
            raise
        if records:
            logger.warning(f"Loaded {len(records)} records from the flat layout")
        return records

    async def marker_months(self) -> List[str]:
        children = await self.documents.list_top_level_children(COLLECTION)
        return sorted(doc_id for doc_id in children if YEAR_MONTH.match(doc_id))

    async def scan_partitions(self, months: Iterable[str]) -> List[BorrowingRecord]:
        """Query every day collection 01..31 of each month, a few at a time."""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def scan_day(year_month, day):
            async with semaphore:
                return await self.documents.list_children(COLLECTION, year_month, day)

        slots = [(year_month, day) for year_month in sorted(months) for day in DAYS]
        batches = await asyncio.gather(*(scan_day(ym, day) for ym, day in slots))
        return merge_records(
            self._to_records(docs, f"{COLLECTION}/{ym}/{day}")
            for (ym, day), docs in zip(slots, batches)
        )

    async def scan_flat(self) -> List[BorrowingRecord]:
        docs = await self.documents.list_children(COLLECTION)
        return merge_records([self._to_records(
            [(doc_id, data) for doc_id, data in docs if BorrowingRecord.looks_like_record(data)],
            COLLECTION,
        )])

    def _to_records(self, docs, where) -> List[BorrowingRecord]:
        records = []
        for doc_id, data in docs:
            try:
                records.append(BorrowingRecord.from_document(doc_id, data))
            except ValueError as e:
                logger.warning(f"Skipping malformed record {where}/{doc_id}: {e}")
        return records

    async def resolve(self, storage_key: str,
                      borrow_date_hint: Optional[DateLike] = None) -> Optional[Resolution]:
        """First strategy whose candidate path holds a document, or None."""
        hint = borrow_date_hint or now_iso()
        for strategy in self.strategies:
            path = strategy.candidate(storage_key, hint)
            if path is None:
                continue
            if await self.documents.read_document(*path) is not None:
                if strategy is not self.strategies[0]:
                    logger.warning(f"{storage_key} found via {strategy.name} addressing")
                return Resolution(strategy.name, path)
        return None

    async def update(self, storage_key: str, patch: dict,
                     borrow_date_hint: Optional[DateLike] = None) -> Resolution:
        """Apply `patch` to the record, addressed by its original borrow date.

        The partition never moves after creation, so the hint must be the
        borrow date the record was created with.
        """
        try:
            resolution = await self.resolve(storage_key, borrow_date_hint)
            if resolution is None:
                raise RecordNotFound(storage_key)
            await self.documents.update_document(*resolution.path, patch=patch)
        except Exception as e:
            logger.error(f"Error updating borrowing record {storage_key}: {e}")
            raise
        return resolution

    async def delete(self, storage_key: str,
                     borrow_date_hint: Optional[DateLike] = None) -> Optional[Resolution]:
        """Delete the record wherever it is found; a missing record is not an error."""
        try:
            resolution = await self.resolve(storage_key, borrow_date_hint)
            if resolution is not None:
                await self.documents.delete_document(*resolution.path)
        except Exception as e:
            logger.error(f"Error deleting borrowing record {storage_key}: {e}")
            raise
        return resolution


def merge_records(batches: Iterable[Iterable[BorrowingRecord]]) -> List[BorrowingRecord]:
    """Concatenate record batches, keeping the first record seen per storage key."""
    seen: Dict[str, BorrowingRecord] = {}
    for batch in batches:
        for record in batch:
            seen.setdefault(record.storage_key or record.id, record)
    return list(seen.values())
