#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    tests.test_store
    ~~~~~~~~~~~~~~~~

    Partitioned storage, listing reconciliation and dual addressing.

    :copyright: (c) 2015 by Authors.
    :license: see LICENSE for more details.
"""

import logging
from datetime import date

import pytest

from borrowtrack.core.documents import MemoryDocumentStore
from borrowtrack.core.exceptions import RecordNotFound, StoreError
from borrowtrack.core.partition import partition_of
from borrowtrack.core.store import COLLECTION, PartitionedAddressing, RecordStore, merge_records
from borrowtrack.schemas.record import BorrowingRecord, RecordStatus

pytestmark = pytest.mark.anyio


def record_doc(record_id, borrow_date="2024-03-15", **fields):
    doc = {
        "id": record_id,
        "itemName": "Projector",
        "firstName": "Maria",
        "lastName": "Santos",
        "department": "Finance",
        "location": "Conference Room A",
        "purpose": "Budget presentation",
        "borrowDate": borrow_date,
        "dueDate": "2024-03-20",
        "status": "active",
    }
    doc.update(fields)
    return doc


def make_record(record_id="BRW001", **fields):
    return BorrowingRecord.from_document(record_id, record_doc(record_id, **fields))


async def test_create_writes_marker_and_partitioned_record(documents, store):
    key = await store.create(make_record("BRW001"))

    assert key == "BRW001"
    assert (COLLECTION, "2024-03") in documents.documents
    stored = documents.documents[(COLLECTION, "2024-03", "15", "BRW001")]
    assert stored["itemName"] == "Projector"
    assert stored["status"] == "active"
    assert "createdAt" in stored
    assert "storageKey" not in stored


async def test_create_keeps_existing_marker_fields(documents, store):
    documents.documents[(COLLECTION, "2024-03")] = {"note": "kept"}
    await store.create(make_record("BRW001"))
    await store.create(make_record("BRW002", borrow_date="2024-03-02"))

    marker = documents.documents[(COLLECTION, "2024-03")]
    assert marker["note"] == "kept"
    assert marker["yearMonth"] == "2024-03"


async def test_create_then_list_round_trips(store):
    original = make_record("BRW001")
    await store.create(original)

    listed = await store.list_all()

    assert len(listed) == 1
    found = listed[0]
    assert found.storage_key == "BRW001"
    assert found.created_at is not None
    without_stamp = {k: v for k, v in found.to_document().items() if k != "createdAt"}
    assert without_stamp == original.to_document()


async def test_list_uses_markers_and_every_day(documents, store):
    for day in ("01", "15", "31"):
        documents.documents[(COLLECTION, "2023-01", day, f"BRW0{day}")] = record_doc(
            f"BRW0{day}", borrow_date=f"2023-01-{day}")
    documents.documents[(COLLECTION, "2023-01")] = {}

    listed = await store.list_all()

    assert sorted(r.id for r in listed) == ["BRW001", "BRW015", "BRW031"]


async def test_list_ignores_months_without_markers_when_markers_exist(documents, store):
    documents.documents[(COLLECTION, "2023-01")] = {}
    documents.documents[(COLLECTION, "2023-01", "05", "BRW001")] = record_doc("BRW001")
    documents.documents[(COLLECTION, "2023-02", "05", "BRW002")] = record_doc("BRW002")

    listed = await store.list_all()

    assert [r.id for r in listed] == ["BRW001"]


async def test_list_scans_recent_months_without_markers(documents):
    this_month = partition_of(date.today())
    documents.documents[(COLLECTION, this_month.year_month, this_month.day, "BRW009")] = record_doc(
        "BRW009", borrow_date=date.today().isoformat())
    documents.documents[(COLLECTION, "2001-01", "01", "BRW001")] = record_doc("BRW001")

    listed = await RecordStore(documents, fallback_months=18).list_all()

    assert [r.id for r in listed] == ["BRW009"]


async def test_list_falls_back_to_flat_layout(documents, store):
    documents.documents[(COLLECTION, "BRW001")] = record_doc("BRW001")
    documents.documents[(COLLECTION, "legacy-abc")] = record_doc("BRW002")
    documents.documents[(COLLECTION, "notes")] = {"text": "not a record"}

    listed = await store.list_all()

    assert sorted(r.storage_key for r in listed) == ["BRW001", "legacy-abc"]
    assert {r.id for r in listed} == {"BRW001", "BRW002"}


async def test_flat_layout_ignored_when_nested_records_exist(documents, store):
    documents.documents[(COLLECTION, "2024-03")] = {}
    documents.documents[(COLLECTION, "2024-03", "15", "BRW001")] = record_doc("BRW001")
    documents.documents[(COLLECTION, "BRW050")] = record_doc("BRW050")

    listed = await store.list_all()

    assert [r.id for r in listed] == ["BRW001"]


async def test_flat_legacy_borrower_field_is_split(documents, store):
    legacy = record_doc("BRW003")
    del legacy["firstName"], legacy["lastName"]
    legacy["borrower"] = "Jose Rizal Mercado"
    documents.documents[(COLLECTION, "BRW003")] = legacy

    [found] = await store.list_all()

    assert found.first_name == "Jose"
    assert found.last_name == "Rizal Mercado"
    assert found.full_name == "Jose Rizal Mercado"


async def test_malformed_documents_are_skipped(documents, store):
    documents.documents[(COLLECTION, "2024-03")] = {}
    documents.documents[(COLLECTION, "2024-03", "15", "BRW001")] = record_doc("BRW001")
    documents.documents[(COLLECTION, "2024-03", "15", "BROKEN")] = {"firstName": "x", "lastName": "y"}

    listed = await store.list_all()

    assert [r.id for r in listed] == ["BRW001"]


async def test_list_is_side_effect_free(documents, store):
    await store.create(make_record("BRW001"))
    before = dict(documents.documents)

    assert len(await store.list_all()) == len(await store.list_all()) == 1
    assert documents.documents == before


def test_merge_records_dedupes_by_storage_key():
    first = make_record("BRW001")
    duplicate = make_record("BRW001", itemName="Other")
    other = make_record("BRW002")

    merged = merge_records([[first, other], [duplicate]])

    assert merged == [first, other]


async def test_update_uses_borrow_date_partition(documents, store):
    await store.create(make_record("BRW001"))

    resolution = await store.update("BRW001", {"dueDate": "2024-03-25"}, "2024-03-15")

    assert resolution.strategy == "partitioned"
    assert documents.documents[(COLLECTION, "2024-03", "15", "BRW001")]["dueDate"] == "2024-03-25"


async def test_update_falls_back_to_flat_address(documents, store):
    documents.documents[(COLLECTION, "BRW001")] = record_doc("BRW001")

    resolution = await store.update("BRW001", {"status": "returned"}, "2024-03-15")

    assert resolution.strategy == "flat"
    assert resolution.path == (COLLECTION, "BRW001")
    assert documents.documents[(COLLECTION, "BRW001")]["status"] == "returned"


async def test_update_missing_everywhere_raises(store):
    with pytest.raises(RecordNotFound) as excinfo:
        await store.update("BRW404", {"status": "returned"}, "2024-03-15")
    assert excinfo.value.storage_key == "BRW404"


async def test_update_with_wrong_hint_misses(documents, store):
    await store.create(make_record("BRW001"))
    with pytest.raises(RecordNotFound):
        await store.update("BRW001", {"status": "returned"}, "2024-04-01")


async def test_delete_is_idempotent(documents, store):
    await store.create(make_record("BRW001"))

    first = await store.delete("BRW001", "2024-03-15")
    second = await store.delete("BRW001", "2024-03-15")

    assert first.strategy == "partitioned"
    assert second is None
    assert (COLLECTION, "2024-03", "15", "BRW001") not in documents.documents


async def test_delete_flat_record(documents, store):
    documents.documents[(COLLECTION, "BRW001")] = record_doc("BRW001")

    resolution = await store.delete("BRW001", "2024-03-15")

    assert resolution.strategy == "flat"
    assert (COLLECTION, "BRW001") not in documents.documents


class DeniedDocumentStore(MemoryDocumentStore):

    async def update_document(self, *path, patch):
        raise StoreError("permission-denied", "Missing or insufficient permissions.")

    async def list_children(self, *path):
        raise StoreError("unavailable", "The service is currently unavailable.")


async def test_store_errors_surface_unchanged():
    documents = DeniedDocumentStore()
    documents.documents[(COLLECTION, "2024-03", "15", "BRW001")] = record_doc("BRW001")
    store = RecordStore(documents)

    with pytest.raises(StoreError) as excinfo:
        await store.update("BRW001", {"status": "returned"}, "2024-03-15")
    assert excinfo.value.code == "permission-denied"

    with pytest.raises(StoreError) as excinfo:
        await store.list_all()
    assert excinfo.value.code == "unavailable"


async def test_listing_failures_are_logged(caplog):
    store = RecordStore(DeniedDocumentStore())

    with caplog.at_level(logging.ERROR, logger="borrowtrack.core.store"):
        with pytest.raises(StoreError):
            await store.list_all()

    assert "Error listing borrowing records" in caplog.text


async def test_unreadable_hint_falls_through_to_flat(documents, store):
    documents.documents[(COLLECTION, "BRW001")] = record_doc("BRW001", borrow_date="03/15/2024")

    assert PartitionedAddressing().candidate("BRW001", "03/15/2024") is None
    resolution = await store.update("BRW001", {"status": "returned"}, "03/15/2024")

    assert resolution.strategy == "flat"
    assert documents.documents[(COLLECTION, "BRW001")]["status"] == "returned"
    assert await store.delete("BRW001", "03/15/2024") is not None
    assert (COLLECTION, "BRW001") not in documents.documents


def test_record_status_round_trip():
    found = make_record("BRW001", status="returned", returnedBy="Ana", returnedAt="2024-03-16T01:00:00.000Z")
    assert found.status == RecordStatus.RETURNED
    assert found.to_document()["status"] == "returned"
