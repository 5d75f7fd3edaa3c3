import os

# Must be set before borrowtrack.configs is imported
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("BORROWTRACK_BACKEND", "memory")

import pytest

from borrowtrack.core.documents import MemoryDocumentStore
from borrowtrack.core.lifecycle import BorrowingLedger
from borrowtrack.core.store import RecordStore
from borrowtrack.schemas.record import BorrowingDraft


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def documents():
    return MemoryDocumentStore()


@pytest.fixture
def store(documents):
    return RecordStore(documents)


@pytest.fixture
def ledger(store):
    return BorrowingLedger(store, records=[])


def make_draft(**overrides) -> BorrowingDraft:
    fields = {
        "itemName": "Projector",
        "firstName": "Maria",
        "lastName": "Santos",
        "department": "Finance",
        "location": ["Conference Room A"],
        "purpose": "Budget presentation",
        "borrowDate": "2024-03-15",
        "dueDate": "2024-03-20",
    }
    fields.update(overrides)
    return BorrowingDraft.model_validate(fields)


@pytest.fixture
def draft():
    return make_draft
