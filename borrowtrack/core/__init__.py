#!/usr/bin/env python

"""
    Core module for BorrowTrack, document store, records & settings

    :copyright: (c) 2015 by AUTHORS
    :license: see LICENSE for more details
"""

from borrowtrack.configs import BACKEND
from borrowtrack.core import db as database
from borrowtrack.core.auth import IdentityProvider
from borrowtrack.core.documents import MemoryDocumentStore, SQLDocumentStore
from borrowtrack.core.lifecycle import BorrowingLedger
from borrowtrack.core.settings import SettingsStore
from borrowtrack.core.store import RecordStore


def init_documents(backend=BACKEND):
    if backend == "memory":
        return MemoryDocumentStore()
    if backend == "firestore":
        from borrowtrack.core.firestore import FirestoreDocumentStore
        return FirestoreDocumentStore()
    if backend == "sql":
        database.init()
        return SQLDocumentStore(database.engine)
    raise ValueError(f"Unknown document backend {backend!r}")


documents = init_documents()
records = RecordStore(documents)
settings = SettingsStore(documents)
identity = IdentityProvider(documents)
ledger = BorrowingLedger(records)

__all__ = ["documents", "records", "settings", "identity", "ledger", "init_documents"]
