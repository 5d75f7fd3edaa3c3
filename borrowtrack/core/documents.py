#!/usr/bin/env python

"""
    Document database backends for BorrowTrack.

    Every backend exposes the same hierarchy: collections hold documents,
    documents may hold nested collections. Paths alternate collection
    and document segments, so a collection path has an odd number of
    segments and a document path an even number. Listing a collection
    only returns documents that exist at that level; a nested collection
    does not make its parent document exist.

    :copyright: (c) 2015 by AUTHORS
    :license: see LICENSE for more details
"""

import copy
import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from borrowtrack.core.exceptions import DocumentNotFound, StoreError
from borrowtrack.core.models import Document

logger = logging.getLogger(__name__)

Path = Tuple[str, ...]


def collection_path(path) -> Path:
    if not path or len(path) % 2 == 0:
        raise ValueError(f"Not a collection path: {'/'.join(path)}")
    return tuple(path)


def document_path(path) -> Path:
    if not path or len(path) % 2 == 1:
        raise ValueError(f"Not a document path: {'/'.join(path)}")
    return tuple(path)


class DocumentStore(ABC):

    @abstractmethod
    async def list_children(self, *path) -> List[Tuple[str, dict]]:
        """(document id, data) for every document directly in a collection."""

    async def list_top_level_children(self, collection: str) -> List[str]:
        return [doc_id for doc_id, _ in await self.list_children(collection)]

    @abstractmethod
    async def read_document(self, *path) -> Optional[dict]:
        """Document data, or None when absent."""

    @abstractmethod
    async def write_document(self, *path, data: dict, merge: bool = False) -> None:
        """Create or replace a document; with merge, update its top-level fields."""

    @abstractmethod
    async def update_document(self, *path, patch: dict) -> None:
        """Update fields of an existing document; DocumentNotFound otherwise."""

    @abstractmethod
    async def delete_document(self, *path) -> None:
        """Delete a document. Deleting a missing document is not an error."""


class MemoryDocumentStore(DocumentStore):
    """Process-local backend, used for tests and throwaway instances."""

    def __init__(self, documents: Optional[Dict[Path, dict]] = None):
        self.documents: Dict[Path, dict] = {}
        for path, data in (documents or {}).items():
            self.documents[document_path(path)] = copy.deepcopy(data)

    async def list_children(self, *path):
        parent = collection_path(path)
        return sorted(
            (doc_path[-1], copy.deepcopy(data))
            for doc_path, data in self.documents.items()
            if doc_path[:-1] == parent
        )

    async def read_document(self, *path):
        data = self.documents.get(document_path(path))
        return copy.deepcopy(data) if data is not None else None

    async def write_document(self, *path, data, merge=False):
        path = document_path(path)
        current = self.documents.get(path) if merge else None
        self.documents[path] = {**(current or {}), **copy.deepcopy(data)}

    async def update_document(self, *path, patch):
        path = document_path(path)
        if path not in self.documents:
            raise DocumentNotFound(path)
        self.documents[path] = {**self.documents[path], **copy.deepcopy(patch)}

    async def delete_document(self, *path):
        self.documents.pop(document_path(path), None)


class SQLDocumentStore(DocumentStore):
    """Documents kept as JSON rows in a single SQLAlchemy table.

    Session work is blocking, so each call runs in the threadpool.
    """

    def __init__(self, engine):
        self.engine = engine
        self.Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        # SQLite allows one writer, and an in-memory database shares one connection
        self._lock = threading.Lock() if engine.dialect.name == "sqlite" else None

    def _locked(self, func, *args):
        if self._lock is None:
            return func(*args)
        with self._lock:
            return func(*args)

    async def _run(self, func, *args):
        try:
            return await run_in_threadpool(self._locked, func, *args)
        except SQLAlchemyError as e:
            logger.error(f"Document database error: {e}")
            raise StoreError(e.__class__.__name__, str(e)) from e

    def _list(self, parent):
        with self.Session() as session:
            rows = session.execute(
                select(Document)
                .where(Document.parent == Document.key(parent))
                .order_by(Document.doc_id)
            ).scalars()
            return [(row.doc_id, dict(row.data or {})) for row in rows]

    def _read(self, path):
        with self.Session() as session:
            row = session.get(Document, Document.key(path))
            return dict(row.data or {}) if row is not None else None

    def _write(self, path, data, merge):
        with self.Session() as session:
            row = session.get(Document, Document.key(path))
            if row is None:
                session.add(Document.build(path, data))
            else:
                # Reassign rather than mutate so the JSON column is flagged dirty
                row.data = {**(row.data or {}), **data} if merge else dict(data)
            session.commit()

    def _update(self, path, patch):
        with self.Session() as session:
            row = session.get(Document, Document.key(path))
            if row is None:
                raise DocumentNotFound(path)
            row.data = {**(row.data or {}), **patch}
            session.commit()

    def _delete(self, path):
        with self.Session() as session:
            row = session.get(Document, Document.key(path))
            if row is not None:
                session.delete(row)
                session.commit()

    async def list_children(self, *path):
        return await self._run(self._list, collection_path(path))

    async def read_document(self, *path):
        return await self._run(self._read, document_path(path))

    async def write_document(self, *path, data, merge=False):
        await self._run(self._write, document_path(path), data, merge)

    async def update_document(self, *path, patch):
        await self._run(self._update, document_path(path), patch)

    async def delete_document(self, *path):
        await self._run(self._delete, document_path(path))
