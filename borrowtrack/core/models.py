#!/usr/bin/env python

"""
    Document Model for BorrowTrack,
    a path-addressed document table that gives the SQL backend the
    same collection/document hierarchy as a document database.

    :copyright: (c) 2015 by AUTHORS
    :license: see LICENSE for more details
"""

from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from borrowtrack.core.db import Base

SEPARATOR = "/"


class Document(Base):
    __tablename__ = 'documents'

    path = Column(String(512), primary_key=True)
    parent = Column(String(512), nullable=False, index=True)
    doc_id = Column(String(128), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now())

    @staticmethod
    def key(path):
        return SEPARATOR.join(path)

    @classmethod
    def build(cls, path, data):
        return cls(
            path=cls.key(path),
            parent=cls.key(path[:-1]),
            doc_id=path[-1],
            data=dict(data),
        )
