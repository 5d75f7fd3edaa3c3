#!/usr/bin/env python
"""
    Borrowing Record Schema for BorrowTrack,
    including the persisted record document and the create/edit inputs.

    :copyright: (c) 2015 by AUTHORS
    :license: see LICENSE for more details
"""

import enum
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel

# Fields that only a borrowing record carries; used to tell records apart
# from markers and other documents sharing a collection.
BORROWER_FIELDS = ("firstName", "lastName")
LEGACY_BORROWER_FIELD = "borrower"


class RecordStatus(str, enum.Enum):
    ACTIVE = "active"
    OVERDUE = "overdue"
    RETURNED = "returned"


def join_locations(value):
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v).strip() for v in value if str(v).strip())
    return value


class BorrowingRecord(BaseModel):

    id: str
    storage_key: Optional[str] = None
    item_name: str
    first_name: str = ""
    last_name: str = ""
    department: str = ""
    location: str = ""
    purpose: str = ""
    borrow_date: str
    due_date: str
    status: RecordStatus = RecordStatus.ACTIVE
    returned_at: Optional[str] = None
    returned_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("location", mode="before")
    @classmethod
    def join_location_list(cls, value):
        return join_locations(value)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_returned(self) -> bool:
        return self.status == RecordStatus.RETURNED

    @property
    def locations(self) -> List[str]:
        return [name.strip() for name in self.location.split(",") if name.strip()]

    def to_document(self) -> dict:
        """The persisted shape: camelCase fields, no storage key."""
        return self.model_dump(
            mode="json", by_alias=True, exclude_none=True, exclude={"storage_key"})

    @staticmethod
    def looks_like_record(data) -> bool:
        if not isinstance(data, dict):
            return False
        return all(f in data for f in BORROWER_FIELDS) or LEGACY_BORROWER_FIELD in data

    @classmethod
    def from_document(cls, doc_id: str, data: dict) -> "BorrowingRecord":
        data = dict(data)
        if LEGACY_BORROWER_FIELD in data and "firstName" not in data:
            first, _, last = str(data.pop(LEGACY_BORROWER_FIELD) or "").strip().partition(" ")
            data["firstName"], data["lastName"] = first, last.strip()
        data.setdefault("id", doc_id)
        data["storageKey"] = doc_id
        return cls.model_validate(data)


class BorrowingChanges(BaseModel):
    """Editable fields of an existing record. The borrow date is fixed."""

    item_name: str = ""
    first_name: str = ""
    last_name: str = ""
    department: str = ""
    location: Union[str, List[str]] = ""
    purpose: str = ""
    due_date: str = ""

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("location", mode="before")
    @classmethod
    def join_location_list(cls, value):
        return join_locations(value)

    @field_validator("*", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


class BorrowingDraft(BorrowingChanges):
    """Input for a new borrowing."""

    borrow_date: str = ""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "itemName": "Projector",
                "firstName": "Juan",
                "lastName": "Dela Cruz",
                "department": "Engineering",
                "location": ["Conference Room A"],
                "purpose": "Quarterly review",
                "borrowDate": "2024-03-15",
                "dueDate": "2024-03-20",
            }
        }
