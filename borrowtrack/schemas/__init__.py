from borrowtrack.schemas.record import (
    RecordStatus,
    BorrowingRecord,
    BorrowingDraft,
    BorrowingChanges,
)
from borrowtrack.schemas.settings import CatalogItem, DefaultSettings
from borrowtrack.schemas.user import UserProfile

__all__ = [
    "RecordStatus",
    "BorrowingRecord",
    "BorrowingDraft",
    "BorrowingChanges",
    "CatalogItem",
    "DefaultSettings",
    "UserProfile",
]
