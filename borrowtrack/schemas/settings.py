#!/usr/bin/env python
"""
    Settings Schema for BorrowTrack, the catalog of items, locations
    and departments plus the form pre-fill defaults.

    :copyright: (c) 2015 by AUTHORS
    :license: see LICENSE for more details
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel


class CatalogItem(BaseModel):
    name: str
    image_url: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


def _add_unique(values: List[str], value: Optional[str]) -> List[str]:
    value = (value or "").strip()
    if not value or value in values:
        return list(values)
    return [*values, value]


class DefaultSettings(BaseModel):

    default_item_name: str = ""
    default_location: str = ""
    default_department: str = ""
    custom_items: List[CatalogItem] = []
    custom_locations: List[str] = []
    custom_departments: List[str] = []
    updated_at: Optional[datetime] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("custom_items", mode="before")
    @classmethod
    def legacy_item_names(cls, value):
        # Older documents stored plain item names
        if isinstance(value, list):
            return [{"name": v} if isinstance(v, str) else v for v in value]
        return value

    @property
    def item_names(self) -> List[str]:
        return [item.name for item in self.custom_items]

    def with_entries(self, item=None, location=None, department=None, image_url=None):
        """Copy with the given catalog entries added; blanks and duplicates are ignored."""
        items = list(self.custom_items)
        name = (item or "").strip()
        if name and name not in self.item_names:
            items.append(CatalogItem(name=name, image_url=(image_url or "").strip() or None))
        return self.model_copy(update={
            "custom_items": items,
            "custom_locations": _add_unique(self.custom_locations, location),
            "custom_departments": _add_unique(self.custom_departments, department),
        })

    def without_entries(self, item=None, location=None, department=None):
        return self.model_copy(update={
            "custom_items": [i for i in self.custom_items if i.name != item],
            "custom_locations": [l for l in self.custom_locations if l != location],
            "custom_departments": [d for d in self.custom_departments if d != department],
        })

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
