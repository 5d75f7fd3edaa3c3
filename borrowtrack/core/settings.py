import logging
from typing import Optional, Tuple

from borrowtrack.configs import SETTINGS_KEY
from borrowtrack.core.documents import DocumentStore
from borrowtrack.core.utils import now_iso
from borrowtrack.schemas.settings import DefaultSettings

logger = logging.getLogger(__name__)

COLLECTION = "defaultSettings"
OWNER_FIELD = "userId"


class SettingsStore:
    """Settings documents addressed by key.

    New documents are written at `defaultSettings/{key}`. Documents saved
    under a generated id are still found by their `userId` field and
    updated in place.
    """

    def __init__(self, documents: DocumentStore):
        self.documents = documents

    async def locate(self, key: str = SETTINGS_KEY) -> Optional[Tuple[str, dict]]:
        data = await self.documents.read_document(COLLECTION, key)
        if data is not None and data.get(OWNER_FIELD, key) == key:
            return key, data
        for doc_id, data in await self.documents.list_children(COLLECTION):
            if data.get(OWNER_FIELD) == key:
                return doc_id, data
        return None

    async def get(self, key: str = SETTINGS_KEY) -> DefaultSettings:
        found = await self.locate(key)
        if found is None:
            return DefaultSettings()
        return DefaultSettings.model_validate(found[1])

    async def put(self, settings: DefaultSettings, key: str = SETTINGS_KEY) -> str:
        """Create or update the settings for `key`; returns the document id."""
        found = await self.locate(key)
        doc_id = found[0] if found else key
        data = {**settings.to_document(), OWNER_FIELD: key, "updatedAt": now_iso()}
        try:
            await self.documents.write_document(COLLECTION, doc_id, data=data, merge=True)
        except Exception as e:
            logger.error(f"Error saving settings {key}: {e}")
            raise
        return doc_id
