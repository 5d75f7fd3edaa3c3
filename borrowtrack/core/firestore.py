import functools
import logging

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from starlette.concurrency import run_in_threadpool

from borrowtrack.configs import FIREBASE_CONFIG
from borrowtrack.core.documents import DocumentStore, collection_path, document_path
from borrowtrack.core.exceptions import DocumentNotFound, StoreError

logger = logging.getLogger(__name__)


def init_client(credentials_path=None, project_id=None):
    """Firestore client for the default firebase app, initializing it once."""
    try:
        app = firebase_admin.get_app()
    except ValueError:
        cred = (credentials.Certificate(credentials_path) if credentials_path
                else credentials.ApplicationDefault())
        options = {"projectId": project_id} if project_id else None
        app = firebase_admin.initialize_app(cred, options)
    return firestore.client(app)


def _error_code(error):
    status = getattr(error, "grpc_status_code", None)
    if status is not None:
        return status.name.lower().replace("_", "-")
    return str(getattr(error, "code", "") or error.__class__.__name__)


def translate_errors(func):
    @functools.wraps(func)
    def wrapper(self, path, *args):
        try:
            return func(self, path, *args)
        except google_exceptions.NotFound as e:
            raise DocumentNotFound(path) from e
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Firestore error at {'/'.join(path)}: {e}")
            raise StoreError(_error_code(e), getattr(e, "message", str(e))) from e
    return wrapper


class FirestoreDocumentStore(DocumentStore):

    def __init__(self, client=None):
        self.client = client or init_client(
            FIREBASE_CONFIG['credentials'], FIREBASE_CONFIG['project_id'])

    @translate_errors
    def _list(self, path):
        return [(snap.id, snap.to_dict() or {}) for snap in self.client.collection(*path).stream()]

    @translate_errors
    def _read(self, path):
        snap = self.client.document(*path).get()
        return snap.to_dict() if snap.exists else None

    @translate_errors
    def _write(self, path, data, merge):
        self.client.document(*path).set(data, merge=merge)

    @translate_errors
    def _update(self, path, patch):
        self.client.document(*path).update(patch)

    @translate_errors
    def _delete(self, path):
        self.client.document(*path).delete()

    async def list_children(self, *path):
        return await run_in_threadpool(self._list, collection_path(path))

    async def read_document(self, *path):
        return await run_in_threadpool(self._read, document_path(path))

    async def write_document(self, *path, data, merge=False):
        await run_in_threadpool(self._write, document_path(path), data, merge)

    async def update_document(self, *path, patch):
        await run_in_threadpool(self._update, document_path(path), patch)

    async def delete_document(self, *path):
        await run_in_threadpool(self._delete, document_path(path))
