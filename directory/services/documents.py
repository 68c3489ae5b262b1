"""Document store for uploaded CVs and photos, backed by Django storage."""

from __future__ import annotations

import abc
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.core.exceptions import SuspiciousOperation
from django.core.files.storage import Storage, default_storage
from django.utils import timezone
from django.utils.module_loading import import_string

from .errors import DocumentStoreError, ErrorKind
from .sessions import IdentitySession

logger = logging.getLogger(__name__)

CV_BUCKET = "cvs"
PHOTO_BUCKET = "photos"

# Buckets whose objects may only be written by the owning identity.
OWNER_SCOPED_BUCKETS = frozenset({CV_BUCKET})


@dataclass(frozen=True)
class StoredDocument:
    path: str
    url: str


class DocumentStore(abc.ABC):
    @abc.abstractmethod
    def upload(self, session: Optional[IdentitySession], bucket: str,
               owner_id: uuid.UUID, upload, *, prefix: str) -> StoredDocument:
        """Store ``upload`` under ``bucket/owner_id/`` and return its location."""

    @abc.abstractmethod
    def delete_owner_documents(self, bucket: str, owner_id: uuid.UUID) -> int:
        """Remove every document stored for ``owner_id`` in ``bucket``."""


class DjangoDocumentStore(DocumentStore):
    def __init__(self, storage: Storage | None = None):
        self._storage = storage or default_storage

    def upload(self, session, bucket, owner_id, upload, *, prefix):
        if session is None:
            raise DocumentStoreError(ErrorKind.SESSION_REQUIRED)
        if bucket in OWNER_SCOPED_BUCKETS and str(session.account_id) != str(owner_id):
            raise DocumentStoreError(
                ErrorKind.PERMISSION_DENIED,
                "Documents in this bucket can only be uploaded by their owner.",
            )
        name = getattr(upload, "name", "") or ""
        extension = name.rsplit(".", 1)[-1].lower() if "." in name else "bin"
        stamp = int(timezone.now().timestamp() * 1000)
        target = f"{bucket}/{owner_id}/{prefix}_{stamp}.{extension}"
        try:
            saved_name = self._storage.save(target, upload)
            url = self._storage.url(saved_name)
        except (OSError, SuspiciousOperation) as exc:
            logger.exception("Could not store %s for %s", bucket, owner_id)
            raise DocumentStoreError(ErrorKind.STORAGE_FAILED, str(exc)) from exc
        logger.info("Stored %s document %s", bucket, saved_name)
        return StoredDocument(path=saved_name, url=url)

    def delete_owner_documents(self, bucket, owner_id):
        folder = f"{bucket}/{owner_id}"
        try:
            if not self._storage.exists(folder):
                return 0
            _, files = self._storage.listdir(folder)
            for filename in files:
                self._storage.delete(f"{folder}/{filename}")
        except (OSError, NotImplementedError) as exc:
            raise DocumentStoreError(ErrorKind.STORAGE_FAILED, str(exc)) from exc
        return len(files)


def get_document_store() -> DocumentStore:
    backend = getattr(settings, "PAMJE_DOCUMENT_STORE",
                      "directory.services.documents.DjangoDocumentStore")
    return import_string(backend)()
