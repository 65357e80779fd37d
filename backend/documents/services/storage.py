"""
Content-addressed storage for document PDFs, on top of Django's storage API.

Blobs live at ``documents/<sha256>/<name>``. Storing the same bytes twice
reuses the existing blob.
"""

import logging

from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

from ..models import DocumentData
from .hashing import HashingService

logger = logging.getLogger(__name__)


class DocumentDataStorage:
    """Read and write the PDF bytes referenced by DocumentData rows."""

    def __init__(self, storage=None):
        self.storage = storage or default_storage

    def get_bytes(self, document_data, initial: bool = False) -> bytes:
        """
        Load the bytes of a DocumentData.

        Args:
            document_data: DocumentData instance
            initial: read the pristine upload instead of the current rendering

        Returns:
            bytes: PDF content
        """
        path = document_data.initial_data if initial else document_data.data
        with self.storage.open(path, 'rb') as f:
            return f.read()

    def put_bytes(self, name: str, data: bytes) -> str:
        """Store bytes and return their storage path."""
        sha256 = HashingService.compute_bytes_sha256(data)
        path = f"documents/{sha256}/{name}"

        if self.storage.exists(path):
            logger.debug("Reusing stored blob %s", path)
            return path

        return self.storage.save(path, ContentFile(data))

    def put_pdf(self, name: str, data: bytes) -> DocumentData:
        """
        Store a PDF as a new DocumentData whose data and initial data are the same blob.

        Returns:
            DocumentData: the new (saved) row
        """
        path = self.put_bytes(name, data)
        return DocumentData.objects.create(
            data=path,
            initial_data=path,
            sha256=HashingService.compute_bytes_sha256(data),
        )


_storage = None


def get_document_storage() -> DocumentDataStorage:
    """Get singleton instance of the document storage."""
    global _storage
    if _storage is None:
        _storage = DocumentDataStorage()
    return _storage
