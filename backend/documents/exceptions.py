"""
Domain errors raised by the sealing pipeline.

Precondition errors mean the document is not in a sealable state. Re-running
the seal without fixing the document will fail the same way, so job runners
must not retry them.
"""


class SealingError(Exception):
    """Base class for sealing pipeline errors."""


class SealPreconditionError(SealingError):
    """The document cannot be sealed in its current state."""


class DocumentNotCompleteError(SealPreconditionError):
    def __init__(self, document_id):
        self.document_id = document_id
        super().__init__(f"Document {document_id} is not complete")


class UnsignedRequiredFieldsError(SealPreconditionError):
    def __init__(self, document_id):
        self.document_id = document_id
        super().__init__(f"Document {document_id} has unsigned required fields")


class MissingDocumentDataError(SealPreconditionError):
    def __init__(self, document_id):
        self.document_id = document_id
        super().__init__(f"Document {document_id} has no document data")


class SigningError(SealingError, RuntimeError):
    """Raised when a signing backend fails."""
