"""
Document business logic service layer.

Responsibilities:
- Decide whether a document's recipients have all acted
- Decide which fields still need a value
- Find the recipient whose rejection closed the document
"""

from ..models import (
    ADVANCED_FIELD_TYPES,
    DocumentStatus,
    RecipientRole,
    SigningStatus,
)


class DocumentService:
    """Service for document completion rules."""

    @staticmethod
    def get_signing_recipients(recipients):
        """Recipients that gate completion (everyone except CC)."""
        return [r for r in recipients if r.role != RecipientRole.CC]

    @staticmethod
    def is_document_complete(recipients) -> bool:
        """
        A document is complete when any non-CC recipient rejected it, or
        when every non-CC recipient signed. No such recipients counts as complete.
        """
        signing = DocumentService.get_signing_recipients(recipients)
        if any(r.signing_status == SigningStatus.REJECTED for r in signing):
            return True
        return all(r.signing_status == SigningStatus.SIGNED for r in signing)

    @staticmethod
    def find_rejected_recipient(recipients):
        """First non-CC recipient (by id) that rejected the document, or None."""
        rejected = [
            r for r in DocumentService.get_signing_recipients(recipients)
            if r.signing_status == SigningStatus.REJECTED
        ]
        if not rejected:
            return None
        return min(rejected, key=lambda r: r.pk)

    @staticmethod
    def is_required_field(field) -> bool:
        """
        Plain fields are always required. Advanced fields (text, number,
        radio, checkbox, dropdown) only when their meta says so.
        """
        if field.type not in ADVANCED_FIELD_TYPES:
            return True
        return bool((field.field_meta or {}).get('required'))

    @staticmethod
    def fields_contain_unsigned_required_field(fields) -> bool:
        return any(DocumentService.is_required_field(f) and not f.inserted for f in fields)

    @staticmethod
    def is_document_completed(status) -> bool:
        """Whether a status is terminal (completed or rejected)."""
        return status in (DocumentStatus.COMPLETED, DocumentStatus.REJECTED)


_document_service = None


def get_document_service() -> DocumentService:
    """Get singleton instance of document service."""
    global _document_service
    if _document_service is None:
        _document_service = DocumentService()
    return _document_service
