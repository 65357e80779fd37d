"""
Completion email for sealed documents.

Every recipient with an e-mail address receives the sealed PDF as an
attachment; each delivery is recorded in the audit trail.
"""

import logging
from pathlib import PurePosixPath

from django.conf import settings
from django.core.mail import EmailMessage
from django.utils import translation
from django.utils.translation import gettext as _

from ..models import Document, DocumentAuditLog
from .audit_logs import create_document_audit_log_data
from .storage import get_document_storage

logger = logging.getLogger(__name__)


class CompletedEmailService:
    """Send the 'document completed' email."""

    def __init__(self, storage=None):
        self.storage = storage or get_document_storage()

    def send_completed_email(self, document_id: int, request_metadata: dict = None) -> int:
        """
        Email the sealed document to its recipients.

        Args:
            document_id: id of a sealed document
            request_metadata: dict with ip_address / user_agent, or None

        Returns:
            int: number of emails sent
        """
        document = Document.objects.select_related('document_data').prefetch_related(
            'recipients'
        ).get(pk=document_id)

        pdf_bytes = self.storage.get_bytes(document.document_data)
        filename = PurePosixPath(document.document_data.data).name

        sent = 0
        with translation.override(document.language):
            subject = _('"%(title)s" has been signed') % {'title': document.title}

            for recipient in document.recipients.all():
                if not recipient.email:
                    continue

                body = _(
                    'Hello %(name)s,\n\nAll parties have completed "%(title)s". '
                    'The signed document is attached.'
                ) % {'name': recipient.name or recipient.email, 'title': document.title}

                message = EmailMessage(
                    subject=subject,
                    body=body,
                    from_email=settings.DEFAULT_FROM_EMAIL,
                    to=[recipient.email],
                )
                message.attach(filename, pdf_bytes, 'application/pdf')
                message.send()
                sent += 1

                DocumentAuditLog.objects.create(**create_document_audit_log_data(
                    type='EMAIL_SENT',
                    document_id=document.pk,
                    request_metadata=request_metadata,
                    data={
                        'email_type': 'DOCUMENT_COMPLETED',
                        'recipient_id': recipient.pk,
                        'recipient_email': recipient.email,
                        'recipient_name': recipient.name,
                        'recipient_role': recipient.role,
                    },
                ))

        logger.info("Sent completion email for document %s to %d recipient(s)", document_id, sent)
        return sent


_email_service = None


def get_email_service() -> CompletedEmailService:
    """Get singleton instance of the completion email service."""
    global _email_service
    if _email_service is None:
        _email_service = CompletedEmailService()
    return _email_service
