"""
Sealing of finished documents.

Responsibilities:
- Check that every recipient has acted and every required field is filled
- Render fields, the rejection stamp and the signing certificate onto the PDF
- Sign the result and store it as new document data
- Flip the document status and write the completion audit entry atomically
- Send the completion email and fire the document webhook

The work is split into named steps run through a JobRunIO, so a retried
job reuses the results of the steps that already completed.
"""

import logging
from pathlib import PurePosixPath

from django.db.models import Q
from django.utils import timezone

from ..exceptions import (
    DocumentNotCompleteError,
    MissingDocumentDataError,
    UnsignedRequiredFieldsError,
)
from ..models import Document, DocumentAuditLog, DocumentData, DocumentStatus
from ..serializers import WebhookDocumentPayloadSerializer
from .analytics import get_analytics_service
from .audit_logs import create_document_audit_log_data
from .certificate import CertificateRenderer
from .document_service import DocumentService
from .email_service import get_email_service
from .field_insertion import FieldInserter, LegacyFieldInserter, get_insertion_strategy
from .field_renderer import FieldRenderer
from .job_runner import LocalJobRunIO
from .pdf_document import WorkingPdf
from .pdf_normalizer import (
    add_rejection_stamp,
    flatten_annotations,
    flatten_form,
    normalize_signature_appearances,
)
from .pdf_signer import get_pdf_signer
from .storage import get_document_storage
from .token_utils import generate_prefixed_id
from .webhook_service import get_webhook_service

logger = logging.getLogger(__name__)

SEALED_EVENT = 'App: Document Sealed'


class DocumentSealingService:
    """
    Seal documents whose signing workflow has concluded.

    Every collaborator can be injected; the defaults are the ones configured
    in settings.
    """

    def __init__(self, storage=None, signer=None, certificate_renderer=None,
                 legacy_inserter=None, current_inserter=None, field_renderer=None,
                 email_service=None, webhook_service=None, analytics=None):
        self.storage = storage or get_document_storage()
        self.signer = signer or get_pdf_signer()
        self.certificate_renderer = certificate_renderer or CertificateRenderer()
        self.legacy_inserter = legacy_inserter or LegacyFieldInserter()
        self.current_inserter = current_inserter or FieldInserter()
        self.field_renderer = field_renderer or FieldRenderer()
        self.email_service = email_service or get_email_service()
        self.webhook_service = webhook_service or get_webhook_service()
        self.analytics = analytics or get_analytics_service()

    def seal_document(self, document_id: int, send_email: bool = True, is_resealing: bool = False,
                      request_metadata: dict = None, io=None):
        """
        Seal a document.

        Args:
            document_id: id of the document to seal
            send_email: whether the completion email may be sent
            is_resealing: render again from the pristine upload
            request_metadata: dict with ip_address / user_agent, or None
            io: JobRunIO checkpointing the steps; in-memory when None

        Returns:
            Document: the sealed document, reloaded

        Raises:
            DocumentNotCompleteError: a non-CC recipient has not acted yet
            MissingDocumentDataError: the document has no PDF
            UnsignedRequiredFieldsError: a required field has no value
            SigningError: the signer failed
        """
        io = io or LocalJobRunIO()

        document = Document.objects.select_related('team').get(pk=document_id)
        recipients = list(document.recipients.all())

        if not DocumentService.is_document_complete(recipients):
            raise DocumentNotCompleteError(document_id)

        # Read through checkpoints: a re-run after update-document must see the
        # values from before this seal.
        document_status = io.run_task('get-document-status', lambda: document.status)
        document_data_id = io.run_task('get-document-data-id', lambda: document.document_data_id)

        document_data = DocumentData.objects.filter(pk=document_data_id).first() if document_data_id else None
        if document_data is None:
            raise MissingDocumentDataError(document_id)

        rejected_recipient = DocumentService.find_rejected_recipient(recipients)
        is_rejected = rejected_recipient is not None
        rejection_reason = (rejected_recipient.rejection_reason or '') if is_rejected else ''

        fields = list(document.fields.select_related('signature').order_by('id'))

        if not is_rejected and DocumentService.fields_contain_unsigned_required_field(fields):
            raise UnsignedRequiredFieldsError(document_id)

        self.ensure_qr_token(document)

        logger.info(
            "Sealing document %s (rejected=%s, resealing=%s)", document.pk, is_rejected, is_resealing
        )

        new_data_id = io.run_task(
            'decorate-and-sign-pdf',
            lambda: self.decorate_and_sign(document, document_data, fields, is_resealing,
                                           is_rejected, rejection_reason),
        )

        self.analytics.capture(SEALED_EVENT, {'documentId': document.pk, 'isRejected': is_rejected})

        io.run_task(
            'update-document',
            lambda: self.update_document(document, document_data, new_data_id, is_rejected,
                                         rejection_reason, request_metadata),
            atomic=True,
        )

        io.run_task(
            'send-completed-email',
            lambda: self.send_completed_email_if_needed(
                document.pk, send_email, is_resealing, is_rejected, document_status, request_metadata
            ),
        )

        updated_document = Document.objects.select_related('document_data').prefetch_related(
            'recipients'
        ).get(pk=document.pk)

        self.webhook_service.trigger_event(
            'DOCUMENT_REJECTED' if is_rejected else 'DOCUMENT_COMPLETED',
            self.build_webhook_payload(updated_document),
            user_id=updated_document.owner_id,
            team_id=updated_document.team_id,
        )

        logger.info("Sealed document %s as %s", document.pk, updated_document.status)
        return updated_document

    @staticmethod
    def ensure_qr_token(document):
        """Give the document a QR token unless it already has one."""
        if document.qr_token:
            return document.qr_token

        Document.objects.filter(
            Q(qr_token__isnull=True) | Q(qr_token=''), pk=document.pk
        ).update(qr_token=generate_prefixed_id('qr'))
        document.refresh_from_db(fields=['qr_token'])
        return document.qr_token

    def decorate_and_sign(self, document, document_data, fields, is_resealing,
                          is_rejected, rejection_reason) -> int:
        """
        Render everything onto the PDF, sign it and store it.

        Returns:
            int: id of the DocumentData holding the signed PDF
        """
        pdf = WorkingPdf.load(self.storage.get_bytes(document_data, initial=is_resealing))

        normalize_signature_appearances(pdf)
        flatten_form(pdf)
        flatten_annotations(pdf)

        if is_rejected and rejection_reason:
            add_rejection_stamp(pdf, rejection_reason)

        self.field_renderer.render(pdf, [f for f in fields if not f.is_signature_field])

        signature_fields = [f for f in fields if f.is_signature_field]
        strategy = get_insertion_strategy(document, self.legacy_inserter, self.current_inserter)
        for field in signature_fields:
            if field.inserted:
                strategy.insert(pdf, field)

        if signature_fields and document.include_signing_certificate:
            certificate = self.render_certificate(document)
            if certificate:
                pdf.append_pdf(certificate)

        # Insertion can leave new widgets behind
        flatten_form(pdf)

        signed_bytes = self.signer.sign(pdf.to_bytes())

        suffix = '_rejected.pdf' if is_rejected else '_signed.pdf'
        name = f"{PurePosixPath(document.title).stem}{suffix}"

        return self.storage.put_pdf(name, signed_bytes).pk

    def render_certificate(self, document):
        """Certificate PDF bytes, or None when rendering fails."""
        try:
            return self.certificate_renderer.render(document.pk, document.language)
        except Exception:
            logger.warning("Certificate rendering failed for document %s", document.pk, exc_info=True)
            return None

    @staticmethod
    def update_document(document, document_data, new_data_id, is_rejected,
                        rejection_reason, request_metadata) -> dict:
        """Status, document data and audit entry. Runs inside one transaction."""
        new_data = DocumentData.objects.get(pk=new_data_id)
        status = DocumentStatus.REJECTED if is_rejected else DocumentStatus.COMPLETED
        now = timezone.now()

        Document.objects.filter(pk=document.pk).update(
            status=status,
            completed_at=now,
            updated_at=now,
        )

        DocumentData.objects.filter(pk=document_data.pk).update(
            data=new_data.data,
            sha256=new_data.sha256,
        )

        data = {'is_rejected': True, 'rejection_reason': rejection_reason} if is_rejected else {}
        DocumentAuditLog.objects.create(**create_document_audit_log_data(
            type='DOCUMENT_COMPLETED',
            document_id=document.pk,
            request_metadata=request_metadata,
            data=data,
        ))

        return {'status': status}

    @staticmethod
    def should_send_completed_email(send_email, is_resealing, is_rejected, previous_status) -> bool:
        should_send = send_email and not is_resealing and not is_rejected

        # A reseal of a document that never completed still owes the email
        if is_resealing and not DocumentService.is_document_completed(previous_status):
            should_send = send_email

        return should_send

    def send_completed_email_if_needed(self, document_id, send_email, is_resealing,
                                       is_rejected, previous_status, request_metadata) -> bool:
        if not self.should_send_completed_email(send_email, is_resealing, is_rejected, previous_status):
            return False

        self.email_service.send_completed_email(document_id, request_metadata)
        return True

    @staticmethod
    def build_webhook_payload(document) -> dict:
        return dict(WebhookDocumentPayloadSerializer(document).data)


_sealing_service = None


def get_document_sealing_service() -> DocumentSealingService:
    """Get singleton instance of the sealing service."""
    global _sealing_service
    if _sealing_service is None:
        _sealing_service = DocumentSealingService()
    return _sealing_service
