"""
Signing certificate rendering.

The certificate is a standalone PDF appended to sealed documents. It lists
every recipient with their role, outcome and how they signed.
"""

import logging
from io import BytesIO

from django.utils import timezone, translation
from django.utils.translation import gettext as _
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..models import Document, SigningStatus
from .field_insertion import get_field_signature

logger = logging.getLogger(__name__)


def _format_time(value):
    if value is None:
        return '-'
    return timezone.localtime(value).strftime('%Y-%m-%d %H:%M:%S %Z')


def _signature_kind(recipient):
    """How the recipient signed, based on the first signature-bearing field."""
    for field in recipient.fields.all():
        if not field.is_signature_field:
            continue
        signature = get_field_signature(field)
        if signature is None:
            continue
        if signature.signature_image_as_base64:
            return _('Drawn')
        if signature.typed_signature:
            return _('Typed')
    return '-'


class CertificateRenderer:
    """Render the signing certificate for a document."""

    def render(self, document_id: int, language: str = 'en') -> bytes:
        """
        Build the certificate PDF.

        Args:
            document_id: id of the document being sealed
            language: language code the headings are translated to

        Returns:
            bytes: a complete PDF document
        """
        document = Document.objects.prefetch_related(
            'recipients__fields__signature'
        ).get(pk=document_id)

        with translation.override(language):
            return self._build(document)

    def _build(self, document) -> bytes:
        styles = getSampleStyleSheet()
        buffer = BytesIO()
        template = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=20 * mm,
            rightMargin=20 * mm,
            topMargin=20 * mm,
            bottomMargin=20 * mm,
            title=_('Signing certificate'),
        )

        story = [
            Paragraph(_('Signing certificate'), styles['Title']),
            Paragraph(f"{_('Document')}: {document.title}", styles['Normal']),
            Paragraph(f"{_('Document ID')}: {document.pk}", styles['Normal']),
            Spacer(1, 6 * mm),
        ]

        rows = [[_('Recipient'), _('Role'), _('Status'), _('Time'), _('Signature')]]
        notes = []
        for recipient in document.recipients.all():
            if recipient.signing_status == SigningStatus.REJECTED:
                notes.append(Paragraph(
                    f"{recipient.name or recipient.email}: {_('Rejection reason')}: "
                    f"{recipient.rejection_reason or '-'}",
                    styles['Normal'],
                ))

            rows.append([
                Paragraph(f"{recipient.name}<br/>{recipient.email}", styles['BodyText']),
                recipient.get_role_display(),
                recipient.get_signing_status_display(),
                _format_time(recipient.signed_at),
                _signature_kind(recipient),
            ])

        table = Table(rows, colWidths=[60 * mm, 22 * mm, 22 * mm, 42 * mm, 24 * mm], repeatRows=1)
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f1f5f9')),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 8),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#cbd5e1')),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ]))
        story.append(table)

        if notes:
            story.append(Spacer(1, 6 * mm))
            story.extend(notes)

        story.append(Spacer(1, 6 * mm))
        story.append(Paragraph(
            f"{_('Generated at')}: {_format_time(timezone.now())}",
            styles['Italic'],
        ))

        template.build(story)
        return buffer.getvalue()
