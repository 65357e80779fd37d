import base64
from decimal import Decimal
from io import BytesIO

import pytest
from PIL import Image
from PyPDF2 import PdfReader
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from documents.models import (
    Document, DocumentStatus, Field, FieldType, Recipient, RecipientRole,
    Signature, SigningStatus
)
from documents.services.field_renderer import FieldRenderer
from documents.services.seal_document import DocumentSealingService
from documents.services.storage import DocumentDataStorage


def make_pdf(pages=1, pagesize=letter, rotate=0, text=None):
    """Plain PDF built with reportlab."""
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=pagesize)
    for number in range(pages):
        if rotate:
            c.setPageRotation(rotate)
        c.drawString(72, 72, text or f"Page {number + 1}")
        c.showPage()
    c.save()
    return buffer.getvalue()


def make_form_pdf():
    """One page with a filled text field and a link."""
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=letter)
    c.drawString(72, 720, 'Form')
    c.acroForm.textfield(name='full_name', value='Jane Doe', x=100, y=600, width=200, height=20)
    c.linkURL('https://example.com', (72, 100, 200, 120))
    c.showPage()
    c.save()
    return buffer.getvalue()


def page_count(data: bytes) -> int:
    return len(PdfReader(BytesIO(data)).pages)


def page_content(pdf, page_number=1) -> bytes:
    """Decoded content stream of a WorkingPdf page."""
    return pdf.get_page(page_number).get_contents().get_data()


def png_data_url(width=40, height=20):
    buffer = BytesIO()
    Image.new('RGB', (width, height), (20, 20, 20)).save(buffer, format='PNG')
    return 'data:image/png;base64,' + base64.b64encode(buffer.getvalue()).decode()


class FakeSigner:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def sign(self, pdf_bytes):
        self.calls.append(pdf_bytes)
        if self.error:
            raise self.error
        return pdf_bytes


class FakeCertificateRenderer:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def render(self, document_id, language='en'):
        self.calls.append((document_id, language))
        if self.error:
            raise self.error
        return make_pdf(text='Signing certificate')


class FakeEmailService:
    def __init__(self):
        self.sent = []

    def send_completed_email(self, document_id, request_metadata=None):
        self.sent.append((document_id, request_metadata))


class FakeWebhookService:
    def __init__(self):
        self.events = []

    def trigger_event(self, event_type, payload, user_id=None, team_id=None):
        self.events.append({
            'event_type': event_type,
            'payload': payload,
            'user_id': user_id,
            'team_id': team_id,
        })


class FakeAnalytics:
    def __init__(self):
        self.captured = []

    def capture(self, event, properties=None):
        self.captured.append((event, properties))


class FakeInserter:
    def __init__(self):
        self.inserted = []

    def insert(self, pdf, field):
        self.inserted.append(field.pk)


class RecordingFieldRenderer(FieldRenderer):
    """Keeps the lines of every render call."""

    def __init__(self):
        super().__init__()
        self.renders = []

    def render(self, pdf, fields):
        placed = super().render(pdf, fields)
        self.renders.append(placed)
        return placed


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path / 'media')
    return settings.MEDIA_ROOT


@pytest.fixture
def storage():
    return DocumentDataStorage()


@pytest.fixture
def collaborators():
    return {
        'signer': FakeSigner(),
        'certificate_renderer': FakeCertificateRenderer(),
        'email_service': FakeEmailService(),
        'webhook_service': FakeWebhookService(),
        'analytics': FakeAnalytics(),
        'field_renderer': RecordingFieldRenderer(),
    }


@pytest.fixture
def sealing_service(storage, collaborators):
    return DocumentSealingService(storage=storage, **collaborators)


@pytest.fixture
def create_document(storage):
    """
    Build a document in the PENDING state.

    recipients: list of (role, signing_status) or (role, signing_status, rejection_reason)
    """

    def _create(title='contract.pdf', recipients=((RecipientRole.SIGNER, SigningStatus.SIGNED),),
                pdf_bytes=None, **document_kwargs):
        document_data = storage.put_pdf(title, pdf_bytes or make_pdf())
        document = Document.objects.create(
            title=title,
            status=document_kwargs.pop('status', DocumentStatus.PENDING),
            document_data=document_data,
            **document_kwargs
        )
        for index, entry in enumerate(recipients):
            role, signing_status = entry[0], entry[1]
            Recipient.objects.create(
                document=document,
                email=f'recipient{index}@example.com',
                name=f'Recipient {index}',
                role=role,
                signing_status=signing_status,
                rejection_reason=entry[2] if len(entry) > 2 else None,
            )
        return document

    return _create


@pytest.fixture
def add_field():
    def _add(document, type=FieldType.TEXT, page=1, position_x='10', position_y='10',
             width='20', height='5', custom_text='', inserted=True, field_meta=None,
             recipient=None, typed_signature=None, signature_image=None):
        recipient = recipient or document.recipients.first()
        field = Field.objects.create(
            document=document,
            recipient=recipient,
            type=type,
            page=page,
            position_x=Decimal(position_x),
            position_y=Decimal(position_y),
            width=Decimal(width),
            height=Decimal(height),
            custom_text=custom_text,
            inserted=inserted,
            field_meta=field_meta,
        )
        if typed_signature or signature_image:
            Signature.objects.create(
                field=field,
                recipient=recipient,
                typed_signature=typed_signature,
                signature_image_as_base64=signature_image,
            )
        return field

    return _add
