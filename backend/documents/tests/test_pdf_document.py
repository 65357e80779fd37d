from io import BytesIO

import pytest
from PyPDF2 import PdfReader

from documents.services.pdf_document import WorkingPdf

from .conftest import make_form_pdf, make_pdf, page_count


def page_text(data, page_number):
    return PdfReader(BytesIO(data)).pages[page_number - 1].extract_text()


def test_load_keeps_every_page():
    pdf = WorkingPdf.load(make_pdf(pages=3))

    assert pdf.page_count() == 3
    assert pdf.get_page(1) is not None
    assert pdf.get_page(3) is not None


@pytest.mark.parametrize('page_number', [0, -1, 3])
def test_pages_outside_the_document(page_number):
    pdf = WorkingPdf.load(make_pdf(pages=2))

    assert pdf.get_page(page_number) is None


def test_unmodified_document_round_trips():
    data = WorkingPdf.load(make_pdf(pages=2)).to_bytes()

    assert page_count(data) == 2
    assert 'Page 2' in page_text(data, 2)


def test_appended_pages_are_written():
    pdf = WorkingPdf.load(make_pdf(pages=2))

    added = pdf.append_pdf(make_pdf(text='Signing certificate'))

    assert added == 1
    assert pdf.page_count() == 3
    data = pdf.to_bytes()
    assert page_count(data) == 3
    assert 'Signing certificate' in page_text(data, 3)


def test_drawing_survives_serialisation():
    pdf = WorkingPdf.load(make_pdf(pages=2))

    pdf.draw(pdf.get_page(2), lambda c: c.drawString(100, 500, 'Approved by Jane Doe'))

    data = pdf.to_bytes()
    assert 'Approved by Jane Doe' in page_text(data, 2)
    assert 'Approved by Jane Doe' not in page_text(data, 1)


def test_form_is_kept_on_load():
    pdf = WorkingPdf.load(make_form_pdf())

    fields = pdf.root['/AcroForm']['/Fields']
    assert [f.get_object()['/T'] for f in fields] == ['full_name']

    subtypes = [a.get_object().get('/Subtype') for a in pdf.get_page(1)['/Annots']]
    assert '/Widget' in subtypes
