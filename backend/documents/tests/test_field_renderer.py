from decimal import Decimal
from types import SimpleNamespace

import pytest

from documents.services.field_renderer import (
    FieldRenderer,
    PDFCoordinateConverter,
    layout_field_text,
)
from documents.services.pdf_document import WorkingPdf

from .conftest import make_pdf, page_content

LETTER = (612.0, 792.0)


def make_field(**kwargs):
    values = {
        'pk': 1,
        'type': 'TEXT',
        'page': 1,
        'position_x': Decimal('10'),
        'position_y': Decimal('10'),
        'width': Decimal('15.36'),
        'height': Decimal('3.8'),
        'custom_text': '',
        'inserted': True,
        'is_signature_field': False,
    }
    values.update(kwargs)
    return SimpleNamespace(**values)


def test_field_box_inverts_y_axis():
    field = make_field(position_x=Decimal('50'), position_y=Decimal('25'),
                       width=Decimal('10'), height=Decimal('10'))

    box = PDFCoordinateConverter.field_box(field, 200, 400)

    assert box.x == pytest.approx(100)
    assert box.width == pytest.approx(20)
    assert box.height == pytest.approx(40)
    # 400 - 100 (top offset) - 40 (height)
    assert box.y == pytest.approx(260)


def test_layout_wraps_text_into_two_lines():
    field = make_field(custom_text='Approved by Jane Doe on 2024-01-01')

    lines = layout_field_text(field, *LETTER)

    assert [line.text for line in lines] == ['Approved by Jane Doe', 'on 2024-01-01']

    box = PDFCoordinateConverter.field_box(field, *LETTER)
    assert lines[0].x == pytest.approx(box.x + 4)
    assert lines[0].y == pytest.approx(box.y + box.height - 4 - 8)
    assert lines[1].y == pytest.approx(lines[0].y - 8 * 1.2)
    assert all(line.font_size == 8 for line in lines)


def test_layout_drops_lines_below_the_box():
    field = make_field(custom_text='one\ntwo\nthree\nfour\nfive', height=Decimal('3.8'))

    lines = layout_field_text(field, *LETTER)

    # ~30pt tall box: room for two 8pt lines with 4pt padding
    assert [line.text for line in lines] == ['one', 'two']


def test_layout_of_empty_text():
    assert layout_field_text(make_field(custom_text=''), *LETTER) == []


def test_layout_is_deterministic():
    field = make_field(custom_text='Approved by Jane Doe on 2024-01-01')

    assert layout_field_text(field, *LETTER) == layout_field_text(field, *LETTER)


def test_renderer_skips_signature_uninserted_and_out_of_range_fields():
    pdf = WorkingPdf.load(make_pdf(pages=1))
    fields = [
        make_field(pk=1, custom_text='drawn'),
        make_field(pk=2, custom_text='not inserted', inserted=False),
        make_field(pk=3, custom_text='signature', is_signature_field=True),
        make_field(pk=4, custom_text='missing page', page=3),
        make_field(pk=5, custom_text=''),
    ]

    placed = FieldRenderer().layout(pdf, fields)

    assert [line.text for line in placed] == ['drawn']


def test_renderer_draws_lines_on_the_right_page():
    pdf = WorkingPdf.load(make_pdf(pages=2))
    fields = [
        make_field(pk=1, page=2, custom_text='Approved by Jane Doe on 2024-01-01'),
    ]

    placed = FieldRenderer().render(pdf, fields)

    assert len(placed) == 2
    assert b'(Approved by Jane Doe)' in page_content(pdf, 2)
    assert b'(on 2024-01-01)' in page_content(pdf, 2)
    assert b'Approved by Jane Doe' not in page_content(pdf, 1)
