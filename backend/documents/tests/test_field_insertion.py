from decimal import Decimal
from types import SimpleNamespace

import pytest

from documents.services.field_insertion import (
    FieldInserter,
    LegacyFieldInserter,
    decode_signature_image,
    get_insertion_strategy,
    rotation_matrix,
)
from documents.services.pdf_document import WorkingPdf

from .conftest import make_pdf, page_content, png_data_url


def signature_field(typed_signature=None, image=None, page=1, custom_text=''):
    signature = None
    if typed_signature or image:
        signature = SimpleNamespace(typed_signature=typed_signature, signature_image_as_base64=image)
    return SimpleNamespace(
        pk=1,
        page=page,
        position_x=Decimal('10'),
        position_y=Decimal('10'),
        width=Decimal('30'),
        height=Decimal('6'),
        custom_text=custom_text,
        signature=signature,
    )


def apply(matrix, x, y):
    a, b, c, d, e, f = matrix
    return a * x + c * y + e, b * x + d * y + f


@pytest.mark.parametrize('rotation, expected', [
    (0, (0, 0)),
    (90, (612, 0)),
    (180, (612, 792)),
    (270, (0, 792)),
])
def test_rotation_matrix_maps_displayed_origin(rotation, expected):
    matrix = rotation_matrix(rotation, 612, 792)

    assert apply(matrix, 0, 0) == expected


def test_rotation_matrix_keeps_points_on_the_page():
    # Top-right corner of a page rotated by 90 degrees is displayed 792 wide
    matrix = rotation_matrix(90, 612, 792)

    x, y = apply(matrix, 792, 612)

    assert 0 <= x <= 612 and 0 <= y <= 792


def test_decode_signature_image():
    assert decode_signature_image(png_data_url(40, 20)).getSize() == (40, 20)
    assert decode_signature_image('') is None
    assert decode_signature_image('data:image/png;base64,@@not-base64@@') is None


@pytest.mark.parametrize('inserter_class', [FieldInserter, LegacyFieldInserter])
def test_typed_signature_is_drawn(inserter_class):
    pdf = WorkingPdf.load(make_pdf())

    inserter_class().insert(pdf, signature_field(typed_signature='Jane Doe'))

    assert b'(Jane Doe)' in page_content(pdf)


@pytest.mark.parametrize('inserter_class', [FieldInserter, LegacyFieldInserter])
def test_signature_image_is_drawn(inserter_class):
    pdf = WorkingPdf.load(make_pdf())

    inserter_class().insert(pdf, signature_field(image=png_data_url()))

    assert b' Do' in page_content(pdf)


def test_out_of_range_page_is_skipped():
    pdf = WorkingPdf.load(make_pdf())
    before = page_content(pdf)

    FieldInserter().insert(pdf, signature_field(typed_signature='Jane Doe', page=4))

    assert page_content(pdf) == before


def test_current_inserter_draws_on_rotated_pages():
    pdf = WorkingPdf.load(make_pdf(rotate=90))

    FieldInserter().insert(pdf, signature_field(typed_signature='Jane Doe'))

    content = page_content(pdf)
    assert b'(Jane Doe)' in content
    assert b'0 1 -1 0 612 0 cm' in content


def test_free_signature_falls_back_to_custom_text():
    pdf = WorkingPdf.load(make_pdf())

    FieldInserter().insert(pdf, signature_field(custom_text='J. Doe'))

    assert b'(J. Doe)' in page_content(pdf)


@pytest.mark.parametrize('height, expected', [(5, 8), (20, 14), (100, 32)])
def test_legacy_font_size_is_clamped(height, expected):
    assert LegacyFieldInserter.compute_font_size(height) == expected


def test_strategy_follows_document_flag():
    legacy, current = object(), object()

    assert get_insertion_strategy(SimpleNamespace(use_legacy_field_insertion=True), legacy, current) is legacy
    assert get_insertion_strategy(SimpleNamespace(use_legacy_field_insertion=False), legacy, current) is current
    assert isinstance(get_insertion_strategy(SimpleNamespace(use_legacy_field_insertion=True)), LegacyFieldInserter)
