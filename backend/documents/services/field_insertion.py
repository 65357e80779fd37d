"""
Signature field insertion strategies.

Both strategies share one contract, ``insert(pdf, field)``: draw the
field's signature artwork on the right page and position. Which one runs
is decided per document by ``use_legacy_field_insertion``.
"""

import base64
import binascii
import logging
from io import BytesIO

from django.core.exceptions import ObjectDoesNotExist
from reportlab.lib.colors import HexColor
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth

from .field_renderer import PDFCoordinateConverter
from .pdf_document import PDFFontManager

logger = logging.getLogger(__name__)

INK_COLOR = HexColor('#1a1a1a')


def get_field_signature(field):
    """Signature attached to a field, or None."""
    try:
        return field.signature
    except ObjectDoesNotExist:
        return None


def decode_signature_image(data_url: str):
    """
    Decode a base64 image (optionally a ``data:`` URL) into a reportlab ImageReader.

    Returns None when the payload is not valid base64.
    """
    if not data_url:
        return None

    payload = data_url.split(',', 1)[1] if data_url.startswith('data:') else data_url
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Ignoring signature image that is not valid base64")
        return None

    return ImageReader(BytesIO(raw))


def rotation_matrix(rotation: int, page_width: float, page_height: float) -> tuple:
    """
    Canvas transform mapping displayed-page coordinates to user space
    for a page with the given /Rotate value.
    """
    if rotation == 90:
        return (0, 1, -1, 0, page_width, 0)
    if rotation == 180:
        return (-1, 0, 0, -1, page_width, page_height)
    if rotation == 270:
        return (0, -1, 1, 0, 0, page_height)
    return (1, 0, 0, 1, 0, 0)


class FieldInsertionStrategy:
    """Draws a signature-bearing field into a WorkingPdf."""

    def insert(self, pdf, field) -> None:
        raise NotImplementedError

    @staticmethod
    def signature_text(field, signature):
        if signature is not None and signature.typed_signature:
            return signature.typed_signature
        return field.custom_text or ''


class FieldInserter(FieldInsertionStrategy):
    """
    Current insertion behaviour.

    - honours the page's /Rotate so fields land where the signer saw them
    - images are scaled to fit and centred, keeping their aspect ratio
    - typed signatures get the largest font size that fits, centred
    """

    def insert(self, pdf, field) -> None:
        page = pdf.get_page(field.page)
        if page is None:
            return

        media_width, media_height = pdf.page_size(page)
        rotation = pdf.page_rotation(page)
        if rotation in (90, 270):
            display_width, display_height = media_height, media_width
        else:
            display_width, display_height = media_width, media_height

        box = PDFCoordinateConverter.field_box(field, display_width, display_height)
        signature = get_field_signature(field)
        image = decode_signature_image(signature.signature_image_as_base64) if signature else None
        text = self.signature_text(field, signature)

        if image is None and not text:
            return

        def painter(c):
            c.saveState()
            c.transform(*rotation_matrix(rotation, media_width, media_height))
            if image is not None:
                self._draw_image(c, image, box)
            else:
                self._draw_text(c, text, box)
            c.restoreState()

        pdf.draw(page, painter)

    @staticmethod
    def _draw_image(c, image, box):
        image_width, image_height = image.getSize()
        scale = min(box.width / image_width, box.height / image_height)
        width = image_width * scale
        height = image_height * scale
        c.drawImage(
            image,
            box.x + (box.width - width) / 2,
            box.y + (box.height - height) / 2,
            width=width,
            height=height,
            mask='auto',
        )

    @staticmethod
    def _draw_text(c, text, box):
        font = PDFFontManager.get_font_for_field(is_signature=True)
        unit_width = stringWidth(text, font, 1) or 1
        font_size = max(1, min(box.height * 0.7, (box.width * 0.9) / unit_width))
        text_width = stringWidth(text, font, font_size)

        c.setFillColor(INK_COLOR)
        c.setFont(font, font_size)
        c.drawString(
            box.x + (box.width - text_width) / 2,
            box.y + box.height / 2 - font_size * 0.35,
            text,
        )


class LegacyFieldInserter(FieldInsertionStrategy):
    """
    Insertion behaviour kept for documents created before the current one.

    Ignores page rotation. Images keep their aspect ratio but are anchored
    to the left edge; typed signatures use a size derived from the box
    height and are left aligned.
    """

    MIN_FONT_SIZE = 8
    MAX_FONT_SIZE = 32

    def insert(self, pdf, field) -> None:
        page = pdf.get_page(field.page)
        if page is None:
            return

        page_width, page_height = pdf.page_size(page)
        box = PDFCoordinateConverter.field_box(field, page_width, page_height)
        signature = get_field_signature(field)
        image = decode_signature_image(signature.signature_image_as_base64) if signature else None
        text = self.signature_text(field, signature)

        if image is None and not text:
            return

        def painter(c):
            if image is not None:
                image_width, image_height = image.getSize()
                scale = min(box.width / image_width, box.height / image_height)
                height = image_height * scale
                c.drawImage(
                    image,
                    box.x,
                    box.y + (box.height - height) / 2,
                    width=image_width * scale,
                    height=height,
                    mask='auto',
                )
                return

            font_size = self.compute_font_size(box.height)
            c.setFillColor(INK_COLOR)
            c.setFont(PDFFontManager.get_font_for_field(is_signature=True), font_size)
            c.drawString(box.x + 4, box.y + box.height * 0.2, text[:50])

        pdf.draw(page, painter)

    @classmethod
    def compute_font_size(cls, height_points: float) -> int:
        """Font size for a typed signature in a box of the given height."""
        font_size = int(height_points * 0.7)
        return max(cls.MIN_FONT_SIZE, min(font_size, cls.MAX_FONT_SIZE))


def get_insertion_strategy(document, legacy=None, current=None) -> FieldInsertionStrategy:
    """Pick the insertion strategy a document was created with."""
    if document.use_legacy_field_insertion:
        return legacy or LegacyFieldInserter()
    return current or FieldInserter()
