"""
Draw the values of non-signature fields onto document pages.

Field geometry is stored as percentages of the page measured from the top
left; PDF user space starts at the bottom left. Layout (which line goes
where) is computed first as plain data, then drawn with reportlab.
"""

import logging
from dataclasses import dataclass

from .pdf_document import PDFFontManager
from .text_layout import font_metric, wrap_lines

logger = logging.getLogger(__name__)

FONT_SIZE = 8
PADDING = 4


@dataclass(frozen=True)
class FieldBox:
    """Absolute field rectangle in PDF user space (bottom-left origin)."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class TextLine:
    page_number: int
    x: float
    y: float
    text: str
    font_name: str
    font_size: float


class PDFCoordinateConverter:
    """Convert between UI coordinates (top-left origin) and PDF coordinates (bottom-left origin)."""

    @staticmethod
    def field_box(field, page_width: float, page_height: float) -> FieldBox:
        """
        Convert a field's percentage geometry to an absolute box.

        Args:
            field: Field instance (position_x, position_y, width, height in 0-100)
            page_width: page width in points
            page_height: page height in points

        Returns:
            FieldBox with y measured from the bottom of the page
        """
        width = page_width * (float(field.width) / 100)
        height = page_height * (float(field.height) / 100)
        x = page_width * (float(field.position_x) / 100)
        y_top = page_height * (float(field.position_y) / 100)

        return FieldBox(x=x, y=page_height - y_top - height, width=width, height=height)


def layout_field_text(field, page_width: float, page_height: float,
                      font_name: str = 'Helvetica', font_size: float = FONT_SIZE,
                      padding: float = PADDING) -> list:
    """
    Compute where each wrapped line of a field's custom text is drawn.

    Lines start at the top of the box and move down by 1.2x the font size.
    Lines that would start below the bottom padding are dropped.
    """
    if not field.custom_text:
        return []

    box = PDFCoordinateConverter.field_box(field, page_width, page_height)
    lines = wrap_lines(
        field.custom_text,
        box.width - padding * 2,
        font_metric(font_name, font_size),
    )

    placed = []
    current_y = box.y + box.height - padding - font_size
    line_height = font_size * 1.2

    for line in lines:
        if current_y < box.y + padding:
            break
        placed.append(TextLine(
            page_number=field.page,
            x=box.x + padding,
            y=current_y,
            text=line,
            font_name=font_name,
            font_size=font_size,
        ))
        current_y -= line_height

    return placed


class FieldRenderer:
    """Render non-signature field values onto a WorkingPdf."""

    def __init__(self, font_name: str = None):
        self.font_name = font_name or PDFFontManager.get_font_for_field(is_signature=False)

    def layout(self, pdf, fields) -> list:
        """Lines to draw for every inserted, non-signature field with custom text."""
        placed = []

        for field in fields:
            if field.is_signature_field or not field.inserted or not field.custom_text:
                continue

            page = pdf.get_page(field.page)
            if page is None:
                logger.debug("Skipping field %s: page %s out of range", field.pk, field.page)
                continue

            page_width, page_height = pdf.page_size(page)
            placed.extend(layout_field_text(field, page_width, page_height, font_name=self.font_name))

        return placed

    def render(self, pdf, fields) -> list:
        """
        Draw the fields and return the lines that were drawn.

        All lines of a page go into a single overlay.
        """
        placed = self.layout(pdf, fields)

        by_page = {}
        for line in placed:
            by_page.setdefault(line.page_number, []).append(line)

        for page_number, lines in by_page.items():
            def painter(c, lines=lines):
                for line in lines:
                    c.setFont(line.font_name, line.font_size)
                    c.drawString(line.x, line.y, line.text)

            pdf.draw(pdf.get_page(page_number), painter)

        return placed
