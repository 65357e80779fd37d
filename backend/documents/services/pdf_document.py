"""
In-memory PDF handle used by the sealing pipeline.

Wraps a PyPDF2 writer holding the source pages. Drawing happens through
reportlab: a painter callable draws on a canvas the size of the target page,
and the resulting single-page overlay is merged onto that page.
"""

import logging
from io import BytesIO
from pathlib import Path

from django.conf import settings
from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.generic import ArrayObject, IndirectObject, NameObject
from reportlab.pdfgen import canvas
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

logger = logging.getLogger(__name__)


class PDFFontManager:
    """Manage font registration and retrieval for PDF generation."""

    SIGNATURE_FONT = 'Caveat'
    SIGNATURE_FALLBACK_FONT = 'Helvetica-Oblique'
    TEXT_FONT = 'Helvetica'

    _fonts_registered = False

    @classmethod
    def register_fonts(cls):
        """Register the handwriting TTF font with reportlab, if one is installed."""
        if cls._fonts_registered:
            return

        fonts_dir = Path(settings.DOCSEAL_SEALING['FONTS_DIR'])
        for filename in ('Caveat-Regular.ttf', 'DancingScript-Regular.ttf'):
            font_path = fonts_dir / filename
            if not font_path.exists():
                continue
            try:
                pdfmetrics.registerFont(TTFont(cls.SIGNATURE_FONT, str(font_path)))
                logger.info("Registered signature font %s", font_path)
                break
            except Exception as e:
                # reportlab raises TTFError and friends for broken font files
                logger.warning("Failed to register %s: %s", font_path, e)

        cls._fonts_registered = True

    @classmethod
    def get_font_for_field(cls, is_signature: bool) -> str:
        """Get the font name to draw a field with."""
        if not is_signature:
            return cls.TEXT_FONT

        cls.register_fonts()
        try:
            pdfmetrics.getFont(cls.SIGNATURE_FONT)
            return cls.SIGNATURE_FONT
        except KeyError:
            return cls.SIGNATURE_FALLBACK_FONT


class WorkingPdf:
    """Mutable PDF being decorated before signing."""

    def __init__(self, writer: PdfWriter):
        self.writer = writer

    @classmethod
    def load(cls, data: bytes) -> 'WorkingPdf':
        reader = PdfReader(BytesIO(data))
        writer = PdfWriter()

        for page in reader.pages:
            writer.add_page(page)

        # The form dictionary lives on the catalog, not on the pages
        source_root = reader.trailer['/Root']
        if '/AcroForm' in source_root:
            writer._root_object[NameObject('/AcroForm')] = source_root.raw_get('/AcroForm').clone(writer)

        return cls(writer)

    @property
    def pages(self):
        return self.writer.pages

    @property
    def root(self):
        return self.writer._root_object

    def page_count(self) -> int:
        return len(self.writer.pages)

    def get_page(self, page_number: int):
        """Return the page for a 1-based page number, or None when out of range."""
        if page_number < 1 or page_number > len(self.writer.pages):
            return None
        return self.writer.pages[page_number - 1]

    @staticmethod
    def page_size(page) -> tuple:
        """(width, height) of the page's media box, ignoring /Rotate."""
        return float(page.mediabox.width), float(page.mediabox.height)

    @staticmethod
    def page_rotation(page) -> int:
        rotation = page.get('/Rotate', 0)
        return int(rotation) % 360

    def draw(self, page, painter) -> None:
        """
        Merge whatever painter draws onto page.

        Args:
            page: PyPDF2 page object from this document
            painter: callable receiving a reportlab canvas sized to the page
        """
        width, height = self.page_size(page)

        overlay_buffer = BytesIO()
        overlay_canvas = canvas.Canvas(overlay_buffer, pagesize=(width, height))
        painter(overlay_canvas)
        overlay_canvas.showPage()
        overlay_canvas.save()

        overlay_page = PdfReader(BytesIO(overlay_buffer.getvalue())).pages[0]
        page.merge_page(overlay_page)

        # Merged content may come back as a direct stream; streams must be indirect
        contents = page.raw_get('/Contents')
        if not isinstance(contents, IndirectObject) and not isinstance(contents, ArrayObject):
            page[NameObject('/Contents')] = self.add_object(contents)

    def append_pdf(self, data: bytes) -> int:
        """Append every page of another PDF. Returns the number of pages added."""
        reader = PdfReader(BytesIO(data))
        for page in reader.pages:
            self.writer.add_page(page)
        return len(reader.pages)

    def add_object(self, obj):
        """Register a PDF object with the writer and return its indirect reference."""
        return self.writer._add_object(obj)

    def to_bytes(self) -> bytes:
        output_buffer = BytesIO()
        self.writer.write(output_buffer)
        return output_buffer.getvalue()
