"""
Normalisation passes applied to a document before fields are drawn.

Responsibilities:
- Give every signature widget a well-formed appearance stream
- Flatten the interactive form (widgets become page content)
- Flatten the remaining annotations
- Stamp rejected documents

Every pass is idempotent: running it on an already normalised document
changes nothing.
"""

import logging

from PyPDF2.generic import (
    ArrayObject,
    DecodedStreamObject,
    DictionaryObject,
    FloatObject,
    IndirectObject,
    NameObject,
    StreamObject,
)
from reportlab.lib.colors import Color

from .pdf_document import PDFFontManager
from .text_layout import font_metric, wrap_lines

logger = logging.getLogger(__name__)

# Annotation flag bits (PDF 32000-1, 12.5.3)
HIDDEN_FLAG = 1 << 1
NO_VIEW_FLAG = 1 << 5

STAMP_COLOR = Color(0.86, 0.15, 0.15, alpha=0.85)


def _resolve(value):
    return value.get_object() if value is not None else None


def _page_annotations(page):
    """List of (array entry, resolved annotation) pairs for a page."""
    annots = _resolve(page.get('/Annots'))
    if not annots:
        return []
    return [(ref, ref.get_object()) for ref in annots]


def _field_type(annot):
    """Field type of a widget, following /Parent links for inherited /FT."""
    node = annot
    while node is not None:
        field_type = _resolve(node.get('/FT'))
        if field_type is not None:
            return field_type
        node = _resolve(node.get('/Parent'))
    return None


def _normal_appearance(annot):
    """
    Return the normal appearance stream of an annotation, or None.

    State dictionaries (checkboxes, radios) resolve through /AS.
    The returned value may be an IndirectObject or a direct stream.
    """
    appearance = _resolve(annot.get('/AP'))
    if not isinstance(appearance, DictionaryObject) or '/N' not in appearance:
        return None

    normal = appearance.raw_get('/N')
    resolved = normal.get_object()

    if isinstance(resolved, StreamObject):
        return normal

    if isinstance(resolved, DictionaryObject):
        state = _resolve(annot.get('/AS'))
        if state is None or state not in resolved:
            return None
        chosen = resolved.raw_get(state)
        if isinstance(chosen.get_object(), StreamObject):
            return chosen

    return None


def _rect(annot):
    x1, y1, x2, y2 = [float(v) for v in _resolve(annot['/Rect'])]
    return min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2)


def _is_hidden(annot):
    flags = int(_resolve(annot.get('/F')) or 0)
    return bool(flags & (HIDDEN_FLAG | NO_VIEW_FLAG))


def _placement_matrix(annot, stream):
    """
    Matrix mapping the appearance's (transformed) bounding box onto the
    annotation rectangle, or None for degenerate boxes.
    """
    x1, y1, x2, y2 = _rect(annot)

    bbox = [float(v) for v in _resolve(stream.get('/BBox')) or [0, 0, x2 - x1, y2 - y1]]
    a, b, c, d, e, f = [float(v) for v in _resolve(stream.get('/Matrix')) or [1, 0, 0, 1, 0, 0]]

    corners = [
        (bbox[0], bbox[1]), (bbox[2], bbox[1]),
        (bbox[0], bbox[3]), (bbox[2], bbox[3]),
    ]
    points = [(a * x + c * y + e, b * x + d * y + f) for x, y in corners]
    bx1 = min(p[0] for p in points)
    by1 = min(p[1] for p in points)
    bx2 = max(p[0] for p in points)
    by2 = max(p[1] for p in points)

    if bx2 - bx1 == 0 or by2 - by1 == 0:
        return None

    sx = (x2 - x1) / (bx2 - bx1)
    sy = (y2 - y1) / (by2 - by1)
    return sx, sy, x1 - bx1 * sx, y1 - by1 * sy


def _xobject_dict(page):
    resources = _resolve(page.get('/Resources'))
    if resources is None:
        resources = DictionaryObject()
        page[NameObject('/Resources')] = resources

    xobjects = _resolve(resources.get('/XObject'))
    if xobjects is None:
        xobjects = DictionaryObject()
        resources[NameObject('/XObject')] = xobjects

    return xobjects


def _new_stream(data: bytes):
    stream = DecodedStreamObject()
    stream.set_data(data)
    return stream


def _append_content(pdf, page, data: bytes):
    """Append drawing operators to a page, isolated from its existing graphics state."""
    new_ref = pdf.add_object(_new_stream(data))

    if '/Contents' not in page:
        page[NameObject('/Contents')] = ArrayObject([new_ref])
        return

    raw = page.raw_get('/Contents')
    resolved = raw.get_object()
    if isinstance(resolved, ArrayObject):
        existing = list(resolved)
    elif isinstance(raw, IndirectObject):
        existing = [raw]
    else:
        existing = [pdf.add_object(resolved)]

    page[NameObject('/Contents')] = ArrayObject([
        pdf.add_object(_new_stream(b'q\n')),
        *existing,
        pdf.add_object(_new_stream(b'Q\n')),
        new_ref,
    ])


def _bake_annotations(pdf, page, should_bake, keep=lambda annot: False):
    """
    Paint the appearance of every annotation matched by should_bake into
    the page content and remove it. Annotations matched by keep stay.

    Returns:
        int: number of annotations removed from the page
    """
    annots = _page_annotations(page)
    if not annots:
        return 0

    acro_form = _resolve(pdf.root.get('/AcroForm'))
    default_resources = _resolve(acro_form.get('/DR')) if acro_form is not None else None

    kept = []
    operators = []
    removed = 0

    for ref, annot in annots:
        if keep(annot) or not should_bake(annot):
            kept.append(ref)
            continue

        removed += 1
        if _is_hidden(annot):
            continue

        appearance_ref = _normal_appearance(annot)
        if appearance_ref is None:
            continue

        stream = appearance_ref.get_object()
        placement = _placement_matrix(annot, stream)
        if placement is None:
            continue

        stream[NameObject('/Type')] = NameObject('/XObject')
        stream[NameObject('/Subtype')] = NameObject('/Form')
        if '/Resources' not in stream and default_resources is not None:
            stream[NameObject('/Resources')] = default_resources

        if not isinstance(appearance_ref, IndirectObject):
            appearance_ref = pdf.add_object(stream)

        xobjects = _xobject_dict(page)
        index = len(xobjects)
        while f'/FlatAnnot{index}' in xobjects:
            index += 1
        name = f'/FlatAnnot{index}'
        xobjects[NameObject(name)] = appearance_ref

        sx, sy, tx, ty = placement
        operators.append(f'q {sx:.6f} 0 0 {sy:.6f} {tx:.6f} {ty:.6f} cm {name} Do Q')

    if removed == 0:
        return 0

    if kept:
        page[NameObject('/Annots')] = ArrayObject(kept)
    else:
        del page[NameObject('/Annots')]

    if operators:
        _append_content(pdf, page, ('\n'.join(operators) + '\n').encode('latin-1'))

    return removed


def _is_widget(annot):
    return _resolve(annot.get('/Subtype')) == '/Widget'


def normalize_signature_appearances(pdf) -> None:
    """
    Make sure every signature widget has a normal appearance stream.

    Signature widgets without one (or with a malformed one) get an empty
    form XObject the size of their rectangle, so flattening treats them
    like any other widget and leaves no interactive remnant behind.
    """
    for page in pdf.pages:
        for _ref, annot in _page_annotations(page):
            if not _is_widget(annot) or _field_type(annot) != '/Sig':
                continue
            if _normal_appearance(annot) is not None:
                continue

            x1, y1, x2, y2 = _rect(annot)
            stream = _new_stream(b'')
            stream[NameObject('/Type')] = NameObject('/XObject')
            stream[NameObject('/Subtype')] = NameObject('/Form')
            stream[NameObject('/BBox')] = ArrayObject([
                FloatObject(0), FloatObject(0), FloatObject(x2 - x1), FloatObject(y2 - y1)
            ])

            annot[NameObject('/AP')] = DictionaryObject({
                NameObject('/N'): pdf.add_object(stream),
            })
            if '/AS' in annot:
                del annot[NameObject('/AS')]


def flatten_form(pdf) -> None:
    """Flatten the AcroForm: paint widget appearances and drop the form."""
    removed = 0
    for page in pdf.pages:
        removed += _bake_annotations(pdf, page, _is_widget)

    if '/AcroForm' in pdf.root:
        del pdf.root[NameObject('/AcroForm')]

    if removed:
        logger.debug("Flattened %d form widget(s)", removed)


def flatten_annotations(pdf) -> None:
    """Flatten every remaining annotation except links."""
    for page in pdf.pages:
        _bake_annotations(
            pdf,
            page,
            should_bake=lambda annot: True,
            keep=lambda annot: _resolve(annot.get('/Subtype')) == '/Link',
        )


def add_rejection_stamp(pdf, reason: str) -> None:
    """
    Stamp every page as rejected, with the rejection reason under the title.
    """
    title_font = 'Helvetica-Bold'
    reason_font = PDFFontManager.get_font_for_field(is_signature=False)
    title = 'DOCUMENT REJECTED'
    title_size = 28
    reason_size = 10

    for page in pdf.pages:
        width, height = pdf.page_size(page)
        box_width = min(width * 0.6, 360)
        padding = 12
        reason_lines = wrap_lines(
            f'Reason: {reason}', box_width - 2 * padding, font_metric(reason_font, reason_size)
        )
        box_height = title_size + padding * 3 + len(reason_lines) * reason_size * 1.2

        def painter(c, box_width=box_width, box_height=box_height, reason_lines=reason_lines,
                    width=width, height=height):
            c.saveState()
            c.translate(width / 2, height / 2)
            c.rotate(-30)
            c.setStrokeColor(STAMP_COLOR)
            c.setFillColor(STAMP_COLOR)
            c.setLineWidth(3)
            c.roundRect(-box_width / 2, -box_height / 2, box_width, box_height, 8, stroke=1, fill=0)

            y = box_height / 2 - padding - title_size
            c.setFont(title_font, title_size)
            c.drawCentredString(0, y, title)

            c.setFont(reason_font, reason_size)
            y -= padding + reason_size
            for line in reason_lines:
                c.drawCentredString(0, y, line)
                y -= reason_size * 1.2
            c.restoreState()

        pdf.draw(page, painter)
