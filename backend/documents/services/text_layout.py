"""
Greedy text wrapping for fixed-width boxes.

The wrapping depends only on the text, the box width and a width-measuring
callable, so it can be exercised without building a PDF. Rendering code
passes a reportlab metric, tests can pass anything (e.g. ``len``).
"""

from functools import partial

from reportlab.pdfbase.pdfmetrics import stringWidth


def font_metric(font_name: str, font_size: float):
    """Return a ``width_of(text)`` callable for a reportlab font at a given size."""
    return partial(_string_width, font_name=font_name, font_size=font_size)


def _string_width(text, font_name, font_size):
    return stringWidth(text, font_name, font_size)


def wrap_lines(text: str, max_width: float, width_of) -> list:
    """
    Break text into lines that each fit within max_width.

    Literal newlines are kept as paragraph boundaries (an empty paragraph
    becomes an empty line). Words are joined greedily with single spaces.
    A word that is wider than max_width on its own is split into the
    longest runs of characters that still fit.

    Args:
        text: text to wrap
        max_width: available width, in the units width_of returns
        width_of: callable measuring the rendered width of a string

    Returns:
        list[str]: the wrapped lines
    """
    if not text:
        return []

    lines = []

    for paragraph in text.split('\n'):
        if paragraph == '' or width_of(paragraph) <= max_width:
            lines.append(paragraph)
            continue

        current_line = ''

        for word in paragraph.split(' '):
            line_with_word = word if not current_line else f'{current_line} {word}'

            if width_of(line_with_word) <= max_width:
                current_line = line_with_word
                continue

            if current_line:
                lines.append(current_line)
                current_line = ''

            if width_of(word) <= max_width:
                current_line = word
                continue

            char_line = ''
            for char in word:
                next_char_line = char_line + char
                if width_of(next_char_line) <= max_width:
                    char_line = next_char_line
                else:
                    # A lone character wider than the box still has to go somewhere
                    if char_line:
                        lines.append(char_line)
                    char_line = char

            current_line = char_line

        if current_line:
            lines.append(current_line)

    return lines


def wrap_text(text: str, max_width: float, width_of) -> str:
    """Same as wrap_lines, joined back with newlines."""
    return '\n'.join(wrap_lines(text, max_width, width_of))
