import random

from documents.services.text_layout import font_metric, wrap_lines, wrap_text


def test_text_that_fits_is_one_line():
    assert wrap_lines('hello world', 20, len) == ['hello world']


def test_empty_text():
    assert wrap_lines('', 10, len) == []
    assert wrap_text('', 10, len) == ''


def test_newlines_are_paragraph_boundaries():
    assert wrap_text('a\n\nb', 10, len) == 'a\n\nb'
    assert wrap_lines('a\n\nb', 10, len) == ['a', '', 'b']


def test_greedy_word_wrap():
    assert wrap_lines('aa bb cc dd', 5, len) == ['aa bb', 'cc dd']
    assert wrap_lines('aaa bb c', 6, len) == ['aaa bb', 'c']


def test_long_word_is_split_into_runs_that_fit():
    assert wrap_lines('abcdefghij', 4, len) == ['abcd', 'efgh', 'ij']


def test_long_word_after_short_word():
    assert wrap_lines('ab cdefgh', 3, len) == ['ab', 'cde', 'fgh']


def test_remainder_of_long_word_continues_the_line():
    assert wrap_lines('abcdef gh', 4, len) == ['abcd', 'ef', 'gh']
    assert wrap_lines('abcde f', 4, len) == ['abcd', 'e f']


def test_character_wider_than_box_gets_its_own_line():
    wide = lambda text: len(text) * 10  # noqa: E731

    assert wrap_lines('ab', 5, wide) == ['a', 'b']


def test_lines_never_exceed_width():
    rng = random.Random(1234)
    alphabet = 'abcdefghij     \n'

    for _ in range(200):
        text = ''.join(rng.choice(alphabet) for _ in range(rng.randint(0, 80)))
        width = rng.randint(1, 15)

        for line in wrap_lines(text, width, len):
            assert len(line) <= width


def test_words_are_preserved_in_order():
    text = 'The quick brown fox jumps over the lazy dog'
    lines = wrap_lines(text, 12, len)

    assert ' '.join(lines) == text


def test_font_metric_measures_with_reportlab():
    width_of = font_metric('Helvetica', 8)

    assert width_of('') == 0
    assert width_of('WW') > width_of('ii')
    assert width_of('abc') * 2 == font_metric('Helvetica', 16)('abc')
