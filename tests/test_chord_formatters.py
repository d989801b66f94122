"""Unit tests for the text and HTML chord formatters."""

import pytest

from leadsheet.alteration import ADD9, SUS4, everything, make_major, omitted, over, raised
from leadsheet.chord import chord
from leadsheet.chord_formatters import HtmlFormatter, TextFormatter
from leadsheet.letter import Letter
from leadsheet.parser import parse_chord
from leadsheet.quality import DOM7, MAJ, MIN, MIN7, MIN7_FLAT5

SHARP = '<span class="unicode-sharp">♯</span>'
FLAT = '<span class="unicode-flat">♭</span>'
OPEN = '<span class="paren-open">(</span>'
CLOSE = '<span class="paren-close">)</span>'


def _sup(text: str) -> str:
    return f'<sup class="extent">{text}</sup>'


def test_text_formatter_matches_chord_print() -> None:
    subject = chord("F", MIN7, over(Letter("E", -1)))
    assert TextFormatter().format(subject) == subject.print() == "Fm7/Eb"


def test_text_formatter_canonicalizes_before_printing() -> None:
    assert TextFormatter().format(chord("C", MAJ, make_major(7))) == "CM7"


@pytest.mark.parametrize(
    ("symbol", "expected"),
    [
        ("A", "A"),
        ("Am", "Am"),
        ("Bb", f"B{FLAT}"),
        ("F##", f"F{SHARP}{SHARP}"),
        ("C13", f"C{_sup('13')}"),
        ("CM9", f"CM{_sup('9')}"),
        ("Cm7b5", f"Cm{_sup('7')}{FLAT}{_sup('5')}"),
        ("C6/9", f"C{_sup('6')}{_sup('/')}{_sup('9')}"),
        ("C+", f"C{_sup('+')}"),
        ("C5", f"C{_sup('5')}"),
    ],
)
def test_html_tonic_and_quality(symbol: str, expected: str) -> None:
    assert HtmlFormatter().format(parse_chord(symbol).unwrap()) == expected


def test_html_stacks_alterations_in_pairs() -> None:
    subject = chord("C", DOM7, raised(9), raised(11))
    expected = (
        f"C{_sup('7')}{OPEN}"
        f'<span class="fractional"><span>{SHARP}11</span><span>{SHARP}9</span></span>'
        f"{CLOSE}"
    )
    assert HtmlFormatter().format(subject) == expected


def test_html_odd_alteration_gets_its_own_parens() -> None:
    subject = chord("C", MAJ, SUS4, ADD9, omitted(5))
    expected = (
        f"C{OPEN}"
        '<span class="fractional"><span>sus4</span><span>add9</span></span>'
        f"{CLOSE}{OPEN}"
        '<span class=""><span>no5</span></span>'
        f"{CLOSE}"
    )
    assert HtmlFormatter().format(subject) == expected


def test_html_alt_leads_and_slash_trails() -> None:
    subject = chord("G", DOM7, over(Letter("B", -1)), everything(), raised(11))
    html = HtmlFormatter().format(subject)
    assert html.startswith(f"G{_sup('7')}alt{OPEN}")
    assert html.endswith(f'{CLOSE}<span class="slash">/</span>B{FLAT}')


def test_html_color_class_names_the_quality() -> None:
    html = HtmlFormatter(color_chords=True).format(chord("D", MIN7_FLAT5))
    assert html.startswith('<span class="chord chord-half-diminished">D')
    assert html.endswith("</span>")
    plain = HtmlFormatter(color_chords=False).format(chord("D", MIN))
    assert plain == "Dm"
