"""Formatter implementations that print chords as plain text or HTML."""

from __future__ import annotations

from abc import ABC, abstractmethod

from leadsheet.alteration import Alteration, AlterationKind, sort_alterations
from leadsheet.chord import Chord, canonicalize
from leadsheet.letter import Letter
from leadsheet.quality import Quality, QualityID, extent_of
from leadsheet.quality import identify as identify_quality


def _escape_html(text: str) -> str:
    """Escape the three characters that are unsafe in HTML text content."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _target_text(target: object) -> str:
    return "" if target is None else str(target)


class ChordFormatter(ABC):
    """
    Abstract chord formatter.

    ``format`` canonicalizes the chord and concatenates the tonic, quality
    and alteration pieces produced by the concrete formatter.
    """

    def format(self, chord: Chord) -> str:
        canonical = canonicalize(chord)
        quality = self.quality(canonical.quality)
        alterations = self.alterations(
            list(canonical.alterations),
            after_bare_tonic=quality == "",
        )
        return f"{self.tonic(canonical.tonic)}{quality}{alterations}"

    @abstractmethod
    def tonic(self, letter: Letter) -> str:
        """Render the chord's tonic."""

    @abstractmethod
    def quality(self, quality: Quality) -> str:
        """Render the chord's canonical quality, extent included."""

    @abstractmethod
    def alterations(self, alterations: list[Alteration], *, after_bare_tonic: bool = False) -> str:
        """Render the chord's remaining alterations, already in canonical order."""


class TextFormatter(ChordFormatter):
    """Plain ASCII chord symbols that ``parse_chord`` reads back to the same chord."""

    #: "{x}" is replaced by the extent of seventh chords.
    QUALITY_SYMBOLS: dict[QualityID, str] = {
        QualityID.AUGMENTED: "+",
        QualityID.DIMINISHED: "o",
        QualityID.MAJOR: "",
        QualityID.MINOR: "m",
        QualityID.MAJOR_SEVENTH: "M{x}",
        QualityID.DOMINANT_SEVENTH: "{x}",
        QualityID.MINOR_SEVENTH: "m{x}",
        QualityID.AUGMENTED_SEVENTH: "+{x}",
        QualityID.DIMINISHED_SEVENTH: "o{x}",
        QualityID.DIMINISHED_MAJOR_SEVENTH: "oM{x}",
        QualityID.AUGMENTED_MAJOR_SEVENTH: "+M{x}",
        QualityID.HALF_DIMINISHED: "m{x}b5",
        QualityID.MINOR_MAJOR_SEVENTH: "mM{x}",
        QualityID.MAJOR_SIXTH: "6",
        QualityID.MINOR_SIXTH: "m6",
        QualityID.MAJOR_SIX_NINE: "6/9",
        QualityID.MINOR_SIX_NINE: "m6/9",
        QualityID.AUGMENTED_SIXTH: "+6",
        QualityID.POWER: "5",
    }

    ALTERATION_SYMBOLS: dict[AlterationKind, str] = {
        AlterationKind.RAISE: "#{x}",
        AlterationKind.LOWER: "b{x}",
        AlterationKind.MAJOR: "(M{x})",
        AlterationKind.MINOR: "(m{x})",
        AlterationKind.ADD: "(add{x})",
        AlterationKind.OMIT: "(no{x})",
        AlterationKind.COMPOUND: "/{x}",
        AlterationKind.SUSPEND: "sus{x}",
        AlterationKind.EVERYTHING: "alt{x}",
    }

    # Directly after a tonic these would read as part of it ("A#9", "Ab9").
    _BRACKETED_AFTER_TONIC = frozenset(
        {AlterationKind.RAISE, AlterationKind.LOWER, AlterationKind.EVERYTHING}
    )

    def tonic(self, letter: Letter) -> str:
        return str(letter)

    def quality(self, quality: Quality) -> str:
        template = self.QUALITY_SYMBOLS[identify_quality(quality)]
        return template.format(x=_target_text(extent_of(quality)))

    def alterations(self, alterations: list[Alteration], *, after_bare_tonic: bool = False) -> str:
        pieces = []
        for alteration in alterations:
            text = self.ALTERATION_SYMBOLS[alteration.kind].format(
                x=_target_text(alteration.target)
            )
            if after_bare_tonic and alteration.kind in self._BRACKETED_AFTER_TONIC:
                text = f"({text})"
            pieces.append(text)
        return "".join(pieces)


# ── HTML ────────────────────────────────────────────────────────────────────

_PAREN_OPEN = '<span class="paren-open">(</span>'
_PAREN_CLOSE = '<span class="paren-close">)</span>'
_SLASH = '<span class="slash">/</span>'

# Alterations that may stack two to a pair of parentheses
_FRACTIONABLE = frozenset(
    {
        AlterationKind.RAISE,
        AlterationKind.LOWER,
        AlterationKind.ADD,
        AlterationKind.OMIT,
        AlterationKind.SUSPEND,
    }
)


def _unicode(accidental: str) -> str:
    """A sharp or flat as its unicode glyph inside a classed span."""
    if accidental == "#":
        return '<span class="unicode-sharp">♯</span>'
    return '<span class="unicode-flat">♭</span>'


def _sup(text: object) -> str:
    return f'<sup class="extent">{_escape_html(str(text))}</sup>'


def _in_parens(content: str) -> str:
    return f"{_PAREN_OPEN}{content}{_PAREN_CLOSE}"


class HtmlFormatter(TextFormatter):
    """
    Typeset chord symbols as HTML fragments.

    Accidentals become unicode glyphs, extents are superscripted, and
    raise/lower/add/omit/sus alterations are stacked two to a pair of
    parentheses (``class="fractional"``) for a stylesheet to lay out.
    """

    def __init__(self, color_chords: bool = False) -> None:
        self.color_chords = color_chords

    def format(self, chord: Chord) -> str:
        body = super().format(chord)
        if not self.color_chords:
            return body
        css_name = chord.identify().name.lower().replace("_", "-")
        return f'<span class="chord chord-{css_name}">{body}</span>'

    def tonic(self, letter: Letter) -> str:
        if letter.accidental == 0:
            return letter.step
        glyph = _unicode("#" if letter.is_sharp else "b")
        return letter.step + glyph * abs(letter.accidental)

    def quality(self, quality: Quality) -> str:
        x = _target_text(extent_of(quality))
        qid = identify_quality(quality)
        symbols: dict[QualityID, str] = {
            QualityID.AUGMENTED: _sup("+"),
            QualityID.DIMINISHED: _sup("o"),
            QualityID.MAJOR: "",
            QualityID.MINOR: "m",
            QualityID.MAJOR_SEVENTH: f"M{_sup(x)}",
            QualityID.DOMINANT_SEVENTH: _sup(x),
            QualityID.MINOR_SEVENTH: f"m{_sup(x)}",
            QualityID.AUGMENTED_SEVENTH: f"{_sup('+')}{_sup(x)}",
            QualityID.DIMINISHED_SEVENTH: f"{_sup('o')}{_sup(x)}",
            QualityID.DIMINISHED_MAJOR_SEVENTH: f"{_sup('o')}{_sup('M')}{_sup(x)}",
            QualityID.AUGMENTED_MAJOR_SEVENTH: f"{_sup('+')}{_sup('M')}{_sup(x)}",
            QualityID.HALF_DIMINISHED: f"m{_sup(x)}{_unicode('b')}{_sup(5)}",
            QualityID.MINOR_MAJOR_SEVENTH: f"m{_sup('M')}{_sup(x)}",
            QualityID.MAJOR_SIXTH: _sup(6),
            QualityID.MINOR_SIXTH: f"m{_sup(6)}",
            QualityID.MAJOR_SIX_NINE: f"{_sup(6)}{_sup('/')}{_sup(9)}",
            QualityID.MINOR_SIX_NINE: f"m{_sup(6)}{_sup('/')}{_sup(9)}",
            QualityID.AUGMENTED_SIXTH: f"{_sup('+')}{_sup(6)}",
            QualityID.POWER: _sup(5),
        }
        return symbols[qid]

    def alterations(self, alterations: list[Alteration], *, after_bare_tonic: bool = False) -> str:
        fractionable = sort_alterations(a for a in alterations if a.kind in _FRACTIONABLE)
        rest = [a for a in alterations if a.kind not in _FRACTIONABLE]
        slashes = [a for a in rest if a.kind is AlterationKind.COMPOUND]
        rest = [a for a in rest if a.kind is not AlterationKind.COMPOUND]

        pieces = [self._alteration(a) for a in rest]
        for start in range(0, len(fractionable), 2):
            group = fractionable[start:start + 2]
            content = "".join(f"<span>{self._fraction(a)}</span>" for a in group)
            css_class = "fractional" if len(group) > 1 else ""
            pieces.append(_in_parens(f'<span class="{css_class}">{content}</span>'))
        pieces.extend(self._alteration(a) for a in slashes)
        return "".join(pieces)

    def _alteration(self, alteration: Alteration) -> str:
        x = alteration.target
        if alteration.kind is AlterationKind.MAJOR:
            return f"{_sup('M')}{_sup(x)}"
        if alteration.kind is AlterationKind.MINOR:
            return f"{_sup('m')}{_sup(x)}"
        if alteration.kind is AlterationKind.COMPOUND:
            return f"{_SLASH}{self.tonic(x)}" if isinstance(x, Letter) else _SLASH
        # everything ("alt")
        return f"alt{_sup(x)}" if x is not None else "alt"

    def _fraction(self, alteration: Alteration) -> str:
        x = _target_text(alteration.target)
        if alteration.kind is AlterationKind.RAISE:
            return f"{_unicode('#')}{x}"
        if alteration.kind is AlterationKind.LOWER:
            return f"{_unicode('b')}{x}"
        if alteration.kind is AlterationKind.ADD:
            return f"add{x}"
        if alteration.kind is AlterationKind.OMIT:
            return f"no{x}"
        return f"sus{x}"
