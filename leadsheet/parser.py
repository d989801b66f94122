"""
Parser: turns leadsheet text into Chord and Song values.

Both entry points match the whole input against a grammar first and never
return partial results. On success the parse tree is walked once by a
parsimonious NodeVisitor with one ``visit_<rule>`` method per rule that
carries meaning.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Generic, TypeVar, cast

from loguru import logger
from parsimonious.nodes import Node, NodeVisitor

from leadsheet.alteration import (
    SUS4,
    Alteration,
    AlterationKind,
    added,
    everything,
    lowered,
    make_major,
    omitted,
    over,
    raised,
    suspended,
)
from leadsheet.chord import Chord, canonicalize
from leadsheet.grammar import CHORD_GRAMMAR, SONG_GRAMMAR, MatchFailure, line_and_column
from leadsheet.key import Key
from leadsheet.letter import ACCIDENTAL_OFFSETS, Letter
from leadsheet.quality import (
    AUG,
    AUG7,
    DIM,
    DIM7,
    DIM_MAJ7,
    DOM7,
    EXTENTS,
    MAJ,
    MAJ7,
    MAJ7_SHARP5,
    MIN,
    MIN7,
    MIN7_FLAT5,
    MINMAJ7,
    POWER,
    Quality,
    SeventhTetrad,
)
from leadsheet.song import (
    Bar,
    Barline,
    Chordish,
    NoChord,
    OptionalChord,
    RepeatDirection,
    RepeatPreviousChord,
    RepeatSignifier,
    Song,
)

T = TypeVar("T")


# ── Errors ──────────────────────────────────────────────────────────────────

class LeadsheetError(Exception):
    """Base class for every error this package raises on bad input."""


class ParseError(LeadsheetError):
    """
    The input did not match the grammar.

    Attributes:
        message:  Human-readable description, prefixed with ``Line L, col C:``.
        position: 0-based offset of the failure.
        line:     1-based line of the failure.
        column:   1-based column of the failure.
    """

    def __init__(self, message: str, position: int = 0, line: int = 1, column: int = 1):
        super().__init__(message)
        self.message = message
        self.position = position
        self.line = line
        self.column = column

    @classmethod
    def from_failure(cls, failure: MatchFailure) -> ParseError:
        return cls(failure.message, failure.position, failure.line, failure.column)


class ValidationError(ParseError):
    """The input matched the grammar but cannot be turned into a valid value."""

    @classmethod
    def at(cls, text: str, position: int, reason: str) -> ValidationError:
        line, column = line_and_column(text, position)
        return cls(f"Line {line}, col {column}: {reason}", position, line, column)


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a parsed value or the error explaining why there is none."""

    value: T | None = None
    error: ParseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """
        Return the value.

        Raises:
            ParseError: The carried error, when parsing failed.
        """
        if self.error is not None:
            raise self.error
        return cast(T, self.value)


# ── Chord evaluation ────────────────────────────────────────────────────────

_DEGREES: dict[str, int] = {
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "eleven": 11,
    "thirteen": 13,
}

#: Quality keyword -> (quality without an extent, seventh chord to extend).
_QUALITY_FAMILIES: dict[str | None, tuple[Quality, SeventhTetrad]] = {
    None: (MAJ, DOM7),
    "sus": (MAJ, DOM7),
    "major": (MAJ, MAJ7),
    "minor": (MIN, MIN7),
    "augmented": (AUG, AUG7),
    "diminished": (DIM, DIM7),
    "dominant": (DOM7, DOM7),
    "half_diminished": (MIN7_FLAT5, MIN7_FLAT5),
    "minor_major": (MINMAJ7, MINMAJ7),
}

# Augmented and diminished chords written with a major seventh ("C+M9", "CoM7")
_MAJOR_SEVENTH_OF: dict[str, SeventhTetrad] = {
    "augmented": MAJ7_SHARP5,
    "diminished": DIM_MAJ7,
}

_SYMBOL_KINDS: dict[str, AlterationKind] = {
    "Δ": AlterationKind.MAJOR,
    "M": AlterationKind.MAJOR,
    "m": AlterationKind.MINOR,
    "+": AlterationKind.RAISE,
    "⁺": AlterationKind.RAISE,
    "o": AlterationKind.LOWER,
    "°": AlterationKind.LOWER,
    "-": AlterationKind.LOWER,
    "⁻": AlterationKind.LOWER,
    "ø": AlterationKind.LOWER,
    "Ø": AlterationKind.LOWER,
}


@dataclass(frozen=True)
class _Written:
    """One alteration as written: the rule that read it and what it stands for."""

    form: str
    alterations: tuple[Alteration, ...]
    parenthesized: bool = False

    @property
    def bare_alt(self) -> bool:
        return self.form == "alt_alteration" and not self.parenthesized


@dataclass(frozen=True)
class _Flavor:
    kind: str | None
    extent: list[int] | None
    written: list[_Written]


def _extended_major_seventh(kind: str | None, written: _Written) -> SeventhTetrad | None:
    """Read "+M9"/"oM7" style spellings as one seventh-chord quality."""
    if kind not in _MAJOR_SEVENTH_OF:
        return None
    if written.parenthesized or written.form != "symbol_alteration":
        return None
    alteration = written.alterations[0]
    if alteration.kind is not AlterationKind.MAJOR or alteration.target not in EXTENTS:
        return None
    return _MAJOR_SEVENTH_OF[kind].with_extent(cast(int, alteration.target))


def build_chord(tonic: Letter, flavor: _Flavor) -> Chord:
    """
    Build a canonical Chord from its tonic and the flavor written after it.

    The quality keyword picks a family; the extent then selects the triad,
    an extended seventh chord, a sixth (as add-alterations), a power chord
    or a suspension. Written alterations follow, and the result is folded
    into canonical form.
    """
    kind = flavor.kind
    written = list(flavor.written)
    triad, tetrad = _QUALITY_FAMILIES[kind]
    quality: Quality = triad
    alterations: list[Alteration] = []
    suspended_by_extent = False

    if flavor.extent is None:
        if kind is None and written and written[0].bare_alt:
            quality = DOM7
        elif written:
            extended = _extended_major_seventh(kind, written[0])
            if extended is not None:
                quality = extended
                written = written[1:]
    else:
        first = flavor.extent[0]
        if first in EXTENTS:
            quality = tetrad.with_extent(first)
        elif first == 6:
            alterations.extend(added(degree) for degree in flavor.extent)
        elif first == 5:
            quality = POWER if kind is None else triad
        elif kind in (None, "sus"):
            alterations.append(suspended(first))
            suspended_by_extent = True
        else:
            alterations.append(added(first))

    if kind == "sus" and not suspended_by_extent:
        alterations.append(SUS4)

    for entry in written:
        alterations.extend(entry.alterations)

    return canonicalize(Chord(tonic, quality, tuple(alterations)))


class _ChordVisitor(NodeVisitor):
    """
    Evaluates chord parse trees bottom-up.

    Anonymous sub-expressions hand back the list of their children's values,
    so ``x?`` yields ``[]`` or ``[value]`` and ``x*`` a list of values.
    Numeral rules yield a one-element list of degrees.
    """

    unwrapped_exceptions = (ValidationError,)

    def generic_visit(self, node: Node, visited_children: list[Any]) -> Any:
        if node.expr_name in _DEGREES:
            return [_DEGREES[node.expr_name]]
        return visited_children

    def visit_chord_symbol(self, node: Node, visited_children: list[Any]) -> Chord:
        _, parsed, _, _ = visited_children
        return parsed

    def visit_chord(self, node: Node, visited_children: list[Any]) -> Chord:
        tonic, flavor = visited_children
        return build_chord(tonic, flavor)

    def visit_root(self, node: Node, visited_children: list[Any]) -> Letter:
        step, accidental = visited_children
        return Letter(step, accidental[0] if accidental else 0)

    def visit_note_letter(self, node: Node, visited_children: list[Any]) -> str:
        return node.text.upper()

    def visit_accidental(self, node: Node, visited_children: list[Any]) -> int:
        return ACCIDENTAL_OFFSETS[node.text]

    def visit_flavor(self, node: Node, visited_children: list[Any]) -> _Flavor:
        quality, extent, written = visited_children
        kind, inner_extent = quality[0] if quality else (None, None)
        return _Flavor(kind, extent[0] if extent else inner_extent, written)

    def visit_quality(self, node: Node, visited_children: list[Any]) -> tuple[str, list[int] | None]:
        """The keyword's rule name, plus the extent "m(maj9)" carries inside its parens."""
        form = node.children[0]
        extent = None
        if form.expr_name == "minor_major" and form.children[0].expr_name == "minor_major_with_parens":
            extent = visited_children[0][0]
        return form.expr_name, extent

    def visit_minor_major_with_parens(self, node: Node, visited_children: list[Any]) -> list[int]:
        _, _, _, extent, _ = visited_children
        return extent

    def visit_extent(self, node: Node, visited_children: list[Any]) -> list[int]:
        return visited_children[0]

    visit_degree = visit_bare_degree = visit_sus_degree = visit_extent

    def visit_six_and_nine(self, node: Node, visited_children: list[Any]) -> list[int]:
        return [6, 9]

    # ------------------------------------------------------------------
    # Alterations
    # ------------------------------------------------------------------

    def visit_alteration(self, node: Node, visited_children: list[Any]) -> _Written:
        return visited_children[0]

    visit_alteration_no_parens = visit_alteration

    def visit_alteration_in_parens(self, node: Node, visited_children: list[Any]) -> _Written:
        _, _, written, _, _ = visited_children
        return replace(written, parenthesized=True)

    def visit_accidental_alteration(self, node: Node, visited_children: list[Any]) -> _Written:
        offset, degrees = visited_children
        degree = degrees[0]
        if offset > 0:
            alteration = raised(degree)
        elif offset < 0:
            alteration = lowered(degree)
        else:
            alteration = make_major(degree)
        return _Written(node.expr_name, (alteration,))

    def visit_alteration_symbol(self, node: Node, visited_children: list[Any]) -> AlterationKind:
        return _SYMBOL_KINDS[node.text]

    def visit_symbol_alteration(self, node: Node, visited_children: list[Any]) -> _Written:
        kind, degrees = visited_children
        return _Written(node.expr_name, (Alteration(kind, degrees[0]),))

    def visit_add_no_omit_word(self, node: Node, visited_children: list[Any]) -> str:
        return node.text.lower()

    def visit_add_no_omit(self, node: Node, visited_children: list[Any]) -> str:
        _, word, _ = visited_children
        return word

    def visit_add_no_omit_alteration(self, node: Node, visited_children: list[Any]) -> _Written:
        word, degrees = visited_children
        degree = degrees[0]
        return _Written(node.expr_name, (added(degree) if word == "add" else omitted(degree),))

    def visit_slash_alteration(self, node: Node, visited_children: list[Any]) -> _Written:
        _, bass = visited_children
        return _Written(node.expr_name, (over(bass),))

    def visit_alt_alteration(self, node: Node, visited_children: list[Any]) -> _Written:
        _, degree = visited_children
        return _Written(node.expr_name, (everything(degree[0][0] if degree else None),))

    def visit_sus_alteration(self, node: Node, visited_children: list[Any]) -> _Written:
        _, degree = visited_children
        return _Written(node.expr_name, (suspended(degree[0][0] if degree else 4),))

    def visit_bare_alteration(self, node: Node, visited_children: list[Any]) -> _Written:
        _, degrees = visited_children
        return _Written(node.expr_name, tuple(added(degree) for degree in degrees))


def parse_chord(text: str) -> Result[Chord]:
    """
    Parse a single chord symbol such as ``"Bb13#11"`` or ``"F#m7(b5)/E"``.

    Returns:
        A Result holding the canonical Chord, or a ParseError positioned at
        the first character that could not be read.
    """
    match = CHORD_GRAMMAR.match(text)
    if match.tree is None:
        return Result(error=ParseError.from_failure(cast(MatchFailure, match.failure)))
    return Result(value=_ChordVisitor().visit(match.tree))


# ── Song evaluation ─────────────────────────────────────────────────────────

_METADATA_FIELDS: dict[str, str] = {
    "meta_title": "title",
    "meta_artist": "artist",
    "meta_year": "year",
    "meta_sig": "sig",
    "meta_key": "key",
}

_Mark = tuple[int, Barline]


def _repeat_barline(direction: RepeatDirection, count: list[Any], plain: Barline) -> Barline:
    number, times_marker = count[0] if count else (None, False)
    return Barline(plain.double, RepeatSignifier(direction, number, times_marker))


class _SongVisitor(_ChordVisitor):
    """
    Walks one song parse tree.

    Holds the section label most recently seen and the previous bar slot so
    repeat glyphs can be resolved; a fresh instance is made for every parse.
    Children are visited in source order, so a section label is set before
    the bars under it are built.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.section: str | None = None
        self.previous: Chordish | None = None
        self.bars: list[Bar] = []
        self.metadata: dict[str, str] = {}
        self._metadata_starts: dict[str, int] = {}

    def build(self, tree: Node) -> Song:
        self.visit(tree)
        key = None
        raw_key = self.metadata.get("key")
        if raw_key is not None:
            try:
                key = Key.parse(raw_key)
            except ValueError as exc:
                raise ValidationError.at(self.text, self._metadata_starts["key"], str(exc)) from exc
        return Song(
            bars=self.bars,
            title=self.metadata.get("title"),
            artist=self.metadata.get("artist"),
            year=self.metadata.get("year"),
            sig=self.metadata.get("sig"),
            key=key,
        )

    # ------------------------------------------------------------------
    # Metadata and sections
    # ------------------------------------------------------------------

    def visit_meta_value(self, node: Node, visited_children: list[Any]) -> str:
        return node.text.strip()

    def visit_metadata(self, node: Node, visited_children: list[Any]) -> None:
        field = _METADATA_FIELDS[node.children[0].expr_name]
        # label, spaces, value, newline
        self.metadata[field] = visited_children[0][2]
        self._metadata_starts[field] = node.start

    def visit_section(self, node: Node, visited_children: list[Any]) -> None:
        self.section = node.children[0].text.strip()

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    def visit_chordish(self, node: Node, visited_children: list[Any]) -> Chordish:
        (value,), _ = visited_children
        if isinstance(value, RepeatPreviousChord) and self.previous is not None:
            value = self.previous
        self.previous = value
        return value

    def visit_no_chord(self, node: Node, visited_children: list[Any]) -> NoChord:
        return NoChord()

    def visit_optional_chord(self, node: Node, visited_children: list[Any]) -> OptionalChord:
        _, parsed, _ = visited_children
        return OptionalChord(parsed)

    def visit_repeat_previous_chord(self, node: Node, visited_children: list[Any]) -> RepeatPreviousChord:
        return RepeatPreviousChord()

    # ------------------------------------------------------------------
    # Barlines and bars
    # ------------------------------------------------------------------

    def visit_plain_barline(self, node: Node, visited_children: list[Any]) -> Barline:
        return Barline(double=node.text == "||")

    def visit_repeat_count(self, node: Node, visited_children: list[Any]) -> tuple[int, bool]:
        digits = node.text.rstrip("xX")
        return int(digits), digits != node.text

    def visit_repeat_close_barline(self, node: Node, visited_children: list[Any]) -> Barline:
        _, count, plain = visited_children
        return _repeat_barline(RepeatDirection.CLOSE, count, plain)

    def visit_repeat_open_barline(self, node: Node, visited_children: list[Any]) -> Barline:
        plain, count, _ = visited_children
        return _repeat_barline(RepeatDirection.OPEN, count, plain)

    def visit_barline(self, node: Node, visited_children: list[Any]) -> _Mark:
        return node.start, visited_children[0]

    def visit_bar(
        self, node: Node, visited_children: list[Any]
    ) -> tuple[list[Chordish], list[_Mark]]:
        slots, run = visited_children
        return [slot for _, slot in slots], [mark for _, mark in run]

    def visit_bars(self, node: Node, visited_children: list[Any]) -> None:
        """
        Turn ``barline (slots barline+)+`` into Bars.

        Every run of barlines between two groups of slots is reconciled into
        the closing barline of one bar and the opening barline of the next.
        """
        first, groups = visited_children
        open_barline = self._reconcile([first])[1]
        for chords, run in groups:
            close_barline, next_open = self._reconcile(run)
            self.bars.append(Bar(chords, open_barline, close_barline, self.section))
            open_barline = next_open

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _reconcile(self, run: list[_Mark]) -> tuple[Barline, Barline]:
        """
        Pick (close of the bar before, open of the bar after) from a barline run.

        Raises:
            ValidationError: If the run closes or opens a repeat in two
                             different ways, or opens before it closes.
        """
        tokens: list[Barline] = []
        for _, barline in run:
            if barline not in tokens:
                tokens.append(barline)
        if len(tokens) == 1:
            return tokens[0], tokens[0]

        start = run[0][0]
        closes = [index for index, token in enumerate(tokens) if token.closes_repeat]
        opens = [index for index, token in enumerate(tokens) if token.opens_repeat]
        if len(closes) > 1:
            raise ValidationError.at(self.text, start, "conflicting repeat-close barlines")
        if len(opens) > 1:
            raise ValidationError.at(self.text, start, "conflicting repeat-open barlines")
        if closes and opens and opens[0] < closes[0]:
            raise ValidationError.at(
                self.text, start, "repeat opens before the previous repeat closes"
            )

        close = tokens[closes[0]] if closes else tokens[0]
        open_ = tokens[opens[0]] if opens else tokens[-1]
        return close, open_


def parse_song(text: str) -> Result[Song]:
    """
    Parse a whole leadsheet.

    Returns:
        A Result holding the Song, or the ParseError (a ValidationError for
        grammatical input that still makes no sense) describing the failure.
        The key is guessed from the first sounding chord when no ``key:``
        line is present.
    """
    match = SONG_GRAMMAR.match(text)
    if match.tree is None:
        return Result(error=ParseError.from_failure(cast(MatchFailure, match.failure)))

    visitor = _SongVisitor(text)
    try:
        song = visitor.build(match.tree)
    except ValidationError as exc:
        logger.debug("Song rejected: {}", exc.message)
        return Result(error=exc)

    logger.debug(
        "Parsed song: {} bar(s), key {} ({})",
        len(song.bars),
        song.key,
        "given" if "key" in visitor.metadata else "guessed",
    )
    return Result(value=song)
