"""Song model: barlines, bar slots, bars and the song aggregate."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from itertools import groupby
from typing import TYPE_CHECKING, ClassVar, Union

from loguru import logger

from leadsheet.chord import Chord
from leadsheet.key import MAJOR, MINOR, Key
from leadsheet.letter import Accidental
from leadsheet.quality import is_minor

if TYPE_CHECKING:
    from leadsheet.chord_formatters import ChordFormatter


# ── Barlines ────────────────────────────────────────────────────────────────

class RepeatDirection(Enum):
    OPEN = "open"
    CLOSE = "close"


@dataclass(frozen=True)
class RepeatSignifier:
    """
    Repeat instruction attached to a barline.

    Attributes:
        direction:    Whether the repeat starts ("|:") or ends (":|") here.
        count:        Number written next to the colon, if any.
        times_marker: Whether the count was written with an "x" ("2x").
    """

    direction: RepeatDirection
    count: int | None = None
    times_marker: bool = False

    def __str__(self) -> str:
        if self.count is None:
            return ""
        return f"{self.count}{'x' if self.times_marker else ''}"


@dataclass(frozen=True)
class Barline:
    """A single or double barline, optionally opening or closing a repeat."""

    double: bool = False
    repeat: RepeatSignifier | None = None

    _PATTERN: ClassVar[re.Pattern[str]] = re.compile(
        r"^(?::(?P<close>\d*x?)(?P<cbar>\|\|?)|(?P<obar>\|\|?)(?P<open>\d*x?):|(?P<bar>\|\|?))$"
    )

    @classmethod
    def parse(cls, text: str) -> Barline:
        """
        Parse "|", "||", "|:", "||2x:", ":|", ":3||" and the like.

        Raises:
            ValueError: If *text* is not a barline token.
        """
        match = cls._PATTERN.match(text.strip())
        if match is None:
            raise ValueError(f"Invalid barline '{text}'.")
        if match.group("bar") is not None:
            return cls(double=match.group("bar") == "||")
        if match.group("cbar") is not None:
            direction, bar, count = RepeatDirection.CLOSE, match.group("cbar"), match.group("close")
        else:
            direction, bar, count = RepeatDirection.OPEN, match.group("obar"), match.group("open")
        digits = count.rstrip("x")
        signifier = RepeatSignifier(
            direction,
            int(digits) if digits else None,
            times_marker=bool(digits) and count.endswith("x"),
        )
        return cls(double=bar == "||", repeat=signifier)

    @property
    def opens_repeat(self) -> bool:
        return self.repeat is not None and self.repeat.direction is RepeatDirection.OPEN

    @property
    def closes_repeat(self) -> bool:
        return self.repeat is not None and self.repeat.direction is RepeatDirection.CLOSE

    def __str__(self) -> str:
        bar = "||" if self.double else "|"
        if self.repeat is None:
            return bar
        if self.repeat.direction is RepeatDirection.OPEN:
            return f"{bar}{self.repeat}:"
        return f":{self.repeat}{bar}"


# ── Bar slots ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class OptionalChord:
    """A chord that may be left out, written in parentheses."""

    chord: Chord

    def transpose(
        self,
        half_steps: int,
        preferred: Accidental = Accidental.SHARP,
    ) -> OptionalChord:
        return OptionalChord(self.chord.transpose(half_steps, preferred))

    def print(self, formatter: ChordFormatter | None = None) -> str:
        return f"({self.chord.print(formatter)})"


@dataclass(frozen=True)
class NoChord:
    """Silence, written "N.C."."""

    def transpose(
        self,
        half_steps: int,
        preferred: Accidental = Accidental.SHARP,
    ) -> NoChord:
        return self

    def print(self, formatter: ChordFormatter | None = None) -> str:
        return "N.C."


@dataclass(frozen=True)
class RepeatPreviousChord:
    """A repeat glyph with no earlier slot to repeat."""

    def transpose(
        self,
        half_steps: int,
        preferred: Accidental = Accidental.SHARP,
    ) -> RepeatPreviousChord:
        return self

    def print(self, formatter: ChordFormatter | None = None) -> str:
        return "%"


Chordish = Union[Chord, OptionalChord, NoChord, RepeatPreviousChord]


def sounding_chord(slot: Chordish) -> Chord | None:
    """The chord a slot plays, unwrapping optional chords; None for silence."""
    if isinstance(slot, OptionalChord):
        return slot.chord
    if isinstance(slot, Chord):
        return slot
    return None


# ── Bars and songs ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Bar:
    """
    One measure.

    Attributes:
        chords:        Slots in playing order.
        open_barline:  Barline before the first slot.
        close_barline: Barline after the last slot.
        name:          Label of the section the bar belongs to, if any.
    """

    chords: list[Chordish]
    open_barline: Barline = field(default_factory=Barline)
    close_barline: Barline = field(default_factory=Barline)
    name: str | None = None

    def transpose(
        self,
        half_steps: int,
        preferred: Accidental = Accidental.SHARP,
    ) -> Bar:
        return replace(self, chords=[slot.transpose(half_steps, preferred) for slot in self.chords])


@dataclass(frozen=True)
class Section:
    """Consecutive bars sharing one section label (None before the first label)."""

    name: str | None
    bars: list[Bar]


@dataclass(frozen=True)
class TimeSignature:
    numerator: int = 4
    denominator: int = 4

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"


_SIG_PATTERN = re.compile(r"^\s*(\d+)\s*/\s*(\d+)\s*$")

#: Metadata fields in the order ``format`` writes them.
METADATA_FIELDS: tuple[str, ...] = ("title", "artist", "year", "sig", "key")


@dataclass(frozen=True)
class Song:
    """
    A parsed leadsheet.

    When no key is given, one is guessed from the first sounding chord of the
    first bar. Songs are never changed in place; ``transpose`` and ``dup``
    build new ones.
    """

    bars: list[Bar] = field(default_factory=list)
    title: str | None = None
    artist: str | None = None
    album: str | None = None
    year: str | None = None
    sig: str | None = None
    key: Key | None = None

    def __post_init__(self) -> None:
        if self.key is None:
            object.__setattr__(self, "key", self.guess_key())

    def guess_key(self) -> Key | None:
        """
        Key implied by the first sounding chord in bar 0.

        Minor-third, perfect-fifth qualities give a minor key; every other
        quality gives a major key. None when bar 0 has no sounding chord.
        """
        if not self.bars:
            return None
        for slot in self.bars[0].chords:
            chord = sounding_chord(slot)
            if chord is not None:
                return Key(chord.tonic, MINOR if is_minor(chord.quality) else MAJOR)
        return None

    def parse_sig(self) -> TimeSignature:
        """The ``sig`` metadata as numbers; 4/4 when missing or unreadable."""
        match = _SIG_PATTERN.match(self.sig or "")
        if match is None:
            return TimeSignature()
        return TimeSignature(int(match.group(1)), int(match.group(2)))

    def transpose(self, half_steps: int) -> Song:
        """
        Move the key and every chord by *half_steps*.

        Chords are spelled with the new key's accidental preference, falling
        back to sharps when the key has none.
        """
        key = self.key.transpose(half_steps) if self.key is not None else None
        preferred = (key.accidental_preference() if key is not None else None) or Accidental.SHARP
        logger.debug("Transposing {} by {} half step(s) to {}", self.key, half_steps, key)
        return replace(
            self,
            bars=[bar.transpose(half_steps, preferred) for bar in self.bars],
            key=key,
        )

    def dup(self) -> Song:
        return replace(self, bars=list(self.bars))

    def sections(self) -> list[Section]:
        return [Section(name, list(bars)) for name, bars in groupby(self.bars, key=lambda b: b.name)]

    def chords(self) -> list[Chord]:
        """Every sounding chord in playing order."""
        found: list[Chord] = []
        for bar in self.bars:
            for slot in bar.chords:
                chord = sounding_chord(slot)
                if chord is not None:
                    found.append(chord)
        return found

    def metadata(self) -> dict[str, str]:
        """Present metadata as leadsheet text values, in writing order."""
        values: dict[str, str] = {}
        for name in METADATA_FIELDS:
            if name == "key":
                if self.key is not None:
                    values[name] = self.key.format()
                continue
            value = getattr(self, name)
            if value is not None:
                values[name] = value
        return values

    def format(self, bars_per_line: int = 4) -> str:
        """
        Serialize to leadsheet text that ``parse_song`` reads back unchanged.

        Bars are grouped under their section headers and written
        *bars_per_line* to a line. A barline shared by two neighbouring bars
        is written once, and a chord identical to the one printed just
        before it is written as "%".
        """
        blocks: list[str] = []
        header = [f"{name}: {value}" for name, value in self.metadata().items()]
        if header:
            blocks.append("\n".join(header))

        previous: str | None = None
        for section in self.sections():
            lines = [] if section.name is None else [f"{section.name}:"]
            for start in range(0, len(section.bars), bars_per_line):
                tokens: list[str] = []
                previous_close: Barline | None = None
                for bar in section.bars[start:start + bars_per_line]:
                    if previous_close is None or bar.open_barline != previous_close:
                        tokens.append(str(bar.open_barline))
                    for slot in bar.chords:
                        text = slot.print()
                        if text == previous and not isinstance(slot, NoChord):
                            tokens.append("%")
                        else:
                            tokens.append(text)
                        previous = text
                    tokens.append(str(bar.close_barline))
                    previous_close = bar.close_barline
                lines.append(" ".join(tokens))
            blocks.append("\n".join(lines))

        return "\n\n".join(blocks) + "\n"
