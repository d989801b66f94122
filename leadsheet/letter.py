"""Letter: spelled note names and the enharmonic spelling table."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from leadsheet.pitch_class import PitchClass, pitch_class, transpose_pitch_class

# Pitch class of each natural step (index into the chromatic octave, C = 0)
NATURAL_PITCH_CLASSES: dict[str, PitchClass] = {
    "C": 0,
    "D": 2,
    "E": 4,
    "F": 5,
    "G": 7,
    "A": 9,
    "B": 11,
}

#: Signed half-step offset of every accidental spelling the grammar accepts.
ACCIDENTAL_OFFSETS: dict[str, int] = {
    "": 0,
    "♮": 0,
    "#": 1,
    "♯": 1,
    "b": -1,
    "♭": -1,
    "##": 2,
    "♯♯": 2,
    "𝄪": 2,
    "bb": -2,
    "♭♭": -2,
    "𝄫": -2,
}

_UNICODE_ACCIDENTALS: dict[str, str] = {"♯": "#", "♭": "b", "𝄪": "##", "𝄫": "bb"}


class Accidental(Enum):
    """Spelling preference used when a pitch class has no natural name."""

    SHARP = "#"
    FLAT = "b"


@dataclass(frozen=True)
class Letter:
    """
    A spelled note name.

    Attributes:
        step:       Natural letter name, "A" through "G".
        accidental: Signed count of sharps (positive) or flats (negative), -2..2.
    """

    step: str
    accidental: int = 0

    _PATTERN = re.compile(r"^([A-Ga-g])(##|♯♯|𝄪|bb|♭♭|𝄫|#|♯|b|♭|♮)?$")

    def __post_init__(self) -> None:
        if self.step not in NATURAL_PITCH_CLASSES:
            raise ValueError(f"Invalid note step '{self.step}'.")
        if not -2 <= self.accidental <= 2:
            raise ValueError(f"Letters carry at most two accidentals, got {self.accidental}.")

    @classmethod
    def parse(cls, text: str) -> Letter:
        """
        Parse a note name such as "C", "f#", "Bb", "E𝄫" or "G♮".

        Raises:
            ValueError: If *text* is not a note letter with an optional accidental.
        """
        match = cls._PATTERN.match(text.strip())
        if match is None:
            raise ValueError(f"Invalid note letter '{text}'.")
        return cls(match.group(1).upper(), ACCIDENTAL_OFFSETS[match.group(2) or ""])

    @property
    def pitch_class(self) -> PitchClass:
        return pitch_class(NATURAL_PITCH_CLASSES[self.step] + self.accidental)

    @property
    def is_natural(self) -> bool:
        return self.accidental == 0

    @property
    def is_sharp(self) -> bool:
        return self.accidental > 0

    @property
    def is_flat(self) -> bool:
        return self.accidental < 0

    def __str__(self) -> str:
        if self.accidental >= 0:
            return self.step + "#" * self.accidental
        return self.step + "b" * -self.accidental


class Spellings(NamedTuple):
    """The natural, one-flat and one-sharp names of a single pitch class."""

    natural: Letter | None
    flat: Letter | None
    sharp: Letter | None

    def has(self, accidental: Accidental | None) -> bool:
        """Whether the spelling for *accidental* (None means natural) is defined."""
        return self.get(accidental) is not None

    def get(self, accidental: Accidental | None) -> Letter | None:
        if accidental is None:
            return self.natural
        if accidental is Accidental.SHARP:
            return self.sharp
        return self.flat

    def preferred(self, accidental: Accidental = Accidental.SHARP) -> Letter:
        """
        Pick one spelling: the natural if there is one, else *accidental*'s.

        Every pitch class without a natural name has both a sharp and a flat
        name, so this never comes back empty.
        """
        if self.natural is not None:
            return self.natural
        other = Accidental.FLAT if accidental is Accidental.SHARP else Accidental.SHARP
        for choice in (accidental, other):
            letter = self.get(choice)
            if letter is not None:
                return letter
        raise ValueError(f"No spelling defined in {self!r}.")


# ── Enharmonic table ────────────────────────────────────────────────────────

#: Every single-accidental spelling, indexed by pitch class.
SPELLINGS: tuple[Spellings, ...] = (
    Spellings(Letter("C"), None, Letter("B", 1)),
    Spellings(None, Letter("D", -1), Letter("C", 1)),
    Spellings(Letter("D"), None, None),
    Spellings(None, Letter("E", -1), Letter("D", 1)),
    Spellings(Letter("E"), Letter("F", -1), None),
    Spellings(Letter("F"), None, Letter("E", 1)),
    Spellings(None, Letter("G", -1), Letter("F", 1)),
    Spellings(Letter("G"), None, None),
    Spellings(None, Letter("A", -1), Letter("G", 1)),
    Spellings(Letter("A"), None, None),
    Spellings(None, Letter("B", -1), Letter("A", 1)),
    Spellings(Letter("B"), Letter("C", -1), None),
)

#: The 21 letters reachable from the table above (A, A#, Bb, B, B#, Cb, ...).
ALL_LETTERS: tuple[Letter, ...] = tuple(
    letter for spellings in SPELLINGS for letter in spellings if letter is not None
)


def spellings_of(pc: PitchClass) -> Spellings:
    return SPELLINGS[pitch_class(pc)]


def transpose_letter(
    letter: Letter,
    half_steps: int,
    preferred: Accidental = Accidental.SHARP,
) -> Letter:
    """
    Move a letter by *half_steps* and re-spell it.

    A zero shift returns the letter untouched (so "B#" stays "B#"). Otherwise
    the destination's natural name always wins; without one, the flat or sharp
    name is chosen by *preferred*.

    Args:
        letter:     Starting note name.
        half_steps: Signed distance; taken modulo 12.
        preferred:  Accidental to use for pitch classes with no natural name.

    Returns:
        The re-spelled destination letter.
    """
    if half_steps == 0:
        return letter
    destination = transpose_pitch_class(letter.pitch_class, half_steps)
    return SPELLINGS[destination].preferred(preferred)


def normalize_accidentals(text: str) -> str:
    """Replace unicode accidental glyphs with their ASCII spellings."""
    for glyph, ascii_text in _UNICODE_ACCIDENTALS.items():
        text = text.replace(glyph, ascii_text)
    return text
