"""Key: conventional tonic spelling, key signatures and accidental preference."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator

from leadsheet.letter import (
    ACCIDENTAL_OFFSETS,
    Accidental,
    Letter,
    normalize_accidentals,
    spellings_of,
    transpose_letter,
)

MAJOR = "major"
MINOR = "minor"

#: Half steps from a mode's tonic up to its relative major.
MODES: dict[str, int] = {
    "ionian": 0,
    "dorian": 10,
    "phrygian": 8,
    "lydian": 7,
    "mixolydian": 5,
    "aeolian": 3,
    "locrian": 1,
}

_RELATIVE_MAJOR_OFFSETS: dict[str, int] = {MAJOR: 0, MINOR: 3, **MODES}

# Major keys conventionally written with flats: Db, Eb, F, Ab, Bb
_FLAT_MAJOR_PITCH_CLASSES = frozenset({1, 3, 5, 8, 10})
# Minor keys conventionally written with sharps: C#, E, F#, G#, B
_SHARP_MINOR_PITCH_CLASSES = frozenset({1, 4, 6, 8, 11})
# Eb minor and D# minor are both in common use
_AMBIGUOUS_MINOR_PITCH_CLASSES = frozenset({3})

_SHARP_ORDER: tuple[Letter, ...] = tuple(Letter(step, 1) for step in "FCGDAE")
_FLAT_ORDER: tuple[Letter, ...] = tuple(Letter(step, -1) for step in "BEADGC")

#: Signed accidental count of the major key on each pitch class
#: (positive = sharps). Pitch class 6 depends on spelling: F# or Gb.
_MAJOR_SIGNATURES: dict[int, int | None] = {
    0: 0,
    1: -5,
    2: 2,
    3: -3,
    4: 4,
    5: -1,
    6: None,
    7: 1,
    8: -4,
    9: 3,
    10: -2,
    11: 5,
}

# Unicode accidentals are rewritten to ASCII before matching.
_KEY_PATTERN = re.compile(r"^([A-G])(##|bb|#|b|♮)?(.*)$")


def canonicalize_flavor(raw: str) -> str:
    """
    Map the many ways of writing a key flavor onto "major", "minor" or a mode.

    "M" and "m" are case-sensitive; words match case-insensitively. Anything
    unrecognized is returned stripped but otherwise as written.
    """
    text = raw.strip()
    if text in ("", "M"):
        return MAJOR
    if text == "m":
        return MINOR
    lowered = text.lower()
    if lowered in ("major", "maj"):
        return MAJOR
    if lowered in ("minor", "min"):
        return MINOR
    if lowered in MODES:
        return lowered
    return text


def _as_given(tonic: Letter) -> Letter:
    """Keep the written accidental direction but collapse double accidentals."""
    if -1 <= tonic.accidental <= 1:
        return tonic
    spellings = spellings_of(tonic.pitch_class)
    return spellings.preferred(Accidental.SHARP if tonic.is_sharp else Accidental.FLAT)


def conventional_tonic(tonic: Letter, flavor: str) -> Letter:
    """
    Re-spell *tonic* the way keys of *flavor* are conventionally written.

    Naturals always win. Major keys on Db, Eb, Ab and Bb take the flat name;
    minor keys on C#, F# and G# take the sharp name and Bb minor the flat one.
    Everything else (F#/Gb major, Eb/D# minor, modes) keeps the written side.
    """
    spellings = spellings_of(tonic.pitch_class)
    if spellings.natural is not None:
        return spellings.natural
    pc = tonic.pitch_class
    if flavor == MAJOR and pc in _FLAT_MAJOR_PITCH_CLASSES:
        return spellings.preferred(Accidental.FLAT)
    if flavor == MINOR and pc not in _AMBIGUOUS_MINOR_PITCH_CLASSES:
        if pc in _SHARP_MINOR_PITCH_CLASSES:
            return spellings.preferred(Accidental.SHARP)
        return spellings.preferred(Accidental.FLAT)
    return _as_given(tonic)


@dataclass(frozen=True)
class KeySignature:
    """The accidentals of a key signature, in the order they are written."""

    accidental: Accidental | None = None
    letters: tuple[Letter, ...] = ()

    def __len__(self) -> int:
        return len(self.letters)

    def __iter__(self) -> Iterator[Letter]:
        return iter(self.letters)

    def __str__(self) -> str:
        return " ".join(str(letter) for letter in self.letters)


@dataclass(frozen=True)
class Key:
    """
    A tonality: tonic plus flavor ("major", "minor", a mode name, or raw text).

    Construction normalizes the flavor and re-spells the tonic conventionally,
    so ``Key(Letter("B", 1), "mInOr") == Key(Letter("C"), "minor")``.
    """

    tonic: Letter
    flavor: str = MAJOR

    def __post_init__(self) -> None:
        flavor = canonicalize_flavor(self.flavor)
        object.__setattr__(self, "flavor", flavor)
        object.__setattr__(self, "tonic", conventional_tonic(self.tonic, flavor))

    @classmethod
    def parse(cls, text: str) -> Key:
        """
        Parse "C", "Bbm", "F# minor", "D dorian" and similar.

        Raises:
            ValueError: If *text* does not start with an uppercase note letter.
        """
        match = _KEY_PATTERN.match(normalize_accidentals(text.strip()))
        if match is None:
            raise ValueError(f"Invalid key '{text}': expected a note letter A-G first.")
        step, accidental, flavor = match.groups()
        return cls(Letter(step, ACCIDENTAL_OFFSETS[accidental or ""]), flavor)

    @property
    def is_recognized(self) -> bool:
        return self.flavor in _RELATIVE_MAJOR_OFFSETS

    def relative_major(self) -> Letter | None:
        """Tonic of the major key sharing this key's signature; None if unknown flavor."""
        offset = _RELATIVE_MAJOR_OFFSETS.get(self.flavor)
        if offset is None:
            return None
        side = Accidental.FLAT if self.tonic.is_flat else Accidental.SHARP
        return transpose_letter(self.tonic, offset, side)

    def signature(self) -> KeySignature:
        """
        Sharps or flats of the relative major, in writing order.

        Returns an empty signature for C major and its modes, and for any
        unrecognized flavor.
        """
        major = self.relative_major()
        if major is None:
            return KeySignature()
        count = _MAJOR_SIGNATURES[major.pitch_class]
        if count is None:
            count = -6 if major.is_flat else 6
        if count > 0:
            return KeySignature(Accidental.SHARP, _SHARP_ORDER[:count])
        if count < 0:
            return KeySignature(Accidental.FLAT, _FLAT_ORDER[:-count])
        return KeySignature()

    def accidental_preference(self) -> Accidental | None:
        """Sharp or flat per the signature; None when it is empty or the flavor unknown."""
        return self.signature().accidental

    def transpose(self, half_steps: int) -> Key:
        return Key(transpose_letter(self.tonic, half_steps), self.flavor)

    def format(self) -> str:
        """Leadsheet spelling: "C", "Cm", or "C dorian"."""
        if self.flavor == MAJOR:
            return str(self.tonic)
        if self.flavor == MINOR:
            return f"{self.tonic}m"
        return f"{self.tonic} {self.flavor}"

    def __str__(self) -> str:
        return f"{self.tonic} {self.flavor}"
