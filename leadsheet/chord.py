"""Chord values plus the canonicalization that folds equivalent spellings together."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from leadsheet.alteration import (
    ADD6,
    ADD9,
    NO3,
    Alteration,
    added,
    lowered,
    make_major,
    make_minor,
    raised,
    uniq,
)
from leadsheet.letter import Accidental, Letter, transpose_letter
from leadsheet.quality import (
    AUG,
    AUG6,
    AUG7,
    DIM,
    DIM_MAJ7,
    DOM7,
    MAJ,
    MAJ6,
    MAJ7,
    MAJ7_SHARP5,
    MAJ69,
    MIN,
    MIN6,
    MIN7,
    MIN7_FLAT5,
    MIN69,
    MINMAJ7,
    Dyad,
    Interval,
    Quality,
    QualityID,
    SeventhTetrad,
    SixthTetrad,
    base_of,
)
from leadsheet.quality import identify as identify_quality

if TYPE_CHECKING:
    from leadsheet.chord_formatters import ChordFormatter


@dataclass(frozen=True)
class Chord:
    """
    One sounding harmony.

    Alterations are always stored sorted and without literal duplicates, so two
    chords built from the same pieces in any order compare equal.
    """

    tonic: Letter
    quality: Quality = MAJ
    alterations: tuple[Alteration, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "alterations", tuple(uniq(self.alterations)))

    def has(self, alteration: Alteration) -> bool:
        return alteration in self.alterations

    def transpose(
        self,
        half_steps: int,
        preferred: Accidental = Accidental.SHARP,
    ) -> Chord:
        return Chord(
            transpose_letter(self.tonic, half_steps, preferred),
            self.quality,
            tuple(a.transpose(half_steps, preferred) for a in self.alterations),
        )

    def canonicalize(self) -> Chord:
        return canonicalize(self)

    def identify(self) -> QualityID:
        return identify(self)

    def print(self, formatter: ChordFormatter | None = None) -> str:
        """Render the chord symbol with *formatter* (plain text by default)."""
        if formatter is None:
            from leadsheet.chord_formatters import TextFormatter

            formatter = TextFormatter()
        return formatter.format(self)

    def __str__(self) -> str:
        return self.print()


# ── Canonicalization ────────────────────────────────────────────────────────

#: (base quality, alteration) -> folded quality, in priority order: sixths,
#: then six-nines, then the alterations that complete or reshape a seventh.
_FOLDS: tuple[tuple[Quality, Alteration, Quality], ...] = (
    (MAJ, ADD6, MAJ6),
    (MIN, ADD6, MIN6),
    (AUG, ADD6, AUG6),
    (MAJ6, ADD9, MAJ69),
    (MIN6, ADD9, MIN69),
    (MAJ, make_major(7), MAJ7),
    (MAJ, make_minor(7), DOM7),
    (MIN, make_major(7), MINMAJ7),
    (MIN, make_minor(7), MIN7),
    (AUG, make_major(7), MAJ7_SHARP5),
    (AUG, make_minor(7), AUG7),
    (DIM, make_major(7), DIM_MAJ7),
    (DIM, make_minor(7), MIN7_FLAT5),
    (MAJ7, raised(5), MAJ7_SHARP5),
    (DOM7, raised(5), AUG7),
    (MIN7, lowered(5), MIN7_FLAT5),
)


def _fold(quality: Quality, alterations: list[Alteration]) -> Quality | None:
    """Apply the first matching fold in place; None when nothing applies."""
    base = base_of(quality)
    for source, alteration, target in _FOLDS:
        if base == source and alteration in alterations:
            alterations.remove(alteration)
            if isinstance(quality, SeventhTetrad) and isinstance(target, SeventhTetrad):
                return target.with_extent(quality.extent)
            return target
    return None


def implied_alterations(quality: Quality) -> set[Alteration]:
    """Alterations that only restate an interval *quality* already contains."""
    if isinstance(quality, Dyad):
        return {NO3, make_major(5)}

    implied: set[Alteration] = set()
    if quality.third is Interval.MAJOR:
        implied.add(make_major(3))
    else:
        implied.add(make_minor(3))
    if quality.fifth is Interval.PERFECT:
        implied.add(make_major(5))
    elif quality.fifth is Interval.AUGMENTED:
        implied.add(raised(5))
    elif quality.fifth is Interval.DIMINISHED:
        implied.add(lowered(5))

    if isinstance(quality, SeventhTetrad):
        if quality.seventh is Interval.MAJOR:
            implied.update({make_major(7), added(7)})
        elif quality.seventh is Interval.MINOR:
            implied.add(make_minor(7))
    elif isinstance(quality, SixthTetrad):
        implied.add(ADD6)
        if quality.ninth:
            implied.add(ADD9)
    return implied


def canonicalize(chord: Chord) -> Chord:
    """
    Fold a chord's quality and alterations into canonical form.

    Folds repeat until none applies, each consuming one alteration, so the
    result is the same whichever synonym spelling was parsed. Alterations
    restating the final quality are then pruned. The tonic is never touched.
    """
    quality = chord.quality
    remaining = list(chord.alterations)
    while True:
        folded = _fold(quality, remaining)
        if folded is None:
            break
        quality = folded

    implied = implied_alterations(quality)
    return Chord(chord.tonic, quality, tuple(a for a in remaining if a not in implied))


def identify(subject: Chord | Quality) -> QualityID:
    """Canonical quality identifier of a chord (canonicalized first) or a bare quality."""
    if isinstance(subject, Chord):
        return identify_quality(canonicalize(subject).quality)
    return identify_quality(subject)


def chord(
    tonic: str | Letter,
    quality: Quality = MAJ,
    *alterations: Alteration,
) -> Chord:
    """Convenience builder: ``chord("A", MIN7, lowered(5))``."""
    letter = Letter.parse(tonic) if isinstance(tonic, str) else tonic
    return Chord(letter, quality, tuple(alterations))
