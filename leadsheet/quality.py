"""Chord qualities: a closed tagged union of dyads, triads and tetrads."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import ClassVar, Union


class Interval(Enum):
    """Size of a chord component measured from the root."""

    PERFECT = "P"
    MAJOR = "M"
    MINOR = "m"
    AUGMENTED = "+"
    DIMINISHED = "o"


class QualityID(Enum):
    """Identifiers of the canonical qualities every chord spelling folds into."""

    POWER = "pow"

    MAJOR = "maj"
    MINOR = "min"
    AUGMENTED = "aug"
    DIMINISHED = "dim"

    MAJOR_SIXTH = "maj6"
    MINOR_SIXTH = "min6"
    MAJOR_SIX_NINE = "maj6/9"
    MINOR_SIX_NINE = "min6/9"
    AUGMENTED_SIXTH = "6#5"

    DOMINANT_SEVENTH = "dom7"
    MAJOR_SEVENTH = "maj7"
    MINOR_MAJOR_SEVENTH = "minmaj7"
    MINOR_SEVENTH = "min7"
    AUGMENTED_MAJOR_SEVENTH = "maj7#5"
    HALF_DIMINISHED = "min7b5"
    DIMINISHED_SEVENTH = "dim7"
    DIMINISHED_MAJOR_SEVENTH = "dimM7"
    AUGMENTED_SEVENTH = "7#5"


#: Extents a seventh chord may carry; 7 is the plain seventh.
EXTENTS: tuple[int, ...] = (7, 9, 11, 13)


@dataclass(frozen=True)
class Dyad:
    """Root and fifth only (a power chord)."""

    fifth: Interval = Interval.PERFECT

    family: ClassVar[str] = "dyad"


@dataclass(frozen=True)
class Triad:
    """Root, third and fifth."""

    third: Interval
    fifth: Interval

    family: ClassVar[str] = "triad"


@dataclass(frozen=True)
class SeventhTetrad:
    """
    A triad plus a seventh, the only extendable family.

    Attributes:
        third:   Major or minor third.
        fifth:   Perfect, augmented or diminished fifth.
        seventh: Major, minor or diminished seventh.
        extent:  Highest implied degree: 7, 9, 11 or 13. Everything between the
                 seventh and the extent is implied using the seventh's quality.
    """

    third: Interval
    fifth: Interval
    seventh: Interval
    extent: int = 7

    family: ClassVar[str] = "tetrad"

    def __post_init__(self) -> None:
        if self.extent not in EXTENTS:
            raise ValueError(f"Seventh chords extend to 7, 9, 11 or 13, got {self.extent}.")

    def with_extent(self, extent: int) -> SeventhTetrad:
        return replace(self, extent=extent)


@dataclass(frozen=True)
class SixthTetrad:
    """A non-tertian tetrad: a triad plus a sixth, optionally with a ninth (6/9)."""

    third: Interval
    fifth: Interval
    ninth: bool = False

    family: ClassVar[str] = "tetrad"


Quality = Union[Dyad, Triad, SeventhTetrad, SixthTetrad]

_P, _M, _m = Interval.PERFECT, Interval.MAJOR, Interval.MINOR
_AUG, _DIM = Interval.AUGMENTED, Interval.DIMINISHED

# ── Canonical qualities ─────────────────────────────────────────────────────
POWER = Dyad()

MAJ = Triad(_M, _P)
MIN = Triad(_m, _P)
AUG = Triad(_M, _AUG)
DIM = Triad(_m, _DIM)

MAJ6 = SixthTetrad(_M, _P)
MIN6 = SixthTetrad(_m, _P)
MAJ69 = SixthTetrad(_M, _P, ninth=True)
MIN69 = SixthTetrad(_m, _P, ninth=True)
AUG6 = SixthTetrad(_M, _AUG)

DOM7 = SeventhTetrad(_M, _P, _m)
MAJ7 = SeventhTetrad(_M, _P, _M)
MINMAJ7 = SeventhTetrad(_m, _P, _M)
MIN7 = SeventhTetrad(_m, _P, _m)
MAJ7_SHARP5 = SeventhTetrad(_M, _AUG, _M)
MIN7_FLAT5 = SeventhTetrad(_m, _DIM, _m)
DIM7 = SeventhTetrad(_m, _DIM, _DIM)
DIM_MAJ7 = SeventhTetrad(_m, _DIM, _M)
AUG7 = SeventhTetrad(_M, _AUG, _m)

_IDENTITIES: dict[Quality, QualityID] = {
    POWER: QualityID.POWER,
    MAJ: QualityID.MAJOR,
    MIN: QualityID.MINOR,
    AUG: QualityID.AUGMENTED,
    DIM: QualityID.DIMINISHED,
    MAJ6: QualityID.MAJOR_SIXTH,
    MIN6: QualityID.MINOR_SIXTH,
    MAJ69: QualityID.MAJOR_SIX_NINE,
    MIN69: QualityID.MINOR_SIX_NINE,
    AUG6: QualityID.AUGMENTED_SIXTH,
    DOM7: QualityID.DOMINANT_SEVENTH,
    MAJ7: QualityID.MAJOR_SEVENTH,
    MINMAJ7: QualityID.MINOR_MAJOR_SEVENTH,
    MIN7: QualityID.MINOR_SEVENTH,
    MAJ7_SHARP5: QualityID.AUGMENTED_MAJOR_SEVENTH,
    MIN7_FLAT5: QualityID.HALF_DIMINISHED,
    DIM7: QualityID.DIMINISHED_SEVENTH,
    DIM_MAJ7: QualityID.DIMINISHED_MAJOR_SEVENTH,
    AUG7: QualityID.AUGMENTED_SEVENTH,
}

#: Reverse of :func:`identify`; seventh chords come back with extent 7.
QUALITIES_BY_ID: dict[QualityID, Quality] = {qid: q for q, qid in _IDENTITIES.items()}


def base_of(quality: Quality) -> Quality:
    """Drop the extent of a seventh chord so it can be compared by shape alone."""
    if isinstance(quality, SeventhTetrad):
        return quality.with_extent(7)
    return quality


def extent_of(quality: Quality) -> int | None:
    if isinstance(quality, SeventhTetrad):
        return quality.extent
    return None


def identify(quality: Quality) -> QualityID:
    """
    Name the canonical quality a quality value denotes.

    Raises:
        ValueError: If the interval combination is not one of the canonical
                    qualities (e.g. a major third over a diminished fifth).
    """
    try:
        return _IDENTITIES[base_of(quality)]
    except KeyError:
        raise ValueError(f"Unrecognized chord quality {quality!r}.") from None


def is_minor(quality: Quality) -> bool:
    """True for minor third over perfect fifth: min, min6, min6/9, min7, minmaj7."""
    if isinstance(quality, Dyad):
        return False
    return quality.third is Interval.MINOR and quality.fifth is Interval.PERFECT
