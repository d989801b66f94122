"""Alterations: per-degree modifications layered on top of a chord quality."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from functools import total_ordering
from typing import Iterable, Union

from leadsheet.letter import Accidental, Letter, transpose_letter


class AlterationKind(Enum):
    RAISE = "raise"
    LOWER = "lower"
    MAJOR = "major"
    MINOR = "minor"
    ADD = "add"
    OMIT = "omit"
    COMPOUND = "compound"
    SUSPEND = "suspend"
    EVERYTHING = "everything"


#: Sort tier of each kind; "alt" leads, slash chords trail.
ORDER: dict[AlterationKind, int] = {
    AlterationKind.EVERYTHING: -1,
    AlterationKind.MAJOR: 0,
    AlterationKind.MINOR: 0,
    AlterationKind.SUSPEND: 1,
    AlterationKind.RAISE: 2,
    AlterationKind.LOWER: 2,
    AlterationKind.ADD: 3,
    AlterationKind.OMIT: 3,
    AlterationKind.COMPOUND: 4,
}

Target = Union[int, Letter, None]


@total_ordering
@dataclass(frozen=True)
class Alteration:
    """
    One degree-level modification.

    Attributes:
        kind:   What is done to the degree.
        target: Scale degree (2-13), the bass Letter of a slash chord, or None
                for a bare "alt".
    """

    kind: AlterationKind
    target: Target = None

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Alteration):
            return NotImplemented
        if self.kind is not other.kind:
            return (ORDER[self.kind], self.kind.value) < (ORDER[other.kind], other.kind.value)
        # Within one kind, larger targets come first.
        return _target_key(self.target) > _target_key(other.target)

    def transpose(
        self,
        half_steps: int,
        preferred: Accidental = Accidental.SHARP,
    ) -> Alteration:
        """Only slash-chord basses move; every other kind is transposition-invariant."""
        if self.kind is AlterationKind.COMPOUND and isinstance(self.target, Letter):
            return replace(self, target=transpose_letter(self.target, half_steps, preferred))
        return self


def _target_key(target: Target) -> tuple[int, str]:
    if target is None:
        return (-1, "")
    if isinstance(target, Letter):
        return (0, str(target))
    return (target, "")


def sort_alterations(alterations: Iterable[Alteration]) -> list[Alteration]:
    return sorted(alterations)


def uniq(alterations: Iterable[Alteration]) -> list[Alteration]:
    """Sort, then drop alterations literally identical to their predecessor."""
    unique: list[Alteration] = []
    for alteration in sorted(alterations):
        if not unique or unique[-1] != alteration:
            unique.append(alteration)
    return unique


# ── Constructors ────────────────────────────────────────────────────────────

def raised(degree: int) -> Alteration:
    return Alteration(AlterationKind.RAISE, degree)


def lowered(degree: int) -> Alteration:
    return Alteration(AlterationKind.LOWER, degree)


def make_major(degree: int) -> Alteration:
    return Alteration(AlterationKind.MAJOR, degree)


def make_minor(degree: int) -> Alteration:
    return Alteration(AlterationKind.MINOR, degree)


def added(degree: int) -> Alteration:
    return Alteration(AlterationKind.ADD, degree)


def omitted(degree: int) -> Alteration:
    return Alteration(AlterationKind.OMIT, degree)


def suspended(degree: int = 4) -> Alteration:
    if degree not in (2, 4):
        raise ValueError(f"Only sus2 and sus4 exist, got sus{degree}.")
    return Alteration(AlterationKind.SUSPEND, degree)


def over(bass: Letter) -> Alteration:
    """Slash chord: *bass* sounds below the chord."""
    return Alteration(AlterationKind.COMPOUND, bass)


def everything(degree: int | None = None) -> Alteration:
    return Alteration(AlterationKind.EVERYTHING, degree)


SUS2 = suspended(2)
SUS4 = suspended(4)
ADD6 = added(6)
ADD9 = added(9)
NO3 = omitted(3)
