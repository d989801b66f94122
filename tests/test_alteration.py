"""Unit tests for alteration ordering, deduplication and transposition."""

import itertools

import pytest

from leadsheet.alteration import (
    NO3,
    SUS4,
    AlterationKind,
    added,
    everything,
    lowered,
    make_major,
    make_minor,
    omitted,
    over,
    raised,
    sort_alterations,
    suspended,
    uniq,
)
from leadsheet.letter import Accidental, Letter


def test_sort_follows_kind_tiers() -> None:
    shuffled = [over(Letter("E")), added(9), raised(11), SUS4, make_major(7), everything()]
    assert sort_alterations(shuffled) == [
        everything(),
        make_major(7),
        SUS4,
        raised(11),
        added(9),
        over(Letter("E")),
    ]


def test_sort_breaks_ties_by_descending_degree() -> None:
    assert sort_alterations([raised(5), raised(11), raised(9)]) == [
        raised(11),
        raised(9),
        raised(5),
    ]
    assert sort_alterations([omitted(5), omitted(13)]) == [omitted(13), omitted(5)]


def test_sort_breaks_tier_ties_by_kind_name() -> None:
    assert sort_alterations([omitted(3), added(9)]) == [added(9), omitted(3)]
    assert sort_alterations([raised(9), lowered(13)]) == [lowered(13), raised(9)]
    assert sort_alterations([make_minor(7), make_major(9)]) == [make_major(9), make_minor(7)]


def test_sort_is_deterministic_over_permutations() -> None:
    pieces = [raised(9), lowered(13), NO3, added(9), suspended(2), over(Letter("G"))]
    expected = sort_alterations(pieces)
    for permutation in itertools.permutations(pieces):
        assert sort_alterations(permutation) == expected


def test_uniq_drops_literal_duplicates_only() -> None:
    assert uniq([omitted(5), raised(11), omitted(5), raised(11)]) == [raised(11), omitted(5)]
    assert uniq([raised(5), lowered(5)]) == [lowered(5), raised(5)]


def test_suspended_only_allows_two_and_four() -> None:
    assert suspended().target == 4
    assert suspended(2).kind is AlterationKind.SUSPEND
    with pytest.raises(ValueError):
        suspended(3)


def test_transpose_moves_only_slash_bass() -> None:
    slash = over(Letter("G"))
    assert slash.transpose(1) == over(Letter("G", 1))
    assert slash.transpose(1, Accidental.FLAT) == over(Letter("A", -1))
    assert raised(9).transpose(5) == raised(9)
    assert everything().transpose(3) == everything()
