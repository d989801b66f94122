"""Unit tests for chord and song parsing."""

import pytest

from leadsheet.alteration import ADD9, SUS2, SUS4, everything, lowered, omitted, over, raised
from leadsheet.chord import chord
from leadsheet.key import Key
from leadsheet.letter import Letter
from leadsheet.parser import ParseError, Result, ValidationError, parse_chord, parse_song
from leadsheet.quality import (
    AUG7,
    DIM7,
    DIM_MAJ7,
    DOM7,
    MAJ,
    MAJ7,
    MAJ7_SHARP5,
    MIN,
    MIN7,
    MIN7_FLAT5,
    MINMAJ7,
    POWER,
    QualityID,
)
from leadsheet.song import Barline, NoChord, OptionalChord, RepeatDirection, RepeatPreviousChord


def _identify(symbol: str) -> QualityID:
    return parse_chord(symbol).unwrap().identify()


# ── Chords ──────────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    ("symbol", "expected"),
    [
        ("C", chord("C", MAJ)),
        ("c", chord("C", MAJ)),
        ("C5", chord("C", POWER)),
        ("Cm", chord("C", MIN)),
        ("Csus", chord("C", MAJ, SUS4)),
        ("Csus2", chord("C", MAJ, SUS2)),
        ("C2", chord("C", MAJ, SUS2)),
        ("C7", chord("C", DOM7)),
        ("C13", chord("C", DOM7.with_extent(13))),
        ("Cmaj9", chord("C", MAJ7.with_extent(9))),
        ("CΔ7", chord("C", MAJ7)),
        ("C-7", chord("C", MIN7)),
        ("Cdim7", chord("C", DIM7)),
        ("Cø", chord("C", MIN7_FLAT5)),
        ("CmM7", chord("C", MINMAJ7)),
        ("Cm(maj9)", chord("C", MINMAJ7.with_extent(9))),
        ("C+M7", chord("C", MAJ7_SHARP5)),
        ("CoM7", chord("C", DIM_MAJ7)),
        ("C+M9", chord("C", MAJ7_SHARP5.with_extent(9))),
        ("C7alt", chord("C", DOM7, everything())),
        ("Calt", chord("C", DOM7, everything())),
        ("C(alt)", chord("C", MAJ, everything())),
        ("Cadd9", chord("C", MAJ, ADD9)),
        ("C(add 9)", chord("C", MAJ, ADD9)),
        ("C9sus4", chord("C", DOM7.with_extent(9), SUS4)),
        ("C7b9#11", chord("C", DOM7, lowered(9), raised(11))),
        ("C7(♭9)", chord("C", DOM7, lowered(9))),
        ("C/E", chord("C", MAJ, over(Letter("E")))),
        ("C♯m7/G♯", chord("C#", MIN7, over(Letter("G", 1)))),
    ],
)
def test_parse_chord(symbol: str, expected: object) -> None:
    result = parse_chord(symbol)
    assert result.ok
    assert result.value == expected


def test_parse_chord_keeps_exotic_tonic_spelling() -> None:
    parsed = parse_chord("F𝄫minMaj9#11(sus4)(no13)(no 5)(omit 5)(♯¹¹)/E").unwrap()
    assert parsed.tonic == Letter("F", -2)
    assert parsed.quality == MINMAJ7.with_extent(9)
    assert parsed.alterations == (SUS4, raised(11), omitted(13), omitted(5), over(Letter("E")))
    assert parsed.print() == "FbbmM9sus4#11(no13)(no5)/E"


def test_augmented_seventh_sharp_nine() -> None:
    parsed = parse_chord("C+7#9").unwrap()
    assert parsed.quality == AUG7
    assert parsed.alterations == (raised(9),)
    assert parsed.print() == "C+7#9"


@pytest.mark.parametrize(
    "group",
    [
        ["C6", "C(add6)", "Cadd6", "C6(add6)"],
        ["Cm6/9", "Cm(add6)(add9)", "Cm69", "Cm6add9"],
        ["C6/9", "C(add6)(add9)", "C69"],
        ["C+7", "C7#5", "Caug7", "C7(#5)"],
        ["C+M7", "CΔ7#5", "Cmaj7(#5)", "Caug(M7)"],
        ["Cm7b5", "Cø7", "Cø", "Cmin7(b5)", "Co(m7)"],
        ["CmM7", "Cm(M7)", "C-Δ7", "Cminmaj7", "Cm/M7"],
        ["Co7", "Cdim7", "C°7"],
        ["C7", "Cdom7", "Cdom", "C(m7)"],
        ["CM7", "Cmaj7", "CΔ7", "C(M7)", "Cmajor7"],
    ],
)
def test_synonyms_identify_identically(group: list[str]) -> None:
    identities = {_identify(symbol) for symbol in group}
    assert len(identities) == 1


@pytest.mark.parametrize(
    "symbol",
    ["C", "Am7", "Bb13#11", "F#m7b5", "Ebo7", "G7alt", "D6/9", "Esus2", "Aadd9", "C/E", "A(#9)"],
)
def test_printed_chords_parse_back(symbol: str) -> None:
    parsed = parse_chord(symbol).unwrap()
    assert parse_chord(parsed.print()).unwrap() == parsed


@pytest.mark.parametrize(
    ("symbol", "printed"),
    [("C(M5)", "C"), ("Am7(M5)", "Am7"), ("C5(M5)", "C5"), ("G7(M5)", "G7")],
)
def test_restated_perfect_fifth_is_dropped(symbol: str, printed: str) -> None:
    assert parse_chord(symbol).unwrap().print() == printed


@pytest.mark.parametrize("symbol", ["", "wat", "Hm7", "C Minor"])
def test_parse_chord_rejects(symbol: str) -> None:
    result = parse_chord(symbol)
    assert not result.ok
    assert isinstance(result.error, ParseError)
    assert result.error.message.startswith(f"Line {result.error.line}, col {result.error.column}:")


def test_unwrap_raises_carried_error() -> None:
    with pytest.raises(ParseError):
        parse_chord("Hm7").unwrap()


def test_result_unwrap_returns_value() -> None:
    assert Result(value=3).unwrap() == 3


# ── Songs ───────────────────────────────────────────────────────────────────

def test_no_chord_song_has_no_key() -> None:
    song = parse_song("| N.C. |").unwrap()
    assert len(song.bars) == 1
    assert song.bars[0].chords == [NoChord()]
    assert song.key is None


def test_key_is_guessed_from_first_chord() -> None:
    song = parse_song("| C |").unwrap()
    assert song.key == Key(Letter("C"))
    assert parse_song("| N.C. Am7 | C |").unwrap().key == Key(Letter("A"), "minor")


def test_key_metadata_wins_over_guess() -> None:
    song = parse_song("key: Ebm\n| C |").unwrap()
    assert song.key == Key(Letter("E", -1), "minor")


def test_invalid_key_metadata_is_a_validation_error() -> None:
    result = parse_song("key: nonsense\n| C |")
    assert not result.ok
    assert isinstance(result.error, ValidationError)
    assert result.error.line == 1


def test_metadata_values_are_stripped() -> None:
    song = parse_song("title:   My Song  \nartist: Someone\nyear: 1999\nsig: 3/4\n| C |").unwrap()
    assert song.title == "My Song"
    assert song.artist == "Someone"
    assert song.year == "1999"
    assert song.sig == "3/4"


def test_repeat_barlines_are_shared_between_bars() -> None:
    song = parse_song("||: A | B :2x||").unwrap()
    first, second = song.bars
    assert str(first.open_barline) == "||:"
    assert str(first.close_barline) == "|"
    assert str(second.open_barline) == "|"
    assert str(second.close_barline) == ":2x||"
    assert second.close_barline.repeat is not None
    assert second.close_barline.repeat.direction is RepeatDirection.CLOSE
    assert second.close_barline.repeat.count == 2


def test_adjacent_barlines_are_reconciled() -> None:
    song = parse_song("| C :| |: D |").unwrap()
    assert song.bars[0].close_barline == Barline.parse(":|")
    assert song.bars[1].open_barline == Barline.parse("|:")


def test_line_breaks_between_bars_collapse() -> None:
    song = parse_song("| C | D |\n| E |").unwrap()
    assert [str(bar.open_barline) for bar in song.bars] == ["|", "|", "|"]


@pytest.mark.parametrize(
    "text",
    ["| C :| :2| D |", "| C |: :| D |", "| C |: |2: D |"],
)
def test_conflicting_barlines_are_rejected(text: str) -> None:
    result = parse_song(text)
    assert isinstance(result.error, ValidationError)


def test_repeat_glyphs_copy_previous_slot() -> None:
    song = parse_song("| C | % | D | / |").unwrap()
    assert [bar.chords for bar in song.bars] == [
        [chord("C")],
        [chord("C")],
        [chord("D")],
        [chord("D")],
    ]


def test_repeat_glyph_after_no_chord_is_no_chord() -> None:
    song = parse_song("| N.C. | - |").unwrap()
    assert song.bars[1].chords == [NoChord()]


def test_leading_repeat_glyph_stays_unresolved() -> None:
    song = parse_song("| % | C |").unwrap()
    assert song.bars[0].chords == [RepeatPreviousChord()]
    assert song.key is None


def test_optional_chords() -> None:
    song = parse_song("| (Am7) C |").unwrap()
    assert song.bars[0].chords == [OptionalChord(chord("A", MIN7)), chord("C")]
    assert song.key == Key(Letter("A"), "minor")


def test_sections_label_following_bars() -> None:
    text = "| G |\nVerse:\n| C | D |\n\nChorus:\n| F |\n"
    song = parse_song(text).unwrap()
    assert [bar.name for bar in song.bars] == [None, "Verse", "Verse", "Chorus"]


def test_comments_are_ignored() -> None:
    song = parse_song("// tune\n| C | // first\n| D |\n").unwrap()
    assert len(song.bars) == 2


def test_parse_song_failure_is_positioned() -> None:
    result = parse_song("| C |\n| Hm |")
    assert not result.ok
    assert result.error is not None
    assert result.error.line == 2


def test_parses_are_independent() -> None:
    first = parse_song("Verse:\n| C |").unwrap()
    second = parse_song("| D |").unwrap()
    assert first.bars[0].name == "Verse"
    assert second.bars[0].name is None
