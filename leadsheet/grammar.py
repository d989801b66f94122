"""
Grammar: PEG rule tables for chord symbols and leadsheet songs.

Rules are plain data, one parsimonious expression per rule name. The tables
are joined into parsimonious grammars at import time; the song grammar
extends the chord grammar and widens its ``space`` rule to cover ``//``
comments. Whitespace is never skipped implicitly, so every rule says where
``ws`` may appear.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger
from parsimonious.exceptions import ParseError as GrammarParseError
from parsimonious.exceptions import ParsimoniousError
from parsimonious.grammar import Grammar
from parsimonious.nodes import Node


@dataclass(frozen=True)
class MatchFailure:
    """Where and why a match failed, reported at the furthest position reached."""

    message: str
    position: int
    line: int
    column: int


@dataclass(frozen=True)
class MatchResult:
    tree: Node | None = None
    failure: MatchFailure | None = None

    @property
    def succeeded(self) -> bool:
        return self.tree is not None


def line_and_column(text: str, position: int) -> tuple[int, int]:
    """1-based line and column of an offset into *text*."""
    line = text.count("\n", 0, position) + 1
    column = position - (text.rfind("\n", 0, position) + 1) + 1
    return line, column


def rule_text(rules: dict[str, str]) -> str:
    """Render a rule table in parsimonious' ``name = expression`` syntax."""
    return "\n".join(f"{name} = {body}" for name, body in rules.items())


def _failure(error: GrammarParseError) -> MatchFailure:
    position = max(error.pos, 0)
    line, column = line_and_column(error.text, position)
    if position < len(error.text):
        found = repr(error.text[position])
    else:
        found = "end of input"
    name = getattr(error.expr, "name", "") or "valid input"
    message = f"Line {line}, col {column}: expected {name.replace('_', ' ')}, found {found}"
    return MatchFailure(message, position, line, column)


class RuleGrammar:
    """A rule table compiled into a parsimonious grammar with a start rule."""

    def __init__(self, name: str, rules: dict[str, str], start: str) -> None:
        if start not in rules:
            raise ValueError(f"Grammar '{name}' has no start rule '{start}'.")
        self.name = name
        self.rules = rules
        self.start = start
        try:
            self.grammar = Grammar(rule_text(rules)).default(start)
        except ParsimoniousError as exc:
            raise ValueError(f"Grammar '{name}' is invalid: {exc}") from exc

    def match(self, text: str) -> MatchResult:
        """
        Match the whole of *text* against the start rule.

        Start rules end in ``end``, so a success always covers the entire input
        and a failure points at the furthest character the rules reached.
        """
        try:
            tree = self.grammar.parse(text)
        except GrammarParseError as exc:
            failure = _failure(exc)
            logger.debug("{} grammar failed to match: {}", self.name, failure.message)
            return MatchResult(failure=failure)
        return MatchResult(tree=tree)


# ── Chord rules ─────────────────────────────────────────────────────────────

def _numeral(digits: str, superscript: str) -> str:
    return f'"{digits}" / "{superscript}"'


CHORD_RULES: dict[str, str] = {
    "chord_symbol": "ws chord ws end",
    "chord": "root flavor",
    "root": "note_letter accidental?",
    # Lowercase "b" would read as a flat, so only B is case-sensitive.
    "note_letter": '~"[ACDEFG]"i / "B"',
    "accidental": '"##" / "𝄪" / "♯♯" / "bb" / "𝄫" / "♭♭" / "#" / "♯" / "b" / "♭" / "♮"',
    "flavor": "quality? extent? alteration*",

    "quality": (
        "sus / minor_major / augmented / diminished / dominant / half_diminished"
        " / major / minor"
    ),
    "sus": '~"sus"i',
    "minor_major": 'minor_major_with_parens / ~"minmaj"i / "mM" / "mΔ" / "-Δ" / "m/M"',
    "minor_major_with_parens": 'minor "(" major extent ")"',
    "augmented": '~"augmented"i / ~"aug"i / "+" / "⁺"',
    "diminished": '~"diminished"i / ~"dim"i / "o" / "°"',
    "dominant": '~"dominant"i / ~"dom"i',
    "half_diminished": '~"ø"i',
    "major": '~"major"i / ~"maj"i / "M" / "Δ"',
    "minor": '~"minor"i / ~"min"i / "-" / "⁻" / "m"',

    "extent": "thirteen / eleven / nine / seven / six_and_nine / six / five / four / two",
    "degree": "thirteen / eleven / nine / eight / seven / six / five / four / three / two",
    "bare_degree": "six_and_nine / degree",
    "sus_degree": "two / four",
    "thirteen": _numeral("13", "¹³"),
    "eleven": _numeral("11", "¹¹"),
    "nine": _numeral("9", "⁹"),
    "eight": _numeral("8", "⁸"),
    "seven": _numeral("7", "⁷"),
    "six_and_nine": 'six "/"? nine',
    "six": _numeral("6", "⁶"),
    "five": _numeral("5", "⁵"),
    "four": _numeral("4", "⁴"),
    "three": _numeral("3", "³"),
    "two": _numeral("2", "²"),

    "alteration": "alteration_in_parens / alteration_no_parens",
    "alteration_in_parens": '"(" space_no_nl* alteration_no_parens space_no_nl* ")"',
    "alteration_no_parens": (
        "accidental_alteration / symbol_alteration / add_no_omit_alteration"
        " / slash_alteration / alt_alteration / sus_alteration / bare_alteration"
    ),
    "accidental_alteration": "accidental degree",
    "symbol_alteration": "alteration_symbol degree",
    "alteration_symbol": '"Δ" / "M" / "m" / "+" / "⁺" / "o" / "°" / "-" / "⁻" / ~"ø"i',
    "add_no_omit_alteration": "add_no_omit degree",
    "add_no_omit": "space_no_nl* add_no_omit_word space_no_nl*",
    "add_no_omit_word": '~"add"i / ~"no"i / ~"omit"i',
    "slash_alteration": '"/" root',
    "alt_alteration": '~"alt"i degree?',
    "sus_alteration": '~"sus"i sus_degree?',
    "bare_alteration": "space_no_nl? bare_degree",

    "ws": "space*",
    "space": '" " / "\\t" / newline',
    "space_no_nl": '" " / "\\t"',
    "newline": '"\\r\\n" / "\\n" / "\\r"',
    "end": '!~"."s',
}


# ── Song rules ──────────────────────────────────────────────────────────────

def _meta(label: str) -> str:
    return f'~"{label}"i space_no_nl* meta_value newline'


SONG_RULES: dict[str, str] = {
    **CHORD_RULES,
    "song": "(ws metadata)* ws sections ws end",

    "metadata": "meta_title / meta_artist / meta_year / meta_sig / meta_key",
    "meta_title": _meta("title:"),
    "meta_artist": _meta("artist:"),
    "meta_year": _meta("year:"),
    "meta_sig": _meta("sig:"),
    "meta_key": _meta("key:"),
    "meta_value": '~"[^\\r\\n]+"',

    "sections": "section? ws bars (ws section ws bars)*",
    "section": 'section_name ":" space_no_nl* (newline / line_comment)',
    "section_name": '~"[^:|\\r\\n]+"',

    # Each bar is its slots plus the run of barlines that closes it.
    "bars": "barline bar+",
    "bar": "(ws chordish)+ (ws barline)+",
    # A slot ends at whitespace, a comment, a barline or the input end. A colon
    # only ends one when it starts a repeat barline, so "A:" stays a section.
    "chordish": (
        "(no_chord / optional_chord / repeat_previous_chord / chord)"
        ' &(space / "|" / repeat_close_barline / end)'
    ),
    "no_chord": '~"N[.]C[.]"i',
    "optional_chord": '"(" chord ")"',
    "repeat_previous_chord": '"%" / "-" / "/" / "𝄎"',

    "barline": "repeat_close_barline / repeat_open_barline / plain_barline",
    "repeat_close_barline": '":" repeat_count? plain_barline',
    "repeat_open_barline": 'plain_barline repeat_count? ":"',
    "plain_barline": '"||" / "|"',
    "repeat_count": '~"[0-9]+x?"i',

    "space": '" " / "\\t" / newline / line_comment',
    "line_comment": '"//" ~"[^\\r\\n]*" (newline / end)',
}

CHORD_GRAMMAR = RuleGrammar("Chord", CHORD_RULES, start="chord_symbol")
SONG_GRAMMAR = RuleGrammar("Song", SONG_RULES, start="song")
