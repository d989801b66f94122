"""Renderer implementations for whole-song output formats."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from leadsheet.chord import Chord
from leadsheet.chord_formatters import ChordFormatter, HtmlFormatter, TextFormatter, _escape_html
from leadsheet.settings import Settings
from leadsheet.song import Bar, Barline, Chordish, NoChord, OptionalChord, RepeatPreviousChord, Song


class SongRenderer(ABC):
    """Abstract song renderer."""

    @property
    @abstractmethod
    def default_extension(self) -> str:
        """Default filename extension for this renderer."""

    @abstractmethod
    def render(self, song: Song) -> str:
        """Render a song into a file content string."""


class LeadsheetRenderer(SongRenderer):
    """Canonical leadsheet text, readable by ``parse_song``."""

    def __init__(self, bars_per_line: int = 4) -> None:
        self.bars_per_line = bars_per_line

    @property
    def default_extension(self) -> str:
        return ".leadsheet"

    def render(self, song: Song) -> str:
        return song.format(bars_per_line=self.bars_per_line)


class HtmlSongRenderer(SongRenderer):
    """Render a song into a self-contained HTML document."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self.formatter: ChordFormatter
        if self.settings.unicode_chord_symbols:
            self.formatter = HtmlFormatter(color_chords=self.settings.color_chords)
        else:
            self.formatter = TextFormatter()

    @property
    def default_extension(self) -> str:
        return ".html"

    def render(self, song: Song) -> str:
        return self.build_html(song)

    def chord_html(self, slot: Chordish) -> str:
        """One bar slot as a classed span."""
        if isinstance(slot, NoChord):
            return '<span class="chord no-chord">N.C.</span>'
        if isinstance(slot, RepeatPreviousChord):
            return '<span class="chord repeat">%</span>'
        if isinstance(slot, OptionalChord):
            return f'<span class="optional">({self._chord(slot.chord)})</span>'
        return self._chord(slot)

    def _chord(self, chord: Chord) -> str:
        if isinstance(self.formatter, HtmlFormatter):
            return self.formatter.format(chord)
        return f'<span class="chord">{_escape_html(self.formatter.format(chord))}</span>'

    def _barline(self, barline: Barline) -> str:
        return f'<span class="barline">{_escape_html(str(barline))}</span>'

    def _bar(self, bar: Bar) -> str:
        chords = " ".join(self.chord_html(slot) for slot in bar.chords)
        return (
            f'      <div class="bar">{self._barline(bar.open_barline)} '
            f'{chords} {self._barline(bar.close_barline)}</div>'
        )

    def build_html(self, song: Song) -> str:
        """
        Lay out the song as a page of sections, each a flowing grid of bars.

        The header carries the title, artist and year, the key with its
        signature accidentals, and the time signature.
        """
        title = song.title or "Untitled"
        title_safe = _escape_html(title)
        byline = " · ".join(_escape_html(v) for v in (song.artist, song.year) if v)
        byline_html = f'  <p class="byline">{byline}</p>\n' if byline else ""

        key_html = ""
        if song.key is not None:
            signature = song.key.signature()
            kind = signature.accidental.name.lower() if signature.accidental else "none"
            accidentals = " ".join(_escape_html(str(letter)) for letter in signature)
            key_html = (
                f'    <span class="key">{_escape_html(song.key.format())}</span>\n'
                f'    <div class="accidental {kind}">{accidentals}</div>\n'
            )

        sections = []
        for section in song.sections():
            heading = (
                f'    <h2 class="section-name">{_escape_html(section.name)}</h2>\n'
                if section.name
                else ""
            )
            bars = "\n".join(self._bar(bar) for bar in section.bars)
            sections.append(
                f'  <section class="section">\n{heading}    <div class="bars">\n'
                f"{bars}\n    </div>\n  </section>"
            )
        body = "\n".join(sections)

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>{title_safe}</title>
  <style>
    *, *::before, *::after {{ box-sizing: border-box; }}
    body {{
      font-family: Georgia, serif;
      background: #f0f0f0;
      margin: 0;
      padding: 2rem;
    }}
    h1 {{
      text-align: center;
      font-size: 1.6rem;
      margin-bottom: 0.5rem;
      color: #222;
    }}
    .byline, .meta {{
      text-align: center;
      color: #555;
    }}
    .section {{
      background: #fff;
      box-shadow: 0 2px 8px rgba(0, 0, 0, 0.15);
      margin: 1.5rem auto;
      max-width: 860px;
      padding: 1rem;
    }}
    .bars {{
      display: grid;
      grid-template-columns: repeat({self.settings.bars_per_line}, 1fr);
      gap: 0.25rem;
    }}
    .bar {{ white-space: nowrap; }}
    .barline {{ color: #888; }}
    .fractional {{
      display: inline-flex;
      flex-direction: column;
      font-size: 0.6em;
      vertical-align: middle;
      line-height: 1;
    }}
    .chord-minor, .chord-minor-seventh, .chord-minor-sixth {{ color: #1f4e8c; }}
    .chord-dominant-seventh {{ color: #8c1f1f; }}
    .chord-diminished, .chord-diminished-seventh, .chord-half-diminished {{ color: #6b3d8c; }}
    @media print {{
      body {{
        background: #fff;
        padding: 0;
      }}
      .section {{
        box-shadow: none;
        max-width: 100%;
      }}
    }}
  </style>
</head>
<body>
  <h1>{title_safe}</h1>
{byline_html}  <div class="meta">
{key_html}    <span class="time-signature">{song.parse_sig()}</span>
  </div>
{body}
</body>
</html>"""


class JsonSongRenderer(SongRenderer):
    """Render a song as a JSON document with typed bar slots."""

    def __init__(self, indent: int | None = 2) -> None:
        self.indent = indent

    @property
    def default_extension(self) -> str:
        return ".json"

    def render(self, song: Song) -> str:
        return json.dumps(self.to_dict(song), indent=self.indent, ensure_ascii=False)

    def to_dict(self, song: Song) -> dict[str, Any]:
        key = None
        if song.key is not None:
            signature = song.key.signature()
            key = {
                "tonic": str(song.key.tonic),
                "flavor": song.key.flavor,
                "signature": [str(letter) for letter in signature],
            }
        sig = song.parse_sig()
        return {
            "title": song.title,
            "artist": song.artist,
            "album": song.album,
            "year": song.year,
            "sig": {"numerator": sig.numerator, "denominator": sig.denominator},
            "key": key,
            "bars": [self._bar(bar) for bar in song.bars],
        }

    def _bar(self, bar: Bar) -> dict[str, Any]:
        return {
            "section": bar.name,
            "open_barline": str(bar.open_barline),
            "close_barline": str(bar.close_barline),
            "chords": [self._slot(slot) for slot in bar.chords],
        }

    def _slot(self, slot: Chordish) -> dict[str, Any]:
        if isinstance(slot, NoChord):
            return {"type": "no_chord"}
        if isinstance(slot, RepeatPreviousChord):
            return {"type": "repeat_previous_chord"}
        if isinstance(slot, OptionalChord):
            return {"type": "optional_chord", **self._chord(slot.chord)}
        return {"type": "chord", **self._chord(slot)}

    def _chord(self, chord: Chord) -> dict[str, Any]:
        return {
            "symbol": chord.print(),
            "tonic": str(chord.tonic),
            "quality": chord.identify().value,
        }


SUPPORTED_FORMATS: tuple[str, ...] = ("leadsheet", "json", "html")


def build_renderer(output_format: str, settings: Settings | None = None) -> SongRenderer:
    """
    Return the renderer for *output_format*.

    Raises:
        ValueError: If the format is not one of SUPPORTED_FORMATS.
    """
    settings = settings or Settings()
    normalized = output_format.lower()
    if normalized == "leadsheet":
        return LeadsheetRenderer(bars_per_line=settings.bars_per_line)
    if normalized == "json":
        return JsonSongRenderer()
    if normalized == "html":
        return HtmlSongRenderer(settings)
    raise ValueError(
        f"Unsupported output format '{output_format}'. "
        f"Choose one of: {', '.join(SUPPORTED_FORMATS)}."
    )
