"""Unit tests for whole-song renderers."""

import json

import pytest

from leadsheet.parser import parse_song
from leadsheet.settings import Settings
from leadsheet.song import Song
from leadsheet.song_renderers import (
    HtmlSongRenderer,
    JsonSongRenderer,
    LeadsheetRenderer,
    build_renderer,
)


def _sample_song() -> Song:
    return parse_song(
        "title: Tom & Jerry <live>\n"
        "artist: Someone\n"
        "year: 2001\n"
        "sig: 3/4\n"
        "key: Bb\n"
        "Verse:\n"
        "||: Bb6 (Gm7) | N.C. | Cm7 F7 :|| % |\n"
    ).unwrap()


def _no_key_song() -> Song:
    return parse_song("| % | N.C. |").unwrap()


# ── Leadsheet ───────────────────────────────────────────────────────────────

def test_leadsheet_renderer_matches_song_format() -> None:
    song = _sample_song()
    renderer = LeadsheetRenderer()
    assert renderer.default_extension == ".leadsheet"
    assert renderer.render(song) == song.format()


def test_leadsheet_renderer_honours_bars_per_line() -> None:
    content = LeadsheetRenderer(bars_per_line=1).render(_sample_song())
    assert content.endswith("Verse:\n||: Bb6 (Gm7) |\n| N.C. |\n| Cm7 F7 :||\n:|| % |\n")


# ── HTML ────────────────────────────────────────────────────────────────────

def test_html_renderer_escapes_title() -> None:
    content = HtmlSongRenderer().render(_sample_song())
    assert content.startswith("<!DOCTYPE html>")
    assert "<title>Tom &amp; Jerry &lt;live&gt;</title>" in content
    assert "<h1>Tom &amp; Jerry &lt;live&gt;</h1>" in content


def test_html_renderer_header_carries_key_and_time_signature() -> None:
    content = HtmlSongRenderer().render(_sample_song())
    assert '<p class="byline">Someone · 2001</p>' in content
    assert '<span class="key">Bb</span>' in content
    assert '<div class="accidental flat">Bb Eb</div>' in content
    assert '<span class="time-signature">3/4</span>' in content
    assert '<h2 class="section-name">Verse</h2>' in content


def test_html_renderer_slots() -> None:
    content = HtmlSongRenderer().render(_sample_song())
    assert '<span class="chord no-chord">N.C.</span>' in content
    assert '<span class="optional">(<span class="chord chord-minor-seventh">' in content
    assert '<span class="barline">||:</span>' in content
    assert content.count('<div class="bar">') == 4


def test_html_renderer_plain_text_symbols() -> None:
    settings = Settings(color_chords=False, unicode_chord_symbols=False, bars_per_line=2)
    content = HtmlSongRenderer(settings).render(_sample_song())
    assert '<span class="chord">Bb6</span>' in content
    assert "grid-template-columns: repeat(2, 1fr);" in content
    assert "unicode-flat" not in content


def test_html_renderer_defaults_for_sparse_songs() -> None:
    content = HtmlSongRenderer().render(_no_key_song())
    assert "<h1>Untitled</h1>" in content
    assert 'class="byline"' not in content
    assert 'class="key"' not in content
    assert '<span class="chord repeat">%</span>' in content
    assert '<span class="time-signature">4/4</span>' in content


def test_html_renderer_includes_print_media() -> None:
    renderer = HtmlSongRenderer()
    assert renderer.default_extension == ".html"
    assert "@media print" in renderer.render(_sample_song())


# ── JSON ────────────────────────────────────────────────────────────────────

def test_json_renderer_document() -> None:
    renderer = JsonSongRenderer()
    assert renderer.default_extension == ".json"
    payload = json.loads(renderer.render(_sample_song()))
    assert payload["title"] == "Tom & Jerry <live>"
    assert payload["album"] is None
    assert payload["sig"] == {"numerator": 3, "denominator": 4}
    assert payload["key"] == {"tonic": "Bb", "flavor": "major", "signature": ["Bb", "Eb"]}
    assert len(payload["bars"]) == 4
    first = payload["bars"][0]
    assert first["section"] == "Verse"
    assert first["open_barline"] == "||:"
    assert first["chords"] == [
        {"type": "chord", "symbol": "Bb6", "tonic": "Bb", "quality": "maj6"},
        {"type": "optional_chord", "symbol": "Gm7", "tonic": "G", "quality": "min7"},
    ]
    assert payload["bars"][1]["chords"] == [{"type": "no_chord"}]


def test_json_renderer_unresolved_repeat_and_missing_key() -> None:
    payload = JsonSongRenderer(indent=None).to_dict(_no_key_song())
    assert payload["key"] is None
    assert payload["bars"][0]["chords"] == [{"type": "repeat_previous_chord"}]


# ── Factory ─────────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    ("name", "renderer_type"),
    [
        ("leadsheet", LeadsheetRenderer),
        ("json", JsonSongRenderer),
        ("HTML", HtmlSongRenderer),
    ],
)
def test_build_renderer(name: str, renderer_type: type) -> None:
    assert isinstance(build_renderer(name), renderer_type)


def test_build_renderer_passes_bars_per_line() -> None:
    renderer = build_renderer("leadsheet", Settings(bars_per_line=3))
    assert isinstance(renderer, LeadsheetRenderer)
    assert renderer.bars_per_line == 3


def test_build_renderer_rejects_unknown_format() -> None:
    with pytest.raises(ValueError, match="Unsupported output format"):
        build_renderer("pdf")
