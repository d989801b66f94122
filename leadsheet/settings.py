"""
Settings for rendering leadsheets.

Feature flags live in a small dataclass persisted as a JSON object.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path

from loguru import logger

DEFAULT_SETTINGS_PATH = Path.home() / ".config" / "leadsheet" / "settings.json"


@dataclass
class Settings:
    """
    Rendering preferences.

    Attributes:
        color_chords:          Tag HTML chords with a per-quality CSS class.
        unicode_chord_symbols: Typeset HTML chords (unicode accidentals,
                               superscripts) instead of plain text.
        bars_per_line:         Bars per line in leadsheet text output.
    """

    color_chords: bool = True
    unicode_chord_symbols: bool = True
    bars_per_line: int = 4

    def __post_init__(self) -> None:
        if not isinstance(self.bars_per_line, int) or self.bars_per_line < 1:
            raise ValueError(f"bars_per_line must be an integer >= 1, got {self.bars_per_line!r}.")

    @classmethod
    def load(cls, path: Path | str = DEFAULT_SETTINGS_PATH) -> Settings:
        """
        Read settings from a JSON file; a missing file gives the defaults.

        Raises:
            ValueError: If the file is not a JSON object or a value is invalid.
        """
        path = Path(path)
        if not path.exists():
            return cls()

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Settings file '{path}' is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError(f"Settings file '{path}' must contain a JSON object.")

        known = {f.name for f in fields(cls)}
        for name in sorted(set(data) - known):
            logger.warning("Ignoring unknown setting '{}' in {}", name, path)
        return cls(**{name: value for name, value in data.items() if name in known})

    def save(self, path: Path | str = DEFAULT_SETTINGS_PATH) -> None:
        """Write settings to *path*, creating parent directories as needed."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(asdict(self), f, indent=2)
