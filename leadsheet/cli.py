"""leadsheet CLI entry point."""

import sys
from pathlib import Path
from typing import TextIO

import click
from loguru import logger

from leadsheet import __version__
from leadsheet.chord_formatters import HtmlFormatter, TextFormatter
from leadsheet.key import Key
from leadsheet.parser import parse_chord, parse_song
from leadsheet.settings import DEFAULT_SETTINGS_PATH, Settings
from leadsheet.song_renderers import SUPPORTED_FORMATS, build_renderer


def _echo_log(message: str) -> None:
    click.echo(message, err=True, nl=False)


def _configure_logging(verbose: bool) -> None:
    """Route package warnings to stderr, and everything else too with --verbose."""
    logger.remove()
    if verbose:
        logger.add(_echo_log, level="DEBUG")
    else:
        logger.add(_echo_log, level="WARNING", format="  {level}: {message}")
    logger.enable("leadsheet")


def _load_settings(config: str | None) -> Settings:
    try:
        return Settings.load(config if config is not None else DEFAULT_SETTINGS_PATH)
    except ValueError as exc:
        click.echo(f"  ERROR: Could not load settings: {exc}", err=True)
        sys.exit(1)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="leadsheet")
@click.option("--verbose", "-v", is_flag=True, help="Log parsing details to stderr.")
def main(verbose: bool) -> None:
    """leadsheet: chord chart parser, transposer and renderer."""
    _configure_logging(verbose)


# ── parse subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.argument("source", default="-", type=click.File("r", encoding="utf-8"))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(list(SUPPORTED_FORMATS), case_sensitive=False),
    default="leadsheet",
    show_default=True,
    help="Output format: canonical leadsheet text, JSON, or a self-contained HTML page.",
)
@click.option(
    "--transpose",
    "half_steps",
    type=int,
    default=0,
    show_default=True,
    metavar="N",
    help="Transpose by N half steps (negative to go down).",
)
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination file. Defaults to standard output.",
)
@click.option(
    "--config",
    default=None,
    metavar="PATH",
    help=f"Settings JSON file. Defaults to {DEFAULT_SETTINGS_PATH}.",
)
def parse(
    source: TextIO,
    output_format: str,
    half_steps: int,
    output: str | None,
    config: str | None,
) -> None:
    """
    Parse a leadsheet and print it back in canonical form.

    SOURCE is a leadsheet file, or - (the default) for standard input.

    \b
    Examples:
      leadsheet parse song.leadsheet
      leadsheet parse song.leadsheet --transpose -2
      leadsheet parse song.leadsheet --format html -o song.html
    """
    settings = _load_settings(config)
    result = parse_song(source.read())
    if result.error is not None:
        click.echo(f"  ERROR: {result.error.message}", err=True)
        sys.exit(1)

    song = result.unwrap()
    if half_steps:
        song = song.transpose(half_steps)

    renderer = build_renderer(output_format, settings)
    rendered = renderer.render(song)
    if output is None:
        click.echo(rendered, nl=not rendered.endswith("\n"))
        return

    try:
        Path(output).write_text(rendered, encoding="utf-8")
    except OSError as exc:
        click.echo(f"  ERROR: Could not write output file: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Wrote {output_format} to '{output}'.")


# ── chord subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.argument("symbols", nargs=-1, required=True)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "html"], case_sensitive=False),
    default="text",
    show_default=True,
    help="Print canonical symbols as plain text or as HTML fragments.",
)
def chord(symbols: tuple[str, ...], output_format: str) -> None:
    """
    Canonicalize chord symbols.

    Prints each symbol's canonical spelling and quality identifier.

    \b
    Examples:
      leadsheet chord "C(add6)(add9)" "F#m7(b5)"
      leadsheet chord Bbmaj9 --format html
    """
    formatter = HtmlFormatter() if output_format.lower() == "html" else TextFormatter()
    failed = False
    for symbol in symbols:
        result = parse_chord(symbol)
        if result.error is not None:
            click.echo(f"  ERROR: {symbol}: {result.error.message}", err=True)
            failed = True
            continue
        parsed = result.unwrap()
        click.echo(f"{symbol}\t{parsed.print(formatter)}\t{parsed.identify().value}")
    if failed:
        sys.exit(1)


# ── key subcommand ─────────────────────────────────────────────────────────────

@main.command()
@click.argument("name")
def key(name: str) -> None:
    """
    Show a key's conventional spelling, signature and accidental preference.

    \b
    Examples:
      leadsheet key "A# major"
      leadsheet key Ebm
    """
    try:
        parsed = Key.parse(name)
    except ValueError as exc:
        click.echo(f"  ERROR: {exc}", err=True)
        sys.exit(1)

    signature = parsed.signature()
    preference = parsed.accidental_preference()
    click.echo(f"Key       : {parsed}")
    click.echo(f"Signature : {signature or '(none)'}")
    click.echo(f"Prefers   : {preference.name.lower() if preference else 'neither'}")
