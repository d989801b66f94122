"""Leadsheet: chord-chart parser, chord theory engine and formatters."""

from loguru import logger

__version__ = "0.1.0"

# Library code stays quiet unless an application opts in (the CLI does with --verbose).
logger.disable("leadsheet")
