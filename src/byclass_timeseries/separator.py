"""
byclass_timeseries/separator.py - Field Separator Resolution

Input tables are written by hand or exported from spreadsheets, so the
field separator varies between files. The separator is guessed from the
first non-blank line of the file.

Author: Simulation Inputs Project
License: MIT
"""

from enum import Enum
from pathlib import Path
from typing import Optional, Union
import logging

logger = logging.getLogger(__name__)


class Separator(Enum):
    """Supported field separators, in tie-break order."""
    COMMA = ","
    SEMICOLON = ";"
    TAB = "\t"
    EQUALS = "="
    COLON = ":"

    @classmethod
    def guess(cls, line: str, fallback: Optional["Separator"] = None) -> "Separator":
        """
        Guess the separator used in a single line of text.

        The separator occurring most often wins; ties go to the one declared
        first. Returns the fallback (COMMA by default) when none occurs.
        """
        fallback = fallback or cls.COMMA
        best = fallback
        best_count = 0
        for separator in cls:
            count = line.count(separator.value)
            if count > best_count:
                best, best_count = separator, count
        return best


def guess_separator(filename: Union[str, Path],
                    fallback: Separator = Separator.COMMA) -> str:
    """
    Resolve the field separator of a delimited text file.

    Args:
        filename: Path to the table
        fallback: Separator used for empty files or single-column lines

    Returns:
        The separator character
    """
    filepath = Path(filename)
    with open(filepath, "r", encoding="utf-8") as f:
        for line in f:
            if line.strip():
                separator = Separator.guess(line.strip(), fallback)
                logger.debug(f"Separator for {filepath.name}: {separator.name}")
                return separator.value
    return fallback.value
