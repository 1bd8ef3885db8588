"""
byclass_timeseries/loader.py - By-Class Table Loader

Reads a delimited text table whose first row holds the class thresholds
(age or size bins) and whose following rows hold one time step each:

    label, threshold_1, threshold_2, ..., threshold_K
    label, value_1_t0,  value_2_t0,  ..., value_K_t0
    label, value_1_t1,  value_2_t1,  ..., value_K_t1

The first cell of every row is a label and is ignored. Thresholds are kept
in the order given; nothing is sorted here.

Author: Simulation Inputs Project
License: MIT
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Union
import logging

from .errors import TableParseError
from .separator import guess_separator

logger = logging.getLogger(__name__)


@dataclass
class RawTable:
    """
    Parsed table before temporal reconciliation.

    Attributes:
        classes: Class thresholds, shape (K,)
        rows: Values per time step, shape (n, K)
        filename: Name of the source file
        separator: Field separator the file was read with
    """
    classes: np.ndarray
    rows: np.ndarray
    filename: str
    separator: str

    @property
    def n_class(self) -> int:
        return len(self.classes)

    @property
    def n_step(self) -> int:
        return len(self.rows)


def _parse_cell(cell, filename: str, row: int, column: int) -> float:
    """Convert one cell to float, naming the cell on failure."""
    if not isinstance(cell, str) or cell.strip() == '':
        raise TableParseError(
            f"Missing value in file {filename} at row {row}, column {column}",
            filename=filename, row=row, column=column, text=None
        )
    text = cell.strip()
    try:
        return float(text)
    except ValueError:
        raise TableParseError(
            f"Invalid number '{text}' in file {filename} at row {row}, column {column}",
            filename=filename, row=row, column=column, text=text
        ) from None


def _parse_row(cells: List, filename: str, row: int) -> List[float]:
    # column 0 is the label
    return [_parse_cell(cell, filename, row, column)
            for column, cell in enumerate(cells) if column > 0]


def read_table(filename: Union[str, Path],
               separator: Optional[str] = None,
               resolver: Callable[[str], str] = guess_separator) -> RawTable:
    """
    Read a by-class time series table.

    Args:
        filename: Path to the delimited text file
        separator: Field separator; resolved from the file when None
        resolver: Delimiter resolver used when no separator is given

    Returns:
        RawTable with thresholds and the raw value rows

    Raises:
        OSError: The file is missing or unreadable
        TableParseError: The table is empty, malformed, not valid UTF-8,
            or holds a cell that is not a real number. Its row is the index
            among non-blank lines (header = 0), not the file line number
    """
    filepath = Path(filename)
    name = str(filename)
    try:
        if separator is None:
            separator = resolver(name)
        df = pd.read_csv(
            filepath,
            sep=separator,
            header=None,
            dtype=str,
            encoding="utf-8",
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        raise TableParseError(f"File {name} is empty", filename=name) from None
    except pd.errors.ParserError as e:
        raise TableParseError(f"Malformed table in file {name}: {e}", filename=name) from e
    except UnicodeDecodeError as e:
        raise TableParseError(f"File {name} is not valid UTF-8 text", filename=name) from e

    if df.shape[1] < 2:
        raise TableParseError(
            f"File {name} has no class column (separator {separator!r})",
            filename=name, row=0
        )

    lines = df.values.tolist()
    classes = np.array(_parse_row(lines[0], name, 0), dtype=np.float64)
    n_class = len(classes)

    rows = np.empty((len(lines) - 1, n_class), dtype=np.float64)
    for t, cells in enumerate(lines[1:]):
        rows[t] = _parse_row(cells, name, t + 1)

    logger.info(f"Read {filepath.name}: {n_class} classes, {len(rows)} time steps")

    return RawTable(classes=classes, rows=rows, filename=name, separator=separator)
