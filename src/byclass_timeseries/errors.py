"""
byclass_timeseries/errors.py - Exception Hierarchy

Central place for the exceptions raised while loading and querying
by-class time series. Data problems derive from ValueError, lookup
problems from IndexError/RuntimeError, so callers that only know the
builtin types still catch them.

Author: Simulation Inputs Project
License: MIT
"""

from typing import Optional


class TimeSeriesError(Exception):
    """Base class for all by-class time series errors."""
    pass


class TableParseError(TimeSeriesError, ValueError):
    """
    Raised when the source table cannot be turned into numbers.

    Attributes:
        filename: Source file name
        row: 0-based table row of the offending cell (header = 0). Blank
            lines are skipped before counting, so this is not the file line
        column: 0-based column of the offending cell
        text: Raw cell text that failed to parse
    """

    def __init__(self, message: str, filename: str = "",
                 row: Optional[int] = None, column: Optional[int] = None,
                 text: Optional[str] = None):
        super().__init__(message)
        self.filename = filename
        self.row = row
        self.column = column
        self.text = text


class TableValidationError(TimeSeriesError, ValueError):
    """
    Raised when a parsed table is structurally unusable.

    Attributes:
        filename: Source file name
        found: Value found in the table (e.g. number of time steps)
        expected: Bound that was violated
    """

    def __init__(self, message: str, filename: str = "",
                 found: Optional[int] = None, expected: Optional[int] = None):
        super().__init__(message)
        self.filename = filename
        self.found = found
        self.expected = expected


class BelowRangeError(TimeSeriesError, IndexError):
    """Raised when a class value falls beneath the first threshold."""

    def __init__(self, value: float, lowest: float):
        super().__init__(
            f"Class value {value} is below the lowest class threshold {lowest}"
        )
        self.value = value
        self.lowest = lowest


class SeriesNotLoadedError(TimeSeriesError, RuntimeError):
    """Raised when a lookup is attempted on an instance without a usable grid."""
    pass
