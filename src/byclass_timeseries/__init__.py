"""
By-Class Time Series

Loads tabular time series keyed by an age/size class axis and serves
point lookups of a rate given a simulation time step and a continuous
class value, without re-reading the input file at each step.

Components:
- Table Loader: delimited text -> class thresholds + value rows
- Temporal Reconciler: truncation / cyclic extension to the simulation length
- Class Indexer: continuous value -> class bin -> grid value

Author: Simulation Inputs Project
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Simulation Inputs Project"

from .timeseries import (
    ByClassTimeSeries,
    BelowRangePolicy,
    LoadResult,
    create_time_series,
    load_time_series,
)

from .config import (
    SimulationConfig,
    create_config,
)

from .diagnostics import (
    Diagnostic,
    DiagnosticLevel,
    DiagnosticsReporter,
)

from .errors import (
    TimeSeriesError,
    TableParseError,
    TableValidationError,
    BelowRangeError,
    SeriesNotLoadedError,
)

from .loader import RawTable, read_table
from .reconcile import reconcile_series
from .separator import Separator, guess_separator

__all__ = [
    # Time series
    "ByClassTimeSeries",
    "BelowRangePolicy",
    "LoadResult",
    "create_time_series",
    "load_time_series",

    # Configuration
    "SimulationConfig",
    "create_config",

    # Diagnostics
    "Diagnostic",
    "DiagnosticLevel",
    "DiagnosticsReporter",

    # Errors
    "TimeSeriesError",
    "TableParseError",
    "TableValidationError",
    "BelowRangeError",
    "SeriesNotLoadedError",

    # Building blocks
    "RawTable",
    "read_table",
    "reconcile_series",
    "Separator",
    "guess_separator",
]
