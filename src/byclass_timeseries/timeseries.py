"""
byclass_timeseries/timeseries.py - By-Class Time Series

Time series of a scalar (mortality rate, fishing rate, ...) as a function of
a class attribute (age or size) and of the simulation time step.

Lifecycle:
1. load()     - read the table, validate it, fit it to the simulation length
2. class_of() - map a continuous class value to a bin index
3. value_at() - resolve grid[step][bin]

Classification:
- value < threshold[0]                      -> -1 (below range)
- threshold[k] <= value < threshold[k + 1]  -> k
- value >= threshold[K - 1]                 -> K - 1 (top bin is open-ended)

Once loaded, the thresholds and the grid are read-only arrays; an instance
is loaded at most once.

Author: Simulation Inputs Project
License: MIT
"""

import operator
import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union
import logging

from .config import SimulationConfig, create_config
from .diagnostics import Diagnostic, DiagnosticLevel, DiagnosticsReporter
from .errors import (
    BelowRangeError,
    SeriesNotLoadedError,
    TableParseError,
    TableValidationError,
)
from .loader import read_table
from .reconcile import reconcile_series
from .separator import guess_separator

logger = logging.getLogger(__name__)


class BelowRangePolicy(Enum):
    """What value_at returns for a class value below the first threshold."""
    RAISE = "raise"
    CLAMP = "clamp"
    SENTINEL = "sentinel"


@dataclass
class LoadResult:
    """
    Outcome of loading a time series.

    On success `classes` and `grid` hold the loaded arrays; on failure
    `error` holds the exception that aborted the load. `warnings` lists the
    non-fatal diagnostics emitted either way.
    """
    filename: str
    success: bool
    classes: Optional[np.ndarray] = None
    grid: Optional[np.ndarray] = None
    error: Optional[BaseException] = None
    warnings: List[Diagnostic] = field(default_factory=list)

    def raise_for_error(self) -> None:
        """Re-raise the error that made the load fail, if any."""
        if self.error is not None:
            raise self.error

    def get_summary(self) -> Dict:
        return {
            'filename': self.filename,
            'success': self.success,
            'n_class': None if self.classes is None else len(self.classes),
            'n_step': None if self.grid is None else len(self.grid),
            'warnings': [w.message for w in self.warnings],
            'error': None if self.error is None else str(self.error),
        }


class _CollectingSink:
    """Forwards warnings to the real sink while keeping a copy for the result."""

    def __init__(self, target):
        self.target = target
        self.collected: List[Diagnostic] = []

    def warning(self, message: str, filename: str = "") -> None:
        self.collected.append(Diagnostic(DiagnosticLevel.WARNING, message, filename))
        self.target.warning(message, filename=filename)


class ByClassTimeSeries:
    """
    Time series indexed by time step and by age/size class.

    Collaborators are injected:
        config: object exposing n_step_year and n_year
        reporter: diagnostics sink with warning() and error()
        resolver: callable returning the field separator for a filename

    Attributes:
        strict_thresholds: Reject tables whose thresholds decrease. When
            False such tables are accepted with a warning and classification
            falls back to an ordered scan (first matching bin wins).
        below_range: Policy applied by value_at for values below the first
            threshold
        sentinel_value: Value returned under BelowRangePolicy.SENTINEL
    """

    def __init__(self, config,
                 reporter=None,
                 resolver: Callable[[str], str] = guess_separator,
                 strict_thresholds: bool = True,
                 below_range: BelowRangePolicy = BelowRangePolicy.RAISE,
                 sentinel_value: float = 0.0):
        self.config = config
        self.reporter = reporter if reporter is not None else DiagnosticsReporter()
        self.resolver = resolver
        self.strict_thresholds = strict_thresholds
        self.below_range = BelowRangePolicy(below_range)
        self.sentinel_value = float(sentinel_value)

        self._classes: Optional[np.ndarray] = None
        self._values: Optional[np.ndarray] = None
        self._monotonic = True
        self._load_result: Optional[LoadResult] = None

    # =========================================================================
    # LOADING
    # =========================================================================

    def load(self, filename: Union[str, Path],
             n_min: Optional[int] = None,
             n_max: Optional[int] = None,
             separator: Optional[str] = None) -> LoadResult:
        """
        Read the table and fit it to the simulation length.

        Without bounds, the simulation's full step range
        (n_step_year x n_year) is used as both minimum and maximum.

        Args:
            filename: Path to the table
            n_min: Minimum number of time steps the table must hold
            n_max: Number of time steps of the resulting grid
            separator: Field separator; resolved from the file when None

        Returns:
            LoadResult. A failed load is reported to the diagnostics sink
            and leaves the instance without a usable grid.
        """
        if self.is_loaded:
            raise RuntimeError(f"Time series already loaded from {self._load_result.filename}")

        name = str(filename)
        n_step_year = self.config.n_step_year
        if n_max is None:
            n_max = n_step_year * self.config.n_year
        if n_min is None:
            n_min = n_max

        sink = _CollectingSink(self.reporter)
        try:
            table = read_table(filename, separator=separator, resolver=self.resolver)
            monotonic = self._check_thresholds(table.classes, name, sink)
            grid = reconcile_series(table.rows, n_min, n_max, n_step_year,
                                    filename=name, reporter=sink)
        except (OSError, TableParseError, TableValidationError) as e:
            self.reporter.error(f"Error reading CSV file {name}", filename=name, exception=e)
            self._load_result = LoadResult(filename=name, success=False, error=e,
                                           warnings=sink.collected)
            return self._load_result

        classes = table.classes
        classes.setflags(write=False)
        grid.setflags(write=False)
        self._classes = classes
        self._values = grid
        self._monotonic = monotonic
        self._load_result = LoadResult(filename=name, success=True, classes=classes,
                                       grid=grid, warnings=sink.collected)

        logger.info(f"Loaded time series {Path(name).name}: "
                    f"{len(classes)} classes x {len(grid)} steps")
        return self._load_result

    def _check_thresholds(self, classes: np.ndarray, filename: str, sink) -> bool:
        """Check that thresholds never decrease; returns whether they are monotonic."""
        decreasing = np.flatnonzero(~(np.diff(classes) >= 0))
        if len(decreasing) == 0:
            return True
        k = int(decreasing[0])
        message = (f"Class thresholds in file {filename} are not in ascending order "
                   f"(threshold {k + 1} = {classes[k + 1]} follows {classes[k]})")
        if self.strict_thresholds:
            raise TableValidationError(message, filename=filename)
        sink.warning(message, filename=filename)
        return False

    # =========================================================================
    # CLASSIFICATION AND LOOKUP
    # =========================================================================

    def class_of(self, value: float) -> int:
        """
        Index of the class bin holding value, or -1 below the first threshold.

        Bins are closed below and open above; the last bin has no upper bound.
        """
        classes = self._require_loaded()[0]
        value = float(value)
        if np.isnan(value):
            raise ValueError("Cannot classify NaN")
        if value < classes[0]:
            return -1
        if self._monotonic:
            return int(np.searchsorted(classes, value, side='right')) - 1
        for k in range(len(classes) - 1):
            if classes[k] <= value < classes[k + 1]:
                return k
        return len(classes) - 1

    def classes_of(self, values) -> np.ndarray:
        """Vectorized class_of."""
        classes = self._require_loaded()[0]
        values = np.asarray(values, dtype=np.float64)
        if np.isnan(values).any():
            raise ValueError("Cannot classify NaN")
        if self._monotonic:
            return np.searchsorted(classes, values, side='right').astype(np.intp) - 1
        flat = np.array([self.class_of(v) for v in values.ravel()], dtype=np.intp)
        return flat.reshape(values.shape)

    def value_at(self, step: int, class_value: float) -> float:
        """
        Value of the series at a time step for a continuous class value.

        Raises:
            IndexError: step outside [0, n_step)
            BelowRangeError: class value below the first threshold under
                BelowRangePolicy.RAISE
        """
        row = self._row(step)
        k = self.class_of(class_value)
        if k < 0:
            if self.below_range is BelowRangePolicy.RAISE:
                raise BelowRangeError(float(class_value), float(self._classes[0]))
            if self.below_range is BelowRangePolicy.CLAMP:
                return float(row[0])
            return self.sentinel_value
        return float(row[k])

    def values_at(self, step: int, class_values) -> np.ndarray:
        """Vectorized value_at for many class values at one time step."""
        row = self._row(step)
        idx = self.classes_of(class_values)
        below = idx < 0
        if below.any():
            if self.below_range is BelowRangePolicy.RAISE:
                first = np.asarray(class_values, dtype=np.float64)[below].flat[0]
                raise BelowRangeError(float(first), float(self._classes[0]))
            if self.below_range is BelowRangePolicy.CLAMP:
                return row[np.maximum(idx, 0)]
            return np.where(below, self.sentinel_value, row[np.maximum(idx, 0)])
        return row[idx]

    def _row(self, step: int) -> np.ndarray:
        values = self._require_loaded()[1]
        step = operator.index(step)
        if not 0 <= step < len(values):
            raise IndexError(f"Time step {step} out of range [0, {len(values)})")
        return values[step]

    def _require_loaded(self):
        if self._values is None:
            if self._load_result is not None and not self._load_result.success:
                raise SeriesNotLoadedError(
                    f"Time series from {self._load_result.filename} failed to load: "
                    f"{self._load_result.error}"
                )
            raise SeriesNotLoadedError("Time series has not been loaded")
        return self._classes, self._values

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    @property
    def is_loaded(self) -> bool:
        return self._values is not None

    @property
    def load_result(self) -> Optional[LoadResult]:
        return self._load_result

    @property
    def n_class(self) -> int:
        return len(self._require_loaded()[0])

    @property
    def n_step(self) -> int:
        return len(self._require_loaded()[1])

    def get_class(self, k: int) -> float:
        """Threshold of class k."""
        classes = self._require_loaded()[0]
        k = operator.index(k)
        if not 0 <= k < len(classes):
            raise IndexError(f"Class index {k} out of range [0, {len(classes)})")
        return float(classes[k])

    @property
    def classes(self) -> np.ndarray:
        """Read-only class thresholds, shape (n_class,)."""
        return self._require_loaded()[0]

    @property
    def values(self) -> np.ndarray:
        """Read-only value grid, shape (n_step, n_class)."""
        return self._require_loaded()[1]

    def to_frame(self) -> pd.DataFrame:
        """Value grid as a DataFrame indexed by step, one column per threshold."""
        classes, values = self._require_loaded()
        return pd.DataFrame(
            values,
            index=pd.RangeIndex(len(values), name='step'),
            columns=pd.Index(classes, name='class'),
        )

    def get_summary(self) -> Dict[str, Any]:
        summary = {
            'loaded': self.is_loaded,
            'below_range': self.below_range.value,
            'strict_thresholds': self.strict_thresholds,
        }
        if self._load_result is not None:
            summary.update(self._load_result.get_summary())
        if self.is_loaded:
            summary['classes'] = self._classes.tolist()
            summary['monotonic'] = self._monotonic
        return summary


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================

def create_time_series(config: Union[SimulationConfig, Dict[str, Any]],
                       **kwargs) -> ByClassTimeSeries:
    """
    Factory function to create an unloaded time series.

    Args:
        config: SimulationConfig (or any object with n_step_year / n_year),
            or a settings dict
        **kwargs: Passed to ByClassTimeSeries

    Returns:
        ByClassTimeSeries ready for load()
    """
    if isinstance(config, dict):
        config = create_config(config)
    return ByClassTimeSeries(config, **kwargs)


def load_time_series(filename: Union[str, Path],
                     config: Union[SimulationConfig, Dict[str, Any]],
                     n_min: Optional[int] = None,
                     n_max: Optional[int] = None,
                     **kwargs) -> ByClassTimeSeries:
    """
    Create and load a time series, raising if the load fails.

    Raises:
        OSError, TableParseError, TableValidationError: as raised by the load
    """
    series = create_time_series(config, **kwargs)
    series.load(filename, n_min, n_max).raise_for_error()
    return series
