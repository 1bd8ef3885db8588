"""
byclass_timeseries/reconcile.py - Temporal Reconciler

Fits the time steps read from a table to the length the simulation needs.

Rules:
- Fewer steps than the minimum, or a partial year: rejected
- More steps than required: the excess years are ignored (warning)
- Fewer steps than required: the series is looped from its start (warning)

Looping is a plain modulo copy: grid[t] = rows[t mod n'] for t >= n'.

Author: Simulation Inputs Project
License: MIT
"""

import numpy as np
import logging

from .errors import TableValidationError

logger = logging.getLogger(__name__)


def reconcile_series(rows: np.ndarray, n_min: int, n_max: int,
                     n_step_year: int, filename: str = "",
                     reporter=None) -> np.ndarray:
    """
    Build the value grid of exactly n_max time steps.

    Args:
        rows: Parsed value rows, shape (n, K)
        n_min: Minimum number of time steps the table must hold
        n_max: Number of time steps the grid must cover
        n_step_year: Number of time steps per year
        filename: Source file name, used in messages
        reporter: Diagnostics sink receiving the warnings (optional)

    Returns:
        New array of shape (n_max, K)

    Raises:
        TableValidationError: Series too short or not a whole number of years
        ValueError: Inconsistent bounds passed by the caller
    """
    if n_step_year <= 0:
        raise ValueError(f"n_step_year must be positive, got {n_step_year}")
    if n_max <= 0:
        raise ValueError(f"n_max must be positive, got {n_max}")
    if n_min > n_max:
        raise ValueError(f"n_min ({n_min}) must not exceed n_max ({n_max})")

    rows = np.asarray(rows, dtype=np.float64)
    n_series = len(rows)

    if n_series == 0 or n_series < n_min:
        raise TableValidationError(
            f"Found {n_series} time steps in the time series of file {filename}. "
            f"It must contain at least {max(n_min, 1)} time steps.",
            filename=filename, found=n_series, expected=max(n_min, 1)
        )
    if n_series % n_step_year != 0:
        raise TableValidationError(
            f"Found {n_series} time steps in the time series of file {filename}. "
            f"It must be a multiple of the number of time steps per year ({n_step_year}).",
            filename=filename, found=n_series, expected=n_step_year
        )

    if n_series > n_max:
        _warn(reporter,
              f"Time series in file {filename} contains {n_series} steps out of "
              f"{n_max}. Excess years are ignored.",
              filename)
    n_effective = min(n_series, n_max)

    grid = np.empty((n_max, rows.shape[1]), dtype=np.float64)
    grid[:n_effective] = rows[:n_effective]

    if n_effective < n_max:
        steps = np.arange(n_effective, n_max)
        grid[n_effective:] = rows[steps % n_effective]
        _warn(reporter,
              f"Time series in file {filename} only contains {n_effective} steps out of "
              f"{n_max}. Looping over it.",
              filename)

    return grid


def _warn(reporter, message: str, filename: str) -> None:
    if reporter is not None:
        reporter.warning(message, filename=filename)
    else:
        logger.warning(message)
