"""
byclass_timeseries/config.py - Simulation Time Configuration

The time series only needs two facts from the simulation: how many steps
make up one year and how many years are simulated. Both are passed in
explicitly rather than read from a process-wide configuration.

Author: Simulation Inputs Project
License: MIT
"""

from typing import Any, Dict
from pydantic import BaseModel, Field
import logging

logger = logging.getLogger(__name__)


class SimulationConfig(BaseModel):
    """Time discretization of the simulation."""
    n_step_year: int = Field(..., gt=0, description="Number of time steps per year")
    n_year: int = Field(..., gt=0, description="Number of simulated years")

    @property
    def n_step_simu(self) -> int:
        """Total number of simulated time steps."""
        return self.n_step_year * self.n_year


def create_config(settings: Dict[str, Any]) -> SimulationConfig:
    """
    Build a SimulationConfig from a plain settings dict.

    Accepts either the field names or the common aliases
    ``steps_per_year`` / ``years``.
    """
    n_step_year = settings.get('n_step_year', settings.get('steps_per_year'))
    n_year = settings.get('n_year', settings.get('years'))
    config = SimulationConfig(n_step_year=n_step_year, n_year=n_year)
    logger.debug(f"Simulation config: {config.n_step_year} steps/year x {config.n_year} years")
    return config
