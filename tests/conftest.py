"""
tests/conftest.py - Shared fixtures for the by-class time series tests.
"""

import pytest

from byclass_timeseries import DiagnosticsReporter, SimulationConfig


def format_table(classes, rows, sep=","):
    """Render a by-class table as text, one labelled line per time step."""
    lines = [sep.join(["age"] + [repr(float(c)) for c in classes])]
    for t, row in enumerate(rows):
        lines.append(sep.join([f"t{t}"] + [repr(float(v)) for v in row]))
    return "\n".join(lines) + "\n"


@pytest.fixture
def write_table(tmp_path):
    """Factory writing a table to a temporary file and returning its path."""

    def _write(classes, rows, name="series.csv", sep=","):
        path = tmp_path / name
        path.write_text(format_table(classes, rows, sep), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_text(tmp_path):
    """Factory writing raw text to a temporary file."""

    def _write(text, name="series.csv"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def config():
    """Two steps per year over three years: 6 simulation steps."""
    return SimulationConfig(n_step_year=2, n_year=3)


@pytest.fixture
def reporter():
    return DiagnosticsReporter()


def make_rows(n_step, n_class=3):
    """Distinct, recognisable values: row t, class k -> 100 * t + k."""
    return [[100.0 * t + k for k in range(n_class)] for t in range(n_step)]
