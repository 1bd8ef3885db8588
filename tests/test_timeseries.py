"""
tests/test_timeseries.py - By-Class Time Series Tests

Covers the full load -> classify -> lookup path:
1. Classification boundaries (closed below, open above, open-ended top bin)
2. Lookup composition grid[step][class_of(value)]
3. Load outcomes: exact fit, truncation, looping, rejection
4. Failed loads leave no usable grid
5. Threshold monotonicity (strict vs permissive)
6. Below-range policies
"""

import pytest
import numpy as np
import pandas as pd

from byclass_timeseries import (
    BelowRangeError,
    BelowRangePolicy,
    ByClassTimeSeries,
    DiagnosticLevel,
    DiagnosticsReporter,
    SeriesNotLoadedError,
    SimulationConfig,
    TableParseError,
    TableValidationError,
    create_time_series,
    load_time_series,
)
from conftest import make_rows


THRESHOLDS = [2, 5, 9]


@pytest.fixture
def series(write_table, config, reporter):
    """Loaded series over thresholds [2, 5, 9] with grid[3] = [10, 20, 30]."""
    rows = make_rows(6)
    rows[3] = [10.0, 20.0, 30.0]
    ts = ByClassTimeSeries(config, reporter=reporter)
    ts.load(write_table(THRESHOLDS, rows))
    return ts


class TestClassification:
    """Classification boundaries for thresholds [2, 5, 9]."""

    @pytest.mark.parametrize("value,expected", [
        (1.0, -1),
        (2.0, 0),
        (4.999, 0),
        (5.0, 1),
        (8.999, 1),
        (9.0, 2),
        (100.0, 2),
    ])
    def test_class_of(self, series, value, expected):
        assert series.class_of(value) == expected

    def test_class_of_returns_int(self, series):
        assert type(series.class_of(np.float32(6.0))) is int

    def test_classes_of_vectorized(self, series):
        values = [1.0, 2.0, 4.999, 5.0, 8.999, 9.0, 100.0]

        np.testing.assert_array_equal(series.classes_of(values), [-1, 0, 0, 1, 1, 2, 2])

    def test_nan_rejected(self, series):
        with pytest.raises(ValueError):
            series.class_of(float("nan"))
        with pytest.raises(ValueError):
            series.classes_of([1.0, float("nan")])

    def test_equal_thresholds_give_empty_bin(self, write_table, config):
        ts = ByClassTimeSeries(config)
        ts.load(write_table([2, 5, 5, 9], make_rows(6, n_class=4)))

        assert ts.class_of(4.0) == 0
        assert ts.class_of(5.0) == 2
        assert ts.class_of(9.0) == 3

    def test_single_class(self, write_table, config):
        ts = ByClassTimeSeries(config)
        ts.load(write_table([10], make_rows(6, n_class=1)))

        assert ts.class_of(9.0) == -1
        assert ts.class_of(10.0) == 0
        assert ts.class_of(1e6) == 0


class TestLookup:
    """value_at composes classification and grid indexing."""

    def test_value_at(self, series):
        assert series.value_at(3, 6.0) == 20.0
        assert series.value_at(3, 50.0) == 30.0
        assert series.value_at(3, 2.0) == 10.0

    def test_value_at_is_idempotent(self, series):
        first = [series.value_at(3, 6.0), series.class_of(6.0)]
        second = [series.value_at(3, 6.0), series.class_of(6.0)]

        assert first == second
        assert series.values[3].tolist() == [10.0, 20.0, 30.0]

    def test_step_out_of_range(self, series):
        with pytest.raises(IndexError):
            series.value_at(6, 6.0)
        with pytest.raises(IndexError):
            series.value_at(-1, 6.0)

    def test_step_must_be_integer(self, series):
        with pytest.raises(TypeError):
            series.value_at(1.5, 6.0)

    def test_numpy_integer_step(self, series):
        assert series.value_at(np.int64(3), 6.0) == 20.0

    def test_values_at(self, series):
        np.testing.assert_array_equal(series.values_at(3, [2.0, 6.0, 50.0]), [10.0, 20.0, 30.0])


class TestBelowRange:
    """Class values below the first threshold."""

    def test_raise_is_default(self, series):
        with pytest.raises(BelowRangeError) as exc_info:
            series.value_at(3, 1.0)

        assert exc_info.value.value == 1.0
        assert exc_info.value.lowest == 2.0

    def test_below_range_error_is_an_index_error(self, series):
        with pytest.raises(IndexError):
            series.value_at(3, 1.0)

    def test_clamp(self, write_table, config):
        rows = make_rows(6)
        ts = ByClassTimeSeries(config, below_range=BelowRangePolicy.CLAMP)
        ts.load(write_table(THRESHOLDS, rows))

        assert ts.class_of(1.0) == -1
        assert ts.value_at(3, 1.0) == rows[3][0]
        np.testing.assert_array_equal(ts.values_at(3, [1.0, 6.0]), [rows[3][0], rows[3][1]])

    def test_sentinel(self, write_table, config):
        rows = make_rows(6)
        ts = ByClassTimeSeries(config, below_range="sentinel", sentinel_value=-99.0)
        ts.load(write_table(THRESHOLDS, rows))

        assert ts.value_at(3, 1.0) == -99.0
        np.testing.assert_array_equal(ts.values_at(3, [1.0, 6.0]), [-99.0, rows[3][1]])

    def test_values_at_raises(self, series):
        with pytest.raises(BelowRangeError) as exc_info:
            series.values_at(3, [6.0, 0.5, 1.0])

        assert exc_info.value.value == 0.5


class TestLoad:
    """Load outcomes against a 2 steps/year x 3 years simulation."""

    def test_exact_fit(self, write_table, config, reporter):
        rows = make_rows(6)
        ts = ByClassTimeSeries(config, reporter=reporter)

        result = ts.load(write_table(THRESHOLDS, rows))

        assert result.success
        assert result.warnings == []
        assert reporter.records == []
        np.testing.assert_array_equal(ts.values, rows)
        np.testing.assert_array_equal(ts.classes, THRESHOLDS)
        assert ts.is_loaded
        assert ts.n_step == 6
        assert ts.n_class == 3

    def test_truncation(self, write_table, config, reporter):
        rows = make_rows(8)
        ts = ByClassTimeSeries(config, reporter=reporter)

        result = ts.load(write_table(THRESHOLDS, rows))

        assert result.success
        np.testing.assert_array_equal(ts.values, rows[:6])
        assert len(result.warnings) == 1
        assert "ignored" in result.warnings[0].message
        assert len(reporter.warnings) == 1

    def test_cyclic_extension(self, write_table, config, reporter):
        rows = make_rows(4)
        ts = ByClassTimeSeries(config, reporter=reporter)

        result = ts.load(write_table(THRESHOLDS, rows), n_min=2, n_max=6)

        assert result.success
        for t in range(6):
            np.testing.assert_array_equal(ts.values[t], rows[t % 4])
        assert len(result.warnings) == 1
        assert "Looping" in result.warnings[0].message

    def test_explicit_longer_range(self, write_table, config):
        rows = make_rows(2)
        ts = ByClassTimeSeries(config)

        ts.load(write_table(THRESHOLDS, rows), 2, 10)

        assert ts.n_step == 10
        assert ts.value_at(9, 6.0) == rows[1][1]

    def test_default_range_rejects_short_series(self, write_table, config, reporter):
        """The default form uses the full simulation as minimum."""
        ts = ByClassTimeSeries(config, reporter=reporter)

        result = ts.load(write_table(THRESHOLDS, make_rows(4)))

        assert not result.success
        assert isinstance(result.error, TableValidationError)

    def test_partial_year_rejected(self, write_table, config, reporter):
        ts = ByClassTimeSeries(config, reporter=reporter)

        result = ts.load(write_table(THRESHOLDS, make_rows(5)), n_min=2, n_max=6)

        assert not result.success
        assert "multiple" in str(result.error)
        assert not ts.is_loaded

    def test_explicit_separator(self, write_table, config):
        path = write_table(THRESHOLDS, make_rows(6), name="series.txt", sep="\t")
        ts = ByClassTimeSeries(config)

        assert ts.load(path, separator="\t").success

    def test_injected_resolver(self, write_table, config):
        path = write_table(THRESHOLDS, make_rows(6), sep=";")
        seen = []

        def resolver(filename):
            seen.append(filename)
            return ";"

        ts = ByClassTimeSeries(config, resolver=resolver)

        assert ts.load(path).success
        assert seen == [str(path)]

    def test_load_once(self, series, write_table):
        with pytest.raises(RuntimeError):
            series.load(write_table(THRESHOLDS, make_rows(6), name="other.csv"))

    def test_arrays_are_read_only(self, series):
        with pytest.raises(ValueError):
            series.values[0, 0] = 1.0
        with pytest.raises(ValueError):
            series.classes[0] = 1.0

    def test_accessors(self, series):
        assert series.get_class(1) == 5.0
        assert isinstance(series.get_class(0), float)
        with pytest.raises(IndexError):
            series.get_class(3)
        with pytest.raises(IndexError):
            series.get_class(-1)

    def test_to_frame(self, series):
        df = series.to_frame()

        assert isinstance(df, pd.DataFrame)
        assert df.shape == (6, 3)
        assert df.index.name == 'step'
        assert list(df.columns) == [2.0, 5.0, 9.0]
        assert df.loc[3, 5.0] == 20.0


class TestFailedLoad:
    """Fatal conditions are reported and leave no usable grid."""

    def test_missing_file(self, tmp_path, config, reporter):
        ts = ByClassTimeSeries(config, reporter=reporter)
        path = tmp_path / "missing.csv"

        result = ts.load(path)

        assert not result.success
        assert isinstance(result.error, OSError)
        assert len(reporter.errors) == 1
        report = reporter.errors[0]
        assert report.level is DiagnosticLevel.ERROR
        assert report.filename == str(path)
        assert report.exception is result.error
        assert str(path) in report.message

    def test_parse_error(self, write_text, config, reporter):
        ts = ByClassTimeSeries(config, reporter=reporter)

        result = ts.load(write_text("age,1,2\nt0,1,oops\n"))

        assert isinstance(result.error, TableParseError)
        assert len(reporter.errors) == 1

    def test_non_utf8_file(self, tmp_path, config, reporter):
        path = tmp_path / "latin1.csv"
        path.write_bytes("âge,2,5,9\nt0,1,2,3\nt1,1,2,3\n".encode("latin-1"))
        ts = ByClassTimeSeries(config, reporter=reporter)

        result = ts.load(path)

        assert not result.success
        assert isinstance(result.error, TableParseError)
        assert len(reporter.errors) == 1
        assert not ts.is_loaded

    def test_lookups_fail_after_failed_load(self, tmp_path, config):
        ts = ByClassTimeSeries(config)
        ts.load(tmp_path / "missing.csv")

        with pytest.raises(SeriesNotLoadedError, match="failed to load"):
            ts.class_of(3.0)
        with pytest.raises(SeriesNotLoadedError):
            ts.value_at(0, 3.0)
        with pytest.raises(SeriesNotLoadedError):
            ts.values

    def test_lookups_fail_before_load(self, config):
        ts = ByClassTimeSeries(config)

        with pytest.raises(SeriesNotLoadedError, match="not been loaded"):
            ts.n_class

    def test_raise_for_error(self, tmp_path, config):
        result = ByClassTimeSeries(config).load(tmp_path / "missing.csv")

        with pytest.raises(OSError):
            result.raise_for_error()

    def test_summary_of_failed_load(self, tmp_path, config):
        ts = ByClassTimeSeries(config)
        ts.load(tmp_path / "missing.csv")

        summary = ts.get_summary()

        assert summary['loaded'] is False
        assert summary['success'] is False
        assert summary['error']


class TestThresholdOrder:
    """Non-ascending thresholds."""

    def test_strict_rejects(self, write_table, config, reporter):
        ts = ByClassTimeSeries(config, reporter=reporter)

        result = ts.load(write_table([2, 9, 5], make_rows(6)))

        assert not result.success
        assert isinstance(result.error, TableValidationError)
        assert "ascending" in str(result.error)

    def test_permissive_uses_ordered_scan(self, write_table, config, reporter):
        ts = ByClassTimeSeries(config, reporter=reporter, strict_thresholds=False)

        result = ts.load(write_table([2, 9, 5], make_rows(6)))

        assert result.success
        assert len(result.warnings) == 1
        assert "ascending" in result.warnings[0].message
        # 2 <= 4 < 9 matches bin 0 first
        assert ts.class_of(4.0) == 0
        # no bin [k, k+1) holds 9.5: 9 <= 9.5 but not < 5
        assert ts.class_of(9.5) == 2
        assert ts.class_of(1.0) == -1
        np.testing.assert_array_equal(ts.classes_of([1.0, 4.0, 9.5]), [-1, 0, 2])


class TestFactories:

    def test_create_from_dict(self):
        ts = create_time_series({'n_step_year': 12, 'n_year': 2})

        assert isinstance(ts, ByClassTimeSeries)
        assert ts.config.n_step_simu == 24

    def test_create_with_any_config_object(self, write_table):
        class Config:
            n_step_year = 1
            n_year = 2

        ts = create_time_series(Config())

        assert ts.load(write_table(THRESHOLDS, make_rows(2))).success

    def test_load_time_series(self, write_table):
        ts = load_time_series(write_table(THRESHOLDS, make_rows(6)),
                              SimulationConfig(n_step_year=2, n_year=3))

        assert ts.is_loaded

    def test_load_time_series_raises(self, write_table):
        with pytest.raises(TableValidationError):
            load_time_series(write_table(THRESHOLDS, make_rows(3)),
                             {'steps_per_year': 2, 'years': 3}, n_min=2)

    def test_default_reporter(self, config):
        assert isinstance(ByClassTimeSeries(config).reporter, DiagnosticsReporter)
