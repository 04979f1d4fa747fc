import datetime
import math

import numpy as np
import pytest

from nc_probe import analysis
from nc_probe.errors import InvalidFormat
from nc_probe.models import DataPoint


def test_statistics():
    stats = analysis.statistics([4.0, 1.0, -999.0, 3.0, np.nan, 2.0], fill_value=-999.0)
    assert stats.count == 4
    assert stats.missing == 2
    assert (stats.min, stats.max) == (1.0, 4.0)
    assert stats.mean == 2.5
    assert stats.median == 2.5
    assert stats.std == pytest.approx(math.sqrt(1.25))
    assert (stats.p25, stats.p75) == (2.0, 4.0)


def test_statistics_no_valid_values():
    stats = analysis.statistics([-1.0, np.nan], fill_value=-1.0)
    assert stats.count == 0
    assert stats.missing == 2
    assert math.isnan(stats.mean)
    assert analysis.statistics([]).count == 0


def test_statistics_skips_infinity():
    stats = analysis.statistics([1.0, np.inf, 3.0])
    assert stats.count == 2
    assert stats.missing == 1
    assert stats.max == 3.0


def test_simple_moving_average():
    sma = analysis.simple_moving_average([1, 2, 3, 4, 5], 2)
    assert sma.tolist() == [1.0, 1.5, 2.5, 3.5, 4.5]
    sma = analysis.simple_moving_average([3, 6, 9], 3)
    assert sma.tolist() == [3.0, 4.5, 6.0]
    for window in [0, 4]:
        with pytest.raises(ValueError):
            analysis.simple_moving_average([1, 2, 3], window)


def test_simple_moving_average_windows_independent():
    # a missing value spoils only the windows containing it
    sma = analysis.simple_moving_average([1, np.nan, 3, 4, 5, 6], 2)
    assert sma[0] == 1.0
    assert np.isnan(sma[1]) and np.isnan(sma[2])
    assert sma[3:].tolist() == [3.5, 4.5, 5.5]

    # large values do not swallow the later small ones
    assert analysis.simple_moving_average([1e17, 1, 2, 3], 1).tolist() == [1e17, 1.0, 2.0, 3.0]
    assert analysis.simple_moving_average([1e17, 1, 2, 3], 2)[2:].tolist() == [1.5, 2.5]


def test_exponential_moving_average():
    ema = analysis.exponential_moving_average([1, 2, 3], 0.5)
    assert ema.tolist() == [1.0, 1.5, 2.25]
    assert analysis.exponential_moving_average([5, 1], 1.0).tolist() == [5.0, 1.0]
    assert analysis.exponential_moving_average([], 0.5).size == 0
    with pytest.raises(ValueError):
        analysis.exponential_moving_average([1, 2], 0.0)


def test_linear_trend():
    trend = analysis.linear_trend([0, 1, 2], [1, 3, 5])
    assert trend.slope == pytest.approx(2.0)
    assert trend.intercept == pytest.approx(1.0)
    assert trend.r2 == pytest.approx(1.0)

    flat = analysis.linear_trend([1, 1, 1], [1, 2, 3])
    assert flat.slope == 0.0
    assert flat.intercept == 2.0

    with pytest.raises(ValueError):
        analysis.linear_trend([1, 2], [1])


def test_detect_anomalies():
    data = [1.0] * 9 + [10.0]
    assert analysis.detect_anomalies(data, 2.0).tolist() == [9]
    assert analysis.detect_anomalies(data, 3.5).tolist() == []
    assert analysis.detect_anomalies([2.0, 2.0, 2.0], 1.0).tolist() == []
    assert analysis.detect_anomalies([], 1.0).tolist() == []


def test_iqr_outliers():
    result = analysis.iqr_outliers([1, 2, 3, 4, 100])
    assert (result.q1, result.q3, result.iqr) == (2.0, 4.0, 2.0)
    assert (result.lower_bound, result.upper_bound) == (-1.0, 7.0)
    assert result.outlier_indices.tolist() == [4]
    assert analysis.iqr_outliers([]).outlier_indices.size == 0


def test_aggregate_by_period():
    times = np.array(["2000-01-01T00", "2000-01-01T12", "2000-01-02T06", "2000-02-10T00"],
                     dtype="datetime64[ns]")
    values = [1.0, 3.0, 5.0, 7.0]

    starts, daily = analysis.aggregate_by_period(times, values, "daily", "mean")
    assert starts.tolist() == np.array(
        ["2000-01-01", "2000-01-02", "2000-02-10"], dtype="datetime64[ns]").tolist()
    assert daily.tolist() == [2.0, 5.0, 7.0]

    starts, monthly = analysis.aggregate_by_period(times, values, "monthly", "sum")
    assert starts.tolist() == np.array(["2000-01-01", "2000-02-01"], dtype="datetime64[ns]").tolist()
    assert monthly.tolist() == [9.0, 7.0]

    _, counts = analysis.aggregate_by_period(times, values, "yearly", "count")
    assert counts.tolist() == [4.0]


def test_aggregate_invalid():
    times = np.array(["2000-01-01"], dtype="datetime64[ns]")
    with pytest.raises(ValueError):
        analysis.aggregate_by_period(times, [1.0], "decadal", "mean")
    with pytest.raises(ValueError):
        analysis.aggregate_by_period(times, [1.0], "daily", "mode")


@pytest.fixture
def points():
    return [
        DataPoint("2000-01-01T00:00:00", 1.0),
        DataPoint("2000-01-02T00:00:00", 5.0),
        DataPoint("2000-01-03T00:00:00", float("nan")),
        DataPoint("2000-01-04T00:00:00", 9.0),
        DataPoint("NaT", 3.0),
    ]


def test_filter_by_value_range(points):
    kept = analysis.filter_by_value_range(points, 1.0, 5.0)
    # bounds are inclusive, NaN values are kept
    assert [p.time for p in kept] == [
        "2000-01-01T00:00:00", "2000-01-02T00:00:00", "2000-01-03T00:00:00", "NaT"]
    assert [p.value for p in analysis.filter_by_value_range(points, min=5.0)
            if not math.isnan(p.value)] == [5.0, 9.0]
    assert analysis.filter_by_value_range(points) == points


def test_filter_by_date_range(points):
    kept = analysis.filter_by_date_range(points, "2000-01-02", "2000-01-03")
    assert [p.time for p in kept] == ["2000-01-02T00:00:00", "2000-01-03T00:00:00", "NaT"]

    kept = analysis.filter_by_date_range(points, end=datetime.datetime(2000, 1, 1, 12))
    assert [p.time for p in kept] == ["2000-01-01T00:00:00", "NaT"]

    kept = analysis.filter_by_date_range(points, start="2000-01-03T00:00:00+01:00")
    assert [p.time for p in kept][:2] == ["2000-01-03T00:00:00", "2000-01-04T00:00:00"]

    with pytest.raises(InvalidFormat):
        analysis.filter_by_date_range(points, start="someday")
