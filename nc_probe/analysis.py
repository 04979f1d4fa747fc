"""
Analysis of numeric variable values: summary statistics, smoothing,
linear trend, outlier detection and aggregation of time series by period.
"""
from typing import *

import attrs
import numpy as np
import pandas as pd

from .dtype_converter import FILL_TOLERANCE, missing_mask
from .models import DataPoint
from .units import TICK, to_datetime64


@attrs.define
class Statistics:
    count: int
    missing: int
    min: float = np.nan
    max: float = np.nan
    mean: float = np.nan
    median: float = np.nan
    std: float = np.nan
    p25: float = np.nan
    p75: float = np.nan


def statistics(values: np.ndarray, fill_value: Optional[float] = None,
               tolerance: float = FILL_TOLERANCE) -> Statistics:
    """
    Summary statistics over the valid values.
    Missing values (NaN, fill value) and infinities are not counted.
    Percentiles are taken as the sorted value at index floor(n * q).
    """
    values = np.asarray(values, dtype=np.float64).ravel()
    valid = values[~missing_mask(values, fill_value, tolerance) & np.isfinite(values)]
    n = valid.size
    missing = values.size - n
    if n == 0:
        return Statistics(count=0, missing=missing)

    ordered = np.sort(valid)
    return Statistics(
        count=n,
        missing=missing,
        min=float(ordered[0]),
        max=float(ordered[-1]),
        mean=float(np.mean(valid)),
        median=float(np.median(ordered)),
        std=float(np.std(valid)),
        p25=float(ordered[int(n * 0.25)]),
        p75=float(ordered[int(n * 0.75)]),
    )


def simple_moving_average(data: Sequence[float], window: int) -> np.ndarray:
    """
    Moving average over 'window' points. The first window - 1 values
    are averages of the shorter partial windows.
    Every window is averaged on its own, a NaN only spoils the windows containing it.
    """
    data = np.asarray(data, dtype=np.float64)
    if window <= 0 or window > data.size:
        raise ValueError("Window size must be positive and <= data length")
    full = np.lib.stride_tricks.sliding_window_view(data, window).mean(axis=1)
    partial = [data[:i + 1].mean() for i in range(window - 1)]
    return np.concatenate((np.asarray(partial, dtype=np.float64), full))


def exponential_moving_average(data: Sequence[float], alpha: float) -> np.ndarray:
    """EMA_t = alpha * x_t + (1 - alpha) * EMA_{t-1}, starting from the first value."""
    if not 0 < alpha <= 1:
        raise ValueError("Alpha must be in range (0, 1]")
    data = np.asarray(data, dtype=np.float64)
    out = np.empty_like(data)
    if data.size == 0:
        return out
    out[0] = data[0]
    for i in range(1, data.size):
        out[i] = alpha * data[i] + (1 - alpha) * out[i - 1]
    return out


@attrs.define
class Trend:
    slope: float
    intercept: float
    r2: float


def linear_trend(x: Sequence[float], y: Sequence[float]) -> Trend:
    """Least squares line through (x, y) and its coefficient of determination."""
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if x.size != y.size or x.size == 0:
        raise ValueError("X and Y arrays must have the same non-zero length")

    dx = x - x.mean()
    dy = y - y.mean()
    denominator = np.sum(dx * dx)
    slope = 0.0 if denominator == 0 else float(np.sum(dx * dy) / denominator)
    intercept = float(y.mean() - slope * x.mean())

    ss_total = np.sum(dy * dy)
    ss_residual = np.sum((y - (slope * x + intercept)) ** 2)
    r2 = 0.0 if ss_total == 0 else float(1 - ss_residual / ss_total)
    return Trend(slope, intercept, r2)


def detect_anomalies(data: Sequence[float], threshold: float) -> np.ndarray:
    """Indices of values further than 'threshold' standard deviations from the mean."""
    data = np.asarray(data, dtype=np.float64)
    if data.size == 0 or threshold <= 0:
        return np.array([], dtype=np.int64)
    std = np.std(data)
    if std == 0:
        return np.array([], dtype=np.int64)
    z = np.abs((data - np.mean(data)) / std)
    return np.flatnonzero(z > threshold)


@attrs.define
class IQR:
    q1: float
    q3: float
    iqr: float
    lower_bound: float
    upper_bound: float
    outlier_indices: np.ndarray = attrs.field(eq=False)


def iqr_outliers(data: Sequence[float]) -> IQR:
    """Quartiles and the outliers outside the 1.5 * IQR fences."""
    data = np.asarray(data, dtype=np.float64)
    if data.size == 0:
        return IQR(0.0, 0.0, 0.0, 0.0, 0.0, np.array([], dtype=np.int64))
    ordered = np.sort(data)
    q1 = float(ordered[int(data.size * 0.25)])
    q3 = float(ordered[int(data.size * 0.75)])
    iqr = q3 - q1
    lower, upper = q1 - 1.5 * iqr, q3 + 1.5 * iqr
    outliers = np.flatnonzero((data < lower) | (data > upper))
    return IQR(q1, q3, iqr, lower, upper, outliers)


# Weeks start on Monday, i.e. periods end on Sunday.
PERIODS = {
    "hourly": "h",
    "daily": "D",
    "weekly": "W-SUN",
    "monthly": "M",
    "yearly": "Y",
}
AGGREGATIONS = ("mean", "sum", "min", "max", "count", "median")


def aggregate_by_period(times: np.ndarray, values: Sequence[float],
                        period: str, func: str) -> Tuple[np.ndarray, np.ndarray]:
    """
    Group values by the calendar period containing their time and reduce each group.
    Only periods with at least one value are returned, sorted by their start.

    Return: (period start times as datetime64[ns], aggregated values)
    """
    if period not in PERIODS:
        raise ValueError(f"Unknown aggregation period: {period}")
    if func not in AGGREGATIONS:
        raise ValueError(f"Unknown aggregation function: {func}")

    index = pd.DatetimeIndex(np.asarray(times, dtype="datetime64[ns]"))
    series = pd.Series(np.asarray(values, dtype=np.float64), index=index)
    starts = index.to_period(PERIODS[period]).start_time
    grouped = series.groupby(starts).agg(func).sort_index()
    return grouped.index.to_numpy(dtype="datetime64[ns]"), grouped.to_numpy(dtype=np.float64)


def filter_by_value_range(points: Sequence[DataPoint], min: Optional[float] = None,
                          max: Optional[float] = None) -> List[DataPoint]:
    """
    Points with min <= value <= max, a None bound is open.
    NaN values compare false with both bounds and are kept.
    """
    kept = []
    for point in points:
        if min is not None and point.value < min:
            continue
        if max is not None and point.value > max:
            continue
        kept.append(point)
    return kept


def filter_by_date_range(points: Sequence[DataPoint], start=None, end=None) -> List[DataPoint]:
    """
    Points with start <= time <= end, a None bound is open.
    Bounds are datetimes or date text; points without a valid time are kept.
    """
    start = None if start is None else to_datetime64(start)
    end = None if end is None else to_datetime64(end)
    kept = []
    for point in points:
        t = np.datetime64(point.time, TICK)
        if start is not None and t < start:
            continue
        if end is not None and t > end:
            continue
        kept.append(point)
    return kept
