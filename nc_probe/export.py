"""
CSV rendering of variable values and time series.

Settings: field delimiter (',', ';' or tab), decimal precision of numbers,
placeholder for missing (non-finite) numbers and optional '#' comment lines
describing the variable.
"""
import csv
import io
import math
from typing import *

import attrs
import numpy as np

from .models import DataPoint, Numeric, Variable, VariableDataResponse

DELIMITERS = {"comma": ",", "semicolon": ";", "tab": "\t"}


@attrs.define
class CsvSettings:
    delimiter: str = attrs.field(default=",", validator=attrs.validators.in_(list(DELIMITERS.values())))
    precision: int = attrs.field(default=4, converter=int, validator=attrs.validators.ge(0))
    missing: str = "NA"
    comments: bool = True

    def format_number(self, value: float) -> str:
        if not math.isfinite(value):
            return self.missing
        return f"{value:.{self.precision}f}"


def _writer(buffer: io.StringIO, settings: CsvSettings):
    return csv.writer(buffer, delimiter=settings.delimiter, lineterminator="\n")


def _comment_lines(items: Iterable[Tuple[str, Any]]) -> str:
    lines = [f"# {label}: {value}" for label, value in items if value not in (None, "")]
    return "\n".join(lines) + "\n\n"


def _element_indices(response: VariableDataResponse, ndims: int,
                     start: Optional[Sequence[int]]) -> Optional[np.ndarray]:
    """Per element dimension indices, None if the values do not fill the reported shape."""
    n = len(response.values)
    if ndims == 0 or n == 0 or n != int(np.prod(response.shape)):
        return None
    indices = np.stack(np.unravel_index(np.arange(n), response.shape), axis=1)
    if start is not None:
        indices = indices + np.asarray(start, dtype=np.int64)
    return indices


def variable_csv(response: VariableDataResponse, variable: Variable,
                 settings: CsvSettings = None, start: Sequence[int] = None) -> str:
    """
    One row per element: flat index, index along every dimension, value.
    For a subset read pass its 'start' to get the indices within the whole variable.
    """
    settings = settings or CsvSettings()
    buffer = io.StringIO()
    if settings.comments:
        buffer.write(_comment_lines([
            ("Variable", variable.name),
            ("Data Type", variable.data_type),
            ("Dimensions", " x ".join(variable.dimensions)),
            ("Shape", " x ".join(str(s) for s in response.shape)),
            ("Units", variable.attributes.get("units", None)),
            ("Long Name", variable.attributes.get("long_name", None)),
            ("Total Data Points", len(response.values)),
            ("Missing Values", response.missing_count),
        ]))

    indices = _element_indices(response, variable.ndims, start)
    dims = variable.dimensions if indices is not None else []
    if isinstance(response.values, Numeric):
        cells = [settings.format_number(v) for v in response.values.data.tolist()]
    else:
        cells = list(response.values.data)

    writer = _writer(buffer, settings)
    writer.writerow(["index", *dims, "value"])
    for i, cell in enumerate(cells):
        dim_idx = indices[i].tolist() if indices is not None else []
        writer.writerow([i, *dim_idx, cell])
    return buffer.getvalue()


def time_series_csv(points: Sequence[DataPoint], variable: Variable,
                    settings: CsvSettings = None, filters: str = None) -> str:
    """Rows of ISO time and value, 'filters' describes the filters applied to the points."""
    settings = settings or CsvSettings()
    buffer = io.StringIO()
    if settings.comments:
        buffer.write(_comment_lines([
            ("Variable", variable.name),
            ("Units", variable.attributes.get("units", None)),
            ("Long Name", variable.attributes.get("long_name", None)),
            ("Filters Applied", filters),
            ("Total Data Points", len(points)),
        ]))

    writer = _writer(buffer, settings)
    writer.writerow(["time", "value"])
    for point in points:
        writer.writerow([point.time, settings.format_number(point.value)])
    return buffer.getvalue()
