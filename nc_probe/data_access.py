import logging
from pathlib import Path
from typing import *

import numpy as np

from . import reader
from .dtype_converter import (CHAR_KIND, FILL_TOLERANCE, STRING_KIND, count_missing,
                              decode_chars, element_kind, fill_value, is_numeric_kind,
                              to_float64)
from .errors import ConversionError, VariableReadError
from .loader import extract_variable
from .models import Numeric, Text, VariableData, VariableDataResponse
from .subset import validate_subset

log = logging.getLogger(__name__)


def _read_raw(var, extents: Optional[Sequence[slice]] = None) -> np.ndarray:
    key = tuple(extents) if extents else Ellipsis
    try:
        raw = var[key]
    except (IndexError, ValueError, TypeError, RuntimeError, OSError) as e:
        raise VariableReadError(var.name, str(e)) from e
    return np.asarray(np.ma.getdata(raw))


def read_variable(var, extents: Optional[Sequence[slice]] = None,
                  tolerance: float = FILL_TOLERANCE) -> Tuple[VariableData, int]:
    """
    Read the full variable or the given extents and normalize the values.

    - char kind: decoded to strings, no missing values
    - numeric kinds: converted to float64, missing values are NaN or
      values within 'tolerance' of the '_FillValue'
    - variable length strings and user defined kinds raise ConversionError
    """
    kind = element_kind(var.datatype)
    if kind == CHAR_KIND:
        return Text(decode_chars(_read_raw(var, extents))), 0

    if is_numeric_kind(kind):
        fill = fill_value(var)
        values = to_float64(_read_raw(var, extents))
        return Numeric(values), count_missing(values, fill, tolerance)

    if kind == STRING_KIND:
        raise ConversionError(
            f"Variable-length string variable '{var.name}' is not supported yet")
    raise ConversionError(f"Unsupported variable type: {kind}")


def get_variable_data(path: Union[str, Path], var_name: str,
                      tolerance: float = FILL_TOLERANCE) -> VariableDataResponse:
    """Read all values of a variable, the full variable shape is reported."""
    with reader.open_dataset(path) as ds:
        var = reader.find_variable(ds, var_name)
        shape = [len(d) for d in var.get_dims()]
        values, missing_count = read_variable(var, tolerance=tolerance)

    return VariableDataResponse(
        var_name=var_name,
        values=values,
        shape=shape,
        missing_count=missing_count,
    )


def get_variable_subset(path: Union[str, Path], var_name: str,
                        start: Sequence[int], count: Sequence[int],
                        strict_bounds: bool = True,
                        tolerance: float = FILL_TOLERANCE) -> VariableDataResponse:
    """
    Read a rectangular subset given by per dimension 'start' and 'count'.
    The reported shape is the requested 'count'.
    """
    with reader.open_dataset(path) as ds:
        var = reader.find_variable(ds, var_name)
        extents = validate_subset(extract_variable(var), start, count, strict_bounds)
        values, missing_count = read_variable(var, extents, tolerance=tolerance)

    return VariableDataResponse(
        var_name=var_name,
        values=values,
        shape=[int(c) for c in count],
        missing_count=missing_count,
    )
