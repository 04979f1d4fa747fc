"""
Access to the netCDF files through the netCDF4 library.

The dataset is opened read-only for the duration of a single request and
closed on exit. Automatic masking, scaling and char-to-string conversion are
switched off so the raw on-disk typed arrays reach the caller.
"""
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import *

import netCDF4

from .errors import FileOpenError, VariableNotFound

log = logging.getLogger(__name__)


@contextmanager
def open_dataset(path: Union[str, Path]) -> Iterator[netCDF4.Dataset]:
    if not Path(path).exists():
        raise FileOpenError(f"File not found: {path}")
    try:
        ds = netCDF4.Dataset(str(path), mode="r")
    except (OSError, RuntimeError, ValueError) as e:
        raise FileOpenError(f"Failed to open {path}: {e}") from e

    try:
        ds.set_auto_maskandscale(False)
        ds.set_auto_chartostring(False)
        yield ds
    finally:
        ds.close()
        log.debug("Closed %s", path)


def find_variable(ds: netCDF4.Dataset, name: str) -> netCDF4.Variable:
    var = ds.variables.get(name, None)
    if var is None:
        raise VariableNotFound(name)
    return var
