import logging
from pathlib import Path
from typing import *

import netCDF4

from . import reader
from .attributes import PRIORITY_ATTRS, read_attributes
from .dtype_converter import element_kind
from .errors import NetCDFLibError
from .models import Dimension, FileMetadata, Variable

log = logging.getLogger(__name__)


def extract_dimensions(ds: netCDF4.Dataset) -> List[Dimension]:
    return [
        Dimension(name=dim.name, size=len(dim), is_unlimited=bool(dim.isunlimited()))
        for dim in ds.dimensions.values()
    ]


def extract_variable(var: netCDF4.Variable) -> Variable:
    """
    Normalized description of a single variable.
    The shape is formed from the current length of each attached dimension.
    """
    dims = var.get_dims()
    return Variable(
        name=var.name,
        data_type=element_kind(var.datatype),
        dimensions=[d.name for d in dims],
        shape=[len(d) for d in dims],
        attributes=read_attributes(var, PRIORITY_ATTRS),
    )


def extract_variables(ds: netCDF4.Dataset) -> List[Variable]:
    return [extract_variable(var) for var in ds.variables.values()]


def open_netcdf(path: Union[str, Path]) -> FileMetadata:
    """
    Open a netCDF file and extract its metadata:
      - dimensions
      - variables (type tag, dims, shape, attributes)
      - global attributes
    Coordinates are left unset, see `coordinates.detect_coordinates`.
    """
    with reader.open_dataset(path) as ds:
        try:
            dimensions = extract_dimensions(ds)
            variables = extract_variables(ds)
            global_attrs = read_attributes(ds)
        except RuntimeError as e:
            raise NetCDFLibError(str(e)) from e

    log.debug("Loaded %d dimensions and %d variables from %s",
              len(dimensions), len(variables), path)
    return FileMetadata(
        file_path=str(path),
        dimensions=dimensions,
        variables=variables,
        global_attrs=global_attrs,
        coordinates=None,
    )
