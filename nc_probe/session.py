"""
Boundary operations requested by a presentation layer.

Every operation opens the file itself and closes it before returning.
The only state a Session may keep is the optional metadata cache, keyed by
the resolved path and the modification time of the file.
"""
import copy
import logging
from pathlib import Path
from typing import *

import attrs

from . import data_access, loader, reader, units
from .analysis import Statistics, statistics
from .config import Options
from .coordinates import detect_coordinates
from .dtype_converter import fill_value
from .errors import ConversionError, DimensionNotFound, InvalidFormat, VariableNotFound
from .logger import get_logger
from .models import DataPoint, FileMetadata, Numeric, VariableDataResponse
from .tools import report

log = logging.getLogger(__name__)

CacheKey = Tuple[str, int]


@attrs.define
class MetadataCache:
    _entries: Dict[CacheKey, FileMetadata] = attrs.field(factory=dict)

    @staticmethod
    def key(path: Union[str, Path]) -> CacheKey:
        resolved = Path(path).resolve()
        return str(resolved), resolved.stat().st_mtime_ns

    def get(self, key: CacheKey) -> Optional[FileMetadata]:
        metadata = self._entries.get(key, None)
        return None if metadata is None else copy.deepcopy(metadata)

    def put(self, key: CacheKey, metadata: FileMetadata) -> None:
        # Entries of older versions of the same file are dropped.
        self.invalidate(key[0])
        self._entries[key] = copy.deepcopy(metadata)

    def invalidate(self, path: Union[str, Path]) -> int:
        resolved = str(Path(path).resolve())
        stale = [k for k in self._entries if k[0] == resolved]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def __len__(self):
        return len(self._entries)


class Session:
    """Entry point for the boundary operations."""

    def __init__(self, options: Options = None):
        self.options = options if options is not None else Options()
        self.cache = MetadataCache() if self.options.cache_metadata else None

    def _load_metadata(self, path) -> FileMetadata:
        metadata = loader.open_netcdf(path)
        metadata.coordinates = detect_coordinates(metadata)
        return metadata

    @report
    def open_file(self, path: Union[str, Path]) -> FileMetadata:
        """Metadata of the file with detected coordinates."""
        if self.cache is None or not Path(path).exists():
            return self._load_metadata(path)

        key = self.cache.key(path)
        metadata = self.cache.get(key)
        if metadata is None:
            metadata = self._load_metadata(path)
            self.cache.put(key, metadata)
        else:
            get_logger(path, __name__).debug("Metadata cache hit.")
        return metadata

    @report
    def get_variable_data(self, path: Union[str, Path], var_name: str) -> VariableDataResponse:
        return data_access.get_variable_data(
            path, var_name, tolerance=self.options.fill_tolerance)

    @report
    def get_variable_subset(self, path: Union[str, Path], var_name: str,
                            start: Sequence[int], count: Sequence[int]) -> VariableDataResponse:
        return data_access.get_variable_subset(
            path, var_name, start, count,
            strict_bounds=self.options.strict_bounds,
            tolerance=self.options.fill_tolerance)

    def close_file(self, path: Union[str, Path]) -> None:
        """Release the path; drops its cached metadata if any. Never fails."""
        if self.cache is not None:
            n = self.cache.invalidate(path)
            get_logger(path, __name__).debug(f"Released {n} cached metadata entries.")

    @report
    def get_time_series(self, path: Union[str, Path], var_name: str,
                        select: Dict[str, int] = None) -> List[DataPoint]:
        """
        Values of the variable along the detected time coordinate.

        The variable must span the dimension of the time variable. Other
        dimensions are fixed to the index given in 'select' (0 by default).
        """
        select = select or {}
        metadata = self.open_file(path)
        variable = metadata.variable(var_name)
        if variable is None:
            raise VariableNotFound(var_name)

        coords = metadata.coordinates
        if coords.time_var is None:
            raise InvalidFormat(f"No time coordinate detected in {path}")
        if coords.time_units is None:
            raise InvalidFormat(f"Time variable '{coords.time_var}' has no units")
        time_var = metadata.variable(coords.time_var)
        if time_var.ndims == 0:
            raise DimensionNotFound(coords.time_var)
        time_dim = time_var.dimensions[0]
        if time_dim not in variable.dimensions:
            raise DimensionNotFound(time_dim)

        start, count = [], []
        for dim, size in zip(variable.dimensions, variable.shape):
            if dim == time_dim:
                start.append(0)
                count.append(size)
            else:
                start.append(int(select.get(dim, 0)))
                count.append(1)

        response = self.get_variable_subset(path, var_name, start, count)
        if not isinstance(response.values, Numeric):
            raise ConversionError(f"Time series of text variable '{var_name}'")
        time_values = self.get_variable_subset(
            path, coords.time_var,
            [0] * time_var.ndims,
            [time_var.shape[0]] + [1] * (time_var.ndims - 1))
        if not isinstance(time_values.values, Numeric):
            raise ConversionError(f"Time variable '{coords.time_var}' is not numeric")

        times = units.to_iso(units.decode_times(time_values.values.data, coords.time_units))
        return [DataPoint(time=t, value=float(v))
                for t, v in zip(times, response.values.data)]

    @report
    def variable_stats(self, path: Union[str, Path], var_name: str) -> Statistics:
        """Summary statistics of a numeric variable, missing values excluded."""
        with reader.open_dataset(path) as ds:
            var = reader.find_variable(ds, var_name)
            fill = fill_value(var)
            values, _ = data_access.read_variable(var, tolerance=self.options.fill_tolerance)
        if not isinstance(values, Numeric):
            raise ConversionError("Statistics are only available for numeric variables")
        return statistics(values.data, fill, self.options.fill_tolerance)
