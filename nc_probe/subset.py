from typing import *

from .errors import InvalidSubsetRequest
from .models import Variable


def validate_subset(variable: Variable, start: Sequence[int], count: Sequence[int],
                    strict_bounds: bool = True) -> List[slice]:
    """
    Check a (start, count) request against the variable and return the
    half-open extents [start, start + count) per dimension.

    The lengths of 'start' and 'count' must match the number of dimensions.
    With 'strict_bounds' the extents must also fit into the dimension sizes,
    otherwise the reader decides what an out of range request returns.
    """
    ndims = variable.ndims
    if len(start) != ndims or len(count) != ndims:
        raise InvalidSubsetRequest(
            f"Variable has {ndims} dimensions, but got start={len(start)} and count={len(count)}")

    extents = []
    for dim, size, s, c in zip(variable.dimensions, variable.shape, start, count):
        s, c = int(s), int(c)
        if s < 0 or c < 0:
            raise InvalidSubsetRequest(
                f"Negative start={s} or count={c} for dimension '{dim}'")
        if strict_bounds and s + c > size:
            raise InvalidSubsetRequest(
                f"Extent [{s}, {s + c}) exceeds size {size} of dimension '{dim}'")
        extents.append(slice(s, s + c))
    return extents
