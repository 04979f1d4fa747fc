"""
Canonical string form of attribute values.

Scalars become their decimal text, strings stay verbatim and arrays become
a bracketed list of their elements.
"""
import json
import logging
from typing import *

import numpy as np

log = logging.getLogger(__name__)

PRIORITY_ATTRS = ["units", "long_name", "standard_name",
                  "_FillValue", "missing_value", "valid_min", "valid_max"]


def _element_str(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _list_str(values: Iterable) -> str:
    items = []
    for v in values:
        if isinstance(v, (str, bytes)):
            items.append(json.dumps(_element_str(v), ensure_ascii=False))
        else:
            items.append(_element_str(v))
    return "[" + ", ".join(items) + "]"


def attribute_to_string(value: Any) -> str:
    if isinstance(value, (str, bytes)):
        return _element_str(value)
    if isinstance(value, (list, tuple)):
        return _list_str(value)

    arr = np.asarray(value)
    if arr.ndim == 0:
        return _element_str(arr[()])
    return _list_str(arr.ravel())


def read_attributes(obj, priority: Sequence[str] = ()) -> Dict[str, str]:
    """
    Normalized attribute map of a netCDF variable or dataset.

    Attributes listed in 'priority' are inserted first, the remaining ones
    follow in the order reported by the reader. Attributes the reader can not
    decode are left out.
    """
    names = list(obj.ncattrs())
    attributes = {}

    def insert(name):
        try:
            value = obj.getncattr(name)
        except (AttributeError, KeyError, RuntimeError, UnicodeDecodeError, ValueError) as e:
            log.debug("Skipping undecodable attribute '%s': %s", name, e)
            return
        attributes[name] = attribute_to_string(value)

    for name in priority:
        if name in names:
            insert(name)
    for name in names:
        if name not in attributes:
            insert(name)
    return attributes
