"""
Records passed across the nc_probe boundary.

All records are created per request. `convert_value` turns any of them
into plain dicts and lists, `serialize` renders them as JSON or YAML.
"""
import json
import math
from typing import *

import attrs
import numpy as np
import yaml


@attrs.define
class Dimension:
    name: str
    size: int
    is_unlimited: bool = False


@attrs.define
class Variable:
    name: str
    data_type: str
    dimensions: List[str] = attrs.field(factory=list)
    shape: List[int] = attrs.field(factory=list)
    attributes: Dict[str, str] = attrs.field(factory=dict)

    @property
    def ndims(self) -> int:
        return len(self.dimensions)


@attrs.define
class CoordinateInfo:
    time_var: Optional[str] = None
    lat_var: Optional[str] = None
    lon_var: Optional[str] = None
    time_units: Optional[str] = None


@attrs.define
class FileMetadata:
    file_path: str
    dimensions: List[Dimension] = attrs.field(factory=list)
    variables: List[Variable] = attrs.field(factory=list)
    global_attrs: Dict[str, str] = attrs.field(factory=dict)
    coordinates: Optional[CoordinateInfo] = None

    def variable(self, name: str) -> Optional[Variable]:
        for var in self.variables:
            if var.name == name:
                return var
        return None


def _finite_or_none(values: Iterable[float]) -> List[Optional[float]]:
    # Non-finite numbers have no JSON form, they travel as null.
    return [v if math.isfinite(v) else None for v in values]


@attrs.define(eq=False)
class Numeric:
    """Numeric variable values, always float64."""
    data: np.ndarray = attrs.field(converter=lambda a: np.asarray(a, dtype=np.float64))
    type: ClassVar[str] = "Numeric"

    def __eq__(self, other):
        if not isinstance(other, Numeric):
            return NotImplemented
        return np.array_equal(self.data, other.data, equal_nan=True)

    def __len__(self):
        return self.data.size

    def asdict(self, value_serializer, filter):
        return {"type": self.type, "data": _finite_or_none(self.data.ravel().tolist())}


@attrs.define
class Text:
    data: List[str] = attrs.field(factory=list)
    type: ClassVar[str] = "Text"

    def __len__(self):
        return len(self.data)

    def asdict(self, value_serializer, filter):
        return {"type": self.type, "data": list(self.data)}


VariableData = Union[Numeric, Text]


@attrs.define
class VariableDataResponse:
    var_name: str
    values: VariableData
    shape: List[int]
    missing_count: int = 0


@attrs.define
class DataPoint:
    time: str
    value: float


def convert_value(obj: Any) -> Any:
    """
    Recursively convert an object for JSON/YAML serialization.

    - Objects with an 'asdict' method use it (tagged union of values).
    - attrs instances are converted field by field.
    - Dicts, lists and tuples are processed recursively.
    - numpy arrays and scalars are converted to Python values.
    - Other values are returned as they are.
    """
    if hasattr(obj, "asdict"):
        return obj.asdict(
            value_serializer=lambda inst, field, value: convert_value(value),
            filter=lambda attribute, value: True)
    elif attrs.has(type(obj)):
        # Field by field, so nested records keep their own 'asdict'.
        return {a.name: convert_value(getattr(obj, a.name)) for a in attrs.fields(type(obj))}
    elif isinstance(obj, dict):
        return {k: convert_value(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [convert_value(item) for item in obj]
    elif isinstance(obj, float):
        return obj if math.isfinite(obj) else None
    elif hasattr(obj, "dtype"):
        return convert_value(obj.tolist())
    else:
        return obj


def serialize(obj: Any, fmt: str = "json", indent: int = 2) -> str:
    """Render a record (or a list of records) as JSON or YAML text."""
    content = convert_value(obj)
    if fmt == "json":
        return json.dumps(content, indent=indent)
    elif fmt == "yaml":
        return yaml.safe_dump(content, sort_keys=False)
    raise ValueError(f"Unsupported output format: {fmt}")
