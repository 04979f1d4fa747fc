import logging
from typing import *

import numpy as np
from netCDF4 import CompoundType, EnumType, VLType

log = logging.getLogger(__name__)

# ---- Element kinds ----

# (numpy kind, itemsize) -> canonical tag of the on-disk element kind
_KIND_TAGS = {
    ("i", 1): "i8",
    ("u", 1): "u8",
    ("i", 2): "i16",
    ("u", 2): "u16",
    ("i", 4): "i32",
    ("u", 4): "u32",
    ("i", 8): "i64",
    ("u", 8): "u64",
    ("f", 4): "f32",
    ("f", 8): "f64",
    ("S", 1): "char",
}
NUMERIC_KINDS = frozenset(["i8", "u8", "i16", "u16", "i32", "u32", "i64", "u64", "f32", "f64"])
CHAR_KIND = "char"
STRING_KIND = "string"

FILL_VALUE_ATTR = "_FillValue"
FILL_TOLERANCE = 1e-10


def dtype_kind(dtype) -> str:
    """Tag of a plain numpy dtype, 'unknown' for kinds the files can not hold."""
    dt = np.dtype(dtype)
    if dt.kind == "V":
        return "opaque"
    return _KIND_TAGS.get((dt.kind, dt.itemsize), "unknown")


def element_kind(datatype) -> str:
    """
    Return the canonical tag for the datatype of a netCDF variable or attribute.

    Numeric kinds: i8, u8, i16, u16, i32, u32, i64, u64, f32, f64.
    Text kinds: 'char' (fixed, one byte per element), 'string' (variable length).
    User defined kinds: 'compound', 'vlen', 'enum', 'opaque'; 'unknown' otherwise.
    """
    if datatype is str:
        return STRING_KIND
    if isinstance(datatype, CompoundType):
        return "compound"
    if isinstance(datatype, VLType):
        return STRING_KIND if datatype.dtype is str else "vlen"
    if isinstance(datatype, EnumType):
        return "enum"
    try:
        return dtype_kind(datatype)
    except TypeError:
        return "unknown"


def is_numeric_kind(kind: str) -> bool:
    return kind in NUMERIC_KINDS


# ---- Numeric coercion ----

def to_float64(raw: Any) -> np.ndarray:
    """
    Flat float64 copy of a raw typed array of any supported numeric kind.
    Integers wider than the float mantissa lose precision as in any float cast.
    """
    arr = np.asarray(np.ma.getdata(raw))
    if arr.dtype.kind not in "iuf":
        raise TypeError(f"Not a numeric array: {arr.dtype}")
    return arr.astype(np.float64).ravel()


def numeric_scalar(value: Any) -> Optional[float]:
    """Float value of a single element of a supported numeric kind, None for anything else."""
    if isinstance(value, (str, bytes)):
        return None
    arr = np.asarray(value)
    if arr.size != 1:
        return None
    if not is_numeric_kind(_KIND_TAGS.get((arr.dtype.kind, arr.dtype.itemsize))):
        return None
    return float(arr.reshape(()))


def fill_value(var) -> Optional[float]:
    """The '_FillValue' of the variable as float, None if missing or not numeric."""
    if FILL_VALUE_ATTR not in var.ncattrs():
        return None
    try:
        value = var.getncattr(FILL_VALUE_ATTR)
    except (AttributeError, RuntimeError, UnicodeDecodeError) as e:
        log.debug("Undecodable %s of '%s': %s", FILL_VALUE_ATTR, var.name, e)
        return None
    return numeric_scalar(value)


def missing_mask(values: np.ndarray, fill: Optional[float] = None,
                 tolerance: float = FILL_TOLERANCE) -> np.ndarray:
    """True for NaN elements and for elements closer than 'tolerance' to the fill value."""
    values = np.asarray(values, dtype=np.float64)
    mask = np.isnan(values)
    if fill is not None:
        with np.errstate(invalid="ignore"):
            mask |= np.abs(values - fill) < tolerance
    return mask


def count_missing(values: np.ndarray, fill: Optional[float] = None,
                  tolerance: float = FILL_TOLERANCE) -> int:
    return int(np.count_nonzero(missing_mask(values, fill, tolerance)))


# ---- Character arrays ----

def _decode_fixed(chunk: bytes) -> str:
    return chunk.rstrip(b"\x00").decode("utf-8", errors="replace")


def decode_chars(raw: Any) -> List[str]:
    """
    Decode a raw character array (one byte per element) into strings.

    - 0 dims: one string made of the single character
    - 1 dim: one string, trailing NUL bytes trimmed
    - more dims: the last dimension is the fixed byte width of each string;
      every row is decoded separately and trimmed of trailing NUL bytes.
    Invalid UTF-8 sequences are replaced.
    """
    arr = np.asarray(np.ma.getdata(raw))
    buf = arr.tobytes()
    if arr.ndim == 0:
        return [buf.decode("utf-8", errors="replace")]
    if arr.ndim == 1:
        return [_decode_fixed(buf)]

    width = arr.shape[-1]
    if width == 0:
        return [""] * int(np.prod(arr.shape[:-1]))
    return [_decode_fixed(buf[i:i + width]) for i in range(0, len(buf), width)]
