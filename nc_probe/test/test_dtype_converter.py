# nc_probe/test/test_dtype_converter.py
import netCDF4
import numpy as np
import pytest

import nc_probe.dtype_converter as dc


# --- element kinds ------------------------------------------------------------
@pytest.mark.parametrize("dtype, tag", [
    ("i1", "i8"), ("u1", "u8"), ("i2", "i16"), ("u2", "u16"),
    ("i4", "i32"), ("u4", "u32"), ("i8", "i64"), ("u8", "u64"),
    ("f4", "f32"), ("f8", "f64"), ("S1", "char"),
    ("V4", "opaque"), ("c16", "unknown"), ("bool", "unknown"),
])
def test_dtype_kind(dtype, tag):
    assert dc.dtype_kind(dtype) == tag
    assert dc.element_kind(np.dtype(dtype)) == tag
    assert dc.is_numeric_kind(tag) == (tag in dc.NUMERIC_KINDS)


def test_element_kind_user_types(tmp_path):
    with netCDF4.Dataset(str(tmp_path / "types.nc"), "w", format="NETCDF4") as ds:
        ds.createDimension("n", 2)
        pair_t = ds.createCompoundType(np.dtype([("a", "f4"), ("b", "i4")]), "pair_t")
        vl_t = ds.createVLType(np.int32, "vl_t")
        enum_t = ds.createEnumType(np.uint8, "cloud_t", {"clear": 0, "cloudy": 1})

        assert dc.element_kind(str) == "string"
        assert dc.element_kind(pair_t) == "compound"
        assert dc.element_kind(vl_t) == "vlen"
        assert dc.element_kind(enum_t) == "enum"
        assert dc.element_kind(ds.createVariable("label", str, ("n",)).datatype) == "string"
        assert dc.element_kind("not a type") == "unknown"


# --- numeric coercion ---------------------------------------------------------
@pytest.mark.parametrize("dtype", ["i1", "u1", "i2", "u2", "i4", "u4", "i8", "u8", "f4", "f8"])
def test_to_float64(dtype):
    raw = np.array([[1, 2], [3, 4]], dtype=dtype)
    out = dc.to_float64(raw)
    assert out.dtype == np.float64
    assert out.shape == (4,)
    assert out.tolist() == [1.0, 2.0, 3.0, 4.0]


def test_to_float64_rejects_text():
    with pytest.raises(TypeError):
        dc.to_float64(np.array([b"a", b"b"], dtype="S1"))


def test_numeric_scalar():
    assert dc.numeric_scalar(np.float32(-999.0)) == -999.0
    assert dc.numeric_scalar(np.array([7], dtype="i2")) == 7.0
    assert dc.numeric_scalar("-999") is None
    assert dc.numeric_scalar(np.array([1.0, 2.0])) is None


# --- missing values -----------------------------------------------------------
def test_missing_within_tolerance():
    fill = -999.0
    values = np.array([1.0, fill, fill + 1e-11, fill + 1e-9, np.nan])
    mask = dc.missing_mask(values, fill)
    assert mask.tolist() == [False, True, True, False, True]
    assert dc.count_missing(values, fill) == 3
    # custom tolerance
    assert dc.count_missing(values, fill, tolerance=1e-8) == 4


def test_missing_without_fill():
    values = np.array([1.0, -999.0, np.nan])
    assert dc.count_missing(values) == 1
    assert dc.count_missing(np.full(5, np.nan)) == 5
    assert dc.count_missing(np.array([], dtype=np.float64), 0.0) == 0


def test_missing_nan_fill():
    # A NaN fill value matches only the NaN elements.
    values = np.array([np.nan, 1.0])
    assert dc.count_missing(values, float("nan")) == 1


# --- character arrays ---------------------------------------------------------
def test_decode_chars_rows():
    raw = netCDF4.stringtochar(np.array(["abc", "wxyz"], dtype="S5"))
    assert raw.shape == (2, 5)
    assert dc.decode_chars(raw) == ["abc", "wxyz"]

    raw = netCDF4.stringtochar(np.array(["ab", "cd", "e"], dtype="S2"))
    assert dc.decode_chars(raw) == ["ab", "cd", "e"]

    raw = np.frombuffer(b"abc\x00wxyz", dtype="S1").reshape(2, 4)
    assert dc.decode_chars(raw) == ["abc", "wxyz"]


def test_decode_chars_higher_dims():
    raw = netCDF4.stringtochar(np.array([["a", "bb"], ["ccc", ""]], dtype="S3"))
    assert raw.shape == (2, 2, 3)
    assert dc.decode_chars(raw) == ["a", "bb", "ccc", ""]


def test_decode_chars_single_and_scalar():
    assert dc.decode_chars(np.frombuffer(b"hi\x00\x00", dtype="S1")) == ["hi"]
    assert dc.decode_chars(np.array(b"x", dtype="S1")) == ["x"]


def test_decode_chars_zero_width():
    assert dc.decode_chars(np.zeros((3, 0), dtype="S1")) == ["", "", ""]


def test_decode_chars_invalid_utf8():
    raw = np.frombuffer(b"a\xffb", dtype="S1").reshape(1, 3)
    assert dc.decode_chars(raw) == ["a\ufffdb"]
