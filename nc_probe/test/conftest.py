import netCDF4
import numpy as np
import pytest


def write_sample(path):
    """
    Small CF-like file:
    time(time) unlimited, lat(lat), lon(lon), tas(time, lat, lon) with _FillValue,
    counts(lat) without _FillValue, station_name(station, strlen) chars,
    label(station) variable length strings, crs scalar.
    """
    with netCDF4.Dataset(str(path), "w", format="NETCDF4") as ds:
        ds.title = "Sample dataset"
        ds.Conventions = "CF-1.8"
        ds.version = np.int32(3)

        ds.createDimension("time", None)
        ds.createDimension("lat", 3)
        ds.createDimension("lon", 4)
        ds.createDimension("station", 2)
        ds.createDimension("strlen", 5)

        time = ds.createVariable("time", "f8", ("time",))
        time.standard_name = "time"
        time.units = "days since 2000-01-01"
        time[:] = [0.0, 1.0]

        lat = ds.createVariable("lat", "f4", ("lat",))
        lat.units = "degrees_north"
        lat[:] = [-10.0, 0.0, 10.0]

        lon = ds.createVariable("lon", "f4", ("lon",))
        lon.units = "degrees_east"
        lon[:] = [0.0, 90.0, 180.0, 270.0]

        tas = ds.createVariable("tas", "f4", ("time", "lat", "lon"), fill_value=-999.0)
        tas.comment = "synthetic"
        tas.units = "K"
        tas.long_name = "Air temperature"
        tas.valid_range = np.array([0.0, 400.0], dtype="f4")
        data = np.arange(24, dtype="f4").reshape(2, 3, 4) + 270.0
        data[0, 0, 0] = -999.0
        data[1, 2, 3] = np.nan
        tas[:] = data

        counts = ds.createVariable("counts", "i2", ("lat",))
        counts[:] = [1, 2, 3]

        names = ds.createVariable("station_name", "S1", ("station", "strlen"))
        names[:] = netCDF4.stringtochar(np.array(["abc", "wxyz"], dtype="S5"))

        label = ds.createVariable("label", str, ("station",))
        label[0] = "first"
        label[1] = "second"

        crs = ds.createVariable("crs", "i4")
        crs.assignValue(7)
    return path


@pytest.fixture
def sample_nc(tmp_path):
    return write_sample(tmp_path / "sample.nc")
