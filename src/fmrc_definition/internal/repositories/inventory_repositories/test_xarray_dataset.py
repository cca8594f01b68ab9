import datetime as dt
import pathlib
import tempfile
import unittest

import numpy as np
import xarray as xr
from returns.pipeline import is_successful

from .xarray_dataset import XarrayInventoryRepository


def _grib_like() -> xr.Dataset:
    """A dataset shaped like cfgrib output: scalar run time, step and level dimensions."""
    steps = np.array([0, 6, 12], dtype="timedelta64[h]").astype("timedelta64[ns]")
    levels = [1000.0, 850.0, 500.0]
    t = np.random.rand(3, 3, 2, 2)
    t[2, 2] = np.nan
    return xr.Dataset(
        data_vars={
            "t": (
                ("step", "isobaricInhPa", "latitude", "longitude"),
                t,
                {"long_name": "Temperature", "units": "K"},
            ),
            "sp": (("step", "latitude", "longitude"), np.random.rand(3, 2, 2), {"units": "Pa"}),
            "orog": (("latitude", "longitude"), np.random.rand(2, 2)),
        },
        coords={
            "time": np.datetime64("2024-03-01T06:00", "ns"),
            "step": ("step", steps),
            "isobaricInhPa": (
                "isobaricInhPa", levels, {"units": "hPa", "positive": "down"},
            ),
            "latitude": [60.0, 61.0],
            "longitude": [10.0, 11.0],
        },
    )


def _cf_like() -> xr.Dataset:
    """A netCDF-CF shaped dataset: reference time, valid times and bounded soil layers."""
    valid = np.array(
        ["2024-03-01T12:00", "2024-03-01T15:00", "2024-03-01T18:00"], dtype="datetime64[ns]",
    )
    return xr.Dataset(
        data_vars={
            "soil_temperature": (("time", "depth", "y"), np.random.rand(3, 2, 4)),
            "depth_bnds": (("depth", "nv"), [[0.0, 0.1], [0.1, 0.4]]),
        },
        coords={
            "reftime": np.datetime64("2024-03-01T12:00", "ns"),
            "time": ("time", valid),
            "depth": ("depth", [0.05, 0.25], {"axis": "Z", "units": "m", "bounds": "depth_bnds"}),
        },
    )


class TestXarrayInventoryRepository(unittest.TestCase):
    """Test the inventory scanner for xarray datasets."""

    def test_scan_dataset_grib_like(self) -> None:
        result = XarrayInventoryRepository.scan_dataset(_grib_like())
        self.assertTrue(is_successful(result), msg=result)
        inv = result.unwrap()

        self.assertEqual(inv.run_time, dt.datetime(2024, 3, 1, 6, tzinfo=dt.UTC))
        self.assertEqual([g.name for g in inv.grids], ["t", "sp"])

        t = inv.find_grid("t")
        self.assertEqual(t.time_coord.offset_hours, (0.0, 6.0, 12.0))
        self.assertEqual(t.vert_coord.name, "isobaricInhPa")
        self.assertEqual(t.vert_coord.values1, (1000.0, 850.0, 500.0))
        self.assertEqual(t.vert_coord.units, "hPa")
        self.assertIsNone(t.vert_coord.values2)
        self.assertEqual(t.description, "Temperature")
        self.assertEqual(t.units, "K")
        self.assertIsNone(t.levels_by_offset)

        sp = inv.find_grid("sp")
        self.assertIsNone(sp.vert_coord)
        self.assertIs(sp.time_coord, t.time_coord)

    def test_scan_dataset_cf_like(self) -> None:
        result = XarrayInventoryRepository.scan_dataset(_cf_like())
        self.assertTrue(is_successful(result), msg=result)
        inv = result.unwrap()

        self.assertEqual(inv.run_time, dt.datetime(2024, 3, 1, 12, tzinfo=dt.UTC))
        self.assertEqual([g.name for g in inv.grids], ["soil_temperature"])
        grid = inv.grids[0]
        self.assertEqual(grid.time_coord.offset_hours, (0.0, 3.0, 6.0))
        self.assertEqual(grid.vert_coord.values1, (0.0, 0.1))
        self.assertEqual(grid.vert_coord.values2, (0.1, 0.4))
        self.assertTrue(grid.vert_coord.is_layer)

    def test_scan_dataset_missing_levels(self) -> None:
        result = XarrayInventoryRepository.scan_dataset(_grib_like(), detect_missing_levels=True)
        self.assertTrue(is_successful(result), msg=result)
        t = result.unwrap().find_grid("t")
        self.assertEqual(t.levels_by_offset, {12.0: (1000.0, 850.0)})

    def test_scan_dataset_failures(self) -> None:
        no_run_time = _grib_like().drop_vars("time")
        self.assertFalse(is_successful(XarrayInventoryRepository.scan_dataset(no_run_time)))

        static_only = _grib_like()[["orog"]]
        self.assertFalse(is_successful(XarrayInventoryRepository.scan_dataset(static_only)))

    def test_scan(self) -> None:
        repository = XarrayInventoryRepository(engine="zarr")
        with tempfile.TemporaryDirectory() as tmpdir:
            location = pathlib.Path(tmpdir, "gfs_2024030106.zarr").as_posix()
            _grib_like().to_zarr(location)

            result = repository.scan(location)

            self.assertTrue(is_successful(result), msg=result)
            inv = result.unwrap()
            self.assertEqual(inv.run_time, dt.datetime(2024, 3, 1, 6, tzinfo=dt.UTC))
            self.assertEqual(
                inv.find_grid("t").time_coord.offset_hours, (0.0, 6.0, 12.0),
            )

        missing = repository.scan(pathlib.Path(tmpdir, "missing.zarr").as_posix())
        self.assertFalse(is_successful(missing))
        self.assertIsInstance(missing.failure(), FileNotFoundError)


if __name__ == "__main__":
    unittest.main()
