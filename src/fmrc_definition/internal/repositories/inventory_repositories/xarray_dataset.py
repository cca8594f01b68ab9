"""Inventory repository implementation for datasets readable by xarray.

Any dataset xarray can open (netCDF, GRIB via cfgrib, Zarr) can be scanned,
provided it holds a single model run.

Dataset conventions
===================

Run time
--------

The reference time of the run is taken from the first scalar (or length one)
datetime coordinate found among ``init_time``, ``reftime`` and ``time``. This
covers cfgrib output, where ``time`` is the scalar run time, as well as
netCDF-CF output carrying a ``reftime`` coordinate.

Offsets
-------

A field's forecast offsets come from its ``step`` dimension (a timedelta
coordinate, as cfgrib produces), or failing that from a datetime valued
dimension of valid times, relative to the run time. A field with neither
is skipped.

Vertical levels
---------------

A dimension is vertical if its coordinate has ``axis="Z"`` or a ``positive``
attribute, or if its name is one of the usual level dimension names. Layers
are recognised from a CF ``bounds`` variable of shape (n, 2), whose columns
become the primary and secondary level values.

Optionally, the levels actually holding data are determined at each offset,
so that fields only output on some levels at some offsets can be restricted.
This reads every value of every field, so is off unless requested.
"""

import datetime as dt
import logging
import os
import pathlib
from typing import override

import numpy as np
import pandas as pd
import xarray as xr
from returns.result import Failure, ResultE, Success

from fmrc_definition.internal import entities, ports

log = logging.getLogger("fmrc-definition")

RUN_TIME_COORDS: tuple[str, ...] = ("init_time", "reftime", "time")
"""Candidate names of the run time coordinate, in order of preference."""

LEVEL_DIMS: frozenset[str] = frozenset({
    "level", "lev", "plev", "pressure", "isobaric", "isobaricInhPa", "isobaricInPa",
    "height", "heightAboveGround", "heightAboveSea", "altitude", "depth",
    "depthBelowLand", "depthBelowLandLayer", "hybrid", "sigma", "z",
})
"""Dimension names taken to be vertical without further attributes."""


class XarrayInventoryRepository(ports.InventoryRepository):
    """Repository taking inventories of model run datasets with xarray."""

    engine: str | None
    detect_missing_levels: bool

    def __init__(self, engine: str | None = None, detect_missing_levels: bool = False) -> None:
        """Create a new instance.

        Args:
            engine: The xarray backend engine to open datasets with. Chosen by
                xarray from the file if not given.
            detect_missing_levels: Whether to find the levels holding data
                at each offset.
        """
        self.engine = engine
        self.detect_missing_levels = detect_missing_levels

    @classmethod
    @override
    def authenticate(cls) -> ResultE["XarrayInventoryRepository"]:
        engine = os.getenv("XARRAY_ENGINE") or None
        detect = os.getenv("DETECT_MISSING_LEVELS", "False").capitalize() == "True"
        log.debug(f"Scanning datasets with engine '{engine or 'auto'}'")
        return Success(cls(engine=engine, detect_missing_levels=detect))

    @override
    def scan(self, location: str) -> ResultE[entities.RunInventory]:
        if "://" not in location and not pathlib.Path(location).exists():
            return Failure(FileNotFoundError(f"No dataset found at '{location}'"))
        try:
            ds: xr.Dataset = xr.open_dataset(
                location, engine=self.engine, decode_timedelta=True,
            )
        except Exception as e:
            return Failure(OSError(f"Error opening '{location}' as xarray Dataset: {e}"))

        with ds:
            result = self.scan_dataset(ds, detect_missing_levels=self.detect_missing_levels)
        if isinstance(result, Success):
            inv = result.unwrap()
            log.info(
                f"Scanned {len(inv.grids)} field(s) of run {inv.run_time:%Y-%m-%dT%H:%M} "
                f"from '{location}'",
            )
        return result

    @staticmethod
    def scan_dataset(
        ds: xr.Dataset,
        detect_missing_levels: bool = False,
    ) -> ResultE[entities.RunInventory]:
        """Take the inventory of a dataset holding a single model run.

        Args:
            ds: The dataset to scan.
            detect_missing_levels: Whether to find the levels holding data
                at each offset.
        """
        run_time_result = _find_run_time(ds)
        if isinstance(run_time_result, Failure):
            return run_time_result
        run_time = run_time_result.unwrap()

        bounds_vars = {
            ds[c].attrs["bounds"] for c in ds.variables if "bounds" in ds[c].attrs
        }
        time_coords: dict[str, entities.TimeCoord] = {}
        vert_coords: dict[str, entities.VertCoord] = {}
        grids: list[entities.InventoryGrid] = []

        try:
            for name in ds.data_vars:
                if name in bounds_vars:
                    continue
                da = ds[name]

                time_dim = _find_time_dim(da)
                if time_dim is None and not _has_scalar_step(da):
                    log.debug(f"Skipping variable '{name}' without forecast offsets")
                    continue
                tc_key = time_dim or "step"
                if tc_key not in time_coords:
                    time_coords[tc_key] = entities.TimeCoord(
                        id=tc_key,
                        offset_hours=_offset_hours(ds[tc_key], run_time),
                    )

                vert_dims = [d for d in da.dims if d != time_dim and _is_vertical(ds, str(d))]
                vc: entities.VertCoord | None = None
                levels_by_offset: dict[float, tuple[float, ...]] | None = None
                if len(vert_dims) > 1:
                    log.warning(
                        f"Variable '{name}' has several vertical dimensions {vert_dims}; "
                        f"using '{vert_dims[0]}'",
                    )
                if len(vert_dims) > 0:
                    z_dim = str(vert_dims[0])
                    if z_dim not in vert_coords:
                        vert_coords[z_dim] = _vert_coord(ds, z_dim)
                    vc = vert_coords[z_dim]
                    if detect_missing_levels and time_dim is not None:
                        levels_by_offset = _partial_levels(
                            da, time_dim, z_dim, run_time, vc,
                        )

                grids.append(
                    entities.InventoryGrid(
                        name=str(name),
                        time_coord=time_coords[tc_key],
                        vert_coord=vc,
                        description=str(da.attrs.get("long_name", "")),
                        units=da.attrs.get("units"),
                        levels_by_offset=levels_by_offset,
                    ),
                )
        except Exception as e:
            return Failure(ValueError(f"Error taking inventory of dataset: {e}"))

        if len(grids) == 0:
            return Failure(ValueError(
                "No fields with forecast offsets found in dataset. "
                "Ensure it holds a single model run with a 'step' or valid time dimension.",
            ))
        return Success(entities.RunInventory(run_time=run_time, grids=grids))


def _to_utc(value: np.datetime64) -> dt.datetime:
    return pd.Timestamp(value).to_pydatetime().replace(tzinfo=dt.UTC)


def _find_run_time(ds: xr.Dataset) -> ResultE[dt.datetime]:
    for name in RUN_TIME_COORDS:
        if name not in ds.coords:
            continue
        coord = ds.coords[name]
        if coord.size != 1 or not np.issubdtype(coord.dtype, np.datetime64):
            continue
        return Success(_to_utc(coord.values.reshape(-1)[0]))
    return Failure(ValueError(
        f"No run time found in dataset: expected one of {list(RUN_TIME_COORDS)} "
        "as a scalar datetime coordinate",
    ))


def _find_time_dim(da: xr.DataArray) -> str | None:
    """Find the dimension of a variable indexing its forecast offsets."""
    if "step" in da.dims:
        return "step"
    for dim in da.dims:
        if dim in da.coords and np.issubdtype(da.coords[dim].dtype, np.datetime64):
            return str(dim)
    return None


def _has_scalar_step(da: xr.DataArray) -> bool:
    return "step" in da.coords and da.coords["step"].ndim == 0


def _offset_hours(coord: xr.DataArray, run_time: dt.datetime) -> tuple[float, ...]:
    """Convert a step or valid time coordinate to offset hours from the run time."""
    values = np.atleast_1d(coord.values)
    if np.issubdtype(values.dtype, np.timedelta64):
        return tuple(float(v) for v in values / np.timedelta64(1, "h"))
    if np.issubdtype(values.dtype, np.datetime64):
        reference = np.datetime64(run_time.replace(tzinfo=None), "ns")
        return tuple(float(v) for v in (values - reference) / np.timedelta64(1, "h"))
    # Plain numbers are taken to be hours already
    return tuple(float(v) for v in values)


def _is_vertical(ds: xr.Dataset, dim: str) -> bool:
    if dim not in ds.coords:
        return dim in LEVEL_DIMS
    attrs = ds.coords[dim].attrs
    return attrs.get("axis") == "Z" or "positive" in attrs or dim in LEVEL_DIMS


def _vert_coord(ds: xr.Dataset, dim: str) -> entities.VertCoord:
    """Build the vertical coordinate of a level dimension."""
    if dim not in ds.coords:
        # A vertical dimension without a coordinate is indexed by level number
        return entities.VertCoord(
            id=dim, name=dim, values1=tuple(float(i) for i in range(ds.sizes[dim])),
        )
    coord = ds.coords[dim]
    units = coord.attrs.get("units")
    bounds_name = coord.attrs.get("bounds")
    if bounds_name is not None and bounds_name in ds.variables:
        bounds = np.asarray(ds[bounds_name].values, dtype=float)
        if bounds.shape == (coord.size, 2):
            return entities.VertCoord(
                id=dim,
                name=dim,
                values1=tuple(bounds[:, 0].tolist()),
                values2=tuple(bounds[:, 1].tolist()),
                units=units,
            )
        log.warning(
            f"Ignoring bounds '{bounds_name}' of vertical coordinate '{dim}' "
            f"with unexpected shape {bounds.shape}",
        )
    return entities.VertCoord(
        id=dim,
        name=dim,
        values1=tuple(np.atleast_1d(coord.values).astype(float).tolist()),
        units=units,
    )


def _partial_levels(
    da: xr.DataArray,
    time_dim: str,
    z_dim: str,
    run_time: dt.datetime,
    vc: entities.VertCoord,
) -> dict[float, tuple[float, ...]] | None:
    """Find the offsets at which a field holds data on only some of its levels.

    Offsets at which the field holds no data at all are left out: that is a
    missing forecast, not a level restriction.
    """
    other_dims = [d for d in da.dims if d not in (time_dim, z_dim)]
    has_data = da.notnull()
    if len(other_dims) > 0:
        has_data = has_data.any(dim=other_dims)
    mask = np.asarray(has_data.transpose(time_dim, z_dim).values, dtype=bool)

    offsets = _offset_hours(da.coords[time_dim], run_time)
    out: dict[float, tuple[float, ...]] = {}
    for i in range(mask.shape[0]):
        present = mask[i]
        if present.all() or not present.any():
            continue
        out[offsets[i]] = tuple(v for v, p in zip(vc.values1, present, strict=True) if p)
    return out or None
