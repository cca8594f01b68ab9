"""Domain entities for observed inventories of model runs.

An inventory is what a scan of actual data found, as opposed to the
definition, which is what the collection is expected to hold.

Two shapes are used:

- `RunInventory` - the snapshot of a single model run: its run time and the
  fields found in it, each with the time and vertical coordinate it uses.
  This is what a scanner produces, and what the reconciler compares a
  definition against.
- `CollectionInventory` - many run snapshots grouped into run sequences:
  fields that share the same mapping of run to time coordinate are grouped
  together, and each field carries the union of the vertical levels it was
  seen with. This is what the builder consumes.
"""

import dataclasses
import datetime as dt
import logging

from .coordinates import TimeCoord, VertCoord

log = logging.getLogger("fmrc-definition")


@dataclasses.dataclass(slots=True, frozen=True)
class InventoryGrid:
    """A field as observed in one model run."""

    name: str
    time_coord: TimeCoord
    vert_coord: VertCoord | None = None
    description: str = ""
    units: str | None = None
    levels_by_offset: dict[float, tuple[float, ...]] | None = None
    """Levels actually holding data at offsets where that is fewer than all levels."""


@dataclasses.dataclass(slots=True)
class RunInventory:
    """The inventory of a single model run."""

    run_time: dt.datetime
    """The reference time of the run."""

    grids: list[InventoryGrid] = dataclasses.field(default_factory=list)
    """The fields found in the run."""

    @property
    def time_coords(self) -> list[TimeCoord]:
        """The distinct time coordinates used by the fields, in first-seen order."""
        out: list[TimeCoord] = []
        for grid in self.grids:
            if grid.time_coord not in out:
                out.append(grid.time_coord)
        return out

    @property
    def vert_coords(self) -> list[VertCoord]:
        """The distinct vertical coordinates used by the fields, in first-seen order."""
        out: list[VertCoord] = []
        for grid in self.grids:
            if grid.vert_coord is not None and grid.vert_coord not in out:
                out.append(grid.vert_coord)
        return out

    def find_grid(self, name: str) -> InventoryGrid | None:
        for grid in self.grids:
            if grid.name == name:
                return grid
        return None


@dataclasses.dataclass(slots=True, frozen=True)
class InventoryRun:
    """A run of a run sequence, and the time coordinate it used."""

    run_time: dt.datetime
    time_coord: TimeCoord


@dataclasses.dataclass(slots=True, frozen=True)
class UberGrid:
    """A field across all runs, with the union of the vertical levels it was seen with."""

    name: str
    vert_coord_union: VertCoord | None = None
    levels_by_offset: dict[float, tuple[float, ...]] | None = None
    """Offsets at which the field was seen with only some of the union levels."""


@dataclasses.dataclass(slots=True)
class InventoryRunSeq:
    """Runs sharing one run to time coordinate mapping, and the fields following it."""

    runs: list[InventoryRun] = dataclasses.field(default_factory=list)
    variables: list[UberGrid] = dataclasses.field(default_factory=list)


@dataclasses.dataclass(slots=True)
class CollectionInventory:
    """The grouped inventory of many runs of a collection."""

    name: str | None
    time_coords: list[TimeCoord] = dataclasses.field(default_factory=list)
    vert_coords: list[VertCoord] = dataclasses.field(default_factory=list)
    run_sequences: list[InventoryRunSeq] = dataclasses.field(default_factory=list)

    @classmethod
    def from_runs(cls, name: str | None, runs: list[RunInventory]) -> "CollectionInventory":
        """Group single run inventories into a collection inventory.

        Time coordinates are deduplicated by their offsets and given the ids
        "0", "1", ... in the order they are first seen across the runs (sorted
        by run time). Fields seen with the same (run time, time coordinate)
        pattern follow the same run sequence. Vertical coordinates are
        deduplicated by name, and each field's union vertical coordinate holds
        every level it was seen with.
        """
        ordered = sorted(runs, key=lambda r: r.run_time)

        time_coords: list[TimeCoord] = []
        by_offsets: dict[tuple[float, ...], TimeCoord] = {}
        for run in ordered:
            for tc in run.time_coords:
                if tc.offset_hours not in by_offsets:
                    canonical = tc.with_id(str(len(time_coords)))
                    by_offsets[tc.offset_hours] = canonical
                    time_coords.append(canonical)

        patterns: dict[str, list[InventoryRun]] = {}
        grid_vert_names: dict[str, str | None] = {}
        by_vert_name: dict[str, list[VertCoord]] = {}
        partial_levels: dict[str, dict[float, set[float]]] = {}
        full_offsets: dict[str, set[float]] = {}
        for run in ordered:
            for grid in run.grids:
                tc = by_offsets[grid.time_coord.offset_hours]
                patterns.setdefault(grid.name, []).append(
                    InventoryRun(run_time=run.run_time, time_coord=tc),
                )
                vc = grid.vert_coord
                known = grid_vert_names.setdefault(grid.name, None if vc is None else vc.name)
                if vc is None:
                    continue
                if known is None:
                    grid_vert_names[grid.name] = known = vc.name
                if known != vc.name:
                    log.warning(
                        f"Field '{grid.name}' seen with vertical coordinate '{vc.name}' "
                        f"in run {run.run_time}, but with '{known}' before; keeping '{known}'",
                    )
                    continue
                by_vert_name.setdefault(vc.name, []).append(vc)
                partial = grid.levels_by_offset or {}
                full_offsets.setdefault(grid.name, set()).update(
                    h for h in grid.time_coord.offset_hours if h not in partial
                )
                merged = partial_levels.setdefault(grid.name, {})
                for hour, levels in partial.items():
                    merged.setdefault(float(hour), set()).update(levels)

        unions: dict[str, VertCoord] = {
            name: _union_vert_coord(observed) for name, observed in by_vert_name.items()
        }

        run_sequences: list[InventoryRunSeq] = []
        by_pattern: dict[tuple[tuple[dt.datetime, str], ...], InventoryRunSeq] = {}
        for grid_name, pattern in patterns.items():
            key = tuple((r.run_time, r.time_coord.id) for r in pattern)
            seq = by_pattern.get(key)
            if seq is None:
                seq = InventoryRunSeq(runs=list(pattern))
                by_pattern[key] = seq
                run_sequences.append(seq)
            vert_name = grid_vert_names[grid_name]
            union = None if vert_name is None else unions[vert_name]
            seq.variables.append(
                UberGrid(
                    name=grid_name,
                    vert_coord_union=union,
                    levels_by_offset=_partial_levels(
                        union,
                        partial_levels.get(grid_name),
                        full_offsets.get(grid_name, set()),
                    ),
                ),
            )

        return cls(
            name=name,
            time_coords=time_coords,
            vert_coords=sorted(unions.values(), key=lambda vc: vc.name),
            run_sequences=run_sequences,
        )


def _union_vert_coord(observed: list[VertCoord]) -> VertCoord:
    """The union of the levels of same-named vertical coordinates.

    Secondary values are only kept when every observation agrees.
    """
    first = observed[0]
    if all(vc == first for vc in observed):
        return first
    values = sorted({v for vc in observed for v in vc.values1})
    log.debug(
        f"Vertical coordinate '{first.name}' seen with "
        f"{len({vc.values1 for vc in observed})} differing level sets; "
        f"using the union of {len(values)} levels",
    )
    return VertCoord(id=first.id, name=first.name, values1=tuple(values), units=first.units)


def _partial_levels(
    union: VertCoord | None,
    merged: dict[float, set[float]] | None,
    full: set[float],
) -> dict[float, tuple[float, ...]] | None:
    """Keep the offsets at which no run showed all the union levels, if any."""
    if union is None or not merged:
        return None
    out = {
        hour: tuple(v for v in union.values1 if v in levels)
        for hour, levels in sorted(merged.items())
        if hour not in full and not set(union.values1).issubset(levels)
    }
    return out or None
