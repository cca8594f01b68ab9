"""The definition of a Forecast Model Run Collection.

Abstractly, the inventory of a collection is a table::

    Run  Grid  TimeCoord  VertCoord
    Run  Grid  TimeCoord  VertCoord
    ...

The simplest case would be that all runs have the same grids, which all use
the same time coordinate, and each grid always uses the same vertical
coordinate. More usually there are several time coordinates, and different
run hours of the day use different ones: a *run sequence*. Grids are grouped
by the run sequence they follow, and a grid's vertical levels may themselves
depend on the offset hour, so the most general case is::

    {{runHour, TimeCoord} X {Grid, VertTimeCoord}}

`FmrcDefinition` holds exactly that, independent of any single run, and
answers "which time coordinate and vertical levels apply to field X at run
time R, offset H?".

Ownership
---------

The definition owns every collection. Grids, runs and vertical coordinates
refer into the definition's time and vertical coordinate lists; replacing a
coordinate means swapping a new value in by key and re-pointing whatever
referred to the old one.
"""

import dataclasses
import datetime as dt
import logging
from collections.abc import Iterator

from .coordinates import TimeCoord, VertCoord
from .runseq import Grid, Run, RunSeq
from .verttimecoord import VertTimeCoord

log = logging.getLogger("fmrc-definition")


@dataclasses.dataclass(slots=True)
class FmrcDefinition:
    """Defines the expected inventory of a Forecast Model Run Collection."""

    name: str | None = None
    """The name of the dataset the definition describes."""

    suffix_filter: str | None = None
    """Only files with this suffix belong to the collection."""

    vert_time_coords: list[VertTimeCoord] = dataclasses.field(default_factory=list)
    """The vertical coordinates, sorted by name."""

    time_coords: list[TimeCoord] = dataclasses.field(default_factory=list)
    """The time coordinates used by the run sequences."""

    run_sequences: list[RunSeq] = dataclasses.field(default_factory=list)
    """The run sequences, in creation order."""

    def grids(self) -> Iterator[Grid]:
        """Iterate over every grid of every run sequence."""
        for run_seq in self.run_sequences:
            yield from run_seq.grids

    def has_variable(self, name: str) -> bool:
        return self.find_grid_by_name(name) is not None

    def find_grid_by_name(self, name: str) -> Grid | None:
        for run_seq in self.run_sequences:
            grid = run_seq.find_grid(name)
            if grid is not None:
                return grid
        return None

    def find_seq_for_variable(self, name: str) -> RunSeq | None:
        for run_seq in self.run_sequences:
            if run_seq.find_grid(name) is not None:
                return run_seq
        return None

    def find_time_coord(self, id: str | None) -> TimeCoord | None:
        for tc in self.time_coords:
            if tc.id == id:
                return tc
        return None

    def find_vert_coord(self, id: str | None) -> VertTimeCoord | None:
        if id is None:
            return None
        for vtc in self.vert_time_coords:
            if vtc.id == id:
                return vtc
        return None

    def find_vert_coord_by_name(self, name: str) -> VertTimeCoord | None:
        for vtc in self.vert_time_coords:
            if vtc.name == name:
                return vtc
        return None

    def find_time_coord_for_variable(self, name: str, run_time: dt.datetime) -> TimeCoord | None:
        """Find the time coordinate of a field for the run issued at a run time.

        The coordinate is returned under the name of the run sequence the field
        follows: "time" for the first sequence, "time1", "time2"... after it.

        Returns:
            The named time coordinate, or None if the field is unknown or no run
            of its sequence matches the run hour.
        """
        run_seq = self.find_seq_for_variable(name)
        if run_seq is None:
            return None
        tc = run_seq.find_time_coord_by_runtime(run_time)
        if tc is None:
            return None
        return tc.with_id(run_seq.name)

    def find_vert_coord_for_variable(self, name: str) -> VertCoord | None:
        """Find the vertical coordinate of a field.

        Returns:
            The vertical coordinate, or None if the field is unknown or a surface field.
        """
        grid = self.find_grid_by_name(name)
        if grid is None or grid.vtc is None:
            return None
        return grid.vtc.vert_coord

    def sort_vert_coords(self) -> None:
        self.vert_time_coords.sort(key=lambda vtc: vtc.name)

    def replace_vert_coord(self, vc: VertCoord) -> bool:
        """Replace the vertical coordinate with the same name, or add it as new.

        Grids that referred to the replaced entry are re-pointed at the new one;
        grids holding their own time-bound copy get a copy of the new coordinate
        with their restrictions replayed.

        Returns:
            True if an existing entry was replaced, False if the coordinate was added.
        """
        for i, old in enumerate(self.vert_time_coords):
            if old.name != vc.name:
                continue
            new = VertTimeCoord(vert_coord=vc)
            self.vert_time_coords[i] = new
            for grid in self.grids():
                if grid.vtc is old:
                    grid.vtc = new
                elif grid.vtc is not None and grid.vtc.vert_coord == old.vert_coord:
                    grid.vtc = grid.vtc.rebound(vert_coord=vc)
            return True

        self.vert_time_coords.append(VertTimeCoord(vert_coord=vc))
        return False

    def replace_time_coord(self, tc: TimeCoord) -> bool:
        """Replace the time coordinate with the same id.

        Runs and run sequences using the old coordinate are re-pointed, and the
        time-bound vertical coordinates of their grids are re-bound with their
        restrictions replayed.

        Returns:
            True if an existing entry was replaced, False if no entry has the id.
        """
        for i, old in enumerate(self.time_coords):
            if old.id != tc.id:
                continue
            self.time_coords[i] = tc
            for run_seq in self.run_sequences:
                touched = False
                if run_seq.all_use is not None and run_seq.all_use.id == tc.id:
                    run_seq.all_use = tc
                    touched = True
                for j, run in enumerate(run_seq.runs):
                    if run.time_coord.id == tc.id:
                        run_seq.runs[j] = Run(run_hour=run.run_hour, time_coord=tc)
                        touched = True
                if not touched:
                    continue
                for grid in run_seq.grids:
                    if grid.vtc is not None and grid.vtc.time_coord is not None:
                        grid.vtc = run_seq.bind_vert_coord(grid.vtc)
            return True
        return False
