"""Domain entities describing run sequences and the grids that follow them.

Run sequences
-------------

A model is typically run several times a day, and the run hour can change
the forecast offsets produced: a model may forecast out to 84 hours from its
00Z and 12Z runs, but only to 48 hours from its 06Z and 18Z runs. The mapping
of run hour to `TimeCoord` is a `RunSeq`, e.g.::

    00Z -> "0" (0 ... 84)
    06Z -> "1" (0 ... 48)
    12Z -> "0"
    18Z -> "1"

When every run uses the same time coordinate the sequence is stored as that
single shared coordinate, with no per-run entries.

Each field (`Grid`) follows exactly one run sequence.

Cyclic extension
----------------

The runs observed in an inventory may not cover a whole day; a collection
scanned at 08Z may only have seen the 00Z and 06Z runs. An explicit run table
is therefore extended, repeating the observed pattern of run intervals and
time coordinates, until it reaches the end of the day. In the example above
the table would grow to cover 12Z and 18Z, each using the time coordinate of
the 06Z run.
"""

import dataclasses
import datetime as dt
import logging

from .coordinates import TimeCoord
from .verttimecoord import VertTimeCoord

log = logging.getLogger("fmrc-definition")

SURFACE_LEVEL: tuple[float, ...] = (-0.0,)
"""The levels reported for a field without a vertical coordinate."""


def run_hour_of_day(run_time: dt.datetime) -> float:
    """Return the UTC hour of the day of a run time, with minutes as a fraction.

    Naive datetimes are taken to be in UTC.
    """
    if run_time.tzinfo is not None:
        run_time = run_time.astimezone(dt.UTC)
    return run_time.hour + run_time.minute / 60


@dataclasses.dataclass(slots=True, frozen=True)
class Run:
    """The time coordinate used by the runs issued at one hour of the day."""

    run_hour: float
    """Hours since 00:00 UTC. May exceed 24 in the synthetic tail of an extended table."""
    time_coord: TimeCoord
    """The offsets produced by runs at this hour."""


@dataclasses.dataclass(slots=True)
class Grid:
    """A named field, and its vertical coordinate if it has one."""

    name: str
    vtc: VertTimeCoord | None = None

    def count_vert_coords(self, offset_hour: float) -> int:
        """Number of vertical levels at an offset hour; 1 for a surface field."""
        if self.vtc is None:
            return len(SURFACE_LEVEL)
        return self.vtc.count_vert_coords(offset_hour)

    def get_vert_coords(self, offset_hour: float) -> tuple[float, ...]:
        """Get the vertical levels of the field at an offset hour.

        Args:
            offset_hour: May or may not be in the list of time coordinates.

        Returns:
            The level values. A surface field returns the single sentinel
            level -0.0; an offset with no levels defined returns an empty tuple.
        """
        if self.vtc is None:
            return SURFACE_LEVEL
        return self.vtc.get_vert_coords(offset_hour)


@dataclasses.dataclass(slots=True)
class RunSeq:
    """A run hour to time coordinate mapping, and the grids following it.

    Build instances with `RunSeq.from_time_coord` or `RunSeq.from_runs`.
    """

    num: int
    """Creation order of the sequence within its definition, from 0."""

    all_use: TimeCoord | None = None
    """The time coordinate shared by every run, if they all use the same one."""

    runs: list[Run] = dataclasses.field(default_factory=list)
    """The run table, sorted by run hour and extended over a daily cycle."""

    grids: list[Grid] = dataclasses.field(default_factory=list)
    """The fields following this sequence."""

    @property
    def is_all(self) -> bool:
        """Whether every run uses the same time coordinate."""
        return self.all_use is not None

    @property
    def name(self) -> str:
        """Name given to the time coordinates this sequence hands out."""
        return "time" if self.num == 0 else f"time{self.num}"

    @classmethod
    def from_time_coord(cls, num: int, time_coord: TimeCoord) -> "RunSeq":
        """Create a sequence in which every run uses the same time coordinate."""
        return cls(num=num, all_use=time_coord)

    @classmethod
    def from_runs(cls, num: int, runs: list[Run]) -> "RunSeq":
        """Create a sequence from an explicit run table, extended to a daily cycle."""
        return cls(num=num, runs=cls.extend_cycle(runs))

    @staticmethod
    def extend_cycle(runs: list[Run]) -> list[Run]:
        """Extend a run table so it completes a 24 hour cycle.

        The runs are sorted by run hour. While the last run hour is before 24,
        a synthetic run is appended: its hour advances by the interval between
        the run at the match pointer and the run after it, and it reuses the time
        coordinate of the run after it. The match pointer then advances by one,
        so the observed pattern of intervals and time coordinates repeats.

        Extension stops early, leaving partial coverage, if an interval is not
        positive or there is no interval to repeat.

        Examples:
            Runs at 00Z ("a") and 06Z ("b") extend to 12Z, 18Z and 24Z, all "b".
        """
        table = sorted(runs, key=lambda r: r.run_hour)
        if len(table) == 0:
            return table

        match_index = 0
        run_hour = table[-1].run_hour
        while run_hour < 24.0:
            if match_index + 1 >= len(table):
                log.warning(
                    f"Cannot extend run table of {len(table)} run(s) over a daily cycle: "
                    f"no run interval to repeat. Coverage ends at hour {run_hour}.",
                )
                break
            match = table[match_index]
            following = table[match_index + 1]
            incr = following.run_hour - match.run_hour
            if incr <= 0:
                log.warning(
                    f"Stopped extending run table at hour {run_hour}: non-positive run "
                    f"interval between run hours {match.run_hour} and {following.run_hour}.",
                )
                break
            run_hour += incr
            table.append(Run(run_hour=run_hour, time_coord=following.time_coord))
            match_index += 1

        return table

    def find_run(self, hour: float) -> Run | None:
        """Return the run whose run hour matches exactly, if any."""
        for run in self.runs:
            if run.run_hour == hour:
                return run
        return None

    def find_time_coord_by_runtime(self, run_time: dt.datetime) -> TimeCoord | None:
        """Find the time coordinate used by the run issued at a run time.

        Returns:
            The time coordinate, or None if no run matches the run hour exactly.
        """
        if self.all_use is not None:
            return self.all_use
        run = self.find_run(run_hour_of_day(run_time))
        return None if run is None else run.time_coord

    def find_grid(self, name: str | None) -> Grid | None:
        if name is None:
            return None
        for grid in self.grids:
            if grid.name == name:
                return grid
        return None

    def union_time_coord(self) -> TimeCoord:
        """The time axis covering every offset any run in the sequence produces.

        For a sequence whose runs all share a time coordinate, that coordinate.
        """
        if self.all_use is not None:
            return self.all_use
        return TimeCoord.union(run.time_coord for run in self.runs)

    def bind_vert_coord(self, vtc: VertTimeCoord) -> VertTimeCoord:
        """Bind a vertical coordinate to the time axis of this sequence.

        Restrictions already present on the given coordinate are replayed
        against the new time axis.
        """
        return vtc.rebound(time_coord=self.union_time_coord())
