"""Domain entities describing time and vertical coordinates.

Forecast offsets
----------------

Every model run is issued at a reference time, and produces fields valid at
a set of *offsets* from that reference time: the forecast lead times, in
hours. Many runs share an identical set of offsets, so the set is named
once as a `TimeCoord` and referred to by its id wherever it is used.

For instance, a model run at 00Z that produces forecasts every 6 hours out
to a day has the offsets:

offset hours: [0.0, 6.0, 12.0, 18.0, 24.0]

Vertical levels
---------------

Fields defined on more than one level (pressure levels, heights above
ground, soil layers) carry a `VertCoord`: the primary level values, and,
for layers, the paired secondary values bounding each layer, e.g.

primary:   [0.0, 10.0, 40.0]
secondary: [10.0, 40.0, 100.0]

Both coordinate kinds are immutable values. Changing one means building a
new value and swapping it in for the old one by key.
"""

import dataclasses
import logging
import math
import re
from collections.abc import Iterable

log = logging.getLogger("fmrc-definition")

_TOKEN_SEPARATORS = re.compile(r"[\s,]+")


def parse_numbers(text: str) -> tuple[float, ...]:
    """Parse a whitespace and/or comma delimited list of decimal numbers.

    Raises:
        ValueError: If any token is not a valid decimal number.
    """
    return tuple(float(token) for token in _TOKEN_SEPARATORS.split(text.strip()) if token)


def format_number(value: float) -> str:
    """Render a number as a decimal token that parses back to the same float."""
    return repr(float(value))


@dataclasses.dataclass(slots=True, frozen=True)
class TimeCoord:
    """A named, ordered set of forecast offsets shared by one or more runs."""

    id: str
    """Identifier of the coordinate, unique within a definition."""

    offset_hours: tuple[float, ...]
    """The forecast offsets in hours since the run reference time.

    Normalised on creation to be strictly increasing (sorted, deduplicated).
    """

    def __post_init__(self) -> None:
        """Normalise the offsets to a strictly increasing tuple."""
        offsets = [float(h) for h in self.offset_hours]
        if not all(math.isfinite(h) for h in offsets):
            raise ValueError(
                f"Cannot create TimeCoord '{self.id}' with non-finite offset hours: {offsets}",
            )
        object.__setattr__(self, "offset_hours", tuple(sorted(set(offsets))))

    def __len__(self) -> int:
        return len(self.offset_hours)

    def find_index(self, offset_hour: float) -> int:
        """Return the index of an offset, matched exactly by value, or -1."""
        try:
            return self.offset_hours.index(float(offset_hour))
        except ValueError:
            return -1

    def with_id(self, new_id: str) -> "TimeCoord":
        """Return the same offsets under a different name."""
        return dataclasses.replace(self, id=new_id)

    @classmethod
    def union(cls, time_coords: Iterable["TimeCoord"], id: str = "union") -> "TimeCoord":
        """Build the union of the offsets of several time coordinates.

        The result is sorted ascending and deduplicated.

        Examples:
            >>> TimeCoord.union([TimeCoord("a", (0, 6, 12)), TimeCoord("b", (0, 3, 6, 9, 12))])
            TimeCoord(id='union', offset_hours=(0.0, 3.0, 6.0, 9.0, 12.0))
        """
        values: set[float] = set()
        for tc in time_coords:
            values.update(tc.offset_hours)
        return cls(id=id, offset_hours=tuple(values))


@dataclasses.dataclass(slots=True, frozen=True)
class VertCoord:
    """A named axis of vertical levels.

    The name is the stable identity of the coordinate; ids may be regenerated
    between inventories of the same dataset.
    """

    id: str
    """Identifier referred to by grids in persisted definitions."""
    name: str
    """Name of the coordinate, unique within a definition."""
    values1: tuple[float, ...]
    """The primary level values."""
    values2: tuple[float, ...] | None = None
    """Paired secondary values (layer bounds), if the coordinate describes layers."""
    units: str | None = None
    """The units of the level values."""

    def __post_init__(self) -> None:
        """Coerce values to floats and check the secondary values are paired."""
        object.__setattr__(self, "values1", tuple(float(v) for v in self.values1))
        if self.values2 is not None:
            object.__setattr__(self, "values2", tuple(float(v) for v in self.values2))
            if len(self.values2) != len(self.values1):
                raise ValueError(
                    f"Cannot create VertCoord '{self.name}' as the secondary values "
                    f"({len(self.values2)}) are not paired with the primary values "
                    f"({len(self.values1)}).",
                )

    @property
    def size(self) -> int:
        """The number of levels."""
        return len(self.values1)

    @property
    def is_layer(self) -> bool:
        """Whether the levels are layers with secondary bounds."""
        return self.values2 is not None
