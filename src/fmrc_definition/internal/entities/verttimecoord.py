"""Domain entity for time dependent vertical coordinates.

Restrictions
------------

Usually a field is defined on the same vertical levels at every forecast
offset. Some are not: a model may output a field on all pressure levels for
the first day of the forecast, and only on a handful thereafter.

A `VertTimeCoord` binds a `VertCoord` to the `TimeCoord` of the field, and
holds a table of the levels in use at each offset of that time coordinate.
The table is built from *restrictions*: authored exceptions of the form
"at these offsets, only these levels", e.g.::

    restrict="1000 850"  ->  offsets "6 12"

Offsets not named by any restriction keep the full default level set.
"""

import dataclasses
import logging

from .coordinates import TimeCoord, VertCoord, parse_numbers

log = logging.getLogger("fmrc-definition")


@dataclasses.dataclass(slots=True)
class VertTimeCoord:
    """A vertical coordinate whose effective levels may depend on the offset hour."""

    vert_coord: VertCoord
    """The default vertical levels."""

    time_coord: TimeCoord | None = None
    """The time coordinate the restriction table is indexed by, if bound."""

    levels_for_time_index: list[tuple[float, ...]] | None = dataclasses.field(
        default=None, repr=False,
    )
    """The override table, one level set per offset of the bound time coordinate.

    Allocated on the first restriction; None while no restriction was ever added.
    """

    restrictions: list[tuple[str, str]] = dataclasses.field(default_factory=list)
    """The literal (levels, offsets) request strings, in the order they were added."""

    @property
    def id(self) -> str:
        return self.vert_coord.id

    @property
    def name(self) -> str:
        return self.vert_coord.name

    @property
    def ntimes(self) -> int:
        """The number of offsets indexed by the restriction table."""
        return 1 if self.time_coord is None else len(self.time_coord)

    @property
    def is_restricted(self) -> bool:
        """Whether any restriction was added."""
        return self.levels_for_time_index is not None

    def add_restriction(self, vert_coords: str, time_hours: str) -> None:
        """Restrict the levels in use at some offsets.

        Both arguments are whitespace and/or comma delimited lists of numbers.
        Offsets missing from the bound time coordinate are logged and skipped.
        Every offset listed shares the same override level tuple.

        Args:
            vert_coords: The vertical levels in use at the given offsets.
            time_hours: The offset hours the restriction applies to.

        Raises:
            ValueError: If either list contains a token that is not a number.
        """
        levels = parse_numbers(vert_coords)
        hours = parse_numbers(time_hours)

        if self.levels_for_time_index is None:
            self.levels_for_time_index = [self.vert_coord.values1] * self.ntimes

        self.restrictions.append((vert_coords, time_hours))

        for hour in hours:
            index = -1 if self.time_coord is None else self.time_coord.find_index(hour)
            if index < 0:
                log.error(
                    f"Offset hour {hour} not found in TimeCoord "
                    f"'{None if self.time_coord is None else self.time_coord.id}' "
                    f"while restricting vertical coordinate '{self.name}'",
                )
                continue
            self.levels_for_time_index[index] = levels

    def get_vert_coords(self, offset_hour: float) -> tuple[float, ...]:
        """Return the vertical levels in use at an offset hour.

        Without a bound time coordinate or any restriction, this is the full
        default level set. With a restriction table, an offset missing from the
        bound time coordinate yields an empty tuple: no levels are defined there.
        """
        if self.time_coord is None or self.levels_for_time_index is None:
            return self.vert_coord.values1

        index = self.time_coord.find_index(offset_hour)
        if index < 0:
            return ()
        return self.levels_for_time_index[index]

    def count_vert_coords(self, offset_hour: float) -> int:
        """Return the number of vertical levels in use at an offset hour."""
        return len(self.get_vert_coords(offset_hour))

    def rebound(
        self,
        vert_coord: VertCoord | None = None,
        time_coord: TimeCoord | None = None,
    ) -> "VertTimeCoord":
        """Return a copy bound to new coordinates, with the restrictions replayed.

        Coordinates not given are kept from this instance.
        """
        new = VertTimeCoord(
            vert_coord=vert_coord if vert_coord is not None else self.vert_coord,
            time_coord=time_coord if time_coord is not None else self.time_coord,
        )
        for levels, hours in self.restrictions:
            new.add_restriction(levels, hours)
        return new
