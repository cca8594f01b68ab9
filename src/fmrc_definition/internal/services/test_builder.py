import dataclasses
import datetime as dt
import unittest

from fmrc_definition.internal import entities

from .builder import build_from_inventory

LONG = entities.TimeCoord(id="step", offset_hours=(0, 6, 12, 84))
SHORT = entities.TimeCoord(id="step", offset_hours=(0, 6, 12, 48))
ISOBARIC = entities.VertCoord(
    id="isobaric", name="isobaric", values1=(1000, 850, 500), units="hPa",
)
DEPTH = entities.VertCoord(
    id="depth", name="depth", values1=(0.0, 0.1), values2=(0.1, 0.4), units="m",
)


def _at(hour: int) -> dt.datetime:
    return dt.datetime(2024, 3, 1, hour, tzinfo=dt.UTC)


class TestBuildFromInventory(unittest.TestCase):
    """Test the construction of definitions from collection inventories."""

    def test_all_runs_share_time_coord(self) -> None:
        runs = [
            entities.RunInventory(
                run_time=_at(hour),
                grids=[
                    entities.InventoryGrid(name="Temperature_isobaric", time_coord=LONG,
                                           vert_coord=ISOBARIC),
                    entities.InventoryGrid(name="Pressure_surface", time_coord=LONG),
                    entities.InventoryGrid(name="Soil_temperature", time_coord=LONG,
                                           vert_coord=DEPTH),
                ],
            )
            for hour in (0, 6, 12, 18)
        ]
        inventory = entities.CollectionInventory.from_runs(name="GFS", runs=runs)

        d = build_from_inventory(inventory, suffix_filter=".grib2")

        self.assertEqual(d.name, "GFS")
        self.assertEqual(d.suffix_filter, ".grib2")
        self.assertEqual([tc.id for tc in d.time_coords], ["0"])
        self.assertEqual([vtc.name for vtc in d.vert_time_coords], ["depth", "isobaric"])
        self.assertEqual(len(d.run_sequences), 1)
        seq = d.run_sequences[0]
        self.assertTrue(seq.is_all)
        self.assertEqual(
            [g.name for g in seq.grids],
            ["Pressure_surface", "Soil_temperature", "Temperature_isobaric"],
        )
        # Grids refer to the shared definition entries
        self.assertIs(d.find_grid_by_name("Temperature_isobaric").vtc,
                      d.find_vert_coord_by_name("isobaric"))
        self.assertIsNone(d.find_grid_by_name("Pressure_surface").vtc)
        self.assertEqual(d.find_vert_coord_for_variable("Soil_temperature"), DEPTH)

    def test_run_sequence_per_run_hour(self) -> None:
        runs = [
            entities.RunInventory(
                run_time=_at(hour),
                grids=[entities.InventoryGrid(name="Total_precipitation_surface", time_coord=tc)],
            )
            for hour, tc in ((0, LONG), (6, SHORT))
        ]
        inventory = entities.CollectionInventory.from_runs(name="GFS", runs=runs)

        d = build_from_inventory(inventory)

        seq = d.run_sequences[0]
        self.assertFalse(seq.is_all)
        self.assertEqual(
            [(r.run_hour, r.time_coord.id) for r in seq.runs],
            [(0.0, "0"), (6.0, "1"), (12.0, "1"), (18.0, "1"), (24.0, "1")],
        )
        for hour in range(0, 24, 6):
            with self.subTest(hour=hour):
                tc = d.find_time_coord_for_variable(
                    "Total_precipitation_surface", _at(0).replace(hour=hour),
                )
                self.assertIsNotNone(tc)
                self.assertEqual(tc.id, "time")

    def test_partial_levels_become_restrictions(self) -> None:
        @dataclasses.dataclass
        class TestCase:
            name: str
            hours: tuple[tuple[int, entities.TimeCoord], ...]
            expected_time_coord: str

        tests = [
            TestCase(
                name="shared_time_coord",
                hours=((0, LONG), (12, LONG)),
                expected_time_coord="0",
            ),
            TestCase(
                name="union_time_coord",
                hours=((0, LONG), (6, SHORT)),
                expected_time_coord="union",
            ),
        ]

        for t in tests:
            with self.subTest(name=t.name):
                runs = [
                    entities.RunInventory(
                        run_time=_at(hour),
                        grids=[
                            entities.InventoryGrid(
                                name="Vertical_velocity_isobaric",
                                time_coord=tc,
                                vert_coord=ISOBARIC,
                                levels_by_offset={12.0: (1000.0, 850.0)},
                            ),
                        ],
                    )
                    for hour, tc in t.hours
                ]
                d = build_from_inventory(
                    entities.CollectionInventory.from_runs(name=None, runs=runs),
                )

                grid = d.find_grid_by_name("Vertical_velocity_isobaric")
                shared = d.find_vert_coord_by_name("isobaric")
                self.assertIsNot(grid.vtc, shared)
                self.assertFalse(shared.is_restricted)
                self.assertEqual(grid.vtc.time_coord.id, t.expected_time_coord)
                self.assertEqual(grid.vtc.restrictions, [("1000.0 850.0", "12.0")])
                self.assertEqual(grid.get_vert_coords(12), (1000.0, 850.0))
                self.assertEqual(grid.get_vert_coords(6), (1000.0, 850.0, 500.0))

    def test_empty_run_sequence(self) -> None:
        inventory = entities.CollectionInventory(
            name=None, run_sequences=[entities.InventoryRunSeq()],
        )
        with self.assertRaises(ValueError):
            build_from_inventory(inventory)


if __name__ == "__main__":
    unittest.main()
