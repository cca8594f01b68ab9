import datetime as dt
import unittest

from returns.pipeline import is_successful

from fmrc_definition.internal import entities

from ._dummy_adaptors import (
    DummyDefinitionRepository,
    DummyInventoryRepository,
    DummyNotificationRepository,
)
from .definition_service import DefinitionService


class TestDefinitionService(unittest.TestCase):
    """Test the use cases of the DefinitionService class."""

    service: DefinitionService

    def setUp(self) -> None:
        DummyDefinitionRepository.store.clear()
        DummyNotificationRepository.sent.clear()
        self.service = DefinitionService.from_adaptors(
            inventory_adaptor=DummyInventoryRepository,
            definition_adaptor=DummyDefinitionRepository,
            notification_adaptor=DummyNotificationRepository,
        ).unwrap()

    def _build(self) -> str:
        result = self.service.build(
            locations=["gfs_06", "gfs_00"],
            output="defs/gfs.fmrcDefinition.xml",
            name="GFS",
            suffix_filter=".grib2",
        )
        self.assertTrue(is_successful(result), msg=result)
        return result.unwrap()

    def test_build(self) -> None:
        location = self._build()

        self.assertEqual(location, "defs/gfs.fmrcDefinition.xml")
        d = DummyDefinitionRepository.store[location]
        self.assertEqual(d.name, "GFS")
        self.assertEqual(d.suffix_filter, ".grib2")
        self.assertEqual(len(d.run_sequences), 1)
        self.assertFalse(d.run_sequences[0].is_all)
        self.assertEqual(
            sorted(g.name for g in d.grids()), ["Pressure_surface", "Temperature_isobaric"],
        )

    def test_build_failed_scan(self) -> None:
        result = self.service.build(locations=["gfs_00", "missing"], output="out.xml")
        self.assertFalse(is_successful(result))
        self.assertEqual(DummyDefinitionRepository.store, {})

        result = self.service.build(locations=[], output="out.xml")
        self.assertFalse(is_successful(result))

    def test_reconcile(self) -> None:
        location = self._build()

        result = self.service.reconcile(
            locations=["gfs_12_more_levels"], definition_location=location,
        )

        self.assertTrue(is_successful(result), msg=result)
        report = result.unwrap()
        self.assertTrue(report.changed)
        reconciled = DummyDefinitionRepository.store["defs/new/gfs.fmrcDefinition.xml"]
        self.assertEqual(
            reconciled.find_vert_coord_for_variable("Temperature_isobaric").size, 3,
        )
        # The input definition is left as it was
        self.assertEqual(
            DummyDefinitionRepository.store[location]
            .find_vert_coord_for_variable("Temperature_isobaric").size,
            2,
        )
        self.assertEqual(DummyNotificationRepository.sent, [report])

    def test_reconcile_unchanged_runs_from_06z(self) -> None:
        location = self._build()
        original = DummyDefinitionRepository.store[location]

        result = self.service.reconcile(
            locations=["gfs_06", "gfs_00_next_day"], definition_location=location,
        )

        self.assertTrue(is_successful(result), msg=result)
        report = result.unwrap()
        self.assertEqual(report.changes, [])
        self.assertEqual(report.diagnostics, [])
        reconciled = DummyDefinitionRepository.store["defs/new/gfs.fmrcDefinition.xml"]
        self.assertEqual(reconciled.time_coords, original.time_coords)
        at_00z = reconciled.find_time_coord_for_variable(
            "Temperature_isobaric", dt.datetime(2024, 3, 5, 0, tzinfo=dt.UTC),
        )
        self.assertEqual(at_00z.offset_hours, (0.0, 6.0, 12.0, 84.0))

    def test_reconcile_missing_definition(self) -> None:
        result = self.service.reconcile(locations=["gfs_00"], definition_location="nowhere.xml")
        self.assertFalse(is_successful(result))
        self.assertIsInstance(result.failure(), FileNotFoundError)

    def test_rename(self) -> None:
        location = self._build()

        result = self.service.rename(
            location="gfs_18_renamed", definition_location=location, output="renamed.xml",
        )

        self.assertTrue(is_successful(result), msg=result)
        self.assertTrue(result.unwrap().changed)
        renamed = DummyDefinitionRepository.store["renamed.xml"]
        self.assertTrue(renamed.has_variable("Temperature-isobaric"))
        self.assertFalse(renamed.has_variable("Temperature_isobaric"))

    def test_rename_unchanged_is_not_written(self) -> None:
        location = self._build()

        result = self.service.rename(
            location="gfs_00", definition_location=location, output="renamed.xml",
        )

        self.assertTrue(is_successful(result), msg=result)
        self.assertFalse(result.unwrap().changed)
        self.assertNotIn("renamed.xml", DummyDefinitionRepository.store)

    def test_check(self) -> None:
        location = self._build()

        result = self.service.check(location="gfs_00", definition_location=location)

        self.assertTrue(is_successful(result), msg=result)
        self.assertTrue(result.unwrap().ok)
        self.assertEqual(len(DummyDefinitionRepository.store), 1)

    def test_query(self) -> None:
        location = self._build()
        run_time = dt.datetime(2024, 3, 1, 6, tzinfo=dt.UTC)

        result = self.service.query(
            definition_location=location,
            variable="Temperature_isobaric",
            run_time=run_time,
            offset_hour=12,
        )

        self.assertTrue(is_successful(result), msg=result)
        self.assertEqual(
            result.unwrap().splitlines(),
            [
                "variable: Temperature_isobaric",
                "time coordinate: time [0.0 6.0 12.0 48.0]",
                "vertical coordinate: isobaric (2 levels)",
                "levels at offset 12.0: [1000.0 850.0]",
            ],
        )

        result = self.service.query(
            definition_location=location, variable="Unknown", run_time=run_time,
        )
        self.assertFalse(is_successful(result))
        self.assertIsInstance(result.failure(), KeyError)


if __name__ == "__main__":
    unittest.main()
