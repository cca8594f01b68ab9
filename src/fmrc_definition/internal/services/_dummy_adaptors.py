import copy
import datetime as dt
from typing import override

from returns.result import Failure, ResultE, Success

from fmrc_definition.internal import entities, ports

LONG = entities.TimeCoord(id="step", offset_hours=(0, 6, 12, 84))
SHORT = entities.TimeCoord(id="step", offset_hours=(0, 6, 12, 48))
ISOBARIC = entities.VertCoord(id="isobaric", name="isobaric", values1=(1000, 850), units="hPa")
ISOBARIC_MORE = entities.VertCoord(
    id="isobaric", name="isobaric", values1=(1000, 925, 850), units="hPa",
)
HEIGHT = entities.VertCoord(
    id="height", name="height_above_ground", values1=(2,), units="m",
)


def _run(hour: int, tc: entities.TimeCoord, vc: entities.VertCoord, temperature: str,
         day: int = 1) -> entities.RunInventory:
    return entities.RunInventory(
        run_time=dt.datetime(2024, 3, day, hour, tzinfo=dt.UTC),
        grids=[
            entities.InventoryGrid(name="Pressure_surface", time_coord=tc),
            entities.InventoryGrid(name=temperature, time_coord=tc, vert_coord=vc),
        ],
    )


class DummyInventoryRepository(ports.InventoryRepository):
    runs: dict[str, entities.RunInventory] = {
        "gfs_00": _run(0, LONG, ISOBARIC, "Temperature_isobaric"),
        "gfs_06": _run(6, SHORT, ISOBARIC, "Temperature_isobaric"),
        "gfs_12_more_levels": _run(12, LONG, ISOBARIC_MORE, "Temperature_isobaric"),
        "gfs_18_renamed": _run(18, SHORT, ISOBARIC, "Temperature-isobaric"),
        "gfs_00_height": _run(0, LONG, HEIGHT, "Temperature_height_above_ground"),
        "gfs_00_next_day": _run(0, LONG, ISOBARIC, "Temperature_isobaric", day=2),
    }

    @classmethod
    @override
    def authenticate(cls) -> ResultE["DummyInventoryRepository"]:
        return Success(cls())

    @override
    def scan(self, location: str) -> ResultE[entities.RunInventory]:
        if location not in self.runs:
            return Failure(FileNotFoundError(f"No dataset found at '{location}'"))
        return Success(self.runs[location])


class DummyDefinitionRepository(ports.DefinitionRepository):
    store: dict[str, entities.FmrcDefinition] = {}

    @override
    def load(self, location: str) -> ResultE[entities.FmrcDefinition | None]:
        return Success(copy.deepcopy(self.store.get(location)))

    @override
    def save(self, definition: entities.FmrcDefinition, location: str) -> ResultE[str]:
        self.store[location] = copy.deepcopy(definition)
        return Success(location)


class DummyNotificationRepository(ports.NotificationRepository):
    sent: list[entities.ReconciliationReport] = []

    @override
    def notify(self, message: entities.ReconciliationReport) -> ResultE[str]:
        self.sent.append(message)
        return Success(str(message))
