"""Implementation of the definition service."""

import datetime as dt
import logging
import os
import pathlib
from collections.abc import Callable, Iterator
from typing import override

from joblib import Parallel, cpu_count, delayed
from returns.methods import partition
from returns.result import Failure, ResultE, Success

from fmrc_definition.internal import entities, ports

from . import builder, reconciler

log = logging.getLogger("fmrc-definition")


class DefinitionService(ports.DefinitionUseCase):
    """Service implementation for the FMRC definition tools.

    Defines the business-critical methods and logic.
    """

    ir: ports.InventoryRepository
    dr: ports.DefinitionRepository
    nr: ports.NotificationRepository

    def __init__(
        self,
        inventory_repository: ports.InventoryRepository,
        definition_repository: ports.DefinitionRepository,
        notification_repository: ports.NotificationRepository,
    ) -> None:
        """Create a new instance of the service."""
        self.ir = inventory_repository
        self.dr = definition_repository
        self.nr = notification_repository

    @classmethod
    def from_adaptors(
        cls,
        inventory_adaptor: type[ports.InventoryRepository],
        definition_adaptor: type[ports.DefinitionRepository],
        notification_adaptor: type[ports.NotificationRepository],
    ) -> ResultE["DefinitionService"]:
        """Create a new instance of the service from adaptors."""
        definition_repository = definition_adaptor()
        notification_repository = notification_adaptor()
        inventory_repository_result = inventory_adaptor.authenticate()
        return inventory_repository_result.do(
            cls(
                inventory_repository=inventory_repository,
                definition_repository=definition_repository,
                notification_repository=notification_repository,
            )
            for inventory_repository in inventory_repository_result
        )

    @staticmethod
    def _parallelize_generator[T](
        delayed_generator: Iterator[Callable[..., T]],
        max_connections: int,
    ) -> Iterator[T]:
        """Parallelize a generator of delayed functions.

        Args:
            delayed_generator: An iterable of delayed items.
                The creation of these items must be delayed via joblib.delayed,
                so they can be executed lazily.
            max_connections: The maximum number of concurrent scans.
        """
        n_jobs: int = max(min(cpu_count() - 1, max_connections), 1)
        prefer = "threads"

        if os.getenv("CONCURRENCY", "True").capitalize() == "False":
            n_jobs = 1

        log.debug(f"Using {n_jobs} concurrent {prefer}")

        return Parallel(  # type: ignore
            n_jobs=n_jobs,
            prefer=prefer,
            verbose=0,
            return_as="generator_unordered",
        )(delayed_generator)

    def _scan_all(self, locations: list[str]) -> ResultE[list[entities.RunInventory]]:
        """Scan the datasets of several runs, failing if any scan fails."""
        if len(locations) == 0:
            return Failure(ValueError("No dataset locations given to scan."))

        results: list[ResultE[entities.RunInventory]] = list(
            self._parallelize_generator(
                (delayed(self.ir.scan)(location) for location in locations),
                max_connections=len(locations),
            ),
        )
        successes, failures = partition(results)
        log.info(f"Scanned {len(successes)} run(s) successfully with {len(failures)} errors.")
        if len(failures) > 0:
            for exc in failures[:5]:
                log.error(str(exc))
            return Failure(
                OSError(
                    f"Failed to scan {len(failures)} of {len(locations)} run(s): {failures[0]}",
                ),
            )
        return Success(sorted(successes, key=lambda inv: inv.run_time))

    def _load(self, definition_location: str) -> ResultE[entities.FmrcDefinition]:
        """Load a stored definition, failing if none is stored."""
        load_result = self.dr.load(definition_location)
        if isinstance(load_result, Failure):
            return load_result
        definition = load_result.unwrap()
        if definition is None:
            return Failure(
                FileNotFoundError(f"No definition found at '{definition_location}'"),
            )
        return Success(definition)

    @staticmethod
    def _default_output(definition_location: str) -> str:
        """Place a rewritten definition in a 'new' directory beside the original."""
        path = pathlib.Path(definition_location)
        return (path.parent / "new" / path.name).as_posix()

    def _notify(self, report: entities.ReconciliationReport) -> None:
        notify_result = self.nr.notify(message=report)
        if isinstance(notify_result, Failure):
            log.error(
                "Failed to notify of reconciliation: "
                f"{notify_result.failure()}. "
                f"Report: {report}",
            )

    @override
    def build(
        self,
        locations: list[str],
        output: str,
        name: str | None = None,
        suffix_filter: str | None = None,
    ) -> ResultE[str]:
        """Build a definition from the datasets of several runs and store it.

        See Also:
            - `entities.CollectionInventory.from_runs`
            - `builder.build_from_inventory`
        """
        scan_result = self._scan_all(locations)
        if isinstance(scan_result, Failure):
            return scan_result
        runs = scan_result.unwrap()

        collection = entities.CollectionInventory.from_runs(name=name, runs=runs)
        try:
            definition = builder.build_from_inventory(collection, suffix_filter=suffix_filter)
        except ValueError as e:
            return Failure(ValueError(f"Failed to build definition from {len(runs)} run(s): {e}"))

        save_result = self.dr.save(definition, output)
        if isinstance(save_result, Success):
            log.info(
                f"Built definition of {sum(1 for _ in definition.grids())} grid(s) "
                f"from {len(runs)} run(s) to '{save_result.unwrap()}'",
            )
        return save_result

    @override
    def reconcile(
        self,
        locations: list[str],
        definition_location: str,
        output: str | None = None,
    ) -> ResultE[entities.ReconciliationReport]:
        definition_result = self._load(definition_location)
        if isinstance(definition_result, Failure):
            return definition_result
        scan_result = self._scan_all(locations)
        if isinstance(scan_result, Failure):
            return scan_result
        runs = scan_result.unwrap()

        collection = None
        if len(runs) > 1:
            collection = entities.CollectionInventory.from_runs(
                name=definition_result.unwrap().name, runs=runs,
            )
        definition, report = reconciler.reconcile(
            definition_result.unwrap(), runs[-1], collection=collection,
        )

        save_result = self.dr.save(
            definition, output or self._default_output(definition_location),
        )
        if isinstance(save_result, Failure):
            return save_result
        log.info(f"Wrote reconciled definition to '{save_result.unwrap()}'")
        self._notify(report)
        return Success(report)

    @override
    def rename(
        self,
        location: str,
        definition_location: str,
        output: str | None = None,
    ) -> ResultE[entities.ReconciliationReport]:
        definition_result = self._load(definition_location)
        if isinstance(definition_result, Failure):
            return definition_result
        scan_result = self.ir.scan(location)
        if isinstance(scan_result, Failure):
            return scan_result

        definition, report = reconciler.rename_drifted_grids(
            definition_result.unwrap(), scan_result.unwrap(),
        )
        if report.changed:
            save_result = self.dr.save(
                definition, output or self._default_output(definition_location),
            )
            if isinstance(save_result, Failure):
                return save_result
            log.info(f"Wrote renamed definition to '{save_result.unwrap()}'")
        else:
            log.info(f"No grids renamed in '{definition_location}'; nothing written")
        self._notify(report)
        return Success(report)

    @override
    def check(
        self,
        location: str,
        definition_location: str,
    ) -> ResultE[entities.ReconciliationReport]:
        definition_result = self._load(definition_location)
        if isinstance(definition_result, Failure):
            return definition_result
        scan_result = self.ir.scan(location)
        if isinstance(scan_result, Failure):
            return scan_result

        report = reconciler.check_vert_coords(definition_result.unwrap(), scan_result.unwrap())
        self._notify(report)
        return Success(report)

    @override
    def query(
        self,
        definition_location: str,
        variable: str,
        run_time: dt.datetime,
        offset_hour: float | None = None,
    ) -> ResultE[str]:
        definition_result = self._load(definition_location)
        if isinstance(definition_result, Failure):
            return definition_result
        definition = definition_result.unwrap()

        grid = definition.find_grid_by_name(variable)
        if grid is None:
            return Failure(KeyError(f"Variable '{variable}' not found in '{definition_location}'"))

        lines = [f"variable: {variable}"]
        tc = definition.find_time_coord_for_variable(variable, run_time)
        if tc is None:
            lines.append(f"time coordinate: none for run time {run_time:%Y-%m-%dT%H:%M}")
        else:
            lines.append(
                f"time coordinate: {tc.id} "
                f"[{' '.join(entities.format_number(h) for h in tc.offset_hours)}]",
            )
        vc = definition.find_vert_coord_for_variable(variable)
        if vc is None:
            lines.append("vertical coordinate: none")
        else:
            lines.append(f"vertical coordinate: {vc.name} ({vc.size} levels)")
        if offset_hour is not None:
            levels = grid.get_vert_coords(offset_hour)
            lines.append(
                f"levels at offset {entities.format_number(offset_hour)}: "
                f"[{' '.join(entities.format_number(v) for v in levels)}]",
            )
        return Success("\n".join(lines))
