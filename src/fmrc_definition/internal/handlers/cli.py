"""Adaptor for the CLI driving actor."""

import argparse
import datetime as dt
import logging

from returns.result import Failure, ResultE

from fmrc_definition.internal import entities, ports, services

log = logging.getLogger("fmrc-definition")


class CLIHandler:
    """CLI driving actor."""

    inventory_adaptor: type[ports.InventoryRepository]
    definition_adaptor: type[ports.DefinitionRepository]
    notification_adaptor: type[ports.NotificationRepository]

    def __init__(
        self,
        inventory_adaptor: type[ports.InventoryRepository],
        definition_adaptor: type[ports.DefinitionRepository],
        notification_adaptor: type[ports.NotificationRepository],
    ) -> None:
        """Create a new instance."""
        self.inventory_adaptor = inventory_adaptor
        self.definition_adaptor = definition_adaptor
        self.notification_adaptor = notification_adaptor

    @property
    def parser(self) -> argparse.ArgumentParser:
        """Return the CLI argument parser."""
        parser = argparse.ArgumentParser(description="FMRC Definition CLI")
        subparsers = parser.add_subparsers(dest="command")

        build_command = subparsers.add_parser(
            "build",
            help="Build a definition from the datasets of several model runs",
        )
        build_command.add_argument(
            "datasets",
            help="Datasets to scan, one per model run",
            nargs="+",
        )
        build_command.add_argument(
            "--output",
            "-o",
            help="Where to write the definition",
            required=True,
        )
        build_command.add_argument(
            "--name",
            help="Name of the dataset the definition describes",
            required=False,
        )
        build_command.add_argument(
            "--suffix-filter",
            help="Filename suffix of files in the collection",
            required=False,
        )

        reconcile_command = subparsers.add_parser(
            "reconcile",
            help="Refresh the coordinates of a definition from fresh model runs",
        )
        reconcile_command.add_argument("definition", help="The definition to reconcile")
        reconcile_command.add_argument(
            "datasets",
            help="Datasets of fresh runs. "
            "Time coordinates are refreshed if more than one is given.",
            nargs="+",
        )
        reconcile_command.add_argument(
            "--output",
            "-o",
            help="Where to write the reconciled definition. "
            "Defaults to a 'new' directory beside the definition.",
            required=False,
        )

        rename_command = subparsers.add_parser(
            "rename",
            help="Rename definition grids whose names drifted from those of a model run",
        )
        rename_command.add_argument("definition", help="The definition to repair")
        rename_command.add_argument("dataset", help="Dataset of a fresh run")
        rename_command.add_argument(
            "--output",
            "-o",
            help="Where to write the renamed definition. "
            "Defaults to a 'new' directory beside the definition.",
            required=False,
        )

        check_command = subparsers.add_parser(
            "check",
            help="Report vertical coordinates of a model run missing from a definition",
        )
        check_command.add_argument("definition", help="The definition to check")
        check_command.add_argument("dataset", help="Dataset of a fresh run")
        check_command.add_argument(
            "--strict",
            help="Exit with an error if anything is reported",
            action="store_true",
        )

        query_command = subparsers.add_parser(
            "query",
            help="Show the coordinates a definition gives a variable",
        )
        query_command.add_argument("definition", help="The definition to query")
        query_command.add_argument("variable", help="Name of the variable")
        query_command.add_argument(
            "--run-time",
            "-r",
            help="Run time of the forecast (YYYY-MM-DDTHH:MM). Defaults to 00Z today.",
            type=dt.datetime.fromisoformat,
            required=False,
        )
        query_command.add_argument(
            "--offset",
            help="Show the vertical levels at this offset hour",
            type=float,
            required=False,
        )

        return parser

    def run(self, argv: list[str] | None = None) -> int:
        """Run the CLI handler.

        Returns the appropriate exit code.
        """
        args = self.parser.parse_args(argv)
        service_result = services.DefinitionService.from_adaptors(
            inventory_adaptor=self.inventory_adaptor,
            definition_adaptor=self.definition_adaptor,
            notification_adaptor=self.notification_adaptor,
        )
        report_result: ResultE[entities.ReconciliationReport]
        match args.command:
            case "build":
                result: ResultE[str] = service_result.do(
                    build_result
                    for service in service_result
                    for build_result in service.build(
                        locations=args.datasets,
                        output=args.output,
                        name=args.name,
                        suffix_filter=args.suffix_filter,
                    )
                )
                if isinstance(result, Failure):
                    log.error(f"Failed to build definition: {result!s}")
                    return 1

            case "reconcile":
                report_result = service_result.do(
                    reconcile_result
                    for service in service_result
                    for reconcile_result in service.reconcile(
                        locations=args.datasets,
                        definition_location=args.definition,
                        output=args.output,
                    )
                )
                if isinstance(report_result, Failure):
                    log.error(f"Failed to reconcile definition: {report_result!s}")
                    return 1

            case "rename":
                report_result = service_result.do(
                    rename_result
                    for service in service_result
                    for rename_result in service.rename(
                        location=args.dataset,
                        definition_location=args.definition,
                        output=args.output,
                    )
                )
                if isinstance(report_result, Failure):
                    log.error(f"Failed to rename definition grids: {report_result!s}")
                    return 1

            case "check":
                report_result = service_result.do(
                    check_result
                    for service in service_result
                    for check_result in service.check(
                        location=args.dataset,
                        definition_location=args.definition,
                    )
                )
                if isinstance(report_result, Failure):
                    log.error(f"Failed to check definition: {report_result!s}")
                    return 1
                if args.strict and not report_result.unwrap().ok:
                    return 1

            case "query":
                run_time: dt.datetime = args.run_time or dt.datetime.now(tz=dt.UTC).replace(
                    hour=0, minute=0, second=0, microsecond=0,
                )
                result = service_result.do(
                    query_result
                    for service in service_result
                    for query_result in service.query(
                        definition_location=args.definition,
                        variable=args.variable,
                        run_time=run_time,
                        offset_hour=args.offset,
                    )
                )
                if isinstance(result, Failure):
                    log.error(f"Failed to query definition: {result!s}")
                    return 1
                print(result.unwrap())  # noqa: T201

            case _:
                log.error(f"Unknown command: {args.command}")
                self.parser.print_help()
                return 1

        return 0
