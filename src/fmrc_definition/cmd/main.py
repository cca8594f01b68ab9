"""Entrypoints to the fmrc-definition tools."""

import logging
import os
import sys
from typing import NamedTuple

from fmrc_definition.internal import handlers, ports, repositories

log = logging.getLogger("fmrc-definition")


class Adaptors(NamedTuple):
    """Adaptors for the CLI."""

    inventory_repository: type[ports.InventoryRepository]
    definition_repository: type[ports.DefinitionRepository]
    notification_repository: type[ports.NotificationRepository]


def parse_env() -> Adaptors:
    """Parse from the environment."""
    inventory_repository_adaptor: type[ports.InventoryRepository]
    match os.getenv("INVENTORY_REPOSITORY", "xarray"):
        case "xarray":
            inventory_repository_adaptor = (
                repositories.inventory_repositories.XarrayInventoryRepository
            )
        case _ as ir:
            log.error(f"Unknown inventory repository '{ir}'. Expected one of ['xarray']")
            sys.exit(1)

    definition_repository_adaptor: type[ports.DefinitionRepository]
    match os.getenv("DEFINITION_REPOSITORY", "xml"):
        case "xml":
            definition_repository_adaptor = (
                repositories.definition_repositories.XMLDefinitionRepository
            )
        case _ as dr:
            log.error(f"Unknown definition repository '{dr}'. Expected one of ['xml']")
            sys.exit(1)

    notification_repository_adaptor: type[ports.NotificationRepository]
    match os.getenv("NOTIFICATION_REPOSITORY", "stdout"):
        case "stdout":
            notification_repository_adaptor = (
                repositories.notification_repositories.StdoutNotificationRepository
            )
        case _ as notification:
            log.error(f"Unknown notification repository: {notification}")
            sys.exit(1)

    return Adaptors(
        inventory_repository=inventory_repository_adaptor,
        definition_repository=definition_repository_adaptor,
        notification_repository=notification_repository_adaptor,
    )


def run_cli() -> None:
    """Entrypoint for the CLI handler."""
    adaptors = parse_env()
    c = handlers.CLIHandler(
        inventory_adaptor=adaptors.inventory_repository,
        definition_adaptor=adaptors.definition_repository,
        notification_adaptor=adaptors.notification_repository,
    )
    returncode: int = c.run()
    sys.exit(returncode)
