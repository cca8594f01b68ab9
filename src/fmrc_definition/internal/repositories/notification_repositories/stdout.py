"""Stdout notification repository implementation."""

import logging
from typing import override

from returns.result import ResultE, Success

from fmrc_definition.internal import entities, ports

log = logging.getLogger("fmrc-definition")


class StdoutNotificationRepository(ports.NotificationRepository):
    """Stdout notification repository."""

    @override
    def notify(self, message: entities.ReconciliationReport) -> ResultE[str]:
        log.info(f"{message}")
        return Success("Notification sent to stdout successfully.")
