"""Repository interfaces for inventory sources and definition stores.

These interfaces define the signatures that *driven* actors must conform to
in order to interact with the core.
Also sometimes referred to as *secondary ports*.

The core never reads model data itself. An `InventoryRepository` scans a
model run dataset, however it is stored, and hands the core a completed
`RunInventory` snapshot. A `DefinitionRepository` persists and restores
whole definitions. A `NotificationRepository` receives reports of what
reconciliation found.
"""

import abc
import logging

from returns.result import ResultE

from fmrc_definition.internal import entities

log = logging.getLogger("fmrc-definition")


class InventoryRepository(abc.ABC):
    """Interface for a repository that produces inventories of model runs.

    Scanning a dataset is a blocking call; the core only ever sees
    the completed snapshot it returns.
    """

    @classmethod
    @abc.abstractmethod
    def authenticate(cls) -> ResultE["InventoryRepository"]:
        """Create a new configured instance of the class."""
        pass

    @abc.abstractmethod
    def scan(self, location: str) -> ResultE[entities.RunInventory]:
        """Scan the dataset of a single model run.

        Args:
            location: Where the dataset of the run is found.

        Returns:
            The inventory of the run: its run time, and each field found
            with the time and vertical coordinate it uses.
        """
        pass


class DefinitionRepository(abc.ABC):
    """Interface for a repository that stores definitions.

    Definitions are always written and read whole.
    """

    @abc.abstractmethod
    def load(self, location: str) -> ResultE[entities.FmrcDefinition | None]:
        """Load a definition.

        Returns:
            The definition, ``Success(None)`` if nothing is stored at the location,
            or a Failure wrapping a `StructuralError` if what is stored is malformed.
        """
        pass

    @abc.abstractmethod
    def save(self, definition: entities.FmrcDefinition, location: str) -> ResultE[str]:
        """Store a definition, returning the location written to."""
        pass


class NotificationRepository(abc.ABC):
    """Interface for a repository that sends notifications.

    Adaptors for this port enable sending reconciliation reports to
    a desired channel.
    """

    @abc.abstractmethod
    def notify(self, message: entities.ReconciliationReport) -> ResultE[str]:
        """Send a notification."""
        pass
