"""Service interfaces for definition services.

These interfaces define the signatures that *driving* actors must conform to
in order to interact with the core.

Sometimes referred to as *primary ports*.
"""

import abc
import datetime as dt

from returns.result import ResultE

from fmrc_definition.internal import entities


class DefinitionUseCase(abc.ABC):
    """Interface for the definition use case.

    Defines the business-critical methods for the following use cases:

    - 'A user should be able to build a definition from the runs of a collection.'
    - 'A user should be able to repair a definition against a newly scanned run.'
    - 'A user should be able to ask which coordinates apply to a field.'
    """

    @abc.abstractmethod
    def build(
        self,
        locations: list[str],
        output: str,
        name: str | None = None,
        suffix_filter: str | None = None,
    ) -> ResultE[str]:
        """Build a definition from the datasets of several runs and store it.

        Args:
            locations: The datasets, one per model run.
            output: Where to store the definition.
            name: The name of the dataset the definition describes.
            suffix_filter: The filename suffix of files in the collection.

        Returns:
            The location of the stored definition.
        """
        pass

    @abc.abstractmethod
    def reconcile(
        self,
        locations: list[str],
        definition_location: str,
        output: str | None = None,
    ) -> ResultE[entities.ReconciliationReport]:
        """Refresh the coordinates of a definition from fresh runs and store the result.

        Vertical coordinates are refreshed from, and grids checked against, the
        latest of the runs. Given more than one run, time coordinates are
        refreshed from all of them.

        Args:
            locations: The datasets of freshly issued runs.
            definition_location: The stored definition to reconcile.
            output: Where to store the reconciled definition. Defaults to
                a 'new' directory beside the definition.
        """
        pass

    @abc.abstractmethod
    def rename(
        self,
        location: str,
        definition_location: str,
        output: str | None = None,
    ) -> ResultE[entities.ReconciliationReport]:
        """Rename definition grids whose names drifted from those in a run.

        The definition is only stored if a grid was renamed.
        """
        pass

    @abc.abstractmethod
    def check(
        self,
        location: str,
        definition_location: str,
    ) -> ResultE[entities.ReconciliationReport]:
        """Report drift between a definition and a run without changing anything."""
        pass

    @abc.abstractmethod
    def query(
        self,
        definition_location: str,
        variable: str,
        run_time: dt.datetime,
        offset_hour: float | None = None,
    ) -> ResultE[str]:
        """Describe the time coordinate and vertical levels of a field for a run."""
        pass
