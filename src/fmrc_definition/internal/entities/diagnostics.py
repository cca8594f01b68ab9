"""Domain entities for reconciliation diagnostics.

Reconciliation is best-effort: mismatches between a definition and a freshly
observed inventory are never fatal. Each one is recorded as a `Diagnostic`,
and the diagnostics of one operation are gathered in a `ReconciliationReport`
for the caller to judge.
"""

import dataclasses
import enum


class DiagnosticKind(enum.StrEnum):
    """The kinds of drift the reconciler can detect."""

    GRID_NOT_IN_INVENTORY = "grid_not_in_inventory"
    """A definition grid has no field of the same name in the inventory."""
    GRID_NOT_IN_DEFINITION = "grid_not_in_definition"
    """An inventory field has no grid of the same name in the definition."""
    VERT_COORD_NOT_IN_DEFINITION = "vert_coord_not_in_definition"
    """An inventory vertical coordinate has no same-named definition entry."""
    VERT_COORD_MISMATCH = "vert_coord_mismatch"
    """A field's vertical coordinate cardinality differs between definition and inventory."""
    AMBIGUOUS_RENAME = "ambiguous_rename"
    """An inventory field name munges to the name of more than one definition grid."""
    NO_RENAME_CANDIDATE = "no_rename_candidate"
    """An inventory field name munges to the name of no definition grid."""
    RESTRICTED_LAYER = "restricted_layer"
    """A layer vertical coordinate is used by grids carrying restrictions."""
    TIME_COORD_CONFLICT = "time_coord_conflict"
    """Fresh runs resolving to the same time coordinate disagree on its offsets."""


@dataclasses.dataclass(slots=True, frozen=True)
class Diagnostic:
    """A single detected mismatch."""

    kind: DiagnosticKind
    subject: str
    """The name of the grid or coordinate concerned."""
    message: str

    def __str__(self) -> str:
        return f"[{self.kind}] {self.subject}: {self.message}"


@dataclasses.dataclass(slots=True)
class ReconciliationReport:
    """The outcome of reconciling a definition against an inventory."""

    definition: str | None
    """The name of the definition reconciled."""

    diagnostics: list[Diagnostic] = dataclasses.field(default_factory=list)
    """Mismatches detected and not repaired."""

    changes: list[str] = dataclasses.field(default_factory=list)
    """Repairs applied to the definition."""

    @property
    def changed(self) -> bool:
        return len(self.changes) > 0

    @property
    def ok(self) -> bool:
        """Whether no unrepaired mismatch was detected."""
        return len(self.diagnostics) == 0

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == kind]

    def merge(self, other: "ReconciliationReport") -> "ReconciliationReport":
        """Return a report holding the diagnostics and changes of both."""
        return ReconciliationReport(
            definition=self.definition,
            diagnostics=self.diagnostics + other.diagnostics,
            changes=self.changes + other.changes,
        )

    def __str__(self) -> str:
        """Return a string representation of the report."""
        lines = [
            f"Reconciled definition '{self.definition}': "
            f"{len(self.changes)} change(s), {len(self.diagnostics)} diagnostic(s)",
        ]
        lines.extend(f"\t{change}" for change in self.changes)
        lines.extend(f"\t{diagnostic}" for diagnostic in self.diagnostics)
        return "\n".join(lines)
