"""Reconciliation of a definition against freshly observed inventories.

Definitions drift: a dataset revision adds pressure levels, renames a field
from ``Temperature_isobaric`` to ``Temperature-isobaric``, or lengthens a
forecast. The functions here compare a definition against a freshly scanned
inventory and repair what can be repaired:

- Vertical coordinates are refreshed by name, replacing the entry by key.
- Grids are re-bound to the vertical coordinate the inventory says they use.
- Time coordinates are refreshed from a grouped collection inventory, tied to
  the definition coordinate each fresh run resolves to.
- Grids whose names drifted only in their ``_`` and ``-`` characters are renamed.

Everything else is reported as a `Diagnostic`, logged and collected in a
`ReconciliationReport`; nothing here ever aborts on a mismatch.

The in-place functions (``refresh_*``, ``rebind_grids``, ``cross_check``,
``rename_grids``) mutate the definition they are given. The top level
functions (`reconcile`, `rename_drifted_grids`) work on a deep copy and
return it alongside the report.
"""

import copy
import logging
from collections import defaultdict

from fmrc_definition.internal import entities

log = logging.getLogger("fmrc-definition")


def _diagnose(
    report: entities.ReconciliationReport,
    kind: entities.DiagnosticKind,
    subject: str,
    message: str,
) -> None:
    log.warning(f"{subject}: {message}")
    report.diagnostics.append(entities.Diagnostic(kind=kind, subject=subject, message=message))


def _change(report: entities.ReconciliationReport, message: str) -> None:
    log.info(message)
    report.changes.append(message)


def refresh_vert_coords(
    definition: entities.FmrcDefinition,
    inventory: entities.RunInventory,
    report: entities.ReconciliationReport,
) -> None:
    """Refresh the vertical coordinates of a definition from those of an inventory.

    Coordinates are matched by name. A matched coordinate whose values, units
    or id differ is replaced by key; an unmatched one is added. Refreshing
    twice against the same inventory changes nothing the second time.
    """
    for vc in inventory.vert_coords:
        existing = definition.find_vert_coord_by_name(vc.name)
        if existing is not None and existing.vert_coord == vc:
            continue
        if definition.replace_vert_coord(vc):
            _change(report, f"Replaced vertical coordinate '{vc.name}' ({vc.size} levels)")
        else:
            _change(report, f"Added vertical coordinate '{vc.name}' ({vc.size} levels)")
    definition.sort_vert_coords()


def refresh_time_coords(
    definition: entities.FmrcDefinition,
    collection: entities.CollectionInventory,
    report: entities.ReconciliationReport,
) -> None:
    """Refresh the time coordinates of a definition from a collection inventory.

    Each fresh run is tied to the definition coordinate the sequence of its
    fields resolves to at its run hour, so the ids the collection hands out
    play no part. A coordinate whose offsets changed is replaced by key, and
    everything using it re-pointed. A coordinate seen with differing offsets
    across the fresh runs is reported and left alone.
    """
    observed: dict[str, set[tuple[float, ...]]] = defaultdict(set)
    for inv_seq in collection.run_sequences:
        for variable in inv_seq.variables:
            run_seq = definition.find_seq_for_variable(variable.name)
            if run_seq is None:
                continue
            for inv_run in inv_seq.runs:
                existing = run_seq.find_time_coord_by_runtime(inv_run.run_time)
                if existing is None:
                    log.debug(
                        f"No run of sequence '{run_seq.name}' at "
                        f"{inv_run.run_time:%Y-%m-%dT%H:%M}; not refreshing its time coordinate",
                    )
                    continue
                observed[existing.id].add(inv_run.time_coord.offset_hours)

    for tc_id, offsets in observed.items():
        existing = definition.find_time_coord(tc_id)
        if existing is None:
            continue
        if len(offsets) > 1:
            _diagnose(
                report, entities.DiagnosticKind.TIME_COORD_CONFLICT, tc_id,
                f"Fresh runs using time coordinate '{tc_id}' show {len(offsets)} "
                "differing offset sets",
            )
            continue
        fresh = offsets.pop()
        if existing.offset_hours == fresh:
            continue
        replacement = entities.TimeCoord(id=tc_id, offset_hours=fresh)
        definition.replace_time_coord(replacement)
        _change(
            report,
            f"Replaced time coordinate '{tc_id}' ({len(existing)} -> {len(replacement)} offsets)",
        )


def rebind_grids(
    definition: entities.FmrcDefinition,
    inventory: entities.RunInventory,
    report: entities.ReconciliationReport,
) -> None:
    """Point each grid at the vertical coordinate its inventory field uses.

    Grids already bound to a coordinate with the same values are left alone,
    keeping any restrictions they carry.
    """
    for grid in definition.grids():
        field = inventory.find_grid(grid.name)
        if field is None:
            _diagnose(
                report, entities.DiagnosticKind.GRID_NOT_IN_INVENTORY, grid.name,
                "Grid not found in inventory",
            )
            continue
        if field.vert_coord is None:
            continue
        vtc = definition.find_vert_coord_by_name(field.vert_coord.name)
        if vtc is None:
            _diagnose(
                report, entities.DiagnosticKind.VERT_COORD_NOT_IN_DEFINITION, grid.name,
                f"Vertical coordinate '{field.vert_coord.name}' not found in definition",
            )
            continue
        if grid.vtc is vtc or (grid.vtc is not None and grid.vtc.vert_coord == vtc.vert_coord):
            continue
        previous = None if grid.vtc is None else grid.vtc.name
        grid.vtc = vtc
        _change(
            report,
            f"Rebound grid '{grid.name}' from vertical coordinate '{previous}' to '{vtc.name}'",
        )


def cross_check(
    definition: entities.FmrcDefinition,
    inventory: entities.RunInventory,
    report: entities.ReconciliationReport,
) -> None:
    """Check every inventory field has a grid with the same vertical cardinality.

    Mismatches are reported, never repaired.
    """
    for field in inventory.grids:
        grid = definition.find_grid_by_name(field.name)
        if grid is None:
            _diagnose(
                report, entities.DiagnosticKind.GRID_NOT_IN_DEFINITION, field.name,
                "Inventory field not found in definition",
            )
            continue
        expected = None if grid.vtc is None else grid.vtc.vert_coord.size
        observed = None if field.vert_coord is None else field.vert_coord.size
        if expected != observed:
            _diagnose(
                report, entities.DiagnosticKind.VERT_COORD_MISMATCH, field.name,
                f"Vertical coordinate has {observed} levels in inventory "
                f"but {expected} in definition",
            )


def munge(name: str) -> str:
    """Strip the characters that commonly drift between dataset revisions."""
    return name.replace("_", "").replace("-", "")


def rename_grids(
    definition: entities.FmrcDefinition,
    inventory: entities.RunInventory,
    report: entities.ReconciliationReport,
) -> None:
    """Rename definition grids to the exact spelling of their inventory field.

    Only fields with no exactly named grid are considered, and only grids with
    no exactly named field are candidates. Names are compared
    with ``_`` and ``-`` stripped; a unique hit is renamed, while no hit or more
    than one hit is reported and left alone.
    """
    exact = {field.name for field in inventory.grids}
    by_munged: dict[str, list[entities.Grid]] = defaultdict(list)
    for grid in definition.grids():
        if grid.name in exact:
            continue
        by_munged[munge(grid.name)].append(grid)

    for field in inventory.grids:
        if definition.has_variable(field.name):
            continue
        candidates = by_munged.get(munge(field.name), [])
        if len(candidates) == 0:
            _diagnose(
                report, entities.DiagnosticKind.NO_RENAME_CANDIDATE, field.name,
                f"No definition grid matches '{munge(field.name)}'",
            )
        elif len(candidates) > 1:
            _diagnose(
                report, entities.DiagnosticKind.AMBIGUOUS_RENAME, field.name,
                f"Definition grids {sorted(g.name for g in candidates)} "
                f"all match '{munge(field.name)}'",
            )
        else:
            grid = candidates.pop()
            _change(report, f"Renamed grid '{grid.name}' to '{field.name}'")
            grid.name = field.name

    for run_seq in definition.run_sequences:
        run_seq.grids.sort(key=lambda g: g.name)


def check_vert_coords(
    definition: entities.FmrcDefinition,
    inventory: entities.RunInventory,
) -> entities.ReconciliationReport:
    """Report the inventory vertical coordinates a definition lacks.

    Layer coordinates used by grids carrying restrictions are reported too,
    as restrictions only ever name primary level values.
    """
    report = entities.ReconciliationReport(definition=definition.name)
    restricted = {
        grid.vtc.name for grid in definition.grids()
        if grid.vtc is not None and grid.vtc.is_restricted
    }
    for vc in inventory.vert_coords:
        if definition.find_vert_coord_by_name(vc.name) is None:
            _diagnose(
                report, entities.DiagnosticKind.VERT_COORD_NOT_IN_DEFINITION, vc.name,
                f"Vertical coordinate with {vc.size} levels not found in definition",
            )
        if vc.is_layer and vc.name in restricted:
            _diagnose(
                report, entities.DiagnosticKind.RESTRICTED_LAYER, vc.name,
                "Layer vertical coordinate is used by restricted grids",
            )
    return report


def reconcile(
    definition: entities.FmrcDefinition,
    inventory: entities.RunInventory,
    collection: entities.CollectionInventory | None = None,
) -> tuple[entities.FmrcDefinition, entities.ReconciliationReport]:
    """Reconcile a definition against a freshly scanned run.

    Args:
        definition: The definition to reconcile. Left untouched.
        inventory: The inventory of the fresh run.
        collection: The grouped inventory of several fresh runs, if available,
            to refresh the time coordinates from.

    Returns:
        The reconciled copy of the definition, and the report of what was
        changed and what could not be.
    """
    out = copy.deepcopy(definition)
    report = entities.ReconciliationReport(definition=out.name)
    if collection is not None:
        refresh_time_coords(out, collection, report)
    refresh_vert_coords(out, inventory, report)
    rebind_grids(out, inventory, report)
    cross_check(out, inventory, report)
    return out, report


def rename_drifted_grids(
    definition: entities.FmrcDefinition,
    inventory: entities.RunInventory,
) -> tuple[entities.FmrcDefinition, entities.ReconciliationReport]:
    """Rename the drifted grids of a copy of a definition.

    Returns:
        The copy, and the report of renames made and names left alone.
    """
    out = copy.deepcopy(definition)
    report = entities.ReconciliationReport(definition=out.name)
    rename_grids(out, inventory, report)
    return out, report
