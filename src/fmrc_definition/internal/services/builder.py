"""Construction of a definition from an observed collection inventory.

The builder is a pure function of its input: it reads a `CollectionInventory`
and returns a new `FmrcDefinition`, never touching storage.
"""

import logging

from fmrc_definition.internal import entities

log = logging.getLogger("fmrc-definition")


def build_from_inventory(
    inventory: entities.CollectionInventory,
    suffix_filter: str | None = None,
) -> entities.FmrcDefinition:
    """Build the canonical definition of a collection from its inventory.

    - The inventory's time coordinates are copied verbatim, and each of its
      vertical coordinates is wrapped without a time binding.
    - Each inventory run sequence becomes a `RunSeq`: a shared time coordinate
      if every run used the same one, otherwise an explicit run table keyed
      by UTC run hour and extended over a daily cycle.
    - Each field becomes a `Grid` referring to its union vertical coordinate,
      or to none for a surface field. A field seen with only some of its levels
      at some offsets gets its own time-bound vertical coordinate, restricted
      at those offsets.

    Args:
        inventory: The grouped inventory of the runs of the collection.
        suffix_filter: The filename suffix of files in the collection.
    """
    definition = entities.FmrcDefinition(
        name=inventory.name,
        suffix_filter=suffix_filter,
        time_coords=list(inventory.time_coords),
        vert_time_coords=[entities.VertTimeCoord(vert_coord=vc) for vc in inventory.vert_coords],
    )

    for num, inv_seq in enumerate(inventory.run_sequences):
        run_seq = _make_run_seq(num, inv_seq)
        definition.run_sequences.append(run_seq)

        for uber in inv_seq.variables:
            grid = entities.Grid(name=uber.name)
            run_seq.grids.append(grid)
            if uber.vert_coord_union is None:
                continue
            shared = _shared_vert_coord(definition, uber.vert_coord_union)
            if uber.levels_by_offset:
                grid.vtc = _restricted(run_seq, shared, uber.levels_by_offset)
            else:
                grid.vtc = shared
        run_seq.grids.sort(key=lambda g: g.name)

    definition.sort_vert_coords()
    log.debug(
        f"Built definition '{definition.name}' with {len(definition.run_sequences)} "
        f"run sequence(s), {len(definition.time_coords)} time coordinate(s), "
        f"{len(definition.vert_time_coords)} vertical coordinate(s)",
    )
    return definition


def _make_run_seq(num: int, inv_seq: entities.InventoryRunSeq) -> entities.RunSeq:
    """Convert an inventory run sequence, compacting it if all runs share a time coordinate."""
    if len(inv_seq.runs) == 0:
        raise ValueError(f"Cannot build run sequence {num} from an inventory sequence with no runs")
    first = inv_seq.runs[0].time_coord
    if all(run.time_coord == first for run in inv_seq.runs):
        return entities.RunSeq.from_time_coord(num, first)

    runs: dict[float, entities.Run] = {}
    for inv_run in inv_seq.runs:
        hour = entities.run_hour_of_day(inv_run.run_time)
        if hour in runs and runs[hour].time_coord != inv_run.time_coord:
            log.warning(
                f"Runs at hour {hour} of run sequence {num} use differing time coordinates "
                f"'{runs[hour].time_coord.id}' and '{inv_run.time_coord.id}'; keeping the latest",
            )
        runs[hour] = entities.Run(run_hour=hour, time_coord=inv_run.time_coord)
    return entities.RunSeq.from_runs(num, list(runs.values()))


def _shared_vert_coord(
    definition: entities.FmrcDefinition,
    vc: entities.VertCoord,
) -> entities.VertTimeCoord:
    """Find the definition entry for a vertical coordinate, adding or widening it as needed."""
    shared = definition.find_vert_coord_by_name(vc.name)
    if shared is not None and shared.vert_coord == vc:
        return shared
    if shared is not None:
        log.warning(
            f"Union vertical coordinate '{vc.name}' differs from the inventory entry "
            "of the same name; replacing the entry with the union",
        )
    definition.replace_vert_coord(vc)
    shared = definition.find_vert_coord_by_name(vc.name)
    if shared is None:
        raise ValueError(f"Vertical coordinate '{vc.name}' missing after being added")
    return shared


def _restricted(
    run_seq: entities.RunSeq,
    shared: entities.VertTimeCoord,
    levels_by_offset: dict[float, tuple[float, ...]],
) -> entities.VertTimeCoord:
    """Bind a vertical coordinate to a sequence's time axis, restricted at the given offsets.

    Offsets sharing the same level set are grouped into a single restriction.
    """
    vtc = run_seq.bind_vert_coord(shared)
    by_levels: dict[tuple[float, ...], list[float]] = {}
    for hour, levels in sorted(levels_by_offset.items()):
        by_levels.setdefault(tuple(levels), []).append(hour)
    for levels, hours in by_levels.items():
        vtc.add_restriction(
            " ".join(entities.format_number(v) for v in levels),
            " ".join(entities.format_number(h) for h in hours),
        )
    return vtc
