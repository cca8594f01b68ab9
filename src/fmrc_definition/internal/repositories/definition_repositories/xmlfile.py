"""XML definition repository implementation.

Document schema
---------------

A definition is stored as one XML document::

    <fmrcDefinition dataset="NCEP-GFS-Global_0p5deg" suffixFilter=".grib2">
      <vertCoord id="isobaric" name="isobaric" units="Pa">100000.0 85000.0 50000.0</vertCoord>
      <vertCoord id="depth_below_surface_layer" name="depth_below_surface_layer" units="m">
        0.0,0.1 0.1,0.4</vertCoord>
      <offsetHours id="0">0.0 6.0 12.0</offsetHours>
      <runSequence allUseSeq="0">
        <variable name="Temperature_isobaric" vertCoord="isobaric">
          <vertCoord restrict="100000.0 85000.0">12.0</vertCoord>
        </variable>
        <variable name="Pressure_surface" />
      </runSequence>
      <runSequence>
        <run runHour="0.0" offsetHourSeq="0" />
        <run runHour="6.0" offsetHourSeq="1" />
        <variable name="Total_precipitation_surface" />
      </runSequence>
    </fmrcDefinition>

Vertical coordinate bodies are space separated level values, each optionally
paired with a secondary value as ``value1,value2``. Restrictions are
``vertCoord`` children of a ``variable``, with the restricted levels in the
``restrict`` attribute and the offsets they apply to as the body. Documents
using the older ``vertTimeCoord`` element name for restrictions, or the
``name`` root attribute for the dataset, are read as well.
"""

import logging
import pathlib
import xml.etree.ElementTree as ET  # nosec B405 - definitions are trusted local documents
from typing import override

from returns.result import Failure, ResultE, Success

from fmrc_definition.internal import entities, ports

log = logging.getLogger("fmrc-definition")

ROOT_TAG = "fmrcDefinition"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


def _format_numbers(values: tuple[float, ...]) -> str:
    return " ".join(entities.format_number(v) for v in values)


def _require(elem: ET.Element, attr: str) -> str:
    """Get a required attribute of an element."""
    value = elem.get(attr)
    if value is None:
        raise entities.StructuralError(
            f"Element <{elem.tag}> is missing required attribute '{attr}'",
        )
    return value


def _parse_vert_values(
    text: str, name: str,
) -> tuple[tuple[float, ...], tuple[float, ...] | None]:
    """Parse the body of a vertCoord element into primary and secondary values.

    Secondary values are only kept if every token is a pair.
    """
    values1: list[float] = []
    values2: list[float] = []
    paired = True
    for token in text.split():
        first, sep, second = token.partition(",")
        values1.append(float(first))
        if sep:
            values2.append(float(second))
        else:
            paired = False
    if len(values2) > 0 and not paired:
        log.warning(
            f"Vertical coordinate '{name}' pairs only {len(values2)} of {len(values1)} "
            "values; ignoring secondary values",
        )
    if paired and len(values2) > 0:
        return tuple(values1), tuple(values2)
    return tuple(values1), None


class XMLDefinitionRepository(ports.DefinitionRepository):
    """Repository storing definitions as XML documents on the local filesystem."""

    @staticmethod
    def to_xml(definition: entities.FmrcDefinition) -> ET.Element:
        """Project a definition onto an XML element tree."""
        root = ET.Element(ROOT_TAG)
        if definition.name is not None:
            root.set("dataset", definition.name)
        if definition.suffix_filter is not None:
            root.set("suffixFilter", definition.suffix_filter)

        for vtc in definition.vert_time_coords:
            vc = vtc.vert_coord
            vc_elem = ET.SubElement(root, "vertCoord", id=vc.id, name=vc.name)
            if vc.units is not None:
                vc_elem.set("units", vc.units)
            if vc.values2 is None:
                vc_elem.text = _format_numbers(vc.values1)
            else:
                vc_elem.text = " ".join(
                    f"{entities.format_number(v1)},{entities.format_number(v2)}"
                    for v1, v2 in zip(vc.values1, vc.values2, strict=True)
                )

        for tc in definition.time_coords:
            tc_elem = ET.SubElement(root, "offsetHours", id=tc.id)
            tc_elem.text = _format_numbers(tc.offset_hours)

        for run_seq in definition.run_sequences:
            seq_elem = ET.SubElement(root, "runSequence")
            if run_seq.all_use is not None:
                seq_elem.set("allUseSeq", run_seq.all_use.id)
            else:
                for run in run_seq.runs:
                    ET.SubElement(
                        seq_elem,
                        "run",
                        runHour=entities.format_number(run.run_hour),
                        offsetHourSeq=run.time_coord.id,
                    )
            for grid in run_seq.grids:
                var_elem = ET.SubElement(seq_elem, "variable", name=grid.name)
                if grid.vtc is None:
                    continue
                var_elem.set("vertCoord", grid.vtc.id)
                for levels, hours in grid.vtc.restrictions:
                    restrict_elem = ET.SubElement(var_elem, "vertCoord", restrict=levels)
                    restrict_elem.text = hours

        return root

    @staticmethod
    def from_xml(root: ET.Element) -> entities.FmrcDefinition:
        """Rebuild a definition from an XML element tree.

        Raises:
            StructuralError: If the document is malformed, or refers to
                a coordinate it does not define.
        """
        if root.tag != ROOT_TAG:
            raise entities.StructuralError(
                f"Expected root element <{ROOT_TAG}>, found <{root.tag}>",
            )
        definition = entities.FmrcDefinition(
            name=root.get("dataset", root.get("name")),
            suffix_filter=root.get("suffixFilter"),
        )

        try:
            for vc_elem in root.findall("vertCoord"):
                name = _require(vc_elem, "name")
                values1, values2 = _parse_vert_values(vc_elem.text or "", name)
                vc = entities.VertCoord(
                    id=_require(vc_elem, "id"),
                    name=name,
                    values1=values1,
                    values2=values2,
                    units=vc_elem.get("units"),
                )
                definition.vert_time_coords.append(entities.VertTimeCoord(vert_coord=vc))

            for tc_elem in root.findall("offsetHours"):
                definition.time_coords.append(
                    entities.TimeCoord(
                        id=_require(tc_elem, "id"),
                        offset_hours=entities.parse_numbers(tc_elem.text or ""),
                    ),
                )

            for num, seq_elem in enumerate(root.findall("runSequence")):
                run_seq = XMLDefinitionRepository._read_run_seq(definition, num, seq_elem)
                definition.run_sequences.append(run_seq)
        except ValueError as e:
            if isinstance(e, entities.StructuralError):
                raise
            raise entities.StructuralError(f"Malformed definition document: {e}") from e

        return definition

    @staticmethod
    def _read_run_seq(
        definition: entities.FmrcDefinition,
        num: int,
        seq_elem: ET.Element,
    ) -> entities.RunSeq:
        all_use_id = seq_elem.get("allUseSeq")
        if all_use_id is not None:
            tc = definition.find_time_coord(all_use_id)
            if tc is None:
                raise entities.StructuralError(
                    f"Run sequence {num} uses undefined time coordinate '{all_use_id}'",
                )
            run_seq = entities.RunSeq.from_time_coord(num, tc)
        else:
            runs: list[entities.Run] = []
            for run_elem in seq_elem.findall("run"):
                tc_id = _require(run_elem, "offsetHourSeq")
                tc = definition.find_time_coord(tc_id)
                if tc is None:
                    raise entities.StructuralError(
                        f"Run of run sequence {num} uses undefined time coordinate '{tc_id}'",
                    )
                runs.append(
                    entities.Run(run_hour=float(_require(run_elem, "runHour")), time_coord=tc),
                )
            run_seq = entities.RunSeq.from_runs(num, runs)

        for var_elem in seq_elem.findall("variable"):
            grid = entities.Grid(name=_require(var_elem, "name"))
            run_seq.grids.append(grid)
            vc_id = var_elem.get("vertCoord")
            if vc_id is not None:
                grid.vtc = definition.find_vert_coord(vc_id)
                if grid.vtc is None:
                    raise entities.StructuralError(
                        f"Variable '{grid.name}' uses undefined vertical coordinate '{vc_id}'",
                    )

            restrictions = [e for e in var_elem if e.tag in ("vertCoord", "vertTimeCoord")]
            if len(restrictions) == 0:
                continue
            if grid.vtc is None:
                raise entities.StructuralError(
                    f"Variable '{grid.name}' has restrictions but no vertical coordinate",
                )
            if not run_seq.is_all:
                log.debug(
                    f"Restricting variable '{grid.name}' against the union time "
                    f"coordinate of run sequence {num}",
                )
            grid.vtc = run_seq.bind_vert_coord(grid.vtc)
            for restrict_elem in restrictions:
                grid.vtc.add_restriction(
                    _require(restrict_elem, "restrict"), restrict_elem.text or "",
                )

        run_seq.grids.sort(key=lambda g: g.name)
        return run_seq

    @staticmethod
    def dumps(definition: entities.FmrcDefinition) -> str:
        """Serialize a definition to an indented XML document string."""
        root = XMLDefinitionRepository.to_xml(definition)
        ET.indent(root, space="  ")
        return XML_DECLARATION + ET.tostring(root, encoding="unicode") + "\n"

    @staticmethod
    def loads(document: str) -> entities.FmrcDefinition:
        """Parse a definition from an XML document string.

        Raises:
            StructuralError: If the document is not well-formed or is malformed.
        """
        try:
            root = ET.fromstring(document)  # nosec B314
        except ET.ParseError as e:
            raise entities.StructuralError(f"Definition document is not well-formed: {e}") from e
        return XMLDefinitionRepository.from_xml(root)

    @override
    def load(self, location: str) -> ResultE[entities.FmrcDefinition | None]:
        path = pathlib.Path(location)
        if not path.exists():
            log.debug(f"No definition found at '{path}'")
            return Success(None)
        try:
            document = path.read_text(encoding="utf-8")
        except OSError as e:
            return Failure(OSError(f"Failed to read definition at '{path}': {e}"))
        try:
            definition = self.loads(document)
        except entities.StructuralError as e:
            return Failure(
                entities.StructuralError(f"Failed to load definition at '{path}': {e}"),
            )
        log.debug(
            f"Loaded definition '{definition.name}' with "
            f"{len(definition.run_sequences)} run sequence(s) from '{path}'",
        )
        return Success(definition)

    @override
    def save(self, definition: entities.FmrcDefinition, location: str) -> ResultE[str]:
        path = pathlib.Path(location)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.dumps(definition), encoding="utf-8")
        except OSError as e:
            return Failure(OSError(f"Failed to write definition to '{path}': {e}"))
        log.debug(f"Wrote definition '{definition.name}' to '{path}'")
        return Success(path.as_posix())
