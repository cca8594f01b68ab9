import dataclasses
import pathlib
import tempfile
import unittest
import xml.etree.ElementTree as ET

from returns.pipeline import is_successful

from fmrc_definition.internal import entities

from .xmlfile import XMLDefinitionRepository

LONG = entities.TimeCoord(id="0", offset_hours=(0, 6, 12, 84))
SHORT = entities.TimeCoord(id="1", offset_hours=(0, 3, 6, 9, 12))
ISOBARIC = entities.VertCoord(id="isobaric", name="isobaric", values1=(1000, 850, 500), units="hPa")
DEPTH = entities.VertCoord(
    id="depth", name="depth_below_surface_layer", values1=(0.0, 0.1), values2=(0.1, 0.4),
)


def _definition() -> entities.FmrcDefinition:
    isobaric = entities.VertTimeCoord(vert_coord=ISOBARIC)
    depth = entities.VertTimeCoord(vert_coord=DEPTH)

    all_seq = entities.RunSeq.from_time_coord(0, LONG)
    restricted = all_seq.bind_vert_coord(isobaric)
    restricted.add_restriction("1000.0 850.0", "84.0")
    all_seq.grids = [
        entities.Grid(name="Pressure_surface"),
        entities.Grid(name="Soil_temperature", vtc=depth),
        entities.Grid(name="Temperature_isobaric", vtc=isobaric),
        entities.Grid(name="Vertical_velocity_isobaric", vtc=restricted),
    ]

    run_seq = entities.RunSeq.from_runs(1, [entities.Run(0, LONG), entities.Run(12, SHORT)])
    union_restricted = run_seq.bind_vert_coord(isobaric)
    union_restricted.add_restriction("500.0", "3.0 9.0")
    run_seq.grids = [
        entities.Grid(name="Relative_humidity_isobaric", vtc=union_restricted),
        entities.Grid(name="Total_precipitation_surface"),
    ]

    return entities.FmrcDefinition(
        name="NCEP-GFS-Global_0p5deg",
        suffix_filter=".grib2",
        vert_time_coords=[depth, isobaric],
        time_coords=[LONG, SHORT],
        run_sequences=[all_seq, run_seq],
    )


class TestXMLDefinitionRepository(unittest.TestCase):
    """Test the XML codec for definitions."""

    def test_round_trip(self) -> None:
        @dataclasses.dataclass
        class TestCase:
            name: str
            definition: entities.FmrcDefinition

        tests = [
            TestCase(name="full", definition=_definition()),
            TestCase(name="empty", definition=entities.FmrcDefinition()),
            TestCase(
                name="no_restrictions",
                definition=entities.FmrcDefinition(
                    name="NAM",
                    time_coords=[SHORT],
                    vert_time_coords=[entities.VertTimeCoord(vert_coord=ISOBARIC)],
                    run_sequences=[entities.RunSeq.from_time_coord(0, SHORT)],
                ),
            ),
        ]

        for t in tests:
            with self.subTest(name=t.name):
                document = XMLDefinitionRepository.dumps(t.definition)
                decoded = XMLDefinitionRepository.loads(document)
                self.assertEqual(decoded, t.definition)
                # Encoding is stable across a round trip
                self.assertEqual(XMLDefinitionRepository.dumps(decoded), document)

    def test_round_trip_preserves_references(self) -> None:
        decoded = XMLDefinitionRepository.loads(XMLDefinitionRepository.dumps(_definition()))

        shared = decoded.find_vert_coord("isobaric")
        self.assertIs(decoded.find_grid_by_name("Temperature_isobaric").vtc, shared)
        self.assertIsNot(decoded.find_grid_by_name("Vertical_velocity_isobaric").vtc, shared)
        self.assertIs(decoded.run_sequences[0].all_use, decoded.find_time_coord("0"))
        self.assertEqual(
            decoded.find_grid_by_name("Relative_humidity_isobaric").get_vert_coords(9),
            (500.0,),
        )

    def test_to_xml(self) -> None:
        root = XMLDefinitionRepository.to_xml(_definition())

        self.assertEqual(root.tag, "fmrcDefinition")
        self.assertEqual(root.get("dataset"), "NCEP-GFS-Global_0p5deg")
        self.assertEqual(root.get("suffixFilter"), ".grib2")
        vert_coords = root.findall("vertCoord")
        self.assertEqual([e.get("id") for e in vert_coords], ["depth", "isobaric"])
        self.assertEqual(vert_coords[0].text, "0.0,0.1 0.1,0.4")
        self.assertIsNone(vert_coords[0].get("units"))
        self.assertEqual(vert_coords[1].text, "1000.0 850.0 500.0")
        self.assertEqual(vert_coords[1].get("units"), "hPa")
        self.assertEqual(root.find("offsetHours[@id='1']").text, "0.0 3.0 6.0 9.0 12.0")

        all_seq, run_seq = root.findall("runSequence")
        self.assertEqual(all_seq.get("allUseSeq"), "0")
        self.assertEqual(all_seq.findall("run"), [])
        restriction = all_seq.find("variable[@name='Vertical_velocity_isobaric']/vertCoord")
        self.assertEqual(restriction.get("restrict"), "1000.0 850.0")
        self.assertEqual(restriction.text, "84.0")
        self.assertIsNone(all_seq.find("variable[@name='Pressure_surface']").get("vertCoord"))

        self.assertIsNone(run_seq.get("allUseSeq"))
        self.assertEqual(
            [(e.get("runHour"), e.get("offsetHourSeq")) for e in run_seq.findall("run")],
            [("0.0", "0"), ("12.0", "1"), ("24.0", "1")],
        )

    def test_from_xml_legacy(self) -> None:
        document = """
        <fmrcDefinition name="NAM">
          <vertCoord id="layer" name="layer">0.0,10.0 10.0</vertCoord>
          <vertCoord id="isobaric" name="isobaric">1000 850</vertCoord>
          <offsetHours id="0">12 0 6</offsetHours>
          <runSequence allUseSeq="0">
            <variable name="Temperature_isobaric" vertCoord="isobaric">
              <vertTimeCoord restrict="850">6</vertTimeCoord>
            </variable>
            <variable name="Soil_moisture" vertCoord="layer" />
          </runSequence>
        </fmrcDefinition>
        """
        d = XMLDefinitionRepository.loads(document)

        self.assertEqual(d.name, "NAM")
        self.assertIsNone(d.suffix_filter)
        self.assertEqual(d.find_time_coord("0").offset_hours, (0.0, 6.0, 12.0))
        # Secondary values are dropped when not every value is paired
        layer = d.find_vert_coord("layer").vert_coord
        self.assertEqual(layer.values1, (0.0, 10.0))
        self.assertIsNone(layer.values2)
        grid = d.find_grid_by_name("Temperature_isobaric")
        self.assertEqual(grid.get_vert_coords(6), (850.0,))
        self.assertEqual(grid.get_vert_coords(0), (1000.0, 850.0))
        self.assertEqual(
            [g.name for g in d.run_sequences[0].grids],
            ["Soil_moisture", "Temperature_isobaric"],
        )

    def test_from_xml_structural_errors(self) -> None:
        @dataclasses.dataclass
        class TestCase:
            name: str
            document: str

        tests = [
            TestCase(
                name="not_well_formed",
                document="<fmrcDefinition><offsetHours id='0'>0 6</fmrcDefinition>",
            ),
            TestCase(
                name="wrong_root",
                document="<catalog />",
            ),
            TestCase(
                name="undefined_all_use_time_coord",
                document="<fmrcDefinition><runSequence allUseSeq='0' /></fmrcDefinition>",
            ),
            TestCase(
                name="undefined_run_time_coord",
                document="<fmrcDefinition><offsetHours id='0'>0 6</offsetHours>"
                "<runSequence><run runHour='0' offsetHourSeq='1' /></runSequence>"
                "</fmrcDefinition>",
            ),
            TestCase(
                name="missing_run_hour",
                document="<fmrcDefinition><offsetHours id='0'>0 6</offsetHours>"
                "<runSequence><run offsetHourSeq='0' /></runSequence></fmrcDefinition>",
            ),
            TestCase(
                name="bad_run_hour",
                document="<fmrcDefinition><offsetHours id='0'>0 6</offsetHours>"
                "<runSequence><run runHour='six' offsetHourSeq='0' /></runSequence>"
                "</fmrcDefinition>",
            ),
            TestCase(
                name="bad_offset",
                document="<fmrcDefinition><offsetHours id='0'>0 six</offsetHours>"
                "</fmrcDefinition>",
            ),
            TestCase(
                name="missing_vert_coord_name",
                document="<fmrcDefinition><vertCoord id='a'>1 2</vertCoord></fmrcDefinition>",
            ),
            TestCase(
                name="undefined_vert_coord",
                document="<fmrcDefinition><offsetHours id='0'>0 6</offsetHours>"
                "<runSequence allUseSeq='0'><variable name='T' vertCoord='isobaric' />"
                "</runSequence></fmrcDefinition>",
            ),
            TestCase(
                name="restriction_without_vert_coord",
                document="<fmrcDefinition><offsetHours id='0'>0 6</offsetHours>"
                "<runSequence allUseSeq='0'><variable name='T'>"
                "<vertCoord restrict='1000'>6</vertCoord></variable>"
                "</runSequence></fmrcDefinition>",
            ),
            TestCase(
                name="bad_restriction",
                document="<fmrcDefinition><vertCoord id='p' name='p'>1000 850</vertCoord>"
                "<offsetHours id='0'>0 6</offsetHours>"
                "<runSequence allUseSeq='0'><variable name='T' vertCoord='p'>"
                "<vertCoord restrict='high'>6</vertCoord></variable>"
                "</runSequence></fmrcDefinition>",
            ),
        ]

        for t in tests:
            with self.subTest(name=t.name), self.assertRaises(entities.StructuralError):
                XMLDefinitionRepository.loads(t.document)

    def test_load_and_save(self) -> None:
        repository = XMLDefinitionRepository()
        with tempfile.TemporaryDirectory() as tmpdir:
            location = pathlib.Path(tmpdir, "new", "gfs.fmrcDefinition.xml").as_posix()

            absent = repository.load(location)
            self.assertTrue(is_successful(absent), msg=absent)
            self.assertIsNone(absent.unwrap())

            saved = repository.save(_definition(), location)
            self.assertTrue(is_successful(saved), msg=saved)
            self.assertEqual(saved.unwrap(), location)
            ET.parse(location)

            loaded = repository.load(location)
            self.assertTrue(is_successful(loaded), msg=loaded)
            self.assertEqual(loaded.unwrap(), _definition())

            pathlib.Path(location).write_text("<fmrcDefinition><runSequence allUseSeq='x'/>")
            broken = repository.load(location)
            self.assertFalse(is_successful(broken))
            self.assertIsInstance(broken.failure(), entities.StructuralError)


if __name__ == "__main__":
    unittest.main()
