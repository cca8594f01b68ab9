import unittest

from returns.pipeline import is_successful

from fmrc_definition.internal import entities

from .stdout import StdoutNotificationRepository


class TestStdoutNotificationRepository(unittest.TestCase):
    def test_notify(self) -> None:
        report = entities.ReconciliationReport(
            definition="GFS",
            diagnostics=[
                entities.Diagnostic(
                    kind=entities.DiagnosticKind.GRID_NOT_IN_INVENTORY,
                    subject="Pressure_surface",
                    message="Grid not found in inventory",
                ),
            ],
        )
        with self.assertLogs("fmrc-definition", level="INFO") as logs:
            result = StdoutNotificationRepository().notify(report)

        self.assertTrue(is_successful(result))
        self.assertIn("Pressure_surface", "\n".join(logs.output))


if __name__ == "__main__":
    unittest.main()
