"""Struct definitions for domain entities.

These define data objects and behaviours that are used in the core.

Domain Entities
---------------

Entities are the core building blocks of the domain layer. They are the
representations of the business objects that are manipulated by the application.

By using domain entities in the core, it is ensured that the business logic is
separated from the technical details of the application.

A domain entity may have associated methods that define its behaviour, but it
should not contain any logic that is specific to a particular implementation.
"""

from .errors import StructuralError
from .coordinates import TimeCoord, VertCoord, format_number, parse_numbers
from .verttimecoord import VertTimeCoord
from .runseq import SURFACE_LEVEL, Grid, Run, RunSeq, run_hour_of_day
from .definition import FmrcDefinition
from .inventory import (
    CollectionInventory,
    InventoryGrid,
    InventoryRun,
    InventoryRunSeq,
    RunInventory,
    UberGrid,
)
from .diagnostics import Diagnostic, DiagnosticKind, ReconciliationReport

__all__ = [
    "StructuralError",
    "TimeCoord",
    "VertCoord",
    "format_number",
    "parse_numbers",
    "VertTimeCoord",
    "SURFACE_LEVEL",
    "Grid",
    "Run",
    "RunSeq",
    "run_hour_of_day",
    "FmrcDefinition",
    "CollectionInventory",
    "InventoryGrid",
    "InventoryRun",
    "InventoryRunSeq",
    "RunInventory",
    "UberGrid",
    "Diagnostic",
    "DiagnosticKind",
    "ReconciliationReport",
]
