"""Implementation of adaptors for driven actors.

Driven actors
--------------

A driven actor is an external component that is acted upon by the core logic.
Also referred to as *secondary* actors, a driven actor represents an external
system that the core logic interacts with. They extend the core driven ports
(see `fmrc_definition.internal.ports`) in their implementation.

Examples of driven or secondary actors include:

- a filesystem holding definition documents
- a model run dataset to take an inventory of
- a channel to send reports to

Since they are stores of data, they are referred to in this package
(and often in hexagonal architecture documentation) as *repositories*.

This module
-----------

This module contains implementations for the following driven actors:

- Inventory Repository - A source of model run inventories
- Definition Repository - Somewhere to persist definitions
- Notification Repository - Somewhere to send reconciliation reports to

All inherit from the repository ports specified in the core via `fmrc_definition.internal.ports`.
"""
from . import (
    definition_repositories,
    inventory_repositories,
    notification_repositories,
)

__all__ = [
    "definition_repositories",
    "inventory_repositories",
    "notification_repositories",
]
