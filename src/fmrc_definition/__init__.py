"""FMRC Definition.

Builds, persists, queries and reconciles the canonical coordinate definition
of a Forecast Model Run Collection (FMRC): which forecast offsets and which
vertical levels apply to each field, at each run hour of the day.

Usage Documentation
===================

Configuration
-------------

The following environment variables can be used to configure the application:

.. code-block:: none

    | Key                       | Description                            | Default  |
    |---------------------------|----------------------------------------|----------|
    | LOGLEVEL                  | The logging level for the app.         | INFO     |
    |---------------------------|----------------------------------------|----------|
    | INVENTORY_REPOSITORY      | The inventory scanner to use.          | xarray   |
    |---------------------------|----------------------------------------|----------|
    | DEFINITION_REPOSITORY     | The definition store to use.           | xml      |
    |---------------------------|----------------------------------------|----------|
    | NOTIFICATION_REPOSITORY   | Where reconciliation reports are sent. | stdout   |
    |---------------------------|----------------------------------------|----------|
    | CONCURRENCY               | Whether to scan datasets concurrently. | True     |
    |---------------------------|----------------------------------------|----------|
    | XARRAY_ENGINE             | Backend engine used to open datasets.  | (auto)   |
    |---------------------------|----------------------------------------|----------|
    | DETECT_MISSING_LEVELS     | Find levels holding data per offset.   | False    |
    |---------------------------|----------------------------------------|----------|


Development Documentation
=========================

Getting started for development
-------------------------------

Create a virtual environment and install the dependencies
using an editable pip installation::

    $ python -m venv ./venv
    $ source ./venv/bin/activate
    $ pip install -e .[dev]

.. note:: ZSH users may have to escape the square brackets in the last command.

This enables the use of the 'fmrc-definition-cli' command in the virtualenv, which
runs the `fmrc_definition.cmd.main.run_cli` entrypoint.


Project structure
-----------------

The code is structured following principles from the `Hexagonal Architecture`_ pattern:
a clear separation between the application's business logic - it's *core* -
and the *actors* that are external to it.

The core is split into three main components:

- `fmrc_definition.internal.entities` - The coordinate definition model:
  time coordinates, vertical coordinates, run sequences, grids, and the
  definition aggregate that owns them. Also the inventory snapshots the
  core consumes.
- `fmrc_definition.internal.ports` - The interfaces that define how the core
  interacts with external actors.
- `fmrc_definition.internal.services` - The builder and reconciler algorithms,
  and the service that drives them.

This application currently has the following defined actors:

- `fmrc_definition.internal.repositories.inventory_repositories` (driven) -
  Scanners that turn a model run dataset into an inventory.
- `fmrc_definition.internal.repositories.definition_repositories` (driven) -
  Stores for persisted definitions.
- `fmrc_definition.internal.repositories.notification_repositories` (driven) -
  Sinks for reconciliation reports.
- `fmrc_definition.internal.handlers.cli` (driving) - The command-line interface.

Where do I go to...?
--------------------

- **...modify how a definition is built?** Check out `internal.services.builder`.
- **...modify drift detection and repair?** Check out `internal.services.reconciler`.
- **...change the persisted format?** Check out
  `internal.repositories.definition_repositories.xmlfile`.
- **...modify the command line interface?** Check out `internal.handlers.cli`.

.. _Hexagonal Architecture: https://alistair.cockburn.us/hexagonal-architecture/
"""

import logging
import os
import sys

if sys.stdout.isatty():
    # Simple logging for terminals
    _formatstr="%(levelname)s [%(name)s] | %(message)s"
else:
    # JSON logging for containers
    _formatstr="".join((
        "{",
        '"message": "%(message)s", ',
        '"severity": "%(levelname)s", "timestamp": "%(asctime)s.%(msecs)03dZ", ',
        '"logging.googleapis.com/labels": {"python_logger": "%(name)s"}, ',
        '"logging.googleapis.com/sourceLocation": ',
        '{"file": "%(filename)s", "line": %(lineno)d, "function": "%(funcName)s"}',
        "}",
    ))

_loglevel: int | str = logging.getLevelName(os.getenv("LOGLEVEL", "INFO").upper())
logging.basicConfig(
    level=logging.INFO if isinstance(_loglevel, str) else _loglevel,
    stream=sys.stdout,
    format=_formatstr,
    datefmt="%Y-%m-%dT%H:%M:%S",
)

for logger in [
    "numexpr",
    "h5py",
    "netCDF4",
    "fsspec",
    "asyncio",
]:
    logging.getLogger(logger).setLevel(logging.WARNING)
