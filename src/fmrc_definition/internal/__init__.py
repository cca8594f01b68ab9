"""Internal workings of the definition tools.

Why have an internal package?
-----------------------------

This package is meant to be run as a set of command line tools.
However, the code can still be used as a library, and a user could import the modules
from this package and use them in their own code.

The "internal" package signifies that the modules within are not meant to be used,
or are not guaranteed to be stable, for external users. Anything looking to be
re-used, such as the definition entities and the XML codec, should be imported
from here knowing that it may change.
"""

from . import entities, handlers, ports, repositories, services

__all__ = ["entities", "ports", "handlers", "repositories", "services"]
