"""Implementations of the core services.

The builder and reconciler are pure functions over entities; the
`DefinitionService` drives them through the repository ports.
"""

from .definition_service import DefinitionService

__all__ = [
    "DefinitionService",
]
