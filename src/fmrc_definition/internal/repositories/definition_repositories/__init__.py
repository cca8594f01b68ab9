"""Definition Repositories

Stores for whole definitions. Documents are always written and read in full.
"""

from .xmlfile import XMLDefinitionRepository

__all__ = [
    "XMLDefinitionRepository",
]
