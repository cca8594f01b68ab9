"""Inventory Repositories

Scanners producing the inventory of a single model run from its dataset.
"""

from .xarray_dataset import XarrayInventoryRepository

__all__ = [
    "XarrayInventoryRepository",
]
