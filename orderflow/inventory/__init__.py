"""Inventory snapshots and availability checks."""

from orderflow.inventory.availability import find_availability_issues, validate_availability
from orderflow.inventory.lookup import InventoryLookup, SqlInventory
from orderflow.inventory.models import AssetSnapshot

__all__ = [
    "AssetSnapshot",
    "InventoryLookup",
    "SqlInventory",
    "find_availability_issues",
    "validate_availability",
]
