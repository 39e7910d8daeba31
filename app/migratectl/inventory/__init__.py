"""Installed-program inventory.

This module reads the Windows uninstall registry and writes the
reference inventory stored with each backup.
"""

from migratectl.inventory.scanner import (
    REGISTRY_VIEWS,
    InventoryScanner,
    RegistryView,
    write_inventory,
)

__all__ = [
    "REGISTRY_VIEWS",
    "InventoryScanner",
    "RegistryView",
    "write_inventory",
]
