from .apps import InventoryServer

__all__ = ["InventoryServer"]
