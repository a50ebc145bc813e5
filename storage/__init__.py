"""Storage module for inventory and saved sales reports."""
from storage.inventory_store import InventoryRepository, calc_cost, load_inventory_file
from storage.sales_store import SalesRecord, SalesRecordStore, result_from_dict

__all__ = [
    "InventoryRepository", "calc_cost", "load_inventory_file",
    "SalesRecord", "SalesRecordStore", "result_from_dict",
]
