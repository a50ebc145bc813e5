"""
Costing module: inventory cost lookup and profit/margin aggregation.
"""
from .cost_resolver import CostMatch, CostResolver, InventoryEntry
from .profit import build_sale_item, round_margin, summarize_category, summarize_sales

__all__ = [
    'CostMatch', 'CostResolver', 'InventoryEntry',
    'build_sale_item', 'round_margin', 'summarize_category', 'summarize_sales',
]
