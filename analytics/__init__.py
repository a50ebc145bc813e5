"""Analytics module for saved sales reports."""
from analytics.sales_analytics import (
    calculate_profits,
    category_analytics,
    daily_trends,
    dashboard_stats,
    top_items,
)

__all__ = [
    "calculate_profits", "category_analytics", "daily_trends",
    "dashboard_stats", "top_items",
]
