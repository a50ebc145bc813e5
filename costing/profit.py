"""
Profit and margin calculations for sale items, categories and whole reports.

All margins use one rounding rule: profit / revenue x 100, rounded half up
to one decimal place, and 0 when revenue is not positive.
"""
import math
from typing import Iterable, Sequence

from parsers.base_parser import CategorySummary, SaleItem, SalesSummary
from costing.cost_resolver import CostMatch


def round_margin(profit: float, revenue: float) -> float:
    """
    Margin percentage with one decimal, rounded half up.

    Args:
        profit: Profit amount
        revenue: Net revenue the profit was made on

    Returns:
        e.g. 49.9 for 522 / 1047; 0.0 when revenue <= 0
    """
    if revenue <= 0:
        return 0.0
    return math.floor(profit / revenue * 1000 + 0.5) / 10


def build_sale_item(
    item_name: str,
    category: str,
    quantity: float,
    gross_amount: float,
    discount: float,
    net_amount: float,
    tax: float,
    total_sales: float,
    cost: CostMatch,
    row_number: int = 0,
) -> SaleItem:
    """
    Build a SaleItem with its cost, profit and margin filled in.

    Args:
        cost: Result of the cost lookup for ``item_name``

    Returns:
        SaleItem where total_cost = cost_price x quantity and
        profit = net_amount - total_cost
    """
    total_cost = cost.cost_price * quantity
    profit = net_amount - total_cost
    return SaleItem(
        item_name=item_name,
        category=category,
        quantity=quantity,
        gross_amount=gross_amount,
        discount=discount,
        net_amount=net_amount,
        tax=tax,
        total_sales=total_sales,
        cost_price=cost.cost_price,
        total_cost=total_cost,
        profit=profit,
        margin_percent=round_margin(profit, net_amount),
        cost_match=cost.match_type,
        row_number=row_number,
    )


def summarize_category(name: str, items: Sequence[SaleItem]) -> CategorySummary:
    """
    Aggregate the items of one category.

    The average margin is the margin of the category totals, not the mean of
    the item margins.
    """
    total_revenue = sum(i.net_amount for i in items)
    total_cost = sum(i.total_cost for i in items)
    total_profit = total_revenue - total_cost
    return CategorySummary(
        name=name,
        item_count=len(items),
        total_quantity=sum(i.quantity for i in items),
        total_revenue=total_revenue,
        total_cost=total_cost,
        total_profit=total_profit,
        total_tax=sum(i.tax for i in items),
        avg_margin=round_margin(total_profit, total_revenue),
    )


def summarize_sales(
    items: Sequence[SaleItem],
    categories: Iterable[CategorySummary],
) -> SalesSummary:
    """
    Aggregate a whole report.

    Totals are folded from the category summaries in category order. The
    categories partition the items, so this equals summing the items and
    keeps the two views identical to the last bit.

    Args:
        items: Every item of the report
        categories: Summaries of the categories those items belong to

    Returns:
        SalesSummary with pre-tax ``total_profit`` and post-tax ``net_profit``
    """
    categories = list(categories)
    total_quantity = sum(c.total_quantity for c in categories)
    total_revenue = sum(c.total_revenue for c in categories)
    total_cost = sum(c.total_cost for c in categories)
    total_tax = sum(c.total_tax for c in categories)
    total_profit = total_revenue - total_cost
    return SalesSummary(
        item_count=len(items),
        total_quantity=total_quantity,
        total_revenue=total_revenue,
        total_cost=total_cost,
        total_profit=total_profit,
        total_tax=total_tax,
        avg_margin=round_margin(total_profit, total_revenue),
        total_orders=total_quantity,
        net_profit=total_profit - total_tax,
    )
