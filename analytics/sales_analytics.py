"""
Analytics across saved sales reports.

Provides:
- Dashboard totals over all records
- Per-category and per-item rollups
- Daily revenue/profit trends
- Ad-hoc profit calculation for item lists, with margin insights
"""
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Sequence

from config import LOW_MARGIN_PERCENT, MARGIN_ISSUE_THRESHOLD
from costing.cost_resolver import CostLookup
from costing.profit import round_margin
from normalizer.amount_parser import parse_amount
from storage.sales_store import SalesRecord


def dashboard_stats(records: Sequence[SalesRecord]) -> Dict[str, Any]:
    """
    Totals across every saved report.

    ``total_profit`` is pre-tax; ``net_profit`` has tax taken out.
    """
    if not records:
        return {
            'total_revenue': 0.0,
            'total_profit': 0.0,
            'net_profit': 0.0,
            'total_orders': 0,
            'total_tax': 0.0,
            'avg_margin': 0.0,
            'record_count': 0,
        }

    revenue = sum(r.result.summary.total_revenue for r in records)
    profit = sum(r.result.summary.total_profit for r in records)
    tax = sum(r.result.summary.total_tax for r in records)
    return {
        'total_revenue': revenue,
        'total_profit': profit,
        'net_profit': profit - tax,
        'total_orders': sum(r.result.summary.total_orders for r in records),
        'total_tax': tax,
        'avg_margin': round_margin(profit, revenue),
        'record_count': len(records),
    }


def category_analytics(records: Iterable[SalesRecord]) -> List[Dict[str, Any]]:
    """Revenue, cost, profit, orders and tax per item category across reports."""
    totals: Dict[str, Dict[str, float]] = defaultdict(
        lambda: {'revenue': 0.0, 'cost': 0.0, 'profit': 0.0, 'orders': 0.0, 'tax': 0.0}
    )

    for record in records:
        for item in record.result.items:
            data = totals[item.category]
            data['revenue'] += item.net_amount
            data['cost'] += item.total_cost
            data['profit'] += item.profit
            data['orders'] += item.quantity
            data['tax'] += item.tax

    return [
        {'name': name, **data, 'margin': round_margin(data['profit'], data['revenue'])}
        for name, data in totals.items()
    ]


def top_items(records: Iterable[SalesRecord], limit: int = 10) -> List[Dict[str, Any]]:
    """Items with the highest revenue across reports."""
    totals: Dict[str, Dict[str, float]] = defaultdict(
        lambda: {'quantity': 0.0, 'revenue': 0.0, 'profit': 0.0}
    )

    for record in records:
        for item in record.result.items:
            data = totals[item.item_name]
            data['quantity'] += item.quantity
            data['revenue'] += item.net_amount
            data['profit'] += item.profit

    ranked = sorted(totals.items(), key=lambda x: x[1]['revenue'], reverse=True)
    return [{'name': name, **data} for name, data in ranked[:limit]]


def daily_trends(records: Iterable[SalesRecord]) -> List[Dict[str, Any]]:
    """Revenue, profit and orders per report date, oldest first."""
    daily: Dict[str, Dict[str, float]] = defaultdict(
        lambda: {'revenue': 0.0, 'profit': 0.0, 'orders': 0.0}
    )

    for record in records:
        summary = record.result.summary
        data = daily[record.date]
        data['revenue'] += summary.total_revenue
        data['profit'] += summary.total_profit
        data['orders'] += summary.total_orders

    return [{'date': day, **daily[day]} for day in sorted(daily)]


def calculate_profits(items: Iterable[Dict[str, Any]], cost_lookup: CostLookup) -> Dict[str, Any]:
    """
    Cost an ad-hoc list of items without saving anything.

    Args:
        items: Dictionaries with ``item_name``, ``quantity``, ``net_amount``
            and optional ``tax``
        cost_lookup: Resolver for item costs

    Returns:
        Dictionary with per-item figures, a summary and margin insights
    """
    calculated = []
    for item in items:
        name = str(item.get('item_name') or '').strip()
        quantity = parse_amount(item.get('quantity'))
        net_amount = parse_amount(item.get('net_amount'))
        tax = parse_amount(item.get('tax'))

        cost = cost_lookup.resolve(name)
        total_cost = cost.cost_price * quantity
        profit = net_amount - total_cost
        actual_margin = round_margin(profit, net_amount)

        calculated.append({
            'item_name': name,
            'quantity': quantity,
            'net_amount': net_amount,
            'tax': tax,
            'cost_price': cost.cost_price,
            'cost_match': cost.match_type,
            'expected_margin': cost.margin_percent,
            'total_cost': total_cost,
            'profit': profit,
            'actual_margin': actual_margin,
            'margin_diff': actual_margin - cost.margin_percent,
        })

    total_revenue = sum(i['net_amount'] for i in calculated)
    total_cost = sum(i['total_cost'] for i in calculated)
    total_profit = total_revenue - total_cost
    total_tax = sum(i['tax'] for i in calculated)

    margin_issues = [i for i in calculated if i['margin_diff'] < -MARGIN_ISSUE_THRESHOLD]
    by_profit = sorted(calculated, key=lambda i: i['profit'], reverse=True)

    return {
        'items': calculated,
        'summary': {
            'total_items': len(calculated),
            'total_orders': sum(i['quantity'] for i in calculated),
            'total_revenue': total_revenue,
            'total_cost': total_cost,
            'total_profit': total_profit,
            'total_tax': total_tax,
            'net_profit': total_profit - total_tax,
            'avg_margin': round_margin(total_profit, total_revenue),
        },
        'insights': {
            'margin_issues_count': len(margin_issues),
            'margin_issues': [
                {
                    'item_name': i['item_name'],
                    'expected_margin': i['expected_margin'],
                    'actual_margin': i['actual_margin'],
                }
                for i in margin_issues
            ],
            'top_profit_items': [
                {'item_name': i['item_name'], 'profit': i['profit'], 'margin': i['actual_margin']}
                for i in by_profit[:5]
            ],
            'low_margin_items': [
                {'item_name': i['item_name'], 'margin': i['actual_margin']}
                for i in calculated
                if i['actual_margin'] < LOW_MARGIN_PERCENT
            ],
        },
    }
