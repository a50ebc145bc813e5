"""
In-memory store for parsed sales reports.
"""
import itertools
import logging
from dataclasses import dataclass
from datetime import datetime
from threading import Lock
from typing import Any, Dict, List, Optional

from config import DEFAULT_ASSUMED_MARGIN, UNKNOWN_RESTAURANT
from costing.cost_resolver import MATCH_EXACT, MATCH_UNRESOLVED, CostMatch
from costing.profit import build_sale_item, summarize_category, summarize_sales
from parsers.base_parser import ParseResult, SaleItem, UnresolvedCostWarning
from parsers.errors import MalformedInputError, RecordNotFoundError

logger = logging.getLogger(__name__)


def _item_from_dict(data: Dict[str, Any]) -> SaleItem:
    """Rebuild a sale item, recomputing its cost, profit and margin."""
    match_type = data.get('cost_match') or MATCH_EXACT
    cost = CostMatch(
        cost_price=float(data.get('cost_price') or 0.0),
        margin_percent=DEFAULT_ASSUMED_MARGIN if match_type == MATCH_UNRESOLVED else 0.0,
        match_type=match_type,
    )
    return build_sale_item(
        item_name=data.get('item_name', ''),
        category=data.get('category', ''),
        quantity=float(data.get('quantity') or 0),
        gross_amount=float(data.get('gross_amount') or 0.0),
        discount=float(data.get('discount') or 0.0),
        net_amount=float(data.get('net_amount') or 0.0),
        tax=float(data.get('tax') or 0.0),
        total_sales=float(data.get('total_sales') or 0.0),
        cost=cost,
        row_number=int(data.get('row_number') or 0),
    )


def result_from_dict(data: Dict[str, Any]) -> ParseResult:
    """
    Rebuild a ParseResult from its dictionary form.

    Item cost, profit and margin are recomputed from quantity, amounts and
    cost price, and category summaries and totals from those items.

    Raises:
        MalformedInputError: no items in ``data``
    """
    raw_items = data.get('items') or []
    if not isinstance(raw_items, list) or not raw_items:
        raise MalformedInputError("No items to save", {'item_count': 0})

    items = tuple(_item_from_dict(i) for i in raw_items)
    buckets: Dict[str, List[SaleItem]] = {}
    for item in items:
        buckets.setdefault(item.category, []).append(item)
    categories = tuple(summarize_category(name, bucket) for name, bucket in buckets.items())

    warnings = tuple(
        UnresolvedCostWarning(
            item_name=w.get('item_name', ''),
            category=w.get('category', ''),
            row_number=w.get('row_number', 0),
            assumed_margin=w.get('assumed_margin', 0.0),
        )
        for w in data.get('warnings') or []
    )

    return ParseResult(
        restaurant_name=data.get('restaurant_name') or UNKNOWN_RESTAURANT,
        date_range=data.get('date_range') or '',
        date=data.get('date') or datetime.now().strftime('%Y-%m-%d'),
        items=items,
        categories=categories,
        summary=summarize_sales(items, categories),
        warnings=warnings,
    )


@dataclass(frozen=True)
class SalesRecord:
    """A saved sales report."""
    id: int
    file_name: str
    result: ParseResult
    created_at: datetime

    @property
    def date(self) -> str:
        return self.result.date

    def summary_dict(self) -> Dict[str, Any]:
        """Record header and totals, without the item list."""
        summary = self.result.summary
        return {
            'id': self.id,
            'file_name': self.file_name,
            'restaurant_name': self.result.restaurant_name,
            'date': self.result.date,
            'date_range': self.result.date_range,
            'total_revenue': summary.total_revenue,
            'total_cost': summary.total_cost,
            'total_profit': summary.total_profit,
            'total_tax': summary.total_tax,
            'net_profit': summary.net_profit,
            'total_orders': summary.total_orders,
            'avg_margin': summary.avg_margin,
            'item_count': summary.item_count,
            'category_count': len(self.result.categories),
            'unresolved_costs': len(self.result.warnings),
            'created_at': self.created_at.isoformat(),
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.summary_dict()
        data.update(self.result.to_dict())
        return data


class SalesRecordStore:
    """
    Thread-safe in-memory store of SalesRecords with store-issued ids.
    """

    def __init__(self):
        self._lock = Lock()
        self._ids = itertools.count(1)
        self._records: Dict[int, SalesRecord] = {}

    def save(self, result: ParseResult, file_name: str = "Unknown") -> int:
        """
        Save a parse result.

        Returns:
            The new record id
        """
        with self._lock:
            record = SalesRecord(
                id=next(self._ids),
                file_name=file_name or "Unknown",
                result=result,
                created_at=datetime.now(),
            )
            self._records[record.id] = record
        logger.info("Saved sales record %d (%s)", record.id, record.file_name)
        return record.id

    def fetch(self, record_id: int) -> SalesRecord:
        """
        Get a record by id.

        Raises:
            RecordNotFoundError: no record with that id
        """
        with self._lock:
            record = self._records.get(record_id)
        if record is None:
            raise RecordNotFoundError(f"Sales record {record_id} not found", {'id': record_id})
        return record

    def list(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> List[SalesRecord]:
        """
        Records newest first, optionally limited to a report date range.

        Args:
            start_date: Inclusive YYYY-MM-DD lower bound
            end_date: Inclusive YYYY-MM-DD upper bound

        Returns:
            Matching records
        """
        with self._lock:
            records = list(self._records.values())

        if start_date:
            records = [r for r in records if r.date >= start_date]
        if end_date:
            records = [r for r in records if r.date <= end_date]
        return list(reversed(records))

    def delete(self, record_id: int) -> bool:
        """Delete a record; False if it did not exist."""
        with self._lock:
            return self._records.pop(record_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
