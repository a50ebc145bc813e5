"""
Category-aware parser for point-of-sale sales report grids.

Layout of a typical export (first sheet, no schema):

    Row 0   restaurant / hotel name
    Row 1   "Group Report : 17-10-2025 to 18-10-2025"
    Row 3   header row (Group, Item, Qty, My Amount, Discount, Net, Tax, Total)
    Row 4+  Max / Min / Avg / Total statistic rows
    ...     category rows, each followed by its item rows and a Sub Total
    last    Round off

The parser makes a single forward pass, remembering the most recent category
row, and turns every item row into a costed SaleItem.
"""
import logging
from collections import Counter
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from config import (
    COL_DISCOUNT,
    COL_GROSS_AMOUNT,
    COL_ITEM_NAME,
    COL_MARKER,
    COL_NET_AMOUNT,
    COL_QUANTITY,
    COL_TAX,
    COL_TOTAL_SALES,
    DIAGNOSTIC_SAMPLE_ROWS,
    MIN_VIABLE_ROWS,
    UNCATEGORIZED,
    UNKNOWN_RESTAURANT,
)
from costing.cost_resolver import CostLookup, CostMatch, CostResolver, InventoryEntry
from costing.profit import build_sale_item, summarize_category, summarize_sales
from normalizer.date_parser import find_date_range
from parsers.base_parser import ParseResult, SaleItem, UnresolvedCostWarning
from parsers.cells import Row, cell_at, row_to_raw, to_grid
from parsers.errors import MalformedInputError, NoItemsFoundError
from parsers.row_classifier import RowKind, classify_row

logger = logging.getLogger(__name__)


class SalesReportParser:
    """
    Turns a decoded report grid into a ParseResult.

    The parser holds only configuration; every call to ``parse`` starts from
    fresh state, so one instance can serve concurrent callers.
    """

    def __init__(
        self,
        cost_lookup: CostLookup,
        min_rows: int = MIN_VIABLE_ROWS,
        today: Optional[date] = None,
    ):
        """
        Initialize the parser.

        Args:
            cost_lookup: Resolver for item costs, backed by an inventory snapshot
            min_rows: Grids shorter than this are rejected as malformed
            today: Fallback report date for headers without a date range
        """
        self.cost_lookup = cost_lookup
        self.min_rows = min_rows
        self.today = today

    def parse(self, rows: Optional[Iterable[Iterable[Any]]]) -> ParseResult:
        """
        Parse a report grid.

        Categories that never receive an item are left out of the category
        summaries.

        Args:
            rows: Rows of raw decoded values or Cells

        Returns:
            ParseResult with items, category summaries, totals and warnings

        Raises:
            MalformedInputError: grid missing or shorter than ``min_rows``
            NoItemsFoundError: no row classified as an item
        """
        if rows is None:
            raise MalformedInputError("No rows to parse", {'total_rows': 0})

        grid = to_grid(rows)
        if len(grid) < self.min_rows:
            raise MalformedInputError(
                f"Sales report is empty or has insufficient data "
                f"({len(grid)} rows, need at least {self.min_rows})",
                {'total_rows': len(grid), 'min_rows': self.min_rows},
            )

        restaurant_name = self._extract_restaurant_name(grid)
        period = find_date_range(self._header_texts(grid), today=self.today)

        items: List[SaleItem] = []
        buckets: Dict[str, List[SaleItem]] = {}
        warnings: List[UnresolvedCostWarning] = []
        kind_counts: Counter = Counter()
        inspected = 0
        current_category = UNCATEGORIZED

        for index, row in enumerate(grid):
            if not row:
                continue
            inspected += 1

            kind = classify_row(row)
            kind_counts[kind.value] += 1

            if kind is RowKind.CATEGORY:
                current_category = cell_at(row, COL_MARKER).text
                buckets.setdefault(current_category, [])

            elif kind is RowKind.ITEM:
                item, cost = self._build_item(row, current_category, index + 1)
                items.append(item)
                buckets.setdefault(current_category, []).append(item)

                if not cost.resolved:
                    warnings.append(UnresolvedCostWarning(
                        item_name=item.item_name,
                        category=current_category,
                        row_number=item.row_number,
                        assumed_margin=cost.margin_percent,
                    ))

        if not items:
            raise NoItemsFoundError(
                f"No items found in sales report. Total rows: {len(grid)}. "
                f"Please check the file format.",
                {
                    'total_rows': len(grid),
                    'rows_inspected': inspected,
                    'row_kinds': dict(kind_counts),
                    'sample_rows': [row_to_raw(r) for r in grid[:DIAGNOSTIC_SAMPLE_ROWS]],
                },
            )

        categories = tuple(
            summarize_category(name, bucket)
            for name, bucket in buckets.items()
            if bucket
        )
        summary = summarize_sales(items, categories)

        logger.info(
            "Parsed %d items in %d categories from %d rows (%d unresolved costs)",
            len(items), len(categories), len(grid), len(warnings),
        )

        return ParseResult(
            restaurant_name=restaurant_name,
            date_range=period.date_range,
            date=period.date,
            items=tuple(items),
            categories=categories,
            summary=summary,
            warnings=tuple(warnings),
        )

    def _build_item(self, row: Row, category: str, row_number: int) -> Tuple[SaleItem, CostMatch]:
        """Extract the fixed columns of an item row and cost it."""
        item_name = cell_at(row, COL_ITEM_NAME).text
        cost = self.cost_lookup.resolve(item_name)
        item = build_sale_item(
            item_name=item_name,
            category=category,
            quantity=cell_at(row, COL_QUANTITY).as_number(),
            gross_amount=cell_at(row, COL_GROSS_AMOUNT).as_number(),
            discount=cell_at(row, COL_DISCOUNT).as_number(),
            net_amount=cell_at(row, COL_NET_AMOUNT).as_number(),
            tax=cell_at(row, COL_TAX).as_number(),
            total_sales=cell_at(row, COL_TOTAL_SALES).as_number(),
            cost=cost,
            row_number=row_number,
        )
        return item, cost

    @staticmethod
    def _extract_restaurant_name(grid: Sequence[Row]) -> str:
        first = cell_at(grid[0], COL_MARKER)
        return first.text or UNKNOWN_RESTAURANT

    @staticmethod
    def _header_texts(grid: Sequence[Row]) -> List[str]:
        """Text cells of the rows before the first item, in reading order."""
        texts = []
        for row in grid:
            if classify_row(row) is RowKind.ITEM:
                break
            texts.extend(c.text for c in row if c.is_text)
        return texts


def parse_sales_grid(
    rows: Optional[Iterable[Iterable[Any]]],
    inventory: Iterable[InventoryEntry],
    allow_fuzzy: bool = True,
    today: Optional[date] = None,
) -> ParseResult:
    """
    Parse a decoded report grid against an inventory snapshot.

    Args:
        rows: Rows of raw decoded values
        inventory: Inventory entries to cost items against
        allow_fuzzy: Whether substring cost matching is allowed
        today: Fallback report date for headers without a date range

    Returns:
        ParseResult
    """
    resolver = CostResolver(inventory, allow_fuzzy=allow_fuzzy)
    return SalesReportParser(resolver, today=today).parse(rows)


def classify_grid(rows: Iterable[Iterable[Any]]) -> List[Tuple[int, RowKind]]:
    """
    Classify every row of a grid, for debugging format mismatches.

    Returns:
        List of (1-based row number, RowKind)
    """
    return [(i + 1, classify_row(row)) for i, row in enumerate(to_grid(rows))]
