"""
Result types and abstract base class for sales report parsers.
"""
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class SaleItem:
    """
    One menu item's aggregated sales for the reporting period.
    """
    item_name: str
    category: str
    quantity: float
    gross_amount: float
    discount: float
    net_amount: float
    tax: float
    total_sales: float
    cost_price: float
    total_cost: float
    profit: float
    margin_percent: float

    # How the cost was found: "exact", "case_insensitive", "fuzzy", "unresolved"
    cost_match: str = "exact"
    row_number: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert sale item to dictionary."""
        return asdict(self)

    @property
    def is_cost_reliable(self) -> bool:
        """False when the cost came from a fuzzy match or the unmatched default."""
        return self.cost_match in ("exact", "case_insensitive")


@dataclass(frozen=True)
class CategorySummary:
    """Totals for one category of the report."""
    name: str
    item_count: int
    total_quantity: float
    total_revenue: float
    total_cost: float
    total_profit: float
    total_tax: float
    avg_margin: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SalesSummary:
    """
    Totals across every item of the report.

    ``total_profit`` is pre-tax (revenue - cost); ``net_profit`` is what is
    left after ``total_tax`` is taken out as well.
    """
    item_count: int
    total_quantity: float
    total_revenue: float
    total_cost: float
    total_profit: float
    total_tax: float
    avg_margin: float
    total_orders: float
    net_profit: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UnresolvedCostWarning:
    """
    An item with no inventory match; its profit figures use the default cost.
    """
    item_name: str
    category: str
    row_number: int
    assumed_margin: float
    kind: str = "UnresolvedCost"

    @property
    def message(self) -> str:
        return (f"No inventory cost for '{self.item_name}' (row {self.row_number}); "
                f"profit assumes zero cost")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['message'] = self.message
        return data


@dataclass(frozen=True)
class ParseResult:
    """Everything recovered from one sales report."""
    restaurant_name: str
    date_range: str
    date: str
    items: Tuple[SaleItem, ...]
    categories: Tuple[CategorySummary, ...]
    summary: SalesSummary
    warnings: Tuple[UnresolvedCostWarning, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result to a JSON-serializable dictionary."""
        return {
            'restaurant_name': self.restaurant_name,
            'date_range': self.date_range,
            'date': self.date,
            'items': [i.to_dict() for i in self.items],
            'categories': [c.to_dict() for c in self.categories],
            'summary': self.summary.to_dict(),
            'warnings': [w.to_dict() for w in self.warnings],
        }

    @property
    def unresolved_items(self) -> Tuple[str, ...]:
        return tuple(w.item_name for w in self.warnings)


class BaseParser(ABC):
    """
    Abstract base class for sales report file parsers.
    """

    def __init__(self, filepath: str):
        """
        Initialize the parser with a file path.

        Args:
            filepath: Path to the sales report file
        """
        self.filepath = filepath
        self._result: Optional[ParseResult] = None

    @abstractmethod
    def parse(self) -> ParseResult:
        """
        Parse the sales report file.

        Returns:
            ParseResult for the first sheet of the file
        """
        pass

    @property
    def result(self) -> Optional[ParseResult]:
        """Get the last parse result."""
        return self._result

    def get_summary(self) -> Dict[str, Any]:
        """
        Get a summary of the parsed report.

        Returns:
            Dictionary with summary statistics
        """
        if self._result is None:
            return {
                'total_items': 0,
                'total_categories': 0,
                'total_revenue': 0.0,
                'total_profit': 0.0,
                'net_profit': 0.0,
                'date_range': '',
                'unresolved_costs': 0,
            }

        summary = self._result.summary
        return {
            'total_items': summary.item_count,
            'total_categories': len(self._result.categories),
            'total_revenue': summary.total_revenue,
            'total_cost': summary.total_cost,
            'total_profit': summary.total_profit,
            'total_tax': summary.total_tax,
            'net_profit': summary.net_profit,
            'avg_margin': summary.avg_margin,
            'date_range': self._result.date_range,
            'unresolved_costs': len(self._result.warnings),
        }
