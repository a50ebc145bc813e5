"""
Cost lookup against an inventory snapshot.

Matching priority, first hit wins:
1. Exact (case-sensitive) name
2. Case-insensitive name
3. Substring containment in either direction (fuzzy)

Fuzzy matching depends on inventory order: "Coke" can resolve to "Diet Coke"
if that entry comes first. Fuzzy hits are reported as such so callers can
treat them as provisional, and ``allow_fuzzy`` turns them off entirely.
"""
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Protocol, Tuple

from config import DEFAULT_ASSUMED_MARGIN

MATCH_EXACT = "exact"
MATCH_CASE_INSENSITIVE = "case_insensitive"
MATCH_FUZZY = "fuzzy"
MATCH_UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class InventoryEntry:
    """A costed menu item."""
    name: str
    cost_price: float
    selling_price: float = 0.0
    margin_percent: float = 0.0
    category: str = "General"
    id: Optional[int] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['updated_at'] = self.updated_at.isoformat() if self.updated_at else None
        return data


@dataclass(frozen=True)
class CostMatch:
    """Outcome of a cost lookup."""
    cost_price: float
    margin_percent: float
    match_type: str
    matched_name: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.match_type != MATCH_UNRESOLVED


class CostLookup(Protocol):
    """Anything the sales parser can ask for item costs."""

    def resolve(self, item_name: str) -> CostMatch:
        ...


class CostResolver:
    """
    Resolves item names to cost prices from a read-only inventory snapshot.
    """

    def __init__(
        self,
        inventory: Iterable[InventoryEntry],
        allow_fuzzy: bool = True,
        default_margin: float = DEFAULT_ASSUMED_MARGIN,
    ):
        """
        Initialize the resolver.

        Args:
            inventory: Inventory entries; copied so later changes are not seen
            allow_fuzzy: Whether substring matching is used as a last resort
            default_margin: Margin reported for items with no match
        """
        self._entries: Tuple[InventoryEntry, ...] = tuple(inventory)
        self.allow_fuzzy = allow_fuzzy
        self.default_margin = default_margin

        self._by_name: Dict[str, InventoryEntry] = {}
        self._by_lower_name: Dict[str, InventoryEntry] = {}
        for entry in self._entries:
            # First entry wins, same as a linear scan
            self._by_name.setdefault(entry.name.strip(), entry)
            self._by_lower_name.setdefault(entry.name.strip().lower(), entry)

    @property
    def entries(self) -> Tuple[InventoryEntry, ...]:
        return self._entries

    def find(self, item_name: str) -> Tuple[Optional[InventoryEntry], str]:
        """
        Find the inventory entry for an item name.

        Returns:
            Tuple of (entry or None, match type)
        """
        name = (item_name or "").strip()
        if not name:
            return None, MATCH_UNRESOLVED

        entry = self._by_name.get(name)
        if entry is not None:
            return entry, MATCH_EXACT

        lower_name = name.lower()
        entry = self._by_lower_name.get(lower_name)
        if entry is not None:
            return entry, MATCH_CASE_INSENSITIVE

        if self.allow_fuzzy:
            for entry in self._entries:
                key = entry.name.strip().lower()
                if key and (lower_name in key or key in lower_name):
                    return entry, MATCH_FUZZY

        return None, MATCH_UNRESOLVED

    def resolve(self, item_name: str) -> CostMatch:
        """
        Resolve an item's cost price and target margin.

        Args:
            item_name: Item name as printed in the report

        Returns:
            CostMatch; unmatched items get cost 0 and the default margin
        """
        entry, match_type = self.find(item_name)
        if entry is None:
            return CostMatch(
                cost_price=0.0,
                margin_percent=self.default_margin,
                match_type=MATCH_UNRESOLVED,
            )
        return CostMatch(
            cost_price=float(entry.cost_price),
            margin_percent=float(entry.margin_percent),
            match_type=match_type,
            matched_name=entry.name,
        )
