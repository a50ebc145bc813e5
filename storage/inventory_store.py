"""
In-memory inventory repository.

Holds the costed menu items that sales reports are priced against. Ids are
issued by the repository; parsing never reads the live store, only a
``snapshot()`` taken before the parse starts.
"""
import itertools
import logging
import math
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import yaml

from costing.cost_resolver import CostResolver, InventoryEntry
from parsers.errors import DuplicateItemError, RecordNotFoundError

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("name", "cost_price", "selling_price", "margin_percent", "category")


def calc_cost(selling_price: float, margin_percent: float) -> float:
    """Cost that yields ``margin_percent`` at ``selling_price``, rounded half up."""
    return float(math.floor(selling_price * (1 - margin_percent / 100) + 0.5))


def load_inventory_file(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Load inventory items from a YAML file.

    The file holds an ``items`` list; entries without ``cost_price`` get one
    derived from ``selling_price`` and ``margin_percent``.

    Args:
        path: YAML file path

    Returns:
        List of item dictionaries ready for ``InventoryRepository.add``
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    items = []
    for raw in data.get("items", []):
        selling_price = float(raw.get("selling_price", 0) or 0)
        margin_percent = float(raw.get("margin_percent", 0) or 0)
        cost_price = raw.get("cost_price")
        if cost_price is None:
            cost_price = calc_cost(selling_price, margin_percent)
        items.append({
            "name": str(raw["name"]),
            "cost_price": float(cost_price),
            "selling_price": selling_price,
            "margin_percent": margin_percent,
            "category": raw.get("category") or "General",
        })
    return items


class InventoryRepository:
    """
    Thread-safe in-memory store of inventory entries.
    """

    def __init__(self, items: Optional[Iterable[Dict[str, Any]]] = None):
        """
        Initialize the repository.

        Args:
            items: Optional initial item dictionaries
        """
        self._lock = Lock()
        self._ids = itertools.count(1)
        self._entries: Dict[int, InventoryEntry] = {}

        for item in items or []:
            self.add(**item)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "InventoryRepository":
        """Create a repository seeded from a YAML inventory file."""
        items = load_inventory_file(path)
        logger.info("Loaded %d inventory items from %s", len(items), path)
        return cls(items)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list(self) -> List[InventoryEntry]:
        """All entries in insertion order."""
        with self._lock:
            return list(self._entries.values())

    def snapshot(self) -> Tuple[InventoryEntry, ...]:
        """Immutable copy of the current inventory, for one parse."""
        with self._lock:
            return tuple(self._entries.values())

    def resolver(self, allow_fuzzy: bool = True, default_margin: Optional[float] = None) -> CostResolver:
        """Cost resolver over a fresh snapshot."""
        if default_margin is None:
            return CostResolver(self.snapshot(), allow_fuzzy=allow_fuzzy)
        return CostResolver(self.snapshot(), allow_fuzzy=allow_fuzzy, default_margin=default_margin)

    def get(self, item_id: int) -> InventoryEntry:
        """
        Get an entry by id.

        Raises:
            RecordNotFoundError: no entry with that id
        """
        with self._lock:
            entry = self._entries.get(item_id)
        if entry is None:
            raise RecordNotFoundError(f"Inventory item {item_id} not found", {'id': item_id})
        return entry

    def find_by_name(self, name: str, allow_fuzzy: bool = True) -> Optional[InventoryEntry]:
        """Look up an entry by name with the same matching rules as costing."""
        entry, _ = self.resolver(allow_fuzzy=allow_fuzzy).find(name)
        return entry

    def by_category(self, category: str) -> List[InventoryEntry]:
        return [e for e in self.list() if e.category == category]

    def categories(self) -> List[str]:
        """Distinct categories in first-seen order."""
        return list(dict.fromkeys(e.category for e in self.list()))

    def stats(self) -> Dict[str, Any]:
        """
        Item counts and mean target margin per category.

        Returns:
            Dictionary with ``total_items`` and a ``categories`` list
        """
        entries = self.list()
        categories = []
        for name in dict.fromkeys(e.category for e in entries):
            members = [e for e in entries if e.category == name]
            avg = sum(e.margin_percent for e in members) / len(members)
            categories.append({
                'name': name,
                'count': len(members),
                'avg_margin': math.floor(avg + 0.5),
            })
        return {'total_items': len(entries), 'categories': categories}

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(
        self,
        name: str,
        cost_price: float,
        selling_price: float = 0.0,
        margin_percent: float = 0.0,
        category: str = "General",
    ) -> InventoryEntry:
        """
        Add a new entry.

        Raises:
            DuplicateItemError: an entry with the same name (ignoring case) exists
        """
        name = (name or "").strip()
        if not name:
            raise ValueError("Inventory item name is required")

        with self._lock:
            self._check_name_free(name)
            entry = InventoryEntry(
                name=name,
                cost_price=float(cost_price),
                selling_price=float(selling_price or 0),
                margin_percent=float(margin_percent or 0),
                category=category or "General",
                id=next(self._ids),
                updated_at=datetime.now(),
            )
            self._entries[entry.id] = entry
        return entry

    def update(self, item_id: int, **updates: Any) -> InventoryEntry:
        """
        Update fields of an entry.

        Raises:
            RecordNotFoundError: no entry with that id
            DuplicateItemError: the new name belongs to another entry
        """
        changes = {k: v for k, v in updates.items() if k in _UPDATABLE_FIELDS and v is not None}
        for key in ("cost_price", "selling_price", "margin_percent"):
            if key in changes:
                changes[key] = float(changes[key])
        if "name" in changes:
            changes["name"] = str(changes["name"]).strip()
            if not changes["name"]:
                raise ValueError("Inventory item name is required")

        with self._lock:
            entry = self._entries.get(item_id)
            if entry is None:
                raise RecordNotFoundError(f"Inventory item {item_id} not found", {'id': item_id})
            if "name" in changes:
                self._check_name_free(changes["name"], exclude_id=item_id)
            entry = replace(entry, updated_at=datetime.now(), **changes)
            self._entries[item_id] = entry
        return entry

    def _check_name_free(self, name: str, exclude_id: Optional[int] = None) -> None:
        """Raise DuplicateItemError if another entry has ``name``. Caller holds the lock."""
        for existing in self._entries.values():
            if existing.id != exclude_id and existing.name.lower() == name.lower():
                raise DuplicateItemError(
                    f"Item already exists: {name}",
                    {'existing_item': existing.to_dict()},
                )

    def delete(self, item_id: int) -> bool:
        """Delete an entry; False if it did not exist."""
        with self._lock:
            return self._entries.pop(item_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
