"""
Row classification for point-of-sale sales report grids.

A report sheet mixes metadata, column headers, category markers, item rows
and statistic rows with no schema. Rows are told apart purely by position and
cell type:

    Skip          statistic / subtotal / header rows ("Total", "Sub Total")
    Category      text in column 0, column 1 empty
    Item          column 0 empty, item name in column 1, quantity > 0 in column 2
    Unclassified  everything else (blank rows, short rows, stray headers)

Rules are checked in that order. Skip must come first because "Sub Total",
"Round off" and "Group" rows have the Category shape.
"""
from enum import Enum
from typing import Sequence

from config import (
    COL_ITEM_NAME,
    COL_MARKER,
    COL_QUANTITY,
    SKIP_ROW_LABELS,
    SKIP_ROW_SUBSTRINGS,
    SKIP_ROW_SUBSTRINGS_CASELESS,
)
from parsers.cells import Cell, cell_at


class RowKind(Enum):
    SKIP = "skip"
    CATEGORY = "category"
    ITEM = "item"
    UNCLASSIFIED = "unclassified"


def is_skip_row(row: Sequence[Cell]) -> bool:
    """
    Check if a row is a statistic, subtotal or report header row.

    Args:
        row: A row of cells

    Returns:
        True if the row must be ignored
    """
    marker = cell_at(row, COL_MARKER).text
    if not marker:
        return False

    if marker in SKIP_ROW_LABELS:
        return True

    lowered = marker.lower()
    if any(s in lowered for s in SKIP_ROW_SUBSTRINGS_CASELESS):
        return True

    return any(s in marker for s in SKIP_ROW_SUBSTRINGS)


def is_category_row(row: Sequence[Cell]) -> bool:
    """Category: column 0 has text, column 1 is empty or absent."""
    marker = cell_at(row, COL_MARKER)
    return marker.is_text and bool(marker.text) and cell_at(row, COL_ITEM_NAME).is_empty


def is_item_row(row: Sequence[Cell]) -> bool:
    """Item: column 0 is empty, column 1 has text, column 2 is a quantity > 0."""
    name = cell_at(row, COL_ITEM_NAME)
    quantity = cell_at(row, COL_QUANTITY)
    return (
        cell_at(row, COL_MARKER).is_empty
        and name.is_text
        and bool(name.text)
        and quantity.is_number
        and quantity.as_number() > 0
    )


def classify_row(row: Sequence[Cell]) -> RowKind:
    """
    Classify a single row.

    Args:
        row: A row of cells (may be empty or shorter than the column contract)

    Returns:
        The RowKind of the first rule that matches
    """
    if is_skip_row(row):
        return RowKind.SKIP
    if is_category_row(row):
        return RowKind.CATEGORY
    if is_item_row(row):
        return RowKind.ITEM
    return RowKind.UNCLASSIFIED
