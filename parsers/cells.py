"""
Cell model for decoded spreadsheet grids.

Spreadsheet decoders hand back heterogeneous values (str, int, float, None,
NaN, datetimes). Everything downstream works on the explicit ``Cell`` variant
defined here instead of checking runtime types ad hoc.
"""
import numbers
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

import pandas as pd

from normalizer.amount_parser import has_valid_amount, parse_amount


class CellKind(Enum):
    EMPTY = "empty"
    TEXT = "text"
    NUMBER = "number"


@dataclass(frozen=True)
class Cell:
    """A single grid value: Empty, Text or Number."""

    kind: CellKind
    value: Union[str, float, None] = None

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY

    @property
    def is_text(self) -> bool:
        return self.kind is CellKind.TEXT

    @property
    def is_number(self) -> bool:
        return self.kind is CellKind.NUMBER

    @property
    def text(self) -> str:
        """Trimmed text of a Text cell, empty string otherwise."""
        if self.kind is CellKind.TEXT:
            return str(self.value).strip()
        return ""

    def as_number(self) -> float:
        """
        Numeric value of the cell.

        Text cells holding an amount ("1,047.00") are parsed; anything else
        counts as zero.
        """
        if self.kind is CellKind.NUMBER:
            return float(self.value)
        if self.kind is CellKind.TEXT and has_valid_amount(self.value):
            return parse_amount(self.value)
        return 0.0

    def raw(self) -> Union[str, float, None]:
        """Plain Python value, used for diagnostics and JSON output."""
        return self.value


EMPTY = Cell(CellKind.EMPTY)

Row = Tuple[Cell, ...]


def text_cell(value: str) -> Cell:
    return Cell(CellKind.TEXT, value)


def number_cell(value: float) -> Cell:
    return Cell(CellKind.NUMBER, float(value))


def to_cell(value: Any) -> Cell:
    """
    Convert a raw decoded value into a Cell.

    Args:
        value: Anything a spreadsheet decoder may produce

    Returns:
        The matching Cell; None, NaN and blank strings become Empty
    """
    if isinstance(value, Cell):
        return value

    # None, NaN, NaT and pd.NA
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return EMPTY

    # bool is an int subclass but never a quantity
    if isinstance(value, bool):
        return text_cell(str(value))

    if isinstance(value, numbers.Real):
        return number_cell(value)

    if isinstance(value, (datetime, date)):
        return text_cell(value.isoformat())

    value_str = str(value)
    if not value_str.strip():
        return EMPTY
    return text_cell(value_str)


def to_row(values: Optional[Iterable[Any]]) -> Row:
    """Convert a sequence of raw values into a Row with trailing empties dropped."""
    if values is None:
        return ()
    cells: List[Cell] = [to_cell(v) for v in values]
    while cells and cells[-1].is_empty:
        cells.pop()
    return tuple(cells)


def to_grid(rows: Iterable[Optional[Iterable[Any]]]) -> Tuple[Row, ...]:
    """Convert raw decoded rows into an immutable grid of Cells."""
    return tuple(to_row(r) for r in rows)


def cell_at(row: Sequence[Cell], index: int) -> Cell:
    """Cell at ``index``, or Empty when the row is too short."""
    if index < len(row):
        return row[index]
    return EMPTY


def row_to_raw(row: Sequence[Cell]) -> List[Union[str, float, None]]:
    """Raw values of a row, for diagnostics."""
    return [c.raw() for c in row]
