"""
CSV parser for sales reports saved as CSV from the reporting software.

CSV has no cell types, so numeric-looking fields are converted to numbers
before classification; everything else stays text.
"""
import csv
import logging
from typing import Any, List, Optional

from config import FILE_ENCODINGS
from normalizer.amount_parser import has_valid_amount, parse_amount
from parsers.xlsx_parser import XLSXSalesParser
from parsers.errors import SpreadsheetReadError

logger = logging.getLogger(__name__)


def _coerce_field(value: str) -> Any:
    """Blank -> None, amount -> float, otherwise the original text."""
    if value is None or not value.strip():
        return None
    if has_valid_amount(value):
        return parse_amount(value)
    return value


def read_csv_grid(filepath: str) -> List[List[Any]]:
    """
    Read a CSV file with encoding fallback.

    Args:
        filepath: Path to the CSV file

    Returns:
        Rows of coerced values

    Raises:
        SpreadsheetReadError: no supported encoding could read the file
    """
    for encoding in FILE_ENCODINGS:
        try:
            with open(filepath, 'r', encoding=encoding, newline='') as f:
                rows = list(csv.reader(f))
            logger.debug("Read CSV with encoding: %s", encoding)
            return [[_coerce_field(v) for v in row] for row in rows]
        except UnicodeError:
            continue
        except OSError as e:
            raise SpreadsheetReadError(f"Could not read CSV file: {e}") from e

    raise SpreadsheetReadError(
        "Failed to read CSV with any supported encoding",
        {'encodings': FILE_ENCODINGS},
    )


class CSVSalesParser(XLSXSalesParser):
    """
    Parser for CSV sales report files.
    """

    def read_grid(self) -> List[List[Any]]:
        return read_csv_grid(self.filepath)


def parser_for_file(filepath: str, cost_lookup, max_rows: Optional[int] = None) -> XLSXSalesParser:
    """
    Pick the parser for a file by extension.

    Returns:
        CSVSalesParser for .csv/.txt files, XLSXSalesParser otherwise
    """
    if filepath.lower().endswith(('.csv', '.txt')):
        return CSVSalesParser(filepath, cost_lookup, max_rows=max_rows)
    return XLSXSalesParser(filepath, cost_lookup, max_rows=max_rows)
