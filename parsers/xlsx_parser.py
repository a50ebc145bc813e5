"""
XLSX parser for point-of-sale sales report exports.
"""
import logging
import os
from typing import Any, List, Optional

import pandas as pd

from config import SUPPORTED_EXTENSIONS, get_config
from costing.cost_resolver import CostLookup
from parsers.base_parser import BaseParser, ParseResult
from parsers.errors import MalformedInputError, SpreadsheetReadError
from parsers.sales_parser import SalesReportParser

logger = logging.getLogger(__name__)


def read_excel_grid(filepath: Any) -> List[List[Any]]:
    """
    Read the first sheet of a workbook as a raw grid, no header assumed.

    Args:
        filepath: Path or file-like object of an .xlsx/.xls workbook

    Returns:
        Rows of raw cell values (NaN for blank cells)

    Raises:
        SpreadsheetReadError: the workbook cannot be read
    """
    try:
        df = pd.read_excel(filepath, sheet_name=0, header=None, dtype=object)
    except Exception as e:
        raise SpreadsheetReadError(f"Could not read Excel file: {e}") from e

    return df.values.tolist()


def check_row_limit(rows: List[Any], max_rows: Optional[int] = None) -> None:
    """
    Reject grids larger than the configured row limit before parsing.

    Raises:
        MalformedInputError: too many rows
    """
    limit = max_rows if max_rows is not None else get_config().get("max_rows")
    if limit and len(rows) > limit:
        raise MalformedInputError(
            f"Sales report has {len(rows)} rows, limit is {limit}",
            {'total_rows': len(rows), 'max_rows': limit},
        )


def validate_upload(filename: str, size: Optional[int] = None) -> Optional[str]:
    """
    Check an uploaded file's extension and size.

    Args:
        filename: Original file name
        size: Size in bytes, if known

    Returns:
        An error message, or None if the file is acceptable
    """
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in SUPPORTED_EXTENSIONS:
        return "Only Excel (.xlsx, .xls) or CSV files are supported"

    max_bytes = get_config().max_upload_bytes
    if size is not None and size > max_bytes:
        return f"File size must be less than {max_bytes // (1024 * 1024)}MB"

    return None


class XLSXSalesParser(BaseParser):
    """
    Parser for XLSX sales report files. Only the first sheet is read.
    """

    def __init__(self, filepath: str, cost_lookup: CostLookup, max_rows: Optional[int] = None):
        """
        Initialize the XLSX parser.

        Args:
            filepath: Path to the Excel file
            cost_lookup: Resolver for item costs
            max_rows: Row limit checked before parsing (config default if None)
        """
        super().__init__(filepath)
        self.cost_lookup = cost_lookup
        self.max_rows = max_rows

    def read_grid(self) -> List[List[Any]]:
        return read_excel_grid(self.filepath)

    def parse(self) -> ParseResult:
        """
        Parse the Excel file.

        Returns:
            ParseResult for the first sheet
        """
        logger.info("Parsing sales report: %s", self.filepath)

        rows = self.read_grid()
        check_row_limit(rows, self.max_rows)

        self._result = SalesReportParser(self.cost_lookup).parse(rows)
        return self._result
