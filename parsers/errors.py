"""
Structured errors raised while reading and parsing sales reports.

Every error carries a ``kind`` tag and a ``details`` payload so the web layer
can return it as JSON without exposing tracebacks.
"""
from typing import Any, Dict, Optional


class SalesReportError(Exception):
    """Base class for all sales report errors."""

    kind: str = "SalesReportError"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to a JSON-serializable dictionary."""
        return {
            'kind': self.kind,
            'error': self.message,
            'details': self.details,
        }


class MalformedInputError(SalesReportError):
    """Raised when the grid is absent, empty or too short to be a report."""

    kind = "MalformedInput"


class NoItemsFoundError(SalesReportError):
    """Raised when classification finished without producing a single item."""

    kind = "NoItemsFound"


class SpreadsheetReadError(SalesReportError):
    """Raised when a spreadsheet file cannot be decoded into a grid."""

    kind = "UnreadableFile"


class RecordNotFoundError(SalesReportError):
    """Raised when a stored record or inventory item does not exist."""

    kind = "NotFound"


class DuplicateItemError(SalesReportError):
    """Raised when adding an inventory item whose name already exists."""

    kind = "Conflict"
