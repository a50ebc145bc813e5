"""
Parsers module for point-of-sale sales report exports.
"""
from .base_parser import BaseParser, CategorySummary, ParseResult, SaleItem, SalesSummary
from .row_classifier import RowKind, classify_row

__all__ = [
    'BaseParser', 'CategorySummary', 'ParseResult', 'SaleItem', 'SalesSummary',
    'RowKind', 'classify_row',
]
