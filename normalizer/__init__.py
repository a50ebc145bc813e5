"""
Normalizer module for parsing report dates and amounts.
"""
from .date_parser import DateRange, extract_date_range, find_date_range
from .amount_parser import parse_amount, has_valid_amount, format_currency

__all__ = [
    'DateRange', 'extract_date_range', 'find_date_range',
    'parse_amount', 'has_valid_amount', 'format_currency',
]
