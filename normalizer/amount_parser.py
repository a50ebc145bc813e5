"""
Amount parser for sales report figures exported as text.

Most report cells arrive as numbers already; CSV exports and hand-edited
workbooks sometimes carry "₹1,047.00" or "(53)" instead.
"""
import re
from typing import Optional, Union

_CURRENCY_PATTERNS = [
    r'₹\s*',           # Rupee symbol
    r'Rs\.?\s*',       # Rs or Rs.
    r'INR\s*',         # INR
    r'\$\s*',          # Dollar
    r'€\s*',           # Euro
    r'£\s*',           # Pound
]

_NUMBER_RE = re.compile(r'^\d+(\.\d+)?$|^\.\d+$')


def parse_amount(value: Union[str, int, float, None]) -> float:
    """
    Parse an amount value into a float.

    Handles:
    - Indian and international grouping: "9,17,390.58", "917,390.58"
    - Currency symbols: ₹, Rs, Rs., INR, $, €, £
    - Negative formats: -1000, (1000), 1000-

    Args:
        value: A string/number that might be an amount

    Returns:
        The amount, or 0.0 if unparseable
    """
    if value is None:
        return 0.0

    if isinstance(value, (int, float)):
        return float(value)

    cleaned, is_negative = _clean_amount_string(str(value))
    if not cleaned or not _NUMBER_RE.match(cleaned):
        return 0.0

    amount = float(cleaned)
    return -amount if is_negative else amount


def _clean_amount_string(value_str: str):
    """
    Strip signs, currency and grouping from an amount string.

    Returns:
        Tuple of (bare digits string, is_negative)
    """
    value_str = value_str.strip()
    is_negative = False

    # (1000) means negative
    if value_str.startswith('(') and value_str.endswith(')'):
        is_negative = True
        value_str = value_str[1:-1].strip()

    for pattern in _CURRENCY_PATTERNS:
        value_str = re.sub(pattern, '', value_str, flags=re.IGNORECASE)
    value_str = value_str.strip()

    if value_str.startswith('-'):
        is_negative = True
        value_str = value_str[1:]
    elif value_str.endswith('-'):
        is_negative = True
        value_str = value_str[:-1]

    value_str = value_str.replace(',', '').replace(' ', '')
    return value_str, is_negative


def has_valid_amount(value: Union[str, int, float, None]) -> bool:
    """
    Check if a value contains a parseable amount.

    Args:
        value: A value to check

    Returns:
        True if the value contains a valid amount, False otherwise
    """
    if value is None or isinstance(value, bool):
        return False

    if isinstance(value, (int, float)):
        return True

    cleaned, _ = _clean_amount_string(str(value))
    return bool(cleaned) and bool(_NUMBER_RE.match(cleaned))


def format_currency(amount: Optional[float], symbol: str = "₹") -> str:
    """
    Format an amount with Indian digit grouping (lakhs).

    Args:
        amount: The amount to format
        symbol: Currency symbol prefix, empty string for none

    Returns:
        Formatted currency string, e.g. "₹9,17,390.58"
    """
    if amount is None:
        return ""

    is_negative = amount < 0
    int_str, decimal_str = f"{abs(amount):.2f}".split('.')

    if len(int_str) > 3:
        # First group of 3 from right, then groups of 2
        result = int_str[-3:]
        int_str = int_str[:-3]
        while int_str:
            result = int_str[-2:] + ',' + result
            int_str = int_str[:-2]
    else:
        result = int_str

    result = f"{result}.{decimal_str}"
    if is_negative:
        result = "-" + result
    return symbol + result
