"""
Date handling for sales report headers.

Report exports carry their period as free text in a header row, e.g.
"Group Report : 17-10-2025 to 18-10-2025".
"""
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional

DATE_RANGE_PATTERN = re.compile(
    r'(\d{2})-(\d{2})-(\d{4})\s+to\s+(\d{2})-(\d{2})-(\d{4})'
)

ISO_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True)
class DateRange:
    """Reporting period recovered from a header row."""

    date_range: str
    date: str

    @property
    def matched(self) -> bool:
        return bool(self.date_range)


def extract_date_range(text: Optional[str], today: Optional[date] = None) -> DateRange:
    """
    Extract the "DD-MM-YYYY to DD-MM-YYYY" reporting range from header text.

    The returned ``date`` is the end of the range as YYYY-MM-DD. When the text
    holds no range, ``date_range`` is empty and ``date`` falls back to
    ``today`` (the system date unless given), so results for malformed
    headers depend on when they are parsed.

    Args:
        text: Header text, may be None
        today: Fallback date for headers without a range

    Returns:
        DateRange with the verbatim range and the normalized end date
    """
    match = DATE_RANGE_PATTERN.search(text or "")
    if match:
        d1, m1, y1, d2, m2, y2 = match.groups()
        return DateRange(
            date_range=f"{d1}-{m1}-{y1} to {d2}-{m2}-{y2}",
            date=f"{y2}-{m2}-{d2}",
        )

    fallback = today or date.today()
    return DateRange(date_range="", date=fallback.strftime(ISO_FORMAT))


def find_date_range(texts: Iterable[str], today: Optional[date] = None) -> DateRange:
    """
    Return the first date range found in a sequence of header texts.

    Args:
        texts: Candidate header strings in row order
        today: Fallback date when none of them holds a range

    Returns:
        DateRange from the first matching text, or the fallback
    """
    for text in texts:
        result = extract_date_range(text, today=today)
        if result.matched:
            return result
    return extract_date_range(None, today=today)


def is_iso_date(value: Optional[str]) -> bool:
    """Check if a value is a YYYY-MM-DD date string."""
    if not value or not isinstance(value, str):
        return False
    try:
        datetime.strptime(value.strip(), ISO_FORMAT)
        return True
    except ValueError:
        return False
