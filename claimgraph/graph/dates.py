"""Best-effort parsing of the free-text dates users type for events."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

# Day-first formats; the user base writes dates day/month/year
DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%d.%m.%Y",
    "%d-%m-%Y",
    "%d/%m/%y",
    "%d.%m.%y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %Y",
    "%b %Y",
    "%Y-%m",
    "%Y",
)


def parse_date(date_str: Optional[str]) -> Optional[date]:
    """Parse date from various formats.

    Returns None for empty or unrecognised text. A trailing time part in an
    ISO timestamp ("2024-01-15T10:00:00") is ignored.
    """
    if not date_str:
        return None
    text = date_str.strip()
    if not text:
        return None
    if "T" in text and text[:4].isdigit():
        text = text.split("T", 1)[0]

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def chronological_key(date_str: Optional[str]) -> tuple:
    """Sort key: parsed dates first, then unparseable text, then missing dates.

    Within each band ties fall back to the raw text compare, so for ISO
    dates this ordering is the same as sorting the strings.
    """
    if not date_str or not date_str.strip():
        return (2, date.max, "")
    parsed = parse_date(date_str)
    if parsed is None:
        return (1, date.max, date_str)
    return (0, parsed, date_str)
