"""
Value normalization helpers shared by the matcher and the comparator.
"""

import math
import re
from datetime import datetime
from typing import Any, Optional


_NON_WORD = re.compile(r'[^\w\s]')
_WHITESPACE = re.compile(r'\s+')


def is_missing(value: Any) -> bool:
    """True for None, empty strings and empty collections"""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ''
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def to_number(value: Any) -> Optional[float]:
    """
    Coerce a price or count to float.

    Strings are stripped of currency symbols and thousands separators
    ("€450,000" -> 450000.0). Returns None when nothing numeric remains.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = re.sub(r'[^\d.\-]', '', value)
        if not cleaned:
            return None
        try:
            return float(cleaned)
        except ValueError:
            return None
    return None


def normalize_text(value: Any) -> str:
    return _WHITESPACE.sub(' ', str(value).strip().lower())


def normalize_rating(value: Any) -> str:
    return str(value).strip().upper()


def parse_date(value: Any) -> Optional[datetime]:
    """Parse ISO-8601 strings (including a trailing Z) and datetimes"""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def to_timestamp(value: Any) -> Optional[float]:
    parsed = parse_date(value)
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        # Naive timestamps are compared as-is, without local timezone lookup
        return (parsed - datetime(1970, 1, 1)).total_seconds()
    return parsed.timestamp()


def normalize_address(address: Optional[str]) -> str:
    """Lowercase, strip punctuation and collapse whitespace"""
    if not address:
        return ""
    stripped = _NON_WORD.sub('', str(address).lower())
    return _WHITESPACE.sub(' ', stripped).strip()


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up (12.5 -> 13)"""
    return int(math.floor(value + 0.5))
