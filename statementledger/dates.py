# -*- coding: utf-8 -*-
"""dates.py
Universal date parsing for statements from any bank.

Every entry point returns ``None`` instead of raising; a row whose date cannot
be recovered is simply skipped by the caller.
"""
from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Callable, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd
from dateutil import parser as date_parser

from .models import DateOrder

logger = logging.getLogger(__name__)

MIN_YEAR = 1990
MAX_YEAR = 2100

MONTH_MAP = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

MONTHS_FULL = r"January|February|March|April|May|June|July|August|September|October|November|December"
MONTHS_ABBR = r"Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec"
MONTHS_RE = f"{MONTHS_FULL}|{MONTHS_ABBR}"

WEEKDAY_RE = re.compile(r"^(Mon|Tue|Wed|Thu|Fri|Sat|Sun)[a-z]*[,.]?\s*", re.IGNORECASE)
TIME_SUFFIX_RE = re.compile(r"\s+\d{1,2}:\d{2}(:\d{2})?\s*(AM|PM|am|pm)?.*$")
ORDINAL_RE = re.compile(r"(\d)(st|nd|rd|th)\b", re.IGNORECASE)
BARE_NUMERIC_RE = re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{2,4})$")

# Substrings that look like a date inside a longer line, most specific first.
EMBEDDED_DATE_RES = [
    re.compile(r"\d{4}[-/]\d{1,2}[-/]\d{1,2}"),
    re.compile(r"\d{1,2}[-/]\d{1,2}[-/]\d{4}"),
    re.compile(r"\d{1,2}[-/]\d{1,2}[-/]\d{2}(?!\d)"),
    re.compile(r"\d{1,2}[-/\s][A-Za-z]{3,9}[-/\s,]*\d{2,4}"),
    re.compile(r"[A-Za-z]{3,9}\s+\d{1,2},?\s*\d{2,4}"),
    re.compile(r"\d{1,2}\.\d{1,2}\.\d{2,4}"),
]

# Fixed default so the free-form fallback never depends on today's date.
_FALLBACK_DEFAULT = datetime(2000, 1, 1)
_EXCEL_EPOCH = "1899-12-30"

Parts = Tuple[int, int, int]  # (year, month, day)


def expand_year(y: int) -> int:
    if y >= 100:
        return y
    return 2000 + y if y < 50 else 1900 + y


def _month(name: str) -> Optional[int]:
    return MONTH_MAP.get(name.lower())


def _named_dmy(m: re.Match) -> Optional[Parts]:
    mo = _month(m.group(2))
    return None if mo is None else (expand_year(int(m.group(3))), mo, int(m.group(1)))


def _named_mdy(m: re.Match) -> Optional[Parts]:
    mo = _month(m.group(1))
    return None if mo is None else (expand_year(int(m.group(3))), mo, int(m.group(2)))


def _numeric(year_g: int, day_g: int, month_g: int, two_digit: bool = False) -> Callable[[re.Match], Parts]:
    def extract(m: re.Match) -> Parts:
        y = int(m.group(year_g))
        return (expand_year(y) if two_digit else y, int(m.group(month_g)), int(m.group(day_g)))
    return extract


def _patterns(order: DateOrder) -> List[Tuple[re.Pattern, Callable[[re.Match], Optional[Parts]]]]:
    """Ordered (regex, extractor) pairs; extractors return (year, month, day)."""
    # For slash/dash numeric dates the (day, month) groups swap under MDY.
    day_g, month_g = (1, 2) if order is DateOrder.DMY else (2, 1)
    return [
        # ISO: 2024-01-15 or 2024/01/15
        (re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})$"), _numeric(1, 3, 2)),
        # 15-Jan-2024, 15 Jan 2024, 15 January 24
        (re.compile(r"^(\d{1,2})[-/\s]([A-Za-z]{3,9})[-/\s,]*(\d{2,4})$"), _named_dmy),
        # Jan 15, 2024
        (re.compile(r"^([A-Za-z]{3,9})\s+(\d{1,2}),?\s*(\d{2,4})$"), _named_mdy),
        # 15/01/2024 or 15-01-2024
        (re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$"), _numeric(3, day_g, month_g)),
        # 15/01/24
        (re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{2})$"), _numeric(3, day_g, month_g, two_digit=True)),
        # 2024.01.15
        (re.compile(r"^(\d{4})\.(\d{1,2})\.(\d{1,2})$"), _numeric(1, 3, 2)),
        # 15.01.2024
        (re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$"), _numeric(3, 1, 2)),
        # 15.01.24
        (re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{2})$"), _numeric(3, 1, 2, two_digit=True)),
        # 20240115
        (re.compile(r"^(\d{4})(\d{2})(\d{2})$"), _numeric(1, 3, 2)),
    ]


_PATTERNS = {order: _patterns(order) for order in DateOrder}


def _in_range(year: int) -> bool:
    return MIN_YEAR <= year <= MAX_YEAR


def _build(parts: Parts) -> Optional[date]:
    year, month, day = parts
    if not (1 <= month <= 12 and 1 <= day <= 31 and _in_range(year)):
        return None
    try:
        return date(year, month, day)
    except ValueError:
        # Day overflow such as 30 February
        return None


def _clean(raw: str) -> str:
    cleaned = raw.strip()
    cleaned = WEEKDAY_RE.sub("", cleaned)
    cleaned = TIME_SUFFIX_RE.sub("", cleaned)
    cleaned = ORDINAL_RE.sub(r"\1", cleaned)
    return cleaned


def _fallback(cleaned: str) -> Optional[date]:
    """Free-form parse for layouts the fixed patterns do not know."""
    # Bare numbers ("5", "2024") would otherwise become dates.
    if not re.search(r"[A-Za-z]", cleaned) or not re.search(r"\d", cleaned):
        return None
    try:
        parsed = date_parser.parse(cleaned, default=_FALLBACK_DEFAULT)
    except (ValueError, OverflowError, TypeError):
        return None
    return parsed.date() if _in_range(parsed.year) else None


def parse_date(raw, order: DateOrder = DateOrder.DMY) -> Optional[date]:
    """Parse a single date string. Returns None on failure."""
    if raw is None or not isinstance(raw, str) or not raw.strip():
        return None

    cleaned = _clean(raw)
    for regex, extract in _PATTERNS[order]:
        m = regex.match(cleaned)
        if not m:
            continue
        parts = extract(m)
        if parts is None:
            continue
        result = _build(parts)
        if result is not None:
            return result

    return _fallback(cleaned)


def extract_date_from_text(text, order: DateOrder = DateOrder.DMY) -> Optional[date]:
    """Find a date in a string that may carry other text.

    "Transaction on 15/01/2024 at 14:30" -> date(2024, 1, 15)
    """
    if not text:
        return None

    direct = parse_date(text, order)
    if direct:
        return direct

    for regex in EMBEDDED_DATE_RES:
        m = regex.search(text)
        if m:
            result = parse_date(m.group(0), order)
            if result:
                return result
    return None


def detect_date_order(samples: Iterable[str]) -> DateOrder:
    """Decide between DD/MM and MM/DD for a batch of numeric dates."""
    dmy_score = 0
    mdy_score = 0
    for sample in samples:
        if not isinstance(sample, str):
            continue
        m = BARE_NUMERIC_RE.match(sample.strip())
        if not m:
            continue
        a, b = int(m.group(1)), int(m.group(2))
        # A group above 12 can only be a day
        if 12 < a <= 31:
            dmy_score += 5
        if 12 < b <= 31:
            mdy_score += 5

    order = DateOrder.MDY if mdy_score > dmy_score else DateOrder.DMY
    logger.debug(f"Date order scores DMY={dmy_score} MDY={mdy_score} -> {order.value}")
    return order


def excel_serial_to_date(serial) -> Optional[date]:
    """Convert a spreadsheet serial day number (1900 date system)."""
    try:
        serial = float(serial)
    except (TypeError, ValueError):
        return None
    if not (0 < serial <= 100000):
        return None
    # 1899-12-30 as day zero absorbs the fictitious 29 February 1900.
    result = pd.to_datetime(int(serial), unit="D", origin=_EXCEL_EPOCH).date()
    return result if _in_range(result.year) else None


def coerce_date(value, order: DateOrder = DateOrder.DMY) -> Optional[date]:
    """Date from a tabular cell: date objects, spreadsheet serials or text."""
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            return None
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value if _in_range(value.year) else None
    if isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        if pd.isna(value):
            return None
        return excel_serial_to_date(value)
    return parse_date(str(value), order)
