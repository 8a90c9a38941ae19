# -*- coding: utf-8 -*-
"""amounts.py
Locale-aware amount normalisation.

Handles "1,234.56", "1.234,56", "1 234,56", "(1,234.56)", "-500", "₹ 2,500.00",
"INR 299.00" and friends.  Zero is treated as "no amount": a zero-value row is
never a transaction.
"""
from __future__ import annotations

import math
import re
from typing import Optional

import numpy as np

CURRENCY_SYMBOLS = "₹$€£¥₺₽₩₪₦₱₫৳฿₨₵﷼"

# Textual prefixes/suffixes ("Rs.", "Cr.", "INR") go with their dot first,
# then everything that is not part of a number.
WORD_MARKER_RE = re.compile(r"[^\W\d_]+\.?\s*")
NON_NUMERIC_RE = re.compile(r"[^\d,.()\-]")
NUMERIC_FRAGMENT_STRIP_RE = re.compile(rf"[{CURRENCY_SYMBOLS}\s,.()\-]")

# Amount-like tokens inside free text (optionally prefixed with a symbol).
AMOUNT_TOKEN_RE = re.compile(rf"(?:[{CURRENCY_SYMBOLS}]\s*)?[\d,]+\.?\d*|\d+[.,]\d{{2}}")


def clean_amount(raw) -> Optional[float]:
    """Return the signed value of *raw*, or None for blanks, dashes and zero."""
    if raw is None or isinstance(raw, (bool, np.bool_)):
        return None
    if isinstance(raw, (int, float, np.integer, np.floating)):
        value = float(raw)
        if math.isnan(value) or value == 0:
            return None
        return value

    s = NON_NUMERIC_RE.sub("", WORD_MARKER_RE.sub("", str(raw)))
    if not s:
        return None

    negative = False
    if s.startswith("(") and s.endswith(")"):
        negative = True
        s = s[1:-1]
    if s.startswith("-"):
        negative = True
        s = s[1:]
    s = s.replace("(", "").replace(")", "")

    last_comma = s.rfind(",")
    last_dot = s.rfind(".")
    if last_comma > last_dot and last_comma > 0:
        after = s[last_comma + 1:]
        if 1 <= len(after) <= 2 and after.isdigit():
            # European style: dots group thousands, comma is the decimal mark
            s = s.replace(".", "")
            s = s[: s.rfind(",")].replace(",", "") + "." + after
        else:
            s = s.replace(",", "")
    else:
        s = s.replace(",", "")

    if not s or s in {"-", "."}:
        return None
    try:
        value = float(s)
    except ValueError:
        return None
    if math.isnan(value) or math.isinf(value) or value == 0:
        return None
    return -abs(value) if negative else value


def is_numeric_fragment(text: str) -> bool:
    """True when a PDF fragment is a bare number once symbols/separators go."""
    stripped = NUMERIC_FRAGMENT_STRIP_RE.sub("", text or "")
    return bool(stripped) and stripped.isdigit()
