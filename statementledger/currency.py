# -*- coding: utf-8 -*-
"""currency.py
Currency sniffing from raw statement text.

Every catalog entry carries weighted patterns: a literal currency sign is the
strongest evidence (3), an ISO code next (2), a descriptive word last (1).
"""
from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Tuple

from .models import Currency, CurrencyPattern

logger = logging.getLogger(__name__)

SYMBOL_WEIGHT = 3
CODE_WEIGHT = 2
WORD_WEIGHT = 1

SAMPLE_HEAD = 5000
SAMPLE_TAIL = 2000


def _symbol(source: str) -> CurrencyPattern:
    return CurrencyPattern(re.compile(source, re.IGNORECASE), SYMBOL_WEIGHT)


def _code(iso: str) -> CurrencyPattern:
    return CurrencyPattern(re.compile(rf"\b{iso}\b", re.IGNORECASE), CODE_WEIGHT)


def _word(source: str) -> CurrencyPattern:
    return CurrencyPattern(re.compile(source, re.IGNORECASE), WORD_WEIGHT)


def _entry(code: str, symbol: str, name: str, locale: str, *patterns: CurrencyPattern) -> Currency:
    return Currency(code=code, symbol=symbol, name=name, locale=locale, patterns=tuple(patterns))


CURRENCY_CATALOG: Tuple[Currency, ...] = (
    _entry("INR", "₹", "Indian Rupee", "en-IN", _symbol("₹"), _code("INR"), _word(r"\bRs\.?\s"), _word(r"\bRupees?\b")),
    # Bare dollar only: "A$", "HK$" and friends belong to their own entries
    _entry("USD", "$", "US Dollar", "en-US", _symbol(r"(?<![A-Za-z])\$"), _code("USD"), _word(r"\bUS\s?Dollar")),
    _entry("EUR", "€", "Euro", "de-DE", _symbol("€"), _code("EUR"), _word(r"\bEuros?\b")),
    _entry("GBP", "£", "British Pound", "en-GB", _symbol(r"(?<!E)£"), _code("GBP"), _word(r"\bPound\s?Sterling\b")),
    _entry("JPY", "¥", "Japanese Yen", "ja-JP", _symbol("¥"), _code("JPY"), _word(r"\bYen\b")),
    _entry("CNY", "¥", "Chinese Yuan", "zh-CN", _code("CNY"), _word(r"\bRMB\b"), _word(r"\bYuan\b"), _word("人民币")),
    _entry("AUD", "A$", "Australian Dollar", "en-AU", _symbol(r"\bA\$"), _code("AUD")),
    _entry("CAD", "C$", "Canadian Dollar", "en-CA", _symbol(r"\bC\$"), _code("CAD")),
    _entry("CHF", "Fr", "Swiss Franc", "de-CH", _code("CHF"), _word(r"\bFr\.?\s")),
    _entry("SEK", "kr", "Swedish Krona", "sv-SE", _code("SEK"), _word(r"\bkr\b")),
    _entry("NOK", "kr", "Norwegian Krone", "nb-NO", _code("NOK")),
    _entry("DKK", "kr", "Danish Krone", "da-DK", _code("DKK")),
    _entry("SGD", "S$", "Singapore Dollar", "en-SG", _symbol(r"\bS\$"), _code("SGD")),
    _entry("HKD", "HK$", "Hong Kong Dollar", "en-HK", _symbol(r"HK\$"), _code("HKD")),
    _entry("NZD", "NZ$", "New Zealand Dollar", "en-NZ", _symbol(r"NZ\$"), _code("NZD")),
    _entry("ZAR", "R", "South African Rand", "en-ZA", _code("ZAR"), _word(r"\bRand\b")),
    _entry("BRL", "R$", "Brazilian Real", "pt-BR", _symbol(r"\bR\$"), _code("BRL"), _word(r"\bReal\b")),
    _entry("MXN", "MX$", "Mexican Peso", "es-MX", _symbol(r"MX\$"), _code("MXN")),
    _entry("ARS", "AR$", "Argentine Peso", "es-AR", _symbol(r"AR\$"), _code("ARS")),
    _entry("CLP", "CL$", "Chilean Peso", "es-CL", _symbol(r"CL\$"), _code("CLP")),
    _entry("COP", "COL$", "Colombian Peso", "es-CO", _symbol(r"COL\$"), _code("COP")),
    _entry("MYR", "RM", "Malaysian Ringgit", "ms-MY", _code("MYR"), _word(r"\bRM\b"), _word(r"\bRinggit\b")),
    _entry("THB", "฿", "Thai Baht", "th-TH", _symbol("฿"), _code("THB"), _word(r"\bBaht\b")),
    _entry("IDR", "Rp", "Indonesian Rupiah", "id-ID", _code("IDR"), _word(r"\bRp\.?\s"), _word(r"\bRupiah\b")),
    _entry("PHP", "₱", "Philippine Peso", "en-PH", _symbol("₱"), _code("PHP")),
    _entry("VND", "₫", "Vietnamese Dong", "vi-VN", _symbol("₫"), _code("VND")),
    _entry("KRW", "₩", "South Korean Won", "ko-KR", _symbol("₩"), _code("KRW")),
    _entry("TWD", "NT$", "Taiwan Dollar", "zh-TW", _symbol(r"NT\$"), _code("TWD")),
    _entry("TRY", "₺", "Turkish Lira", "tr-TR", _symbol("₺"), _code("TRY"), _word(r"\bTL\b")),
    _entry("RUB", "₽", "Russian Ruble", "ru-RU", _symbol("₽"), _code("RUB"), _word(r"\bруб")),
    _entry("PLN", "zł", "Polish Zloty", "pl-PL", _symbol("zł"), _code("PLN")),
    _entry("CZK", "Kč", "Czech Koruna", "cs-CZ", _symbol("Kč"), _code("CZK")),
    _entry("HUF", "Ft", "Hungarian Forint", "hu-HU", _code("HUF"), _word(r"\bFt\b")),
    _entry("RON", "lei", "Romanian Leu", "ro-RO", _code("RON"), _word(r"\blei\b")),
    _entry("ILS", "₪", "Israeli Shekel", "he-IL", _symbol("₪"), _code("ILS"), _word(r"\bShekel\b")),
    _entry("AED", "د.إ", "UAE Dirham", "ar-AE", _symbol(r"د\.إ"), _code("AED"), _word(r"\bDirham\b")),
    _entry("SAR", "﷼", "Saudi Riyal", "ar-SA", _symbol("﷼"), _code("SAR"), _word(r"\bRiyal\b")),
    _entry("QAR", "QR", "Qatari Riyal", "ar-QA", _code("QAR")),
    _entry("KWD", "KD", "Kuwaiti Dinar", "ar-KW", _code("KWD"), _word(r"\bKD\b")),
    _entry("BHD", "BD", "Bahraini Dinar", "ar-BH", _code("BHD")),
    _entry("OMR", "OMR", "Omani Rial", "ar-OM", _code("OMR")),
    _entry("EGP", "E£", "Egyptian Pound", "ar-EG", _symbol("E£"), _code("EGP")),
    _entry("NGN", "₦", "Nigerian Naira", "en-NG", _symbol("₦"), _code("NGN"), _word(r"\bNaira\b")),
    _entry("KES", "KSh", "Kenyan Shilling", "en-KE", _code("KES"), _word(r"\bKSh\b")),
    _entry("GHS", "GH₵", "Ghanaian Cedi", "en-GH", _symbol("GH₵"), _code("GHS")),
    _entry("PKR", "₨", "Pakistani Rupee", "en-PK", _symbol("₨"), _code("PKR")),
    _entry("BDT", "৳", "Bangladeshi Taka", "bn-BD", _symbol("৳"), _code("BDT"), _word(r"\bTaka\b")),
    _entry("LKR", "Rs", "Sri Lankan Rupee", "si-LK", _code("LKR")),
    _entry("NPR", "Rs", "Nepalese Rupee", "ne-NP", _code("NPR")),
)

_BY_CODE = {c.code: c for c in CURRENCY_CATALOG}


def sample_text(text: str, head: int = SAMPLE_HEAD, tail: int = SAMPLE_TAIL) -> str:
    """Bound detection cost: the start and the end of a statement are enough."""
    if len(text) <= head + tail:
        return text
    return text[:head] + "\n" + text[-tail:]


def score_currency(currency: Currency, sample: str) -> int:
    return sum(len(p.regex.findall(sample)) * p.weight for p in currency.patterns)


def detect_currency(text: Optional[str], catalog: Iterable[Currency] = CURRENCY_CATALOG) -> Optional[Currency]:
    """Return the best-scoring currency for *text*, or None if nothing matches."""
    if not text:
        return None

    sample = sample_text(text)
    best: Optional[Currency] = None
    best_score = 0
    for currency in catalog:
        score = score_currency(currency, sample)
        # Strictly greater: ties keep the entry examined first
        if score > best_score:
            best, best_score = currency, score

    if best is not None:
        logger.info(f"Detected currency {best.code} (score {best_score})")
    return best


def detect_currency_from_headers(headers: Iterable[str]) -> Optional[Currency]:
    """Headers such as "Amount (INR)" or "Debit (₹)" often name the currency."""
    return detect_currency(" ".join(str(h) for h in headers))


def get_currency(code: str) -> Optional[Currency]:
    return _BY_CODE.get((code or "").upper())


def locale_for_currency(code: str) -> str:
    entry = get_currency(code)
    return entry.locale if entry else "en-US"
